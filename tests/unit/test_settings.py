"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from repo_variants.config.settings import DEFAULT_IGNORE_GLOBS, ScoringMode, Settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("MODE", "IGNORE_GLOBS", "MAX_WORKERS", "OUTPUT_DIR"):
        monkeypatch.delenv(f"REPO_VARIANTS_{name}", raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.MODE is ScoringMode.BASIC
        assert settings.IGNORE_GLOBS == DEFAULT_IGNORE_GLOBS
        assert settings.DIFF_EXCLUDE_GLOBS == [".git"]
        assert settings.MAX_WORKERS == 4
        assert settings.TOP_N is None

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("REPO_VARIANTS_MODE", "comprehensive")
        monkeypatch.setenv("REPO_VARIANTS_IGNORE_GLOBS", '["dist", "*.tmp"]')
        monkeypatch.setenv("REPO_VARIANTS_OUTPUT_DIR", "/tmp/reports")

        settings = Settings()

        assert settings.MODE is ScoringMode.COMPREHENSIVE
        assert settings.IGNORE_GLOBS == ["dist", "*.tmp"]
        assert settings.OUTPUT_DIR == "/tmp/reports"

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("REPO_VARIANTS_MAX_WORKERS=8\n")
        assert Settings().MAX_WORKERS == 8

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("REPO_VARIANTS_MAX_WORKERS", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_unknown_mode(self, monkeypatch):
        monkeypatch.setenv("REPO_VARIANTS_MODE", "forensic")
        with pytest.raises(ValidationError):
            Settings()
