"""Unit tests for the local file system walker."""

import os

from repo_variants.services.file_system import LocalFileSystem, is_excluded


class TestIsExcluded:
    def test_component_match_at_any_depth(self):
        assert is_excluded("build/out.o", ["build"])
        assert is_excluded("app/build/out.o", ["build"])
        assert not is_excluded("builder/out.o", ["build"])

    def test_relative_path_glob(self):
        assert is_excluded("app/build/out.o", ["app/build*"])
        assert not is_excluded("lib/build/out.o", ["app/build"])

    def test_wildcards(self):
        assert is_excluded("src/mod.pyc", ["*.pyc"])
        assert not is_excluded("src/mod.py", ["*.pyc"])


class TestLocalFileSystem:
    """Test cases for LocalFileSystem.iter_files."""

    def test_lists_regular_files_with_mtime(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.py").write_text("a")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_text("ref")
        (tmp_path / ".idea").mkdir()
        (tmp_path / ".idea" / "ws.xml").write_text("x")
        (tmp_path / "top.txt").write_text("t")
        os.utime(tmp_path / "top.txt", (1234, 1234))
        os.symlink(tmp_path / "top.txt", tmp_path / "link.txt")

        records = list(LocalFileSystem().iter_files(str(tmp_path), [".git", ".idea"]))

        assert sorted(r.relative_path for r in records) == ["src/a.py", "top.txt"]
        assert dict(records)["top.txt"] == 1234

    def test_excluded_directories_are_not_walked(self, tmp_path, monkeypatch):
        (tmp_path / "node_modules" / "pkg").mkdir(parents=True)
        (tmp_path / "node_modules" / "pkg" / "index.js").write_text("x")
        visited = []
        real_walk = os.walk

        def tracking_walk(top, *args, **kwargs):
            for entry in real_walk(top, *args, **kwargs):
                visited.append(entry[0])
                yield entry

        monkeypatch.setattr("repo_variants.services.file_system.os.walk", tracking_walk)

        assert list(LocalFileSystem().iter_files(str(tmp_path), ["node_modules"])) == []
        assert visited == [str(tmp_path)]
