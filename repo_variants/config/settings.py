from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringMode(str, Enum):
    """How a candidate's activity epoch is derived."""

    BASIC = "basic"
    COMPREHENSIVE = "comprehensive"


DETACHED_BRANCH = "HEAD"

DEFAULT_IGNORE_GLOBS = [
    ".git",
    "build",
    ".dart_tool",
    ".idea",
    ".vscode",
    "__pycache__",
    "node_modules",
]


class Settings(BaseSettings):
    """
    Runtime settings loaded from environment variables.

    Every field can be set through a ``REPO_VARIANTS_``-prefixed variable
    (list fields take a JSON array) or a ``.env`` file in the working
    directory. Command-line flags take precedence over these values.
    """

    MODE: ScoringMode = ScoringMode.BASIC

    # Walk exclusions
    IGNORE_GLOBS: List[str] = DEFAULT_IGNORE_GLOBS
    DIFF_EXCLUDE_GLOBS: List[str] = [".git"]
    MAX_DEPTH: Optional[int] = None

    # Worker pool
    MAX_WORKERS: int = Field(default=4, ge=1)
    EXTRACTION_TIMEOUT: float = Field(default=120.0, gt=0)  # seconds per candidate
    DIFF_TIMEOUT: float = Field(default=300.0, gt=0)  # seconds per pair

    # Output
    TOP_N: Optional[int] = None
    OUTPUT_DIR: str = "./logs"

    # Development and debugging
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_prefix="REPO_VARIANTS_", env_file=".env", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
