"""Candidate working-tree records."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FocusStatus(str, Enum):
    """State of the files matched by an optional focus pattern."""

    NONE = "none"  # no focus pattern configured
    MISSING = "missing"
    CLEAN = "clean"
    DIRTY = "dirty"


class RepoCandidate(BaseModel):
    """One discovered working tree and the signals extracted from it."""

    model_config = ConfigDict(frozen=True)

    path: str
    branch: str
    head_hash: Optional[str] = None
    head_commit_epoch: int = Field(default=0, ge=0)
    ahead: int = Field(default=0, ge=0)
    behind: int = Field(default=0, ge=0)
    staged_count: int = Field(default=0, ge=0)
    unstaged_count: int = Field(default=0, ge=0)
    untracked_count: int = Field(default=0, ge=0)
    dirty: bool = False
    latest_file_epoch: int = Field(default=0, ge=0)
    latest_file_path: Optional[str] = None
    focus_status: FocusStatus = FocusStatus.NONE
    focus_latest_epoch: int = Field(default=0, ge=0)
    activity_epoch: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _default_activity_epoch(cls, data):
        if isinstance(data, dict) and "activity_epoch" not in data:
            data = dict(data)
            data["activity_epoch"] = data.get("head_commit_epoch", 0)
        return data

    @model_validator(mode="after")
    def _check_activity_epoch(self) -> "RepoCandidate":
        if self.activity_epoch < self.head_commit_epoch:
            raise ValueError(
                f"activity_epoch ({self.activity_epoch}) is older than "
                f"head_commit_epoch ({self.head_commit_epoch})"
            )
        return self

    @property
    def flags(self) -> str:
        """Compact status flags: U untracked, M unstaged, S staged, D dirty."""
        flags = ""
        if self.untracked_count:
            flags += "U"
        if self.unstaged_count:
            flags += "M"
        if self.staged_count:
            flags += "S"
        if self.dirty:
            flags += "D"
        return flags or "-"

    def with_activity(self, activity_epoch: int) -> "RepoCandidate":
        """Return a copy carrying a new activity epoch."""
        return self.model_validate(
            {**self.model_dump(), "activity_epoch": activity_epoch}
        )
