"""Working-tree status entries reported by the version-control client."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FileState(str, Enum):
    """One column of a porcelain status code (index side or worktree side)."""

    UNMODIFIED = " "
    MODIFIED = "M"
    TYPE_CHANGED = "T"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNMERGED = "U"
    UNTRACKED = "?"
    IGNORED = "!"

    @property
    def is_pending(self) -> bool:
        """True when this state denotes a change not yet recorded in a commit."""
        return self not in (FileState.UNMODIFIED, FileState.UNTRACKED, FileState.IGNORED)


class StatusEntry(BaseModel):
    """A single line of working-tree status."""

    model_config = ConfigDict(frozen=True)

    path: str
    index_state: FileState
    worktree_state: FileState
    original_path: Optional[str] = None  # For renames and copies

    @property
    def is_untracked(self) -> bool:
        return (
            self.index_state is FileState.UNTRACKED
            and self.worktree_state is FileState.UNTRACKED
        )

    @property
    def is_staged(self) -> bool:
        return self.index_state.is_pending

    @property
    def is_unstaged(self) -> bool:
        return self.worktree_state.is_pending

    @classmethod
    def from_code(
        cls, code: str, path: str, original_path: Optional[str] = None
    ) -> "StatusEntry":
        """Build an entry from a two-character porcelain status code."""
        if len(code) != 2:
            raise ValueError(f"Invalid status code: {code!r}")
        return cls(
            path=path,
            index_state=FileState(code[0]),
            worktree_state=FileState(code[1]),
            original_path=original_path,
        )
