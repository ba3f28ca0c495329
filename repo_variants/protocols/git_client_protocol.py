"""Git client protocol interface."""

from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from ..models import StatusEntry


@runtime_checkable
class GitClientProtocol(Protocol):
    """Read-only queries against one working tree."""

    @property
    def local_path(self) -> Path:
        """Working tree root."""
        ...

    def current_branch(self) -> str:
        """Symbolic branch name, or the detached sentinel."""
        ...

    def head_commit_epoch(self) -> int:
        """Commit time of HEAD in epoch seconds; 0 when there are no commits."""
        ...

    def head_hash(self) -> Optional[str]:
        """Abbreviated HEAD hash, or None when there are no commits."""
        ...

    def ahead_behind(self) -> Tuple[int, int]:
        """(ahead, behind) relative to the upstream; (0, 0) without one."""
        ...

    def status_entries(self) -> List[StatusEntry]:
        """Working-tree status, one entry per listed path."""
        ...

    def close(self) -> None:
        """Release any resources held by the client."""
        ...


GitClientFactory = Callable[[str], GitClientProtocol]
