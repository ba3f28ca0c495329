import logging
import os
from fnmatch import fnmatchcase
from typing import Iterable, List, NamedTuple, Optional, Set, Tuple

from ..errors import ExtractionFailure
from ..models import FocusStatus, RepoCandidate, StatusEntry
from ..protocols import FileSystemProtocol, GitClientFactory
from .discovery import MARKER_NAME, has_marker

logger = logging.getLogger(__name__)


class StatusCounts(NamedTuple):
    staged: int
    unstaged: int
    untracked: int

    @property
    def total(self) -> int:
        return self.staged + self.unstaged + self.untracked


def count_status_classes(entries: Iterable[StatusEntry]) -> StatusCounts:
    """
    Classify status entries.

    An untracked entry counts only as untracked. Any other entry counts as
    staged when its index side is pending and as unstaged when its worktree
    side is pending; a partially staged file counts as both.
    """
    staged = unstaged = untracked = 0
    for entry in entries:
        if entry.is_untracked:
            untracked += 1
            continue
        if entry.is_staged:
            staged += 1
        if entry.is_unstaged:
            unstaged += 1
    return StatusCounts(staged, unstaged, untracked)


class TreeSignals(NamedTuple):
    latest_epoch: int
    latest_path: Optional[str]
    focus_files: List[str]
    focus_latest_epoch: int


class MetadataExtractor:
    """Builds a RepoCandidate from one working tree."""

    def __init__(
        self,
        git_client_factory: GitClientFactory,
        file_system: FileSystemProtocol,
        ignore_globs: Iterable[str],
        scan_files: bool = True,
        focus_pattern: Optional[str] = None,
    ):
        self.git_client_factory = git_client_factory
        self.file_system = file_system
        self.ignore_globs = list(ignore_globs)
        self.scan_files = scan_files
        self.focus_pattern = focus_pattern

    def extract(self, path: str) -> RepoCandidate:
        """Gather version-control and file-recency signals for ``path``.

        Raises ExtractionFailure when the marker is missing or git fails.
        """
        if not has_marker(path):
            raise ExtractionFailure(path, f"no {MARKER_NAME} marker")

        logger.debug(f"Extracting metadata: {path}")
        client = self.git_client_factory(path)
        try:
            branch = client.current_branch()
            head_epoch = client.head_commit_epoch()
            head_hash = client.head_hash()
            ahead, behind = client.ahead_behind()
            entries = client.status_entries()
        finally:
            client.close()

        counts = count_status_classes(entries)
        logger.debug(
            f"  branch={branch} head_epoch={head_epoch} ahead={ahead} behind={behind} "
            f"staged={counts.staged} unstaged={counts.unstaged} untracked={counts.untracked}"
        )

        signals = TreeSignals(0, None, [], 0)
        if self.scan_files or self.focus_pattern:
            signals = self._walk_tree(path)
            logger.debug(
                f"  latest_epoch={signals.latest_epoch} latest_path={signals.latest_path}"
            )

        focus_status = FocusStatus.NONE
        if self.focus_pattern:
            focus_status = _focus_status(signals.focus_files, entries)

        return RepoCandidate(
            path=path,
            branch=branch,
            head_hash=head_hash,
            head_commit_epoch=head_epoch,
            ahead=ahead,
            behind=behind,
            staged_count=counts.staged,
            unstaged_count=counts.unstaged,
            untracked_count=counts.untracked,
            dirty=bool(entries),
            latest_file_epoch=signals.latest_epoch if self.scan_files else 0,
            latest_file_path=signals.latest_path if self.scan_files else None,
            focus_status=focus_status,
            focus_latest_epoch=signals.focus_latest_epoch,
            activity_epoch=head_epoch,
        )

    def _walk_tree(self, path: str) -> TreeSignals:
        # Ties keep the first file seen; enumeration order is up to the
        # file system.
        latest_epoch = 0
        latest_rel: Optional[str] = None
        focus_files: List[str] = []
        focus_latest = 0
        for record in self.file_system.iter_files(path, self.ignore_globs):
            if latest_rel is None or record.mtime > latest_epoch:
                latest_epoch, latest_rel = record.mtime, record.relative_path
            if self.focus_pattern and fnmatchcase(record.relative_path, self.focus_pattern):
                focus_files.append(record.relative_path)
                focus_latest = max(focus_latest, record.mtime)
        latest_path = os.path.join(path, latest_rel) if latest_rel else None
        return TreeSignals(latest_epoch, latest_path, focus_files, focus_latest)


def _focus_status(focus_files: List[str], entries: List[StatusEntry]) -> FocusStatus:
    if not focus_files:
        return FocusStatus.MISSING
    changed: Set[str] = {e.path for e in entries}
    # Untracked directories are listed once with a trailing slash
    changed_dirs: Tuple[str, ...] = tuple(p for p in changed if p.endswith("/"))
    for rel_path in focus_files:
        if rel_path in changed or rel_path.startswith(changed_dirs):
            return FocusStatus.DIRTY
    return FocusStatus.CLEAN
