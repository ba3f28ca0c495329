import logging
import os
from fnmatch import fnmatchcase
from typing import List, Optional, Sequence, Set

from ..errors import DiscoveryWarning, NotFoundError
from ..schemas import DiscoveryResult, SkippedPath

logger = logging.getLogger(__name__)

MARKER_NAME = ".git"
_GLOB_CHARS = frozenset("*?[")


def is_glob(pattern: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in pattern)


def name_matches(name: str, name_filters: Sequence[str]) -> bool:
    """A glob filter must match the whole name; any other filter is a prefix."""
    for pattern in name_filters:
        if is_glob(pattern):
            if fnmatchcase(name, pattern):
                return True
        elif name.startswith(pattern):
            return True
    return False


def has_marker(path: str) -> bool:
    """True for a plain working tree (marker directory) or a linked one (marker file)."""
    marker = os.path.join(path, MARKER_NAME)
    return os.path.isdir(marker) or os.path.isfile(marker)


class Discovery:
    """Finds candidate working trees under a root directory."""

    def __init__(self, name_filters: Sequence[str], max_depth: Optional[int] = None):
        if not name_filters or not all(name_filters):
            raise ValueError("At least one non-empty name filter is required")
        if max_depth is not None and max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        self.name_filters = list(name_filters)
        self.max_depth = max_depth

    def discover(self, root: str) -> DiscoveryResult:
        """
        Walk ``root`` and return matching working trees in walk order.

        Directories are visited top-down with siblings sorted by name, so the
        order is stable across runs. Marker directories are not descended
        into. Raises NotFoundError when ``root`` is not an existing directory.
        """
        if not os.path.isdir(root):
            raise NotFoundError(f"Root folder does not exist or is not a directory: {root}")

        root = os.path.abspath(root)
        candidates: List[str] = []
        seen: Set[str] = set()
        skipped: List[SkippedPath] = []

        def _on_error(error: OSError) -> None:
            warning = DiscoveryWarning(str(error.filename), error.strerror or str(error))
            logger.warning(str(warning))
            skipped.append(SkippedPath(path=warning.path, reason=warning.reason))

        for dirpath, dirnames, _ in os.walk(root, onerror=_on_error):
            dirnames[:] = sorted(d for d in dirnames if d != MARKER_NAME)
            if self.max_depth is not None and _depth(root, dirpath) >= self.max_depth:
                dirnames[:] = []

            name = os.path.basename(dirpath)
            if not name_matches(name, self.name_filters):
                continue
            if not has_marker(dirpath):
                logger.debug(f"Name matches but no {MARKER_NAME} marker: {dirpath}")
                continue
            path = os.path.normpath(dirpath)
            if path in seen:
                continue
            seen.add(path)
            logger.debug(f"Candidate repo: {path}")
            candidates.append(path)

        return DiscoveryResult(root=root, candidates=candidates, skipped=skipped)


def _depth(root: str, path: str) -> int:
    rel = os.path.relpath(path, root)
    return 0 if rel == "." else rel.count(os.sep) + 1
