import logging
import os
import stat
from fnmatch import fnmatchcase
from typing import Iterable, Iterator, List

from ..models import FileRecord

logger = logging.getLogger(__name__)


def is_excluded(relative_path: str, exclude_globs: Iterable[str]) -> bool:
    """
    Check a POSIX relative path against exclusion globs.

    A glob excludes the path when it matches the whole relative path or any
    single component of it, so ``build`` excludes ``build/`` at every depth
    while ``app/build`` only excludes that one directory.
    """
    parts = relative_path.split("/")
    for pattern in exclude_globs:
        if fnmatchcase(relative_path, pattern):
            return True
        if any(fnmatchcase(part, pattern) for part in parts):
            return True
    return False


class LocalFileSystem:
    """Walks local directory trees."""

    def iter_files(
        self, root: str, exclude_globs: Iterable[str], strict: bool = False
    ) -> Iterator[FileRecord]:
        """
        Yield regular files under ``root`` with their modification time.

        Excluded directories are pruned rather than walked. Symbolic links
        are neither followed nor reported. Unreadable directories are
        logged and skipped, or raise OSError when ``strict`` is set.
        """
        globs: List[str] = list(exclude_globs)

        def _on_error(error: OSError) -> None:
            if strict:
                raise error
            logger.warning(f"Skipping unreadable path {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            rel_dir = os.path.relpath(dirpath, root)
            rel_dir = "" if rel_dir == "." else rel_dir.replace(os.sep, "/")

            dirnames[:] = [
                d for d in dirnames if not is_excluded(_join(rel_dir, d), globs)
            ]
            for name in filenames:
                rel_path = _join(rel_dir, name)
                if is_excluded(rel_path, globs):
                    continue
                full_path = os.path.join(dirpath, name)
                try:
                    st = os.lstat(full_path)
                except OSError as e:
                    if strict:
                        raise
                    logger.warning(f"Cannot stat {full_path}: {e.strerror}")
                    continue
                if not stat.S_ISREG(st.st_mode):
                    continue
                yield FileRecord(rel_path, int(st.st_mtime))


def _join(rel_dir: str, name: str) -> str:
    return f"{rel_dir}/{name}" if rel_dir else name
