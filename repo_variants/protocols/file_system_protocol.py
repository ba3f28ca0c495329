"""File system protocol interface."""

from typing import Iterable, Iterator, Protocol, runtime_checkable

from ..models import FileRecord


@runtime_checkable
class FileSystemProtocol(Protocol):
    """Recursive listing of regular files."""

    def iter_files(
        self, root: str, exclude_globs: Iterable[str], strict: bool = False
    ) -> Iterator[FileRecord]:
        """Yield every regular file under ``root`` not matched by ``exclude_globs``.

        Unreadable paths are skipped, or raise OSError when ``strict`` is set.
        """
        ...
