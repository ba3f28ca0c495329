"""File listing records."""

from typing import NamedTuple


class FileRecord(NamedTuple):
    """A regular file found by a tree walk."""

    relative_path: str  # POSIX separators, relative to the walked root
    mtime: int  # whole seconds since the epoch
