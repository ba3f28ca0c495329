"""Domain records for the application."""

from .arena import CandidateArena
from .candidate import FocusStatus, RepoCandidate
from .diff import DiffResult, PairComparison
from .files import FileRecord
from .status import FileState, StatusEntry

__all__ = [
    "CandidateArena",
    "DiffResult",
    "FileRecord",
    "FileState",
    "FocusStatus",
    "PairComparison",
    "RepoCandidate",
    "StatusEntry",
]
