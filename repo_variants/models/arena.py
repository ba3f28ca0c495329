"""Discovery-ordered storage for candidate records."""

from typing import Dict, Iterator, List, Optional

from .candidate import RepoCandidate


class CandidateArena:
    """
    Holds candidate slots in discovery order with a path-to-slot lookup.

    Slots are reserved up front from the discovered paths, then filled as
    extraction completes, in whatever order that happens. A slot that is
    never filled belongs to a candidate that failed extraction.
    """

    def __init__(self, paths: List[str]):
        self._paths: List[str] = []
        self._index: Dict[str, int] = {}
        for path in paths:
            if path in self._index:
                continue
            self._index[path] = len(self._paths)
            self._paths.append(path)
        self._records: List[Optional[RepoCandidate]] = [None] * len(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._index

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def index_of(self, path: str) -> int:
        try:
            return self._index[path]
        except KeyError:
            raise KeyError(f"Unknown candidate path: {path}") from None

    def store(self, candidate: RepoCandidate) -> None:
        """Fill the slot reserved for ``candidate.path``."""
        slot = self.index_of(candidate.path)
        if self._records[slot] is not None:
            raise ValueError(f"Candidate already stored: {candidate.path}")
        self._records[slot] = candidate

    def get(self, path: str) -> Optional[RepoCandidate]:
        return self._records[self.index_of(path)]

    def candidates(self) -> Iterator[RepoCandidate]:
        """Yield the filled slots in discovery order."""
        for record in self._records:
            if record is not None:
                yield record

    def missing(self) -> List[str]:
        """Paths whose slot was never filled."""
        return [
            path for path, record in zip(self._paths, self._records) if record is None
        ]
