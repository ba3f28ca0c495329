"""Run-level schema classes."""

from typing import List, Optional

from pydantic import BaseModel

from ..config.settings import ScoringMode
from ..models import PairComparison, RepoCandidate


class SkippedPath(BaseModel):
    """A subtree discovery could not read."""

    path: str
    reason: str


class ExcludedCandidate(BaseModel):
    """A discovered candidate left out of the ranking."""

    path: str
    reason: str


class DiscoveryResult(BaseModel):
    root: str
    candidates: List[str] = []
    skipped: List[SkippedPath] = []


class RankedCandidates(BaseModel):
    """Candidates in rank order; rank 1 is the most recently active."""

    mode: ScoringMode
    candidates: List[RepoCandidate] = []

    @property
    def best(self) -> Optional[RepoCandidate]:
        return self.candidates[0] if self.candidates else None

    def __len__(self) -> int:
        return len(self.candidates)


class ScanReport(BaseModel):
    """Everything one run produced, ready for the report emitter."""

    root: str
    name_filters: List[str]
    ranking: RankedCandidates
    excluded: List[ExcludedCandidate] = []
    skipped: List[SkippedPath] = []
    comparisons: List[PairComparison] = []

    @property
    def mode(self) -> ScoringMode:
        return self.ranking.mode
