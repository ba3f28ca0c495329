from typing import Iterable, List

from ..config.settings import ScoringMode
from ..models import RepoCandidate
from ..schemas import RankedCandidates


def activity_epoch(candidate: RepoCandidate, mode: ScoringMode) -> int:
    """
    Reduce a candidate's signals to the scalar used for ranking.

    ``basic`` uses the HEAD commit time alone. ``comprehensive`` also counts
    the newest file modification, so uncommitted work lifts a tree above
    clean copies with older commits.
    """
    if mode is ScoringMode.COMPREHENSIVE:
        return max(candidate.head_commit_epoch, candidate.latest_file_epoch)
    return candidate.head_commit_epoch


def rank_key(candidate: RepoCandidate):
    return (-candidate.activity_epoch, candidate.path)


class Ranker:
    """Totally orders candidates: newest activity first, then by path."""

    def __init__(self, mode: ScoringMode = ScoringMode.BASIC):
        self.mode = ScoringMode(mode)

    def rank(self, candidates: Iterable[RepoCandidate]) -> RankedCandidates:
        scored: List[RepoCandidate] = []
        seen = set()
        for candidate in candidates:
            if candidate.path in seen:
                raise ValueError(f"Duplicate candidate path: {candidate.path}")
            seen.add(candidate.path)
            scored.append(candidate.with_activity(activity_epoch(candidate, self.mode)))
        scored.sort(key=rank_key)
        return RankedCandidates(mode=self.mode, candidates=scored)
