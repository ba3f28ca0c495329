"""Structural comparison results."""

from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class DiffResult(BaseModel):
    """Three-way classification of the files of one baseline/other pair."""

    model_config = ConfigDict(frozen=True)

    baseline_path: str
    other_path: str
    unique_to_baseline: FrozenSet[str] = frozenset()
    unique_to_other: FrozenSet[str] = frozenset()
    differing: FrozenSet[str] = frozenset()

    @model_validator(mode="after")
    def _check_disjoint(self) -> "DiffResult":
        overlap = (
            (self.unique_to_baseline & self.unique_to_other)
            | (self.unique_to_baseline & self.differing)
            | (self.unique_to_other & self.differing)
        )
        if overlap:
            raise ValueError(f"Paths classified more than once: {sorted(overlap)}")
        return self

    @property
    def is_identical(self) -> bool:
        return not (self.unique_to_baseline or self.unique_to_other or self.differing)


class PairComparison(BaseModel):
    """Outcome of comparing one pair: a result and its patch, or a failure reason."""

    model_config = ConfigDict(frozen=True)

    baseline_path: str
    other_path: str
    result: Optional[DiffResult] = None
    patch: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
