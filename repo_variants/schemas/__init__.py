"""Schemas for scan results and reports."""

from .report import (
    DiscoveryResult,
    ExcludedCandidate,
    RankedCandidates,
    ScanReport,
    SkippedPath,
)

__all__ = [
    "DiscoveryResult",
    "ExcludedCandidate",
    "RankedCandidates",
    "ScanReport",
    "SkippedPath",
]
