"""Builds the service graph for one run."""

import functools
from typing import Optional, Sequence

from .config.settings import ScoringMode, Settings
from .protocols import FileSystemProtocol, GitClientFactory
from .services import (
    Discovery,
    LocalFileSystem,
    MetadataExtractor,
    Ranker,
    ScanCoordinator,
    StructuralDiffer,
    create_git_client,
)


def create_scan_coordinator(
    name_filters: Sequence[str],
    mode: ScoringMode = ScoringMode.BASIC,
    ignore_globs: Sequence[str] = (),
    diff_exclude_globs: Sequence[str] = (".git",),
    max_depth: Optional[int] = None,
    focus_pattern: Optional[str] = None,
    max_workers: int = 4,
    extraction_timeout: Optional[float] = None,
    diff_timeout: Optional[float] = None,
    git_client_factory: Optional[GitClientFactory] = None,
    file_system: Optional[FileSystemProtocol] = None,
) -> ScanCoordinator:
    """
    Create a ScanCoordinator with its collaborators.

    Args:
        name_filters: Basename prefixes or globs a candidate must match
        mode: Scoring mode; the file walk only runs in comprehensive mode
            (or when a focus pattern needs it)
        ignore_globs: Exclusions for the latest-file walk
        diff_exclude_globs: Exclusions for the structural differ
        max_depth: Discovery depth limit, None for unlimited
        focus_pattern: Optional glob of files of special interest
        max_workers: Worker pool bound for extraction and comparison
        extraction_timeout: Seconds allowed per candidate
        diff_timeout: Seconds allowed per compared pair
        git_client_factory: Opens a git client for a working tree; defaults to
            GitPython clients whose commands are killed after extraction_timeout
        file_system: File system walker

    Returns:
        ScanCoordinator ready to run
    """
    mode = ScoringMode(mode)
    if git_client_factory is None:
        git_client_factory = functools.partial(
            create_git_client, command_timeout=extraction_timeout
        )
    file_system = file_system or LocalFileSystem()
    extractor = MetadataExtractor(
        git_client_factory=git_client_factory,
        file_system=file_system,
        ignore_globs=ignore_globs,
        scan_files=mode is ScoringMode.COMPREHENSIVE,
        focus_pattern=focus_pattern,
    )
    return ScanCoordinator(
        discovery=Discovery(name_filters, max_depth=max_depth),
        extractor=extractor,
        ranker=Ranker(mode),
        differ=StructuralDiffer(file_system, diff_exclude_globs),
        max_workers=max_workers,
        extraction_timeout=extraction_timeout,
        diff_timeout=diff_timeout,
    )


def create_scan_coordinator_from_settings(
    settings: Settings,
    name_filters: Sequence[str],
    focus_pattern: Optional[str] = None,
) -> ScanCoordinator:
    """
    Create a ScanCoordinator using application settings.

    Args:
        settings: Application settings
        name_filters: Basename prefixes or globs a candidate must match
        focus_pattern: Optional glob of files of special interest

    Returns:
        ScanCoordinator ready to run
    """
    return create_scan_coordinator(
        name_filters=name_filters,
        mode=settings.MODE,
        ignore_globs=settings.IGNORE_GLOBS,
        diff_exclude_globs=settings.DIFF_EXCLUDE_GLOBS,
        max_depth=settings.MAX_DEPTH,
        focus_pattern=focus_pattern,
        max_workers=settings.MAX_WORKERS,
        extraction_timeout=settings.EXTRACTION_TIMEOUT,
        diff_timeout=settings.DIFF_TIMEOUT,
    )
