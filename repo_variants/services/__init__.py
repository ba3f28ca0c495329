"""Services for the application."""

from .discovery import Discovery
from .file_system import LocalFileSystem
from .git_client import GitClient, create_git_client
from .metadata_extractor import MetadataExtractor, count_status_classes
from .ranker import Ranker, activity_epoch
from .report_emitter import ReportEmitter
from .scan_coordinator import ScanCoordinator
from .structural_differ import StructuralDiffer

__all__ = [
    "Discovery",
    "GitClient",
    "LocalFileSystem",
    "MetadataExtractor",
    "Ranker",
    "ReportEmitter",
    "ScanCoordinator",
    "StructuralDiffer",
    "activity_epoch",
    "count_status_classes",
    "create_git_client",
]
