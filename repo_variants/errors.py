"""Exception taxonomy for repo-variants."""

from typing import Optional


class RepoVariantsError(Exception):
    """Base class for all repo-variants errors."""


class ConfigurationError(RepoVariantsError):
    """Invalid or missing input. Aborts the run before any work starts."""


class NotFoundError(ConfigurationError):
    """The search root does not exist or is not a directory."""


class DiscoveryWarning(RepoVariantsError, UserWarning):
    """A subtree could not be read during discovery and was skipped."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Skipping unreadable subtree {path}: {reason}")
        self.path = path
        self.reason = reason


class ExtractionFailure(RepoVariantsError):
    """Metadata could not be extracted for one candidate."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class DifferFailure(RepoVariantsError):
    """One baseline/other comparison could not complete."""

    def __init__(self, baseline_path: str, other_path: str, reason: str):
        super().__init__(f"{baseline_path} vs {other_path}: {reason}")
        self.baseline_path = baseline_path
        self.other_path = other_path
        self.reason = reason


def describe(exc: BaseException, fallback: Optional[str] = None) -> str:
    """Return a short, single-line reason for an exception."""
    text = str(exc).strip().splitlines()
    if text:
        return text[0]
    return fallback or exc.__class__.__name__
