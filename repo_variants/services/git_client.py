import functools
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..config.settings import DETACHED_BRANCH
from ..errors import ExtractionFailure, describe
from ..models import StatusEntry

logger = logging.getLogger(__name__)

HASH_LENGTH = 10

_GIT_ERRORS = (GitCommandError, InvalidGitRepositoryError, NoSuchPathError, ValueError)


def _translate_git_errors(method):
    """Re-raise GitPython failures as ExtractionFailure for this working tree."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except _GIT_ERRORS as e:
            raise ExtractionFailure(str(self.local_path), describe(e)) from e

    return wrapper


class GitClient:
    """Read-only git queries for one candidate working tree."""

    def __init__(self, local_path: str, command_timeout: Optional[float] = None):
        self._local_path = Path(local_path)
        # git subprocesses still running after this many seconds are killed
        self.command_timeout = command_timeout
        self.repo: Optional[Repo] = None
        self._open()

    @property
    def local_path(self) -> Path:
        return self._local_path

    @_translate_git_errors
    def _open(self) -> None:
        # No parent search: a marker-less directory must not resolve to an
        # enclosing repository.
        self.repo = Repo(self._local_path, search_parent_directories=False)
        if self.repo.bare:
            raise InvalidGitRepositoryError(f"Bare repository: {self._local_path}")

    def close(self) -> None:
        if self.repo is not None:
            self.repo.close()
            self.repo = None

    def _require_repo(self) -> Repo:
        if self.repo is None:
            raise RuntimeError("Repository not initialized")
        return self.repo

    @_translate_git_errors
    def current_branch(self) -> str:
        repo = self._require_repo()
        try:
            return repo.active_branch.name
        except TypeError:
            # HEAD is detached
            return DETACHED_BRANCH

    def _has_commits(self) -> bool:
        return self._require_repo().head.is_valid()

    @_translate_git_errors
    def head_commit_epoch(self) -> int:
        if not self._has_commits():
            return 0
        return int(self._require_repo().head.commit.committed_date)

    @_translate_git_errors
    def head_hash(self) -> Optional[str]:
        if not self._has_commits():
            return None
        return self._require_repo().head.commit.hexsha[:HASH_LENGTH]

    @_translate_git_errors
    def ahead_behind(self) -> Tuple[int, int]:
        repo = self._require_repo()
        if not self._has_commits():
            return 0, 0
        try:
            repo.git.rev_parse(
                "--abbrev-ref",
                "--symbolic-full-name",
                "@{upstream}",
                kill_after_timeout=self.command_timeout,
            )
        except GitCommandError:
            logger.debug(f"No upstream configured for {self._local_path}")
            return 0, 0

        # Left side counts commits only in the upstream, right side only in HEAD.
        try:
            counts = repo.git.rev_list(
                "--left-right",
                "--count",
                "@{upstream}...HEAD",
                kill_after_timeout=self.command_timeout,
            )
        except GitCommandError as e:
            logger.warning(
                f"Cannot count commits against upstream for {self._local_path}: {describe(e)}"
            )
            return 0, 0
        behind, ahead = (int(n) for n in counts.split())
        return ahead, behind

    @_translate_git_errors
    def status_entries(self) -> List[StatusEntry]:
        repo = self._require_repo()
        output = repo.git.status(
            "--porcelain=v1",
            "-z",
            strip_newline_in_stdout=False,
            kill_after_timeout=self.command_timeout,
        )
        return parse_porcelain_z(output)


def parse_porcelain_z(output: str) -> List[StatusEntry]:
    """Parse NUL-delimited ``git status --porcelain=v1 -z`` output."""
    fields = output.split("\0")
    entries: List[StatusEntry] = []
    i = 0
    while i < len(fields):
        field = fields[i]
        i += 1
        if not field:
            continue
        if len(field) < 4 or field[2] != " ":
            raise ValueError(f"Malformed status entry: {field!r}")
        code, path = field[:2], field[3:]
        original_path = None
        if "R" in code or "C" in code:
            # Renames and copies carry the source path in the next field
            if i < len(fields):
                original_path = fields[i] or None
                i += 1
        entries.append(StatusEntry.from_code(code, path, original_path))
    return entries


def create_git_client(
    local_path: str, command_timeout: Optional[float] = None
) -> GitClient:
    """Open a git client for one working tree."""
    return GitClient(local_path, command_timeout=command_timeout)
