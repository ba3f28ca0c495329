import os
from pathlib import Path
from typing import Dict, Optional

import pytest
from git import Actor, Repo

TEST_ACTOR = Actor("Test User", "test@example.com")


def write_tree(root: Path, files: Dict[str, str], mtime: Optional[int] = None) -> None:
    """Write ``files`` (relative path -> text) under ``root``."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))


def commit_all(repo: Repo, message: str, epoch: int) -> None:
    """Stage everything and commit with a fixed author and commit time."""
    repo.git.add(A=True)
    date = f"{epoch} +0000"
    repo.index.commit(
        message,
        author=TEST_ACTOR,
        committer=TEST_ACTOR,
        author_date=date,
        commit_date=date,
    )


def make_repo(
    path: Path,
    files: Optional[Dict[str, str]] = None,
    commit_epoch: Optional[int] = None,
    file_mtime: Optional[int] = None,
) -> Repo:
    """Create a working tree, optionally with one commit at ``commit_epoch``."""
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path, initial_branch="main")
    if files:
        write_tree(path, files, mtime=file_mtime)
    if commit_epoch is not None:
        commit_all(repo, "initial", commit_epoch)
    return repo


@pytest.fixture
def repo_factory(tmp_path):
    """Create git working trees under a per-test root."""
    repos = []

    def _factory(name: str, **kwargs) -> Repo:
        repo = make_repo(tmp_path / name, **kwargs)
        repos.append(repo)
        return repo

    yield _factory
    for repo in repos:
        repo.close()


@pytest.fixture
def write_files():
    return write_tree


@pytest.fixture
def commit():
    return commit_all
