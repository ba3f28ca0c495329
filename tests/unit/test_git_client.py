"""Unit tests for GitClient against real repositories."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from git import Repo
from git.exc import GitCommandError

from repo_variants.config.settings import DETACHED_BRANCH
from repo_variants.errors import ExtractionFailure
from repo_variants.models import FileState
from repo_variants.services.git_client import GitClient, parse_porcelain_z


class TestParsePorcelain:
    """Test cases for NUL-delimited status parsing."""

    def test_empty(self):
        assert parse_porcelain_z("") == []

    def test_entries(self):
        output = " M src/app.py\0MM both.txt\0?? new dir/\0A  added.txt\0"
        entries = parse_porcelain_z(output)

        assert [e.path for e in entries] == [
            "src/app.py",
            "both.txt",
            "new dir/",
            "added.txt",
        ]
        assert entries[0].index_state is FileState.UNMODIFIED
        assert entries[0].worktree_state is FileState.MODIFIED
        assert entries[2].is_untracked

    def test_rename_consumes_source_field(self):
        output = "R  new.txt\0old.txt\0 M other.txt\0"
        entries = parse_porcelain_z(output)

        assert len(entries) == 2
        assert entries[0].path == "new.txt"
        assert entries[0].original_path == "old.txt"
        assert entries[1].path == "other.txt"

    def test_malformed(self):
        with pytest.raises(ValueError):
            parse_porcelain_z("garbage\0")


class TestGitClient:
    """Test cases for GitClient."""

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(ExtractionFailure) as exc_info:
            GitClient(str(tmp_path))
        assert exc_info.value.path == str(tmp_path)

    def test_corrupted_marker(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: /does/not/exist\n")
        with pytest.raises(ExtractionFailure):
            GitClient(str(tmp_path))

    def test_no_commits(self, repo_factory):
        repo = repo_factory("empty")
        client = GitClient(repo.working_tree_dir)
        try:
            assert client.current_branch() == "main"
            assert client.head_commit_epoch() == 0
            assert client.head_hash() is None
            assert client.ahead_behind() == (0, 0)
            assert client.status_entries() == []
        finally:
            client.close()

    def test_committed_repo(self, repo_factory):
        repo = repo_factory("proj", files={"a.txt": "a\n"}, commit_epoch=1_600_000_000)
        client = GitClient(repo.working_tree_dir)
        try:
            assert client.current_branch() == "main"
            assert client.head_commit_epoch() == 1_600_000_000
            assert client.head_hash() == repo.head.commit.hexsha[:10]
            assert client.ahead_behind() == (0, 0)
        finally:
            client.close()

    def test_detached_head(self, repo_factory):
        repo = repo_factory("proj", files={"a.txt": "a\n"}, commit_epoch=1000)
        repo.git.checkout(repo.head.commit.hexsha)
        client = GitClient(repo.working_tree_dir)
        try:
            assert client.current_branch() == DETACHED_BRANCH
            assert client.ahead_behind() == (0, 0)
        finally:
            client.close()

    def test_status_entries(self, repo_factory, write_files):
        repo = repo_factory(
            "proj", files={"a.txt": "a\n", "b.txt": "b\n"}, commit_epoch=1000
        )
        root = Path(repo.working_tree_dir)
        write_files(root, {"a.txt": "changed\n", "c.txt": "new\n"})
        repo.index.add(["a.txt"])
        write_files(root, {"a.txt": "changed again\n"})

        client = GitClient(str(root))
        try:
            entries = {e.path: e for e in client.status_entries()}
        finally:
            client.close()

        assert set(entries) == {"a.txt", "c.txt"}
        assert entries["a.txt"].is_staged and entries["a.txt"].is_unstaged
        assert entries["c.txt"].is_untracked

    def test_ahead_and_behind_upstream(self, tmp_path, repo_factory, write_files, commit):
        origin = repo_factory("origin", files={"a.txt": "a\n"}, commit_epoch=1000)
        clone = Repo.clone_from(origin.working_tree_dir, tmp_path / "clone")
        try:
            clone_root = tmp_path / "clone"
            write_files(clone_root, {"local.txt": "local\n"})
            commit(clone, "local work", 2000)

            origin_root = tmp_path / "origin"
            write_files(origin_root, {"remote1.txt": "1\n"})
            commit(origin, "remote 1", 3000)
            write_files(origin_root, {"remote2.txt": "2\n"})
            commit(origin, "remote 2", 4000)
            clone.remotes.origin.fetch()

            client = GitClient(str(clone_root))
            try:
                assert client.ahead_behind() == (1, 2)
            finally:
                client.close()
        finally:
            clone.close()

    def test_git_command_failure_is_translated(self, repo_factory):
        repo = repo_factory("proj", files={"a.txt": "a\n"}, commit_epoch=1000)
        client = GitClient(repo.working_tree_dir)
        client.repo.git = Mock()
        client.repo.git.status.side_effect = GitCommandError("git status", 128, "boom")

        with pytest.raises(ExtractionFailure) as exc_info:
            client.status_entries()

        assert "git status" in exc_info.value.reason or "128" in exc_info.value.reason

    def test_commands_are_killed_after_timeout(self, repo_factory):
        repo = repo_factory("proj", files={"a.txt": "a\n"}, commit_epoch=1000)
        client = GitClient(repo.working_tree_dir, command_timeout=7.5)
        client.repo.git = Mock()
        client.repo.git.status.return_value = ""
        client.repo.git.rev_list.return_value = "2\t3"

        assert client.status_entries() == []
        assert client.ahead_behind() == (3, 2)
        for command in (
            client.repo.git.status,
            client.repo.git.rev_parse,
            client.repo.git.rev_list,
        ):
            assert command.call_args.kwargs["kill_after_timeout"] == 7.5

    def test_failed_commit_count_means_no_divergence(self, repo_factory):
        repo = repo_factory("proj", files={"a.txt": "a\n"}, commit_epoch=1000)
        client = GitClient(repo.working_tree_dir)
        client.repo.git = Mock()
        client.repo.git.rev_parse.return_value = "origin/main"
        client.repo.git.rev_list.side_effect = GitCommandError("git rev-list", 128, "bad")

        assert client.ahead_behind() == (0, 0)
