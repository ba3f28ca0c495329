"""Unit tests for domain records."""

import pytest
from pydantic import ValidationError

from repo_variants.models import (
    CandidateArena,
    DiffResult,
    FileState,
    RepoCandidate,
    StatusEntry,
)


class TestStatusEntry:
    """Test cases for StatusEntry."""

    def test_untracked(self):
        entry = StatusEntry.from_code("??", "new.txt")
        assert entry.is_untracked
        assert not entry.is_staged
        assert not entry.is_unstaged

    def test_partially_staged_counts_both_sides(self):
        entry = StatusEntry.from_code("MM", "file.txt")
        assert entry.is_staged
        assert entry.is_unstaged
        assert not entry.is_untracked

    def test_worktree_only_change(self):
        entry = StatusEntry.from_code(" D", "gone.txt")
        assert not entry.is_staged
        assert entry.is_unstaged

    def test_rename_keeps_original_path(self):
        entry = StatusEntry.from_code("R ", "new.txt", "old.txt")
        assert entry.index_state is FileState.RENAMED
        assert entry.original_path == "old.txt"
        assert entry.is_staged

    def test_invalid_code(self):
        with pytest.raises(ValueError):
            StatusEntry.from_code("X", "file.txt")
        with pytest.raises(ValueError):
            StatusEntry.from_code("ZZ", "file.txt")

    def test_pending_states(self):
        assert FileState.MODIFIED.is_pending
        assert FileState.UNMERGED.is_pending
        assert not FileState.UNMODIFIED.is_pending
        assert not FileState.UNTRACKED.is_pending
        assert not FileState.IGNORED.is_pending


class TestRepoCandidate:
    """Test cases for RepoCandidate."""

    def test_activity_defaults_to_head_commit(self):
        candidate = RepoCandidate(path="/a", branch="main", head_commit_epoch=1000)
        assert candidate.activity_epoch == 1000

    def test_activity_older_than_head_rejected(self):
        with pytest.raises(ValidationError):
            RepoCandidate(
                path="/a", branch="main", head_commit_epoch=1000, activity_epoch=10
            )

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            RepoCandidate(path="/a", branch="main", ahead=-1)

    def test_immutable(self):
        candidate = RepoCandidate(path="/a", branch="main")
        with pytest.raises(ValidationError):
            candidate.branch = "dev"

    def test_with_activity_returns_copy(self):
        candidate = RepoCandidate(path="/a", branch="main", head_commit_epoch=5)
        updated = candidate.with_activity(50)
        assert updated.activity_epoch == 50
        assert candidate.activity_epoch == 5
        with pytest.raises(ValidationError):
            candidate.with_activity(1)

    def test_flags(self):
        clean = RepoCandidate(path="/a", branch="main")
        assert clean.flags == "-"
        dirty = RepoCandidate(
            path="/b",
            branch="main",
            staged_count=1,
            unstaged_count=2,
            untracked_count=3,
            dirty=True,
        )
        assert dirty.flags == "UMSD"


class TestDiffResult:
    """Test cases for DiffResult."""

    def test_overlapping_sets_rejected(self):
        with pytest.raises(ValidationError):
            DiffResult(
                baseline_path="/a",
                other_path="/b",
                unique_to_baseline=frozenset({"x"}),
                differing=frozenset({"x"}),
            )

    def test_identical(self):
        assert DiffResult(baseline_path="/a", other_path="/b").is_identical


class TestCandidateArena:
    """Test cases for CandidateArena."""

    def test_discovery_order_independent_of_store_order(self):
        arena = CandidateArena(["/c", "/a", "/b", "/a"])
        assert arena.paths == ["/c", "/a", "/b"]
        assert arena.index_of("/b") == 2

        arena.store(RepoCandidate(path="/b", branch="main"))
        arena.store(RepoCandidate(path="/c", branch="main"))

        assert [c.path for c in arena.candidates()] == ["/c", "/b"]
        assert arena.missing() == ["/a"]
        assert arena.get("/a") is None

    def test_store_unknown_or_twice(self):
        arena = CandidateArena(["/a"])
        with pytest.raises(KeyError):
            arena.store(RepoCandidate(path="/z", branch="main"))
        arena.store(RepoCandidate(path="/a", branch="main"))
        with pytest.raises(ValueError):
            arena.store(RepoCandidate(path="/a", branch="main"))
