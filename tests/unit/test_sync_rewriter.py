"""Unit tests for history rewrite planning and execution."""

from __future__ import annotations

import pytest

from repopin.github.models import CommitRecord, RepositoryReference
from repopin.sync.constants import MARKER
from repopin.sync.errors import HistoryRewriteError
from repopin.sync.models import ParentLink, RewriteAction, StepLog
from repopin.sync.rewriter import (
    HistoryRewriter,
    marker_predicate,
    plan_history_rewrite,
)
from repopin.sync.strategies import BranchMergeStrategy, RevertStrategy
from tests.helpers.fake_github import FakeGitHub

REPO = RepositoryReference("octo", "reef")


def _commit(sha: str, *parents: str, message: str | None = None) -> CommitRecord:
    return CommitRecord(
        sha=sha,
        message=message or f"commit {sha}",
        tree_sha=f"tree-{sha}",
        parent_shas=parents,
    )


class TestPlanHistoryRewrite:
    """Tests for the pure planner."""

    def test_marked_commit_in_the_middle_remaps_descendants(self) -> None:
        """A <- M <- B <- C: B moves onto A and C onto the new B."""
        commits = [
            _commit("A", "root"),
            _commit("M", "A", message=f"{MARKER} Position: 1/1"),
            _commit("B", "M"),
            _commit("C", "B"),
        ]

        plan = plan_history_rewrite(commits, marker_predicate())

        assert plan.removed_shas == ("M",)
        steps = {step.commit.sha: step for step in plan.steps}
        assert steps["A"].action is RewriteAction.KEEP
        assert steps["A"].parents == (ParentLink("root"),)
        assert steps["B"].action is RewriteAction.RECREATE
        assert steps["B"].parents == (ParentLink("A"),)
        assert steps["C"].action is RewriteAction.RECREATE
        assert steps["C"].parents == (ParentLink("B", remapped=True),)
        assert plan.head_original_sha == "C"

    def test_marked_commits_on_top_keep_everything(self) -> None:
        """Synthetic commits above the real head need no recreation."""
        commits = [
            _commit("A"),
            _commit("B", "A"),
            _commit("P", "B", message=f"{MARKER} Position: 1/2"),
            _commit("R", "P", message=f"{MARKER} Revert"),
        ]

        plan = plan_history_rewrite(commits, marker_predicate())

        assert plan.removed_count == 2
        assert plan.recreate_count == 0
        assert plan.head_original_sha == "B"

    def test_merge_parent_that_is_marked_is_dropped(self) -> None:
        """A merge with one marked parent keeps only the real parent."""
        commits = [
            _commit("A"),
            _commit("S", "A", message=f"{MARKER} Sync position: 1/1"),
            _commit("M", "A", "S", message=f"{MARKER} Position: 1/1"),
            _commit("X", "M"),
        ]

        plan = plan_history_rewrite(commits, marker_predicate())

        step = plan.steps[-1]
        assert step.commit.sha == "X"
        assert step.parents == (ParentLink("A"),)
        assert step.action is RewriteAction.RECREATE

    def test_second_root_commit_stays_a_root(self) -> None:
        """A root merged in with unrelated history is not grafted onto A."""
        commits = [
            _commit("A"),
            _commit("R2"),
            _commit("J", "A", "R2"),
            _commit("P", "J", message=f"{MARKER} Position: 1/1"),
            _commit("V", "P", message=f"{MARKER} Revert"),
        ]

        plan = plan_history_rewrite(commits, marker_predicate())

        steps = {step.commit.sha: step for step in plan.steps}
        assert steps["R2"].action is RewriteAction.KEEP
        assert steps["R2"].parents == ()
        assert steps["J"].action is RewriteAction.KEEP
        assert steps["J"].parents == (ParentLink("A"), ParentLink("R2"))
        assert plan.recreate_count == 0
        assert plan.removed_shas == ("P", "V")
        assert plan.head_original_sha == "J"

    def test_commit_whose_only_parent_is_marked_moves_onto_previous_real(
        self,
    ) -> None:
        """Losing every parent falls back to the previous real commit."""
        commits = [
            _commit("A"),
            _commit("M", message=f"{MARKER} Position: 1/1"),
            _commit("B", "M"),
        ]

        plan = plan_history_rewrite(commits, marker_predicate())

        step = plan.steps[-1]
        assert step.action is RewriteAction.RECREATE
        assert step.parents == (ParentLink("A"),)

    def test_no_real_commits_has_no_head(self) -> None:
        """A window of only marked commits cannot be rewritten."""
        commits = [_commit("P", message=f"{MARKER} Revert")]

        plan = plan_history_rewrite(commits, marker_predicate())

        assert plan.steps == ()
        assert plan.head_original_sha is None


class TestHistoryRewriter:
    """Tests for executing rewrites against the fake API."""

    @pytest.mark.asyncio
    async def test_removes_middle_marker_and_preserves_content(
        self, fake_github: FakeGitHub
    ) -> None:
        """History shrinks by k and the real commits keep their content."""
        a_sha, *_ = fake_github.add_repository(REPO.slug, ["A"])
        fake_github.add_commit(REPO.slug, f"{MARKER} Position: 1/1")
        b_sha = fake_github.add_commit(REPO.slug, "B")
        c_sha = fake_github.add_commit(REPO.slug, "C")
        before = fake_github.history(REPO.slug)
        tree_before = fake_github.tree_of(REPO.slug)

        result = await HistoryRewriter(fake_github, clock=lambda: 7).cleanup(REPO)

        after = fake_github.history(REPO.slug)
        assert result.removed_count == 1
        assert len(after) == len(before) - 1
        assert all(MARKER not in commit.message for commit in after)
        new_c, new_b, new_a = after
        assert new_a.sha == a_sha
        assert new_b.sha != b_sha
        assert new_b.parent_shas == (a_sha,)
        assert new_c.parent_shas == (new_b.sha,)
        assert new_c.sha != c_sha
        assert new_c.author == fake_github.commits[c_sha].author
        assert new_c.committer == fake_github.commits[c_sha].committer
        assert fake_github.tree_of(REPO.slug) == tree_before
        assert result.new_head == new_c.sha

    @pytest.mark.asyncio
    async def test_backup_branch_points_at_pre_rewrite_head(
        self, fake_github: FakeGitHub
    ) -> None:
        """The backup ref is created first and retained."""
        fake_github.add_repository(REPO.slug, ["A"])
        fake_github.add_commit(REPO.slug, f"{MARKER} Revert")
        old_head = fake_github.head(REPO.slug)

        result = await HistoryRewriter(fake_github, clock=lambda: 42).cleanup(REPO)

        assert result.backup_ref == "repopin-backup-42"
        assert fake_github.head(REPO.slug, "repopin-backup-42") == old_head
        mutations = [call.method for call in fake_github.mutations]
        assert mutations[0] == "create_ref"
        assert mutations[-1] == "update_ref"

    @pytest.mark.asyncio
    async def test_bump_then_cleanup_restores_real_head(
        self, fake_github: FakeGitHub
    ) -> None:
        """Cleaning a revert bump returns the branch to the original head."""
        fake_github.add_repository(REPO.slug, ["A", "B"])
        original = fake_github.head(REPO.slug)
        await RevertStrategy(fake_github).bump(
            REPO, position=1, total=1, step_log=StepLog()
        )

        result = await HistoryRewriter(fake_github).cleanup(REPO)

        assert result.removed_count == 2
        assert fake_github.head(REPO.slug) == original
        assert fake_github.calls_for("create_commit")[2:] == []

    @pytest.mark.asyncio
    async def test_branch_merge_bump_then_cleanup_restores_real_head(
        self, fake_github: FakeGitHub
    ) -> None:
        """Cleaning a branch merge bump drops both synthetic commits."""
        fake_github.add_repository(REPO.slug, ["A", "B"])
        original = fake_github.head(REPO.slug)
        tree_before = fake_github.tree_of(REPO.slug)
        await BranchMergeStrategy(fake_github, clock=lambda: 55).bump(
            REPO, position=1, total=1, step_log=StepLog()
        )

        result = await HistoryRewriter(fake_github, clock=lambda: 56).cleanup(REPO)

        assert result.removed_count == 2
        assert fake_github.head(REPO.slug) == original
        assert fake_github.tree_of(REPO.slug) == tree_before
        assert all(MARKER not in c.message for c in fake_github.history(REPO.slug))
        branches = [name for slug, name in fake_github.branches if slug == REPO.slug]
        assert sorted(branches) == ["main", "repopin-backup-56"]

    @pytest.mark.asyncio
    async def test_nothing_marked_touches_nothing(self, fake_github: FakeGitHub) -> None:
        """Without marked commits no mutating call is made."""
        fake_github.add_repository(REPO.slug, ["A", "B"])

        result = await HistoryRewriter(fake_github).cleanup(REPO)

        assert result.removed_count == 0
        assert result.backup_ref is None
        assert fake_github.mutations == []

    @pytest.mark.asyncio
    async def test_only_marked_commits_leaves_reference_untouched(
        self, fake_github: FakeGitHub
    ) -> None:
        """A window without real commits reports zero and moves nothing."""
        fake_github.add_repository(REPO.slug, [f"{MARKER} Revert"])

        result = await HistoryRewriter(fake_github).cleanup(REPO)

        assert result.removed_count == 0
        assert fake_github.mutations == []

    @pytest.mark.asyncio
    async def test_backup_failure_aborts_before_any_rewrite(
        self, fake_github: FakeGitHub
    ) -> None:
        """No commit or ref is changed when the backup cannot be taken."""
        fake_github.add_repository(REPO.slug, ["A"])
        fake_github.add_commit(REPO.slug, f"{MARKER} Revert")
        head = fake_github.head(REPO.slug)
        fake_github.fail("create_ref", REPO.slug)

        with pytest.raises(HistoryRewriteError, match="backup"):
            await HistoryRewriter(fake_github).cleanup(REPO)

        assert fake_github.head(REPO.slug) == head
        assert fake_github.calls_for("update_ref") == []
        assert fake_github.calls_for("create_commit") == []

    @pytest.mark.asyncio
    async def test_step_log_records_cleanup(self, fake_github: FakeGitHub) -> None:
        """A successful cleanup appends one step log line."""
        fake_github.add_repository(REPO.slug, ["A"])
        fake_github.add_commit(REPO.slug, f"{MARKER} Revert")
        step_log = StepLog()

        await HistoryRewriter(fake_github).cleanup(REPO, step_log=step_log)

        assert len(step_log) == 1
        assert "removed 1 synthetic commits" in step_log.lines[0]
