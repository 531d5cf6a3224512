"""Commit strategies that bump a repository's last-updated timestamp.

Both strategies leave the default branch's tree unchanged and tag every
commit they create with :data:`~repopin.sync.constants.MARKER` so that the
history rewriter can remove them afterwards.

Usage
-----
>>> strategy = build_strategy(CommitStrategyKind.REVERT, client)
>>> head = await strategy.bump(repo, position=1, total=3, step_log=StepLog())

"""

from __future__ import annotations

import typing as typ

from repopin.common.time import epoch_ms
from repopin.github.errors import GitHubAPIError
from repopin.logging import get_logger, log_warning

from .branches import resolve_default_branch
from .constants import (
    position_message,
    revert_message,
    sync_position_message,
    temp_branch_name,
)
from .models import CommitStrategyKind

if typ.TYPE_CHECKING:
    from repopin.github.client import GitHubGitClient
    from repopin.github.models import CommitRecord, RepositoryReference
    from repopin.ratelimit.limiter import Clock

    from .models import StepLog

logger = get_logger(__name__)


class CommitStrategy(typ.Protocol):
    """Performs the remote graph mutation for one repository."""

    kind: CommitStrategyKind

    async def bump(
        self,
        repository: RepositoryReference,
        *,
        position: int,
        total: int,
        step_log: StepLog,
    ) -> CommitRecord:
        """Create synthetic commits and return the new branch head."""
        ...


class RevertStrategy:
    """Push a position commit, then a commit restoring the original tree.

    Both commits carry the HEAD tree, so the branch content never changes.
    """

    kind = CommitStrategyKind.REVERT

    def __init__(self, client: GitHubGitClient) -> None:
        """Bind the strategy to a client."""
        self._client = client

    async def bump(
        self,
        repository: RepositoryReference,
        *,
        position: int,
        total: int,
        step_log: StepLog,
    ) -> CommitRecord:
        """Create and push the position and revert commits."""
        head = await resolve_default_branch(self._client, repository)
        head_commit = await self._client.get_commit(repository, head.sha)

        marker_commit = await self._client.create_commit(
            repository,
            message=position_message(position, total),
            tree_sha=head_commit.tree_sha,
            parent_shas=(head.sha,),
        )
        await self._client.update_ref(repository, head.name, marker_commit.sha)
        step_log.add(f"{repository.slug}: created position commit {marker_commit.sha[:7]}")

        revert_commit = await self._client.create_commit(
            repository,
            message=revert_message(),
            tree_sha=head_commit.tree_sha,
            parent_shas=(marker_commit.sha,),
        )
        await self._client.update_ref(repository, head.name, revert_commit.sha)
        step_log.add(f"{repository.slug}: created revert commit {revert_commit.sha[:7]}")
        return revert_commit


class BranchMergeStrategy:
    """Commit on a temporary branch and merge it into the default branch."""

    kind = CommitStrategyKind.BRANCH_MERGE

    def __init__(self, client: GitHubGitClient, *, clock: Clock = epoch_ms) -> None:
        """Bind the strategy to a client and a clock for branch naming."""
        self._client = client
        self._clock = clock

    async def bump(
        self,
        repository: RepositoryReference,
        *,
        position: int,
        total: int,
        step_log: StepLog,
    ) -> CommitRecord:
        """Create, merge and delete a temporary branch.

        The temporary branch is deleted on a best-effort basis when the merge
        fails; the merge error is the one that propagates.
        """
        head = await resolve_default_branch(self._client, repository)
        head_commit = await self._client.get_commit(repository, head.sha)
        temp_branch = temp_branch_name(self._clock())

        await self._client.create_ref(repository, temp_branch, head.sha)
        step_log.add(f"{repository.slug}: created branch {temp_branch}")
        try:
            marker_commit = await self._client.create_commit(
                repository,
                message=sync_position_message(position, total),
                tree_sha=head_commit.tree_sha,
                parent_shas=(head.sha,),
            )
            await self._client.update_ref(repository, temp_branch, marker_commit.sha)
            merge_commit = await self._client.merge(
                repository,
                base=head.name,
                head=temp_branch,
                message=position_message(position, total),
            )
        except GitHubAPIError:
            await self._delete_temp_branch(repository, temp_branch)
            raise

        await self._delete_temp_branch(repository, temp_branch)
        if merge_commit is None:
            current = await self._client.get_ref(repository, head.name)
            merge_commit = await self._client.get_commit(repository, current.sha)
        step_log.add(f"{repository.slug}: merged {temp_branch} as {merge_commit.sha[:7]}")
        return merge_commit

    async def _delete_temp_branch(
        self, repository: RepositoryReference, branch: str
    ) -> None:
        try:
            await self._client.delete_ref(repository, branch)
        except GitHubAPIError as exc:
            log_warning(
                logger,
                "Could not delete temporary branch %s on %s: %s",
                branch,
                repository.slug,
                exc,
            )


def build_strategy(
    kind: CommitStrategyKind,
    client: GitHubGitClient,
    *,
    clock: Clock = epoch_ms,
) -> CommitStrategy:
    """Return the strategy implementation for ``kind``."""
    if kind is CommitStrategyKind.BRANCH_MERGE:
        return BranchMergeStrategy(client, clock=clock)
    return RevertStrategy(client)
