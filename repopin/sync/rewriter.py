"""Remove synthetic commits from recent history.

Cleanup runs right after a bump. It reads the newest ``window`` commits of
the default branch, drops every commit whose message carries the marker and
recreates the real commits above them with identical trees, messages and
signatures, then force-updates the branch. A backup branch pointing at the
pre-rewrite head is created first and kept.

Planning is the pure :func:`plan_history_rewrite`; :class:`HistoryRewriter`
only executes the plan against the remote API.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from repopin.common.time import epoch_ms
from repopin.github.errors import GitHubAPIError
from repopin.logging import get_logger, log_info

from .branches import resolve_default_branch
from .constants import DEFAULT_CLEANUP_WINDOW, MARKER, backup_branch_name
from .errors import HistoryRewriteError
from .models import (
    CleanupResult,
    ParentLink,
    RewriteAction,
    RewritePlan,
    RewriteStep,
)

if typ.TYPE_CHECKING:
    from repopin.github.client import GitHubGitClient
    from repopin.github.models import CommitRecord, RepositoryReference
    from repopin.ratelimit.limiter import Clock

    from .models import StepLog

logger = get_logger(__name__)

type CommitPredicate = cabc.Callable[[CommitRecord], bool]


def marker_predicate(marker: str = MARKER) -> CommitPredicate:
    """Return a predicate matching commits whose message contains ``marker``."""
    return lambda commit: commit.has_marker(marker)


def plan_history_rewrite(
    commits: typ.Sequence[CommitRecord],
    is_marked: CommitPredicate,
) -> RewritePlan:
    """Plan the removal of marked commits from ``commits``.

    Parameters
    ----------
    commits
        The commit window, oldest first.
    is_marked
        Predicate selecting commits to remove.

    Returns
    -------
    RewritePlan
        Steps for every real commit, oldest first. A parent that is itself
        recreated is marked ``remapped``; a parent outside the window or a
        real, unchanged commit is kept; a marked parent is dropped. When a
        commit loses every parent, the previous real commit becomes its only
        parent; a root commit stays a root. Commits whose parents are all unchanged are ``keep`` steps,
        since recreating them would produce the same object.

    Examples
    --------
    For ``A <- M <- B <- C`` with ``M`` marked, ``A`` is kept, ``B`` is
    recreated on top of ``A`` and ``C`` on top of the new ``B``.

    """
    marked = {commit.sha for commit in commits if is_marked(commit)}
    recreated: set[str] = set()
    steps: list[RewriteStep] = []
    removed: list[str] = []
    previous_real: CommitRecord | None = None

    for commit in commits:
        if commit.sha in marked:
            removed.append(commit.sha)
            continue

        links: list[ParentLink] = []
        changed = False
        for parent_sha in commit.parent_shas:
            if parent_sha in recreated:
                links.append(ParentLink(parent_sha, remapped=True))
                changed = True
            elif parent_sha in marked:
                changed = True
            else:
                links.append(ParentLink(parent_sha))

        if commit.parent_shas and not links and previous_real is not None:
            links.append(
                ParentLink(previous_real.sha, remapped=previous_real.sha in recreated)
            )
            changed = True

        action = RewriteAction.RECREATE if changed else RewriteAction.KEEP
        if action is RewriteAction.RECREATE:
            recreated.add(commit.sha)
        steps.append(RewriteStep(commit=commit, action=action, parents=tuple(links)))
        previous_real = commit

    return RewritePlan(
        steps=tuple(steps),
        removed_shas=tuple(removed),
        head_original_sha=previous_real.sha if previous_real is not None else None,
    )


class HistoryRewriter:
    """Execute history rewrites against the remote API.

    Parameters
    ----------
    client
        Git data client for the repository owner.
    window
        Number of recent commits inspected per cleanup.
    marker
        Message token identifying synthetic commits.
    clock
        Epoch-millisecond clock used to name backup branches.

    """

    def __init__(
        self,
        client: GitHubGitClient,
        *,
        window: int = DEFAULT_CLEANUP_WINDOW,
        marker: str = MARKER,
        clock: Clock = epoch_ms,
    ) -> None:
        """Bind the rewriter to a client and its settings."""
        self._client = client
        self._window = window
        self._is_marked = marker_predicate(marker)
        self._clock = clock

    async def cleanup(
        self,
        repository: RepositoryReference,
        *,
        step_log: StepLog | None = None,
    ) -> CleanupResult:
        """Remove marked commits from the default branch of ``repository``.

        Raises
        ------
        HistoryRewriteError
            If the backup branch cannot be created; nothing is rewritten.
        GitHubAPIError
            If any later remote call fails.

        """
        head = await resolve_default_branch(self._client, repository)
        newest_first = await self._client.list_commits(
            repository, head.name, limit=self._window
        )
        plan = plan_history_rewrite(list(reversed(newest_first)), self._is_marked)

        if plan.removed_count == 0 or plan.head_original_sha is None:
            return CleanupResult(removed_count=0)

        backup_ref = backup_branch_name(self._clock())
        try:
            await self._client.create_ref(repository, backup_ref, head.sha)
        except GitHubAPIError as exc:
            raise HistoryRewriteError.backup_failed(repository, str(exc)) from exc

        new_head = await self._execute(repository, plan)
        await self._client.update_ref(repository, head.name, new_head, force=True)

        log_info(
            logger,
            "Removed %d synthetic commits from %s (recreated=%d backup=%s)",
            plan.removed_count,
            repository.slug,
            plan.recreate_count,
            backup_ref,
        )
        if step_log is not None:
            step_log.add(
                f"{repository.slug}: removed {plan.removed_count} synthetic commits "
                f"(backup {backup_ref})"
            )
        return CleanupResult(
            removed_count=plan.removed_count,
            new_head=new_head,
            backup_ref=backup_ref,
        )

    async def _execute(self, repository: RepositoryReference, plan: RewritePlan) -> str:
        """Create the recreated commits and return the resolved head id."""
        mapping: dict[str, str] = {}
        for step in plan.steps:
            if step.action is RewriteAction.KEEP:
                continue
            original = await self._client.get_commit(repository, step.commit.sha)
            parents = [
                mapping[link.sha] if link.remapped else link.sha
                for link in step.parents
            ]
            created = await self._client.create_commit(
                repository,
                message=original.message,
                tree_sha=original.tree_sha,
                parent_shas=parents,
                author=original.author,
                committer=original.committer,
            )
            mapping[step.commit.sha] = created.sha

        head_sha = typ.cast("str", plan.head_original_sha)
        return mapping.get(head_sha, head_sha)
