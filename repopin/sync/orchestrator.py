"""Run one sync over a user's desired order.

The orchestrator verifies the remote order first and stops when it already
matches. Otherwise it walks the active repositories from last to first, so
that the most prominent repository is bumped last and ends up newest. Each
repository is validated, bumped, given time to settle and cleaned. A
failure affects only that repository; the aggregate is written to the audit
log once the loop ends.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import httpx
from sqlalchemy.exc import SQLAlchemyError

from repopin.common.time import utcnow
from repopin.github.errors import GitHubAPIError, GitHubResponseShapeError
from repopin.logging import get_logger, log_exception, log_warning

from .constants import GENERIC_BUMP_ERROR, INVALID_NAME_ERROR
from .errors import (
    DefaultBranchNotFoundError,
    HistoryRewriteError,
    InvalidRepositoryNameError,
)
from .governor import FixedDelayGovernor
from .models import (
    RepositoryStatus,
    RepositorySyncResult,
    StepLog,
    SyncOutcome,
    SyncRunSummary,
)
from .observability import SyncEventLogger

if typ.TYPE_CHECKING:
    from repopin.audit.service import AuditLogger
    from repopin.github.models import RepositoryReference

    from .governor import BackoffGovernor
    from .models import DesiredOrder, VerificationResult
    from .rewriter import HistoryRewriter
    from .strategies import CommitStrategy
    from .verifier import OrderVerifier

logger = get_logger(__name__)

#: Failures isolated to one repository. Anything else is a programming error
#: and propagates.
REPOSITORY_ERRORS: tuple[type[Exception], ...] = (
    GitHubAPIError,
    GitHubResponseShapeError,
    DefaultBranchNotFoundError,
    HistoryRewriteError,
    InvalidRepositoryNameError,
    httpx.HTTPError,
)


@dc.dataclass(frozen=True, slots=True)
class SyncOrchestratorDependencies:
    """Collaborators of :class:`SyncOrchestrator`.

    Attributes
    ----------
    verifier
        Compares the remote order with the desired one.
    rewriter
        Removes synthetic commits after each bump.
    audit
        Persists the run record.
    governor
        Delay policy between remote mutations.

    """

    verifier: OrderVerifier
    rewriter: HistoryRewriter
    audit: AuditLogger
    governor: BackoffGovernor = dc.field(default_factory=FixedDelayGovernor)


class SyncOrchestrator:
    """Drive verification, bumps and cleanups for one run."""

    def __init__(
        self,
        dependencies: SyncOrchestratorDependencies,
        *,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Configure the orchestrator with its collaborators."""
        self._verifier = dependencies.verifier
        self._rewriter = dependencies.rewriter
        self._audit = dependencies.audit
        self._governor = dependencies.governor
        self._events = event_logger or SyncEventLogger()

    async def run(
        self,
        order: DesiredOrder,
        strategy: CommitStrategy,
        *,
        owner_login: str,
        user_id: str,
    ) -> SyncOutcome:
        """Bring the remote order in line with ``order``.

        Parameters
        ----------
        order
            Desired order; only its active slice is processed.
        strategy
            Commit strategy used to bump each repository.
        owner_login
            Login whose repository listing defines the remote order.
        user_id
            Owner of the run, used for audit records and logs.

        Returns
        -------
        SyncOutcome
            ``skipped`` with both orders when nothing needed to change,
            otherwise ``synced`` with the run summary.

        """
        verification = await self._verifier.verify(owner_login, order)
        if verification.already_ordered:
            self._events.log_run_skipped(user_id=user_id, top_n=len(order.active))
            await self._persist_skipped(user_id, verification)
            return SyncOutcome.skipped(verification)

        started_at = utcnow()
        active = order.active
        total = len(active)
        self._events.log_run_started(user_id=user_id, total=total, strategy=strategy.kind)

        step_log = StepLog()
        results: list[RepositorySyncResult] = []
        for index in range(total - 1, -1, -1):
            repository = active[index]
            result = await self._sync_repository(
                repository,
                strategy,
                position=index + 1,
                total=total,
                user_id=user_id,
                step_log=step_log,
            )
            results.append(result)
            if index > 0:
                await self._governor.pause_between_repositories()

        summary = SyncRunSummary(results=tuple(results), step_logs=step_log.lines)
        self._events.log_run_completed(
            user_id=user_id, summary=summary, duration=utcnow() - started_at
        )
        await self._persist_run(user_id, summary)
        return SyncOutcome.synced(summary)

    async def _sync_repository(  # noqa: PLR0913
        self,
        repository: RepositoryReference,
        strategy: CommitStrategy,
        *,
        position: int,
        total: int,
        user_id: str,
        step_log: StepLog,
    ) -> RepositorySyncResult:
        if not repository.is_valid:
            step_log.add(f"{repository.slug}: rejected, invalid repository name")
            log_warning(logger, "Rejected invalid repository name %r", repository.slug)
            return RepositorySyncResult(
                repository=repository.slug,
                status=RepositoryStatus.ERROR,
                error=INVALID_NAME_ERROR,
            )

        try:
            await strategy.bump(
                repository, position=position, total=total, step_log=step_log
            )
        except REPOSITORY_ERRORS as exc:
            step_log.add(f"{repository.slug}: bump failed ({exc})")
            self._events.log_repository_failed(
                user_id=user_id, repository=repository.slug, error=exc
            )
            return RepositorySyncResult(
                repository=repository.slug,
                status=RepositoryStatus.ERROR,
                error=GENERIC_BUMP_ERROR,
            )

        await self._governor.pause_after_bump()
        cleaned = await self._cleanup(repository, user_id=user_id, step_log=step_log)
        return RepositorySyncResult(
            repository=repository.slug,
            status=RepositoryStatus.SUCCESS,
            cleaned=cleaned,
        )

    async def _cleanup(
        self,
        repository: RepositoryReference,
        *,
        user_id: str,
        step_log: StepLog,
    ) -> bool:
        try:
            await self._rewriter.cleanup(repository, step_log=step_log)
        except REPOSITORY_ERRORS as exc:
            step_log.add(f"{repository.slug}: cleanup failed ({exc})")
            self._events.log_cleanup_failed(
                user_id=user_id, repository=repository.slug, error=exc
            )
            return False
        return True

    async def _persist_run(self, user_id: str, summary: SyncRunSummary) -> None:
        try:
            await self._audit.record_run(user_id, summary)
        except SQLAlchemyError as exc:
            log_exception(logger, f"Failed to write audit record for {user_id}", exc)

    async def _persist_skipped(
        self, user_id: str, verification: VerificationResult
    ) -> None:
        try:
            await self._audit.record_skipped(user_id, verification)
        except SQLAlchemyError as exc:
            log_exception(logger, f"Failed to write audit record for {user_id}", exc)
