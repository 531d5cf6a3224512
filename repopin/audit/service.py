"""Durable audit records for sync runs and order changes.

Every run that reaches the orchestrator, every authentication failure and
every manual order change leaves one row in ``sync_logs``. Details are JSON
and never contain credentials.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from repopin.audit.storage import SyncLog
from repopin.sync.models import RunStatus

if typ.TYPE_CHECKING:
    import datetime as dt

    from repopin.sync.models import SyncRunSummary, VerificationResult

type SessionFactory = async_sessionmaker[AsyncSession]

MAX_LIST_LIMIT = 50


class AuditAction(enum.StrEnum):
    """Kinds of audited operations."""

    AUTO_SYNC = "auto_sync"
    AUTO_SYNC_SKIPPED = "auto_sync_skipped"
    MANUAL_ORDER = "manual_order"
    RESTORE_ORDER = "restore_order"


@dc.dataclass(frozen=True, slots=True)
class AuditRecord:
    """Read view of a ``sync_logs`` row."""

    id: int
    user_id: str
    action: str
    status: str
    details: dict[str, typ.Any]
    repos_affected: tuple[str, ...]
    created_at: dt.datetime


class AuditLogger:
    """Write and read audit records.

    Parameters
    ----------
    session_factory
        Async session factory for the audit database.

    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Configure the logger with a session factory."""
        self._session_factory = session_factory

    async def record(  # noqa: PLR0913
        self,
        user_id: str,
        *,
        action: str,
        status: str,
        details: typ.Mapping[str, typ.Any],
        repos_affected: typ.Iterable[str] = (),
    ) -> int:
        """Persist one audit row and return its id."""
        row = SyncLog(
            user_id=user_id,
            action=action,
            status=status,
            details=dict(details),
            repos_affected=list(repos_affected),
        )
        async with self._session_factory() as session, session.begin():
            session.add(row)
            await session.flush()
            return row.id

    async def record_run(self, user_id: str, summary: SyncRunSummary) -> int:
        """Persist a completed run with its results, step log and counters."""
        return await self.record(
            user_id,
            action=AuditAction.AUTO_SYNC,
            status=summary.status,
            details={
                "results": [result.as_payload() for result in summary.results],
                "logs": list(summary.step_logs),
                "summary": summary.counts(),
            },
            repos_affected=[result.repository for result in summary.results],
        )

    async def record_skipped(
        self, user_id: str, verification: VerificationResult
    ) -> int:
        """Persist a run skipped because the order already matched."""
        return await self.record(
            user_id,
            action=AuditAction.AUTO_SYNC_SKIPPED,
            status=RunStatus.SUCCESS,
            details={
                "message": "Order already correct",
                "currentOrder": list(verification.current_order),
                "desiredOrder": list(verification.desired_order),
            },
        )

    async def record_failure(
        self,
        user_id: str,
        *,
        action: str,
        message: str,
    ) -> int:
        """Persist an operation that failed before any repository was touched."""
        return await self.record(
            user_id,
            action=action,
            status=RunStatus.ERROR,
            details={"error": message},
        )

    async def list_recent(
        self, user_id: str, *, limit: int = MAX_LIST_LIMIT
    ) -> list[AuditRecord]:
        """Return up to ``limit`` (at most 50) records, newest first."""
        bounded = max(1, min(limit, MAX_LIST_LIMIT))
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(SyncLog)
                .where(SyncLog.user_id == user_id)
                .order_by(SyncLog.created_at.desc(), SyncLog.id.desc())
                .limit(bounded)
            )
            return [
                AuditRecord(
                    id=row.id,
                    user_id=row.user_id,
                    action=row.action,
                    status=row.status,
                    details=dict(row.details or {}),
                    repos_affected=tuple(row.repos_affected or ()),
                    created_at=row.created_at,
                )
                for row in rows
            ]
