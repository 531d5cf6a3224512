"""Stored desired orders, their history and the sync switches.

Usage
-----
>>> service = SettingsService(session_factory, audit=AuditLogger(session_factory))
>>> await service.link_installation("u1", username="octo", installation_id=42)
>>> info = await service.save_order("u1", ["octo/reef"], top_n=5)

"""

from __future__ import annotations

import collections.abc as cabc
import enum
import typing as typ
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from repopin.audit.service import AuditAction
from repopin.logging import get_logger, log_info
from repopin.settings.errors import SettingsNotFoundError, SnapshotNotFoundError
from repopin.settings.models import (
    OrderSnapshotInfo,
    SyncSettingsInfo,
    validate_order,
)
from repopin.settings.storage import OrderSnapshot, SyncSettings
from repopin.sync.constants import MAX_TOP_N, MIN_TOP_N
from repopin.sync.models import CommitStrategyKind, RunStatus

if typ.TYPE_CHECKING:
    from repopin.audit.service import AuditLogger

type SessionFactory = async_sessionmaker[AsyncSession]
type SecretFactory = cabc.Callable[[], str]

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 20


class ChangeType(enum.StrEnum):
    """Why an order snapshot was taken."""

    MANUAL = "manual"
    RESTORE = "restore"


def clamp_top_n(top_n: int) -> int:
    """Clamp ``top_n`` to the supported range 1..100."""
    return max(MIN_TOP_N, min(top_n, MAX_TOP_N))


def _new_secret() -> str:
    return str(uuid.uuid4())


def _to_info(row: SyncSettings) -> SyncSettingsInfo:
    return SyncSettingsInfo(
        user_id=row.user_id,
        username=row.username,
        installation_id=row.installation_id,
        raw_order=row.desired_order,
        top_n=row.top_n,
        strategy=CommitStrategyKind.parse(row.strategy),
        auto_enabled=row.auto_enabled,
        sync_secret=row.sync_secret,
    )


def _to_snapshot(row: OrderSnapshot) -> OrderSnapshotInfo:
    return OrderSnapshotInfo(
        id=row.id,
        desired_order=tuple(row.desired_order or ()),
        top_n=row.top_n,
        change_type=row.change_type,
        created_at=row.created_at,
    )


class SettingsService:
    """Read and change users' sync settings.

    Parameters
    ----------
    session_factory
        Async session factory for the settings database.
    audit
        Audit logger receiving order-change records.
    secret_factory
        Generator of new sync secrets; UUID4 strings by default.

    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        audit: AuditLogger,
        secret_factory: SecretFactory = _new_secret,
    ) -> None:
        """Configure the service."""
        self._session_factory = session_factory
        self._audit = audit
        self._secret_factory = secret_factory

    async def get_by_sync_secret(self, secret: str) -> SyncSettingsInfo | None:
        """Return the settings owning ``secret``, if any."""
        async with self._session_factory() as session:
            row = await session.scalar(
                select(SyncSettings).where(SyncSettings.sync_secret == secret)
            )
            return None if row is None else _to_info(row)

    async def get_for_user(self, user_id: str) -> SyncSettingsInfo | None:
        """Return the settings of ``user_id``, if any."""
        async with self._session_factory() as session:
            row = await self._load(session, user_id)
            return None if row is None else _to_info(row)

    async def link_installation(
        self,
        user_id: str,
        *,
        username: str,
        installation_id: int | None,
    ) -> SyncSettingsInfo:
        """Create or update the user's row with their login and installation."""
        async with self._session_factory() as session, session.begin():
            row = await self._load(session, user_id)
            if row is None:
                row = SyncSettings(user_id=user_id, desired_order=[])
                session.add(row)
            row.username = username
            row.installation_id = installation_id
            await session.flush()
            return _to_info(row)

    async def save_order(
        self,
        user_id: str,
        repositories: typ.Sequence[str],
        *,
        top_n: int,
        strategy: str | None = None,
        auto_enabled: bool | None = None,
    ) -> SyncSettingsInfo:
        """Replace the user's desired order.

        Creates a sync secret on first save and records a ``manual``
        snapshot plus a ``manual_order`` audit entry. ``top_n`` is clamped
        to 1..100 and unknown strategies fall back to ``revert``.

        Raises
        ------
        InvalidOrderError
            If the order has more than 500 entries or an invalid slug.
        SettingsNotFoundError
            If the user has not linked an account yet.

        """
        order = validate_order(list(repositories))
        bounded_top_n = clamp_top_n(top_n)
        async with self._session_factory() as session, session.begin():
            row = await self._require(session, user_id)
            row.desired_order = list(order)
            row.top_n = bounded_top_n
            if strategy is not None:
                row.strategy = CommitStrategyKind.parse(strategy)
            if auto_enabled is not None:
                row.auto_enabled = auto_enabled
            if row.sync_secret is None:
                row.sync_secret = self._secret_factory()
            session.add(
                OrderSnapshot(
                    user_id=user_id,
                    desired_order=list(order),
                    top_n=bounded_top_n,
                    change_type=ChangeType.MANUAL,
                )
            )
            await session.flush()
            info = _to_info(row)

        await self._audit.record(
            user_id,
            action=AuditAction.MANUAL_ORDER,
            status=RunStatus.SUCCESS,
            details={"count": len(order), "topN": bounded_top_n},
            repos_affected=order,
        )
        log_info(logger, "Saved order for %s (repositories=%d)", user_id, len(order))
        return info

    async def list_history(
        self, user_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[OrderSnapshotInfo]:
        """Return the user's order snapshots, newest first."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(OrderSnapshot)
                .where(OrderSnapshot.user_id == user_id)
                .order_by(OrderSnapshot.created_at.desc(), OrderSnapshot.id.desc())
                .limit(max(1, limit))
            )
            return [_to_snapshot(row) for row in rows]

    async def restore_snapshot(
        self, user_id: str, snapshot_id: int
    ) -> SyncSettingsInfo:
        """Make a previous snapshot the current order.

        Raises
        ------
        SnapshotNotFoundError
            If the snapshot does not exist or belongs to another user.
        SettingsNotFoundError
            If the user has no settings row.

        """
        async with self._session_factory() as session, session.begin():
            snapshot = await session.scalar(
                select(OrderSnapshot).where(
                    OrderSnapshot.id == snapshot_id,
                    OrderSnapshot.user_id == user_id,
                )
            )
            if snapshot is None:
                raise SnapshotNotFoundError(snapshot_id)
            row = await self._require(session, user_id)
            order = list(snapshot.desired_order or ())
            row.desired_order = order
            row.top_n = snapshot.top_n
            session.add(
                OrderSnapshot(
                    user_id=user_id,
                    desired_order=order,
                    top_n=snapshot.top_n,
                    change_type=ChangeType.RESTORE,
                )
            )
            await session.flush()
            info = _to_info(row)

        await self._audit.record(
            user_id,
            action=AuditAction.RESTORE_ORDER,
            status=RunStatus.SUCCESS,
            details={"snapshotId": snapshot_id, "count": len(order)},
            repos_affected=order,
        )
        return info

    async def set_auto_enabled(self, user_id: str, *, enabled: bool) -> SyncSettingsInfo:
        """Switch scheduled syncing on or off."""
        async with self._session_factory() as session, session.begin():
            row = await self._require(session, user_id)
            row.auto_enabled = enabled
            await session.flush()
            return _to_info(row)

    async def regenerate_secret(self, user_id: str) -> str:
        """Replace the user's sync secret and return the new one."""
        async with self._session_factory() as session, session.begin():
            row = await self._require(session, user_id)
            secret = self._secret_factory()
            row.sync_secret = secret
        return secret

    async def _load(self, session: AsyncSession, user_id: str) -> SyncSettings | None:
        return await session.scalar(
            select(SyncSettings).where(SyncSettings.user_id == user_id)
        )

    async def _require(self, session: AsyncSession, user_id: str) -> SyncSettings:
        row = await self._load(session, user_id)
        if row is None:
            raise SettingsNotFoundError(user_id)
        return row
