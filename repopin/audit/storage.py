"""Persistence model for the sync audit log."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from repopin.common.storage import Base, UTCDateTime, create_all_tables
from repopin.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class SyncLog(Base):
    """Append-only record of one sync run or order change."""

    __tablename__ = "sync_logs"
    __table_args__ = (Index("ix_sync_logs_user_time", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    action: Mapped[str] = mapped_column(String(32))
    status: Mapped[str] = mapped_column(String(16))
    details: Mapped[dict[str, typ.Any]] = mapped_column(JSON, default=dict)
    repos_affected: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


async def init_audit_storage(engine: AsyncEngine) -> None:
    """Create the audit table, and any other registered ones, if absent."""
    await create_all_tables(engine)
