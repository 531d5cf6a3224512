"""Persistence models for sync settings and order history."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import JSON, Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from repopin.common.storage import Base, UTCDateTime, create_all_tables
from repopin.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class SyncSettings(Base):
    """One user's desired order and sync switches."""

    __tablename__ = "sync_settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True)
    username: Mapped[str] = mapped_column(String(100))
    installation_id: Mapped[int | None] = mapped_column(Integer, default=None)
    desired_order: Mapped[typ.Any] = mapped_column(JSON, default=list)
    top_n: Mapped[int] = mapped_column(Integer, default=10)
    strategy: Mapped[str] = mapped_column(String(16), default="revert")
    auto_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    sync_secret: Mapped[str | None] = mapped_column(
        String(36), unique=True, default=None
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )


class OrderSnapshot(Base):
    """Point-in-time copy of a user's desired order."""

    __tablename__ = "order_snapshots"
    __table_args__ = (Index("ix_order_snapshots_user_time", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    desired_order: Mapped[list[str]] = mapped_column(JSON, default=list)
    top_n: Mapped[int] = mapped_column(Integer)
    change_type: Mapped[str] = mapped_column(String(16))
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


async def init_settings_storage(engine: AsyncEngine) -> None:
    """Create the settings tables, and any other registered ones, if absent."""
    await create_all_tables(engine)
