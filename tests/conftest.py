"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from repopin.audit import AuditLogger, init_audit_storage
from repopin.settings import SettingsService, init_settings_storage
from tests.helpers.fake_github import FakeGitHub

if typ.TYPE_CHECKING:
    from pathlib import Path


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine and initialise settings and audit storage.

    ``NullPool`` keeps connections from outliving the event loop that opened
    them, which matters for Falcon's synchronous test client.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'repopin_test.db'}",
        poolclass=NullPool,
    )
    try:
        await init_settings_storage(engine)
        await init_audit_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite."""
    engine = await _setup_sqlite(tmp_path)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def audit_logger(session_factory: async_sessionmaker[AsyncSession]) -> AuditLogger:
    """Return an audit logger bound to the test database."""
    return AuditLogger(session_factory)


@pytest.fixture
def settings_service(
    session_factory: async_sessionmaker[AsyncSession],
    audit_logger: AuditLogger,
) -> SettingsService:
    """Return a settings service bound to the test database."""
    return SettingsService(session_factory, audit=audit_logger)


@pytest.fixture
def fake_github() -> FakeGitHub:
    """Return an empty in-memory GitHub."""
    return FakeGitHub()
