"""Build a ``SyncService`` from a session factory and the environment.

Usage
-----
Build a service for the API layer::

    from repopin.api.factory import build_sync_service

    service = build_sync_service(session_factory, rate_limiter=RateLimiter())

"""

from __future__ import annotations

import typing as typ

from repopin.audit.service import AuditLogger
from repopin.github.auth import GitHubClientFactory, StaticTokenProvider
from repopin.github.client import GitHubRestConfig
from repopin.settings.service import SettingsService
from repopin.sync.config import SyncConfig
from repopin.sync.observability import SyncEventLogger
from repopin.sync.service import SyncService, SyncServiceDependencies

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from repopin.github.auth import InstallationTokenProvider
    from repopin.ratelimit.limiter import RateLimiter

__all__ = ["build_sync_service"]


def build_sync_service(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    rate_limiter: RateLimiter,
    token_provider: InstallationTokenProvider | None = None,
) -> SyncService:
    """Build a ``SyncService`` from environment configuration.

    Parameters
    ----------
    session_factory
        Async session factory for settings and audit storage.
    rate_limiter
        Limiter shared with the app's sweeper.
    token_provider
        Source of installation tokens. Defaults to a static provider using
        ``REPOPIN_GITHUB_TOKEN``.

    Returns
    -------
    SyncService
        Service ready to handle triggers.

    Raises
    ------
    GitHubConfigError
        If no provider is given and ``REPOPIN_GITHUB_TOKEN`` is unset.
    ValueError
        If a sync configuration variable is malformed.

    """
    rest_config = GitHubRestConfig.from_env()
    provider = token_provider or StaticTokenProvider(rest_config.token)
    audit = AuditLogger(session_factory)
    dependencies = SyncServiceDependencies(
        settings=SettingsService(session_factory, audit=audit),
        audit=audit,
        client_factory=GitHubClientFactory(rest_config, provider),
        rate_limiter=rate_limiter,
    )
    return SyncService(
        dependencies,
        config=SyncConfig.from_env(),
        event_logger=SyncEventLogger(),
    )
