"""RepoPin runtime entrypoint.

This module provides the ASGI application factory used by Granian
(``repopin.runtime:create_app``) and a ``main()`` that starts the server.

When ``REPOPIN_DATABASE_URL`` is set, the runtime builds the sync service
so the app serves ``POST /sync/{secret}`` alongside the health probes, and
creates missing tables at startup. Otherwise it starts in health-only mode.

Configuration is driven by environment variables:

- ``REPOPIN_HOST``: Bind address (default ``0.0.0.0``)
- ``REPOPIN_PORT``: Listen port (default ``8080``)
- ``REPOPIN_LOG_LEVEL``: Log level (default ``INFO``)
- ``REPOPIN_DATABASE_URL``: Database connection URL (optional)

Run the service directly with ``python -m repopin.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from repopin.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi
    from sqlalchemy.ext.asyncio import AsyncEngine

__all__ = ["StorageBootstrap", "create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid REPOPIN_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


class StorageBootstrap:
    """Lifespan middleware creating missing tables at startup."""

    def __init__(self, engine: AsyncEngine) -> None:
        """Bind to the engine whose schema is ensured."""
        self._engine = engine

    async def process_startup(self, _scope: object, _event: object) -> None:
        """Create the settings and audit tables if absent."""
        from repopin.audit.storage import init_audit_storage
        from repopin.settings.storage import init_settings_storage

        await init_settings_storage(self._engine)
        await init_audit_storage(self._engine)

    async def process_shutdown(self, _scope: object, _event: object) -> None:
        """Dispose of pooled connections."""
        await self._engine.dispose()


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from repopin.api.app import AppDependencies
    from repopin.api.app import create_app as _create_api_app
    from repopin.ratelimit.limiter import RateLimiter

    database_url = os.environ.get("REPOPIN_DATABASE_URL")
    limiter = RateLimiter()

    if database_url is None:
        return _create_api_app(AppDependencies(rate_limiter=limiter))

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from repopin.api.factory import build_sync_service

    engine = create_async_engine(database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    sync_service = build_sync_service(session_factory, rate_limiter=limiter)

    deps = AppDependencies(
        sync_service=sync_service,
        rate_limiter=limiter,
        extra_middleware=(StorageBootstrap(engine),),
    )
    return _create_api_app(deps)


def main() -> None:
    """Start the RepoPin runtime server using Granian.

    Reads ``REPOPIN_HOST``, ``REPOPIN_PORT``, and ``REPOPIN_LOG_LEVEL`` from
    the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("REPOPIN_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("REPOPIN_PORT", "8080"))
    log_level_str = os.environ.get("REPOPIN_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid REPOPIN_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting RepoPin runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "repopin.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
