"""Application factory for the RepoPin Falcon ASGI application.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the sync endpoint::

    from repopin.api.app import AppDependencies, create_app

    deps = AppDependencies(sync_service=sync_service, rate_limiter=limiter)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from repopin.api.errors import register_error_handlers
from repopin.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from repopin.ratelimit.limiter import RateLimiter
    from repopin.sync.service import SyncService

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    sync_service
        Trigger service backing ``POST /sync/{secret}``. Without it only the
        health endpoints are registered.
    rate_limiter
        Limiter whose expired entries are swept during the app's lifespan.
    sweep_interval_s
        Seconds between sweeps.
    extra_middleware
        Additional middleware, such as lifespan components, appended after
        the sweeper.

    """

    sync_service: SyncService | None = None
    rate_limiter: RateLimiter | None = None
    sweep_interval_s: float = 60.0
    extra_middleware: tuple[object, ...] = ()


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or without a sync
        service, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    middleware: list[object] = []

    if deps.rate_limiter is not None:
        from repopin.ratelimit.sweeper import RateLimitSweeper

        middleware.append(
            RateLimitSweeper(deps.rate_limiter, interval_s=deps.sweep_interval_s)
        )
    middleware.extend(deps.extra_middleware)

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(sync_enabled=deps.sync_service is not None))

    if deps.sync_service is not None:
        from repopin.api.sync.resources import SyncResource

        app.add_route("/sync/{secret}", SyncResource(deps.sync_service))

    register_error_handlers(app)
    return app
