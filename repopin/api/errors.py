"""Falcon error handlers for sync trigger failures.

Every handler renders ``{"error": <client-safe message>}``. Exception
messages of :class:`~repopin.sync.errors.SyncError` subclasses are written
for clients; upstream detail only reaches the logs.

Usage
-----
Register every handler on the Falcon app::

    from repopin.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from repopin.sync.errors import (
    ConfigurationError,
    InvalidSecretError,
    RateLimitExceededError,
    ReauthorizationRequiredError,
    SyncInProgressError,
    UnknownSecretError,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "handle_configuration_error",
    "handle_invalid_secret",
    "handle_rate_limited",
    "handle_reauthorization_required",
    "handle_sync_in_progress",
    "handle_unknown_secret",
    "register_error_handlers",
]


async def handle_invalid_secret(
    _req: Request,
    resp: Response,
    ex: InvalidSecretError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidSecretError`` to HTTP 400."""
    resp.status = falcon.HTTP_400
    resp.media = {"error": str(ex)}


async def handle_configuration_error(
    _req: Request,
    resp: Response,
    ex: ConfigurationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ConfigurationError`` to HTTP 400 without the stored detail."""
    resp.status = falcon.HTTP_400
    resp.media = {"error": str(ex)}


async def handle_unknown_secret(
    _req: Request,
    resp: Response,
    ex: UnknownSecretError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UnknownSecretError`` to HTTP 401."""
    resp.status = falcon.HTTP_401
    resp.media = {"error": str(ex)}


async def handle_reauthorization_required(
    _req: Request,
    resp: Response,
    ex: ReauthorizationRequiredError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ReauthorizationRequiredError`` to HTTP 401 with a reinstall hint."""
    resp.status = falcon.HTTP_401
    resp.media = {"error": str(ex)}


async def handle_sync_in_progress(
    _req: Request,
    resp: Response,
    ex: SyncInProgressError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``SyncInProgressError`` to HTTP 409."""
    resp.status = falcon.HTTP_409
    resp.media = {"error": str(ex)}


async def handle_rate_limited(
    _req: Request,
    resp: Response,
    ex: RateLimitExceededError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``RateLimitExceededError`` to HTTP 429 with rate limit headers.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status, headers and media are set.
    ex
        The rejection, carrying the window reset time.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_429
    resp.set_header("Retry-After", str(ex.retry_after_seconds))
    resp.set_header("X-RateLimit-Remaining", "0")
    resp.set_header("X-RateLimit-Reset", str(ex.result.reset_at))
    resp.media = {"error": str(ex)}


def register_error_handlers(app: App) -> None:
    """Register every sync error handler on ``app``."""
    app.add_error_handler(InvalidSecretError, handle_invalid_secret)
    app.add_error_handler(ConfigurationError, handle_configuration_error)
    app.add_error_handler(UnknownSecretError, handle_unknown_secret)
    app.add_error_handler(
        ReauthorizationRequiredError, handle_reauthorization_required
    )
    app.add_error_handler(SyncInProgressError, handle_sync_in_progress)
    app.add_error_handler(RateLimitExceededError, handle_rate_limited)
