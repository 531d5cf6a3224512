"""Liveness and readiness probe resources.

Neither probe touches the database or GitHub; both are always registered.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Report that the process is alive."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe returning ``{"status": "ready"}`` and sync availability."""

    def __init__(self, *, sync_enabled: bool = False) -> None:
        """Record whether the sync endpoint is mounted."""
        self._sync_enabled = sync_enabled

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Report that the service accepts traffic."""
        resp.media = {"status": "ready", "sync": self._sync_enabled}
        resp.status = HTTPStatus.OK
