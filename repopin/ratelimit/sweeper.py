"""Falcon lifespan middleware that periodically sweeps expired rate limits.

The sweeper runs as a background task for the lifetime of the ASGI
application, bounding the memory held by abandoned rate limit keys.

Usage
-----
Register the middleware when creating the Falcon app::

    limiter = RateLimiter()
    app = falcon.asgi.App(middleware=[RateLimitSweeper(limiter)])

"""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from repopin.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from repopin.ratelimit.limiter import RateLimiter

__all__ = ["RateLimitSweeper"]

logger = get_logger(__name__)

DEFAULT_SWEEP_INTERVAL_S = 60.0


class RateLimitSweeper:
    """Run :meth:`RateLimiter.sweep` on a fixed interval.

    Parameters
    ----------
    limiter
        Limiter whose expired entries are removed.
    interval_s
        Seconds between sweeps.

    """

    def __init__(
        self,
        limiter: RateLimiter,
        *,
        interval_s: float = DEFAULT_SWEEP_INTERVAL_S,
    ) -> None:
        """Configure the sweeper without starting it."""
        self._limiter = limiter
        self._interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Return whether the background task is active."""
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_s)
            removed = self._limiter.sweep()
            if removed:
                log_debug(logger, "Swept %d expired rate limit entries", removed)

    async def start(self) -> None:
        """Start the background sweep task if it is not already running."""
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def process_startup(self, _scope: object, _event: object) -> None:
        """Start sweeping when the ASGI lifespan starts."""
        await self.start()

    async def process_shutdown(self, _scope: object, _event: object) -> None:
        """Stop sweeping when the ASGI lifespan ends."""
        await self.stop()
