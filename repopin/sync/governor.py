"""Delay policies between remote mutations.

The hosting API needs a moment to settle after a bump before cleanup reads
the new commits back, and spacing repositories out keeps a run under the
secondary rate limits. Tests inject :class:`NoDelayGovernor`.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ

type Sleep = cabc.Callable[[float], cabc.Awaitable[None]]

DEFAULT_SETTLE_DELAY_S = 2.0
DEFAULT_REPOSITORY_DELAY_S = 1.0


class BackoffGovernor(typ.Protocol):
    """Pauses inserted by the orchestrator."""

    async def pause_after_bump(self) -> None:
        """Wait between a bump and its cleanup."""
        ...

    async def pause_between_repositories(self) -> None:
        """Wait before moving on to the next repository."""
        ...


class FixedDelayGovernor:
    """Sleep for fixed durations."""

    def __init__(
        self,
        *,
        settle_delay_s: float = DEFAULT_SETTLE_DELAY_S,
        repository_delay_s: float = DEFAULT_REPOSITORY_DELAY_S,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Configure delays; negative values are rejected."""
        if settle_delay_s < 0 or repository_delay_s < 0:
            msg = "governor delays must be non-negative"
            raise ValueError(msg)
        self.settle_delay_s = settle_delay_s
        self.repository_delay_s = repository_delay_s
        self._sleep = sleep

    async def pause_after_bump(self) -> None:
        """Sleep for ``settle_delay_s``."""
        await self._sleep(self.settle_delay_s)

    async def pause_between_repositories(self) -> None:
        """Sleep for ``repository_delay_s``."""
        await self._sleep(self.repository_delay_s)


class NoDelayGovernor:
    """Governor that never waits."""

    async def pause_after_bump(self) -> None:
        """Return immediately."""

    async def pause_between_repositories(self) -> None:
        """Return immediately."""
