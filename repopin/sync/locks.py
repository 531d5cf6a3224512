"""Process-local mutual exclusion for runs sharing a credential."""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from .errors import SyncInProgressError


class CredentialLockRegistry:
    """Hand out one lock per credential key and refuse to wait on it.

    A second run for a key that is already held fails immediately with
    :class:`SyncInProgressError` instead of queueing behind the first.
    """

    def __init__(self) -> None:
        """Start with no held keys."""
        self._locks: dict[str, asyncio.Lock] = {}

    def is_held(self, key: str) -> bool:
        """Return whether a run currently holds ``key``."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> typ.AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Raises
        ------
        SyncInProgressError
            If ``key`` is already held.

        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            raise SyncInProgressError()
        async with lock:
            try:
                yield
            finally:
                self._locks.pop(key, None)
