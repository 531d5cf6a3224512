"""In-memory fixed-window rate limiter.

Each key owns a counter and a window reset time. The first request in a
window creates the entry; subsequent requests increment it until
``max_requests`` is reached, after which requests are rejected until the
window elapses. Entries are not persisted, so a process restart resets every
counter; the limiter is an abuse-prevention control only.

Usage
-----
>>> limiter = RateLimiter(clock=lambda: 0)
>>> limiter.check("sync:abc", window_ms=60_000, max_requests=2).remaining
1

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import threading

from repopin.common.time import epoch_ms

type Clock = cabc.Callable[[], int]


@dc.dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Window size and request budget for one class of callers."""

    window_ms: int
    max_requests: int


@dc.dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of a single rate limit check.

    Attributes
    ----------
    allowed
        Whether the request may proceed.
    remaining
        Requests left in the current window.
    reset_at
        Epoch milliseconds at which the current window ends.

    """

    allowed: bool
    remaining: int
    reset_at: int

    def retry_after_seconds(self, now_ms: int) -> int:
        """Return whole seconds until the window resets, never negative."""
        remaining_ms = max(0, self.reset_at - now_ms)
        return -(-remaining_ms // 1000)


@dc.dataclass(slots=True)
class RateLimitEntry:
    """Mutable counter for one key within its current window."""

    count: int
    reset_at: int


SYNC_LIMIT = RateLimitConfig(window_ms=60 * 60 * 1000, max_requests=10)
API_LIMIT = RateLimitConfig(window_ms=60 * 1000, max_requests=100)
AUTH_LIMIT = RateLimitConfig(window_ms=60 * 1000, max_requests=10)


class RateLimiter:
    """Fixed-window request counter keyed by an arbitrary string.

    Updates to the shared store happen under a lock, so each key's counter
    is read and written atomically per request even when several event loops
    or worker threads share one limiter.

    Parameters
    ----------
    clock
        Callable returning the current time in epoch milliseconds.

    """

    def __init__(self, *, clock: Clock = epoch_ms) -> None:
        """Create an empty limiter using ``clock`` for window arithmetic."""
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def now(self) -> int:
        """Return the limiter's notion of the current time in epoch ms."""
        return self._clock()

    def check(self, key: str, *, window_ms: int, max_requests: int) -> RateLimitResult:
        """Count a request against ``key`` and report whether it is allowed."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.reset_at < now:
                entry = RateLimitEntry(count=1, reset_at=now + window_ms)
                self._entries[key] = entry
                return RateLimitResult(
                    allowed=True,
                    remaining=max_requests - 1,
                    reset_at=entry.reset_at,
                )

            if entry.count >= max_requests:
                return RateLimitResult(allowed=False, remaining=0, reset_at=entry.reset_at)

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=max_requests - entry.count,
                reset_at=entry.reset_at,
            )

    def check_config(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        """Apply :meth:`check` using a preset configuration."""
        return self.check(
            key, window_ms=config.window_ms, max_requests=config.max_requests
        )

    def sweep(self) -> int:
        """Delete entries whose window has already expired.

        Returns
        -------
        int
            Number of entries removed.

        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.reset_at < now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        """Return the number of tracked keys."""
        with self._lock:
            return len(self._entries)
