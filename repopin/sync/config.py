"""Configuration for sync runs.

Usage
-----
Create a configuration with defaults:

>>> config = SyncConfig()
>>> config.cleanup_window
100

Or load from environment variables:

>>> import os
>>> os.environ["REPOPIN_CLEANUP_WINDOW"] = "50"
>>> SyncConfig.from_env().cleanup_window
50

"""

from __future__ import annotations

import dataclasses as dc
import os

from repopin.ratelimit.limiter import SYNC_LIMIT, RateLimitConfig

from .constants import DEFAULT_CLEANUP_WINDOW
from .governor import DEFAULT_REPOSITORY_DELAY_S, DEFAULT_SETTLE_DELAY_S

_MAX_CLEANUP_WINDOW = 100


@dc.dataclass(frozen=True, slots=True)
class SyncConfig:
    """Tunables for the sync trigger and orchestrator.

    Attributes
    ----------
    rate_limit
        Window and budget applied per sync secret.
    cleanup_window
        Number of recent commits inspected by each cleanup, at most one
        GitHub page (100).
    settle_delay_s
        Pause between a bump and its cleanup.
    repository_delay_s
        Pause between repositories.

    """

    rate_limit: RateLimitConfig = SYNC_LIMIT
    cleanup_window: int = DEFAULT_CLEANUP_WINDOW
    settle_delay_s: float = DEFAULT_SETTLE_DELAY_S
    repository_delay_s: float = DEFAULT_REPOSITORY_DELAY_S

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_delay(env_var: str, default: float) -> float:
        """Read a non-negative float env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 0:
            msg = f"{env_var} must not be negative, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> SyncConfig:
        """Create configuration from environment variables.

        Reads ``REPOPIN_SYNC_RATE_WINDOW_SECONDS``,
        ``REPOPIN_SYNC_RATE_MAX_REQUESTS``, ``REPOPIN_CLEANUP_WINDOW``,
        ``REPOPIN_CLEANUP_SETTLE_SECONDS`` and
        ``REPOPIN_REPOSITORY_DELAY_SECONDS``. Unset variables keep their
        defaults.

        Raises
        ------
        ValueError
            If a variable is malformed or out of range.

        """
        window_s = cls._parse_positive_int(
            "REPOPIN_SYNC_RATE_WINDOW_SECONDS", SYNC_LIMIT.window_ms // 1000
        )
        max_requests = cls._parse_positive_int(
            "REPOPIN_SYNC_RATE_MAX_REQUESTS", SYNC_LIMIT.max_requests
        )
        cleanup_window = cls._parse_positive_int(
            "REPOPIN_CLEANUP_WINDOW", DEFAULT_CLEANUP_WINDOW
        )
        if cleanup_window > _MAX_CLEANUP_WINDOW:
            msg = (
                f"REPOPIN_CLEANUP_WINDOW must be at most {_MAX_CLEANUP_WINDOW}, "
                f"got: {cleanup_window}"
            )
            raise ValueError(msg)
        return cls(
            rate_limit=RateLimitConfig(
                window_ms=window_s * 1000, max_requests=max_requests
            ),
            cleanup_window=cleanup_window,
            settle_delay_s=cls._parse_delay(
                "REPOPIN_CLEANUP_SETTLE_SECONDS", DEFAULT_SETTLE_DELAY_S
            ),
            repository_delay_s=cls._parse_delay(
                "REPOPIN_REPOSITORY_DELAY_SECONDS", DEFAULT_REPOSITORY_DELAY_S
            ),
        )
