"""Fixed-window rate limiting for trigger endpoints.

Usage
-----
Gate a sync trigger by its secret::

    from repopin.ratelimit import SYNC_LIMIT, RateLimiter

    limiter = RateLimiter()
    result = limiter.check_config(f"sync:{secret}", SYNC_LIMIT)
    if not result.allowed:
        ...

"""

from repopin.ratelimit.limiter import (
    API_LIMIT,
    AUTH_LIMIT,
    SYNC_LIMIT,
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
)
from repopin.ratelimit.sweeper import RateLimitSweeper

__all__ = [
    "API_LIMIT",
    "AUTH_LIMIT",
    "SYNC_LIMIT",
    "RateLimitConfig",
    "RateLimitResult",
    "RateLimitSweeper",
    "RateLimiter",
]
