"""Per-client request quota with a fixed window.

Each client key gets ``limit`` requests per window. A window starts at the
client's first request and rotates once ``window_seconds`` have elapsed.
Counters live in the ``limits`` in-memory storage and are lost on restart.

Counting is the storage's atomic increment, so concurrent requests from one
client always see a consistent sequential count.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.aio.storage import MemoryStorage
from limits.aio.strategies import FixedWindowRateLimiter as _FixedWindowStrategy

logger = logging.getLogger(__name__)

NAMESPACE = "chat"

RATE_LIMIT_HEADERS = ("RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset")


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # Seconds until the window rotates

    @property
    def headers(self) -> dict[str, str]:
        """IETF draft ``RateLimit-*`` response headers for this decision."""
        values = (self.limit, self.remaining, self.retry_after)
        return {name: str(value) for name, value in zip(RATE_LIMIT_HEADERS, values)}


class FixedWindowRateLimiter:
    """Keyed fixed-window rate limiter.

    Usage:
        limiter = FixedWindowRateLimiter(limit=100, window_seconds=3600)

        decision = await limiter.check(client_ip)
        if not decision.allowed:
            ...  # reject with 429
    """

    def __init__(self, limit: int, window_seconds: int = 3600):
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.limit = limit
        self.window_seconds = window_seconds
        self._item = RateLimitItemPerSecond(limit, window_seconds)
        self._storage = MemoryStorage()
        self._strategy = _FixedWindowStrategy(self._storage)

    async def check(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether it may proceed."""
        allowed = await self._strategy.hit(self._item, NAMESPACE, key)
        stats = await self._strategy.get_window_stats(self._item, NAMESPACE, key)

        retry_after = max(math.ceil(stats.reset_time - time.time()), 1)

        if not allowed:
            logger.warning(f"Rate limit exceeded: key={key} limit={self.limit}")

        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(stats.remaining, 0),
            retry_after=retry_after,
        )

