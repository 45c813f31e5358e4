"""Tests for the per-client fixed-window rate limiter."""
import asyncio

import pytest

from hardia.services.rate_limiter import FixedWindowRateLimiter, RateLimitDecision


class TestFixedWindowRateLimiter:
    """Quota enforcement, window rotation and key isolation."""

    @pytest.mark.parametrize("limit, window", [(0, 3600), (-1, 3600), (5, 0)])
    def test_rejects_non_positive_settings(self, limit, window):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(limit=limit, window_seconds=window)

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_denies(self):
        limiter = FixedWindowRateLimiter(limit=3, window_seconds=3600)

        decisions = [await limiter.check("10.0.0.1") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]
        assert all(d.limit == 3 for d in decisions)

    @pytest.mark.asyncio
    async def test_retry_after_is_within_window(self):
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=3600)

        await limiter.check("10.0.0.1")
        decision = await limiter.check("10.0.0.1")

        assert not decision.allowed
        assert 0 < decision.retry_after <= 3600

    @pytest.mark.asyncio
    async def test_counter_resets_after_window(self):
        limiter = FixedWindowRateLimiter(limit=2, window_seconds=1)

        for _ in range(2):
            await limiter.check("10.0.0.1")
        assert not (await limiter.check("10.0.0.1")).allowed

        await asyncio.sleep(1.2)
        decision = await limiter.check("10.0.0.1")

        assert decision.allowed
        assert decision.remaining == 1

    @pytest.mark.asyncio
    async def test_clients_are_counted_separately(self):
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=3600)

        assert (await limiter.check("10.0.0.1")).allowed
        assert not (await limiter.check("10.0.0.1")).allowed
        assert (await limiter.check("10.0.0.2")).allowed

    @pytest.mark.asyncio
    async def test_concurrent_checks_never_exceed_limit(self):
        limiter = FixedWindowRateLimiter(limit=100, window_seconds=3600)

        decisions = await asyncio.gather(*(limiter.check("10.0.0.1") for _ in range(150)))

        assert sum(d.allowed for d in decisions) == 100
        assert not (await limiter.check("10.0.0.1")).allowed

    @pytest.mark.asyncio
    async def test_separate_limiters_do_not_share_counters(self):
        first = FixedWindowRateLimiter(limit=1, window_seconds=3600)
        second = FixedWindowRateLimiter(limit=1, window_seconds=3600)

        assert (await first.check("10.0.0.1")).allowed
        assert (await second.check("10.0.0.1")).allowed


class TestRateLimitDecision:
    def test_headers(self):
        decision = RateLimitDecision(allowed=True, limit=100, remaining=57, retry_after=1200)

        assert decision.headers == {
            "RateLimit-Limit": "100",
            "RateLimit-Remaining": "57",
            "RateLimit-Reset": "1200",
        }
