"""Integration tests for the Redis rate limit store.

Run with: pytest -m integration

Requires a running Redis instance reachable at REDIS_URL.
"""

import os

import pytest

from storepilot.core.limits.factory import RedisRateLimitStore
from storepilot.tests.helpers import ManualClock

REDIS_URL = os.getenv("REDIS_URL", "")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not REDIS_URL, reason="REDIS_URL not set"),
]


@pytest.fixture
async def redis_store():
    """Create a Redis store and clear test keys around each test."""
    store = RedisRateLimitStore(redis_url=REDIS_URL, clock=ManualClock())
    client = store._get_client()
    async for key in client.scan_iter(match="storepilot:ratelimit:/test*"):
        await client.delete(key)
    yield store
    async for key in client.scan_iter(match="storepilot:ratelimit:/test*"):
        await client.delete(key)
    await store.aclose()


class TestRedisRateLimitStore:
    @pytest.mark.asyncio
    async def test_counts_down_then_rejects(self, redis_store):
        remaining = []
        for _ in range(3):
            result = await redis_store.hit("1.2.3.4", "/test/login", 3, 60)
            assert result.allowed is True
            remaining.append(result.remaining)
        assert remaining == [2, 1, 0]

        result = await redis_store.hit("1.2.3.4", "/test/login", 3, 60)
        assert result.allowed is False
        assert result.remaining == 0

    @pytest.mark.asyncio
    async def test_reset_at_within_window(self, redis_store):
        result = await redis_store.hit("1.2.3.4", "/test/reset", 3, 60)
        now = redis_store._clock()
        assert now < result.reset_at <= now + 60

    @pytest.mark.asyncio
    async def test_endpoints_are_isolated(self, redis_store):
        await redis_store.hit("1.2.3.4", "/test/a", 1, 60)
        assert (await redis_store.hit("1.2.3.4", "/test/a", 1, 60)).allowed is False
        assert (await redis_store.hit("1.2.3.4", "/test/b", 1, 60)).allowed is True

    @pytest.mark.asyncio
    async def test_reset_clears_counter(self, redis_store):
        await redis_store.hit("1.2.3.4", "/test/clear", 1, 60)
        await redis_store.reset("1.2.3.4", "/test/clear")
        assert (await redis_store.hit("1.2.3.4", "/test/clear", 1, 60)).allowed is True
