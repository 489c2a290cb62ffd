"""Tests for the fixed-window rate limiter and its in-memory store."""

import pytest

from storepilot.core.limits.factory import get_rate_limit_store
from storepilot.core.limits.limiter import RateLimiter
from storepilot.core.limits.memory import InMemoryRateLimitStore
from storepilot.tests.helpers import START_TIME, ManualClock

WINDOW = 15 * 60


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(InMemoryRateLimitStore(clock=clock))


class TestWindowCounting:
    """Counting inside one window."""

    @pytest.mark.asyncio
    async def test_five_allowed_then_rejected(self, limiter):
        remaining = []
        for _ in range(5):
            result = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
            assert result.allowed is True
            remaining.append(result.remaining)
        assert remaining == [4, 3, 2, 1, 0]

        sixth = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        assert sixth.allowed is False
        assert sixth.remaining == 0

    @pytest.mark.asyncio
    async def test_reset_at_is_window_start_plus_window(self, limiter, clock):
        first = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        clock.advance(60)
        second = await limiter.check("1.2.3.4", "/login", 5, WINDOW)

        assert first.reset_at == START_TIME + WINDOW
        assert second.reset_at == START_TIME + WINDOW
        assert second.retry_after(clock()) == WINDOW - 60

    @pytest.mark.asyncio
    async def test_rejections_do_not_extend_window(self, limiter, clock):
        for _ in range(5):
            await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        for _ in range(3):
            clock.advance(60)
            rejected = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
            assert rejected.allowed is False
            assert rejected.reset_at == START_TIME + WINDOW


class TestWindowExpiry:
    """Discrete reset once the window has elapsed."""

    @pytest.mark.asyncio
    async def test_still_limited_at_exact_window_end(self, limiter, clock):
        for _ in range(5):
            await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        clock.advance(WINDOW)
        result = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        assert result.allowed is False

    @pytest.mark.asyncio
    async def test_new_window_after_expiry(self, limiter, clock):
        for _ in range(5):
            await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        clock.advance(WINDOW + 1)
        result = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        assert result.allowed is True
        assert result.remaining == 4
        assert result.reset_at == clock() + WINDOW

    @pytest.mark.asyncio
    async def test_expired_entries_are_purged(self, clock):
        store = InMemoryRateLimitStore(clock=clock)
        await store.hit("a", "/stores", 10, WINDOW)
        clock.advance(10)
        await store.hit("b", "/stores", 10, WINDOW)
        assert store.size("/stores") == 2

        clock.advance(WINDOW - 5)
        await store.hit("c", "/stores", 10, WINDOW)
        # "a" expired, "b" is still inside its window
        assert store.size("/stores") == 2

        clock.advance(WINDOW + 1)
        await store.hit("d", "/stores", 10, WINDOW)
        assert store.size("/stores") == 1

    @pytest.mark.asyncio
    async def test_restarted_window_keeps_purge_order(self, clock):
        store = InMemoryRateLimitStore(clock=clock)
        await store.hit("a", "/stores", 10, WINDOW)
        await store.hit("b", "/stores", 10, WINDOW)
        clock.advance(WINDOW + 1)
        await store.hit("a", "/stores", 10, WINDOW)

        clock.advance(WINDOW - 10)
        result = await store.hit("a", "/stores", 10, WINDOW)
        assert result.remaining == 8


class TestIsolation:
    """Tables are independent per endpoint and identifier."""

    @pytest.mark.asyncio
    async def test_endpoints_have_separate_budgets(self, limiter):
        for _ in range(5):
            await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        other = await limiter.check("1.2.3.4", "/register", 5, WINDOW)
        assert other.allowed is True
        assert other.remaining == 4

    @pytest.mark.asyncio
    async def test_identifiers_have_separate_budgets(self, limiter):
        for _ in range(5):
            await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        other = await limiter.check("5.6.7.8", "/login", 5, WINDOW)
        assert other.allowed is True

    @pytest.mark.asyncio
    async def test_reset_clears_one_pair(self, limiter):
        for _ in range(5):
            await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        await limiter.reset("1.2.3.4", "/login")
        result = await limiter.check("1.2.3.4", "/login", 5, WINDOW)
        assert result.allowed is True
        assert result.remaining == 4

    @pytest.mark.asyncio
    async def test_fresh_store_per_limiter(self, clock):
        first = RateLimiter(InMemoryRateLimitStore(clock=clock))
        second = RateLimiter(InMemoryRateLimitStore(clock=clock))
        for _ in range(5):
            await first.check("1.2.3.4", "/login", 5, WINDOW)
        result = await second.check("1.2.3.4", "/login", 5, WINDOW)
        assert result.remaining == 4


class TestArguments:
    @pytest.mark.asyncio
    async def test_rejects_zero_limit(self, limiter):
        with pytest.raises(ValueError):
            await limiter.check("1.2.3.4", "/login", 0, WINDOW)

    @pytest.mark.asyncio
    async def test_rejects_non_positive_window(self, limiter):
        with pytest.raises(ValueError):
            await limiter.check("1.2.3.4", "/login", 5, 0)


class TestStoreFactory:
    def test_memory_backend(self):
        assert isinstance(get_rate_limit_store("memory"), InMemoryRateLimitStore)

    def test_redis_requires_url(self):
        with pytest.raises(ValueError, match="redis_url"):
            get_rate_limit_store("redis")

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown limits_backend"):
            get_rate_limit_store("memcached")
