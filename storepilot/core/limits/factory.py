"""Factory for rate limit stores.

Returns the store implementation for the configured backend (memory|redis).

Usage:
    from storepilot.core.limits.factory import get_rate_limit_store

    store = get_rate_limit_store(settings.limits_backend, redis_url=settings.redis_url)
"""

from __future__ import annotations

import redis.asyncio as redis

from storepilot.config.settings import Settings
from storepilot.core.limits import RateLimitResult, RateLimitStore
from storepilot.core.limits.memory import InMemoryRateLimitStore
from storepilot.core.time import Clock, system_clock


def get_rate_limit_store(
    backend: str = "memory",
    *,
    redis_url: str = "",
    clock: Clock = system_clock,
) -> RateLimitStore:
    """Get a rate limit store implementation.

    Raises:
        ValueError: If the backend is unknown, or redis is selected without a URL.
    """
    if backend == "memory":
        return InMemoryRateLimitStore(clock=clock)

    if backend == "redis":
        if not redis_url:
            raise ValueError(
                "redis_url is required when limits_backend=redis"
            )
        return RedisRateLimitStore(redis_url=redis_url, clock=clock)

    raise ValueError(f"Unknown limits_backend: {backend}. Use 'memory' or 'redis'")


def get_store_from_settings(settings: Settings, clock: Clock = system_clock) -> RateLimitStore:
    """Convenience wrapper for app startup."""
    return get_rate_limit_store(
        settings.limits_backend,
        redis_url=settings.redis_url,
        clock=clock,
    )


class RedisRateLimitStore(RateLimitStore):
    """Redis-based fixed-window counters using INCR + EXPIRE NX.

    The key's TTL is set only by the request that creates it, so the window
    opens on the first request and the counter disappears when it closes.
    Keys are prefixed with "storepilot:ratelimit:" to avoid collisions.
    """

    def __init__(self, redis_url: str, clock: Clock = system_clock):
        self._redis_url = redis_url
        self._clock = clock
        self._prefix = "storepilot:ratelimit:"
        self._client: redis.Redis | None = None

    def _get_client(self) -> redis.Redis:
        """Get or create Redis client (lazy initialization)."""
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _key(self, identifier: str, endpoint: str) -> str:
        return f"{self._prefix}{endpoint}:{identifier}"

    async def hit(
        self, identifier: str, endpoint: str, limit: int, window_s: float
    ) -> RateLimitResult:
        client = self._get_client()
        key = self._key(identifier, endpoint)
        window_ms = max(1, int(window_s * 1000))

        pipe = client.pipeline()
        pipe.incr(key)
        pipe.pexpire(key, window_ms, nx=True)
        pipe.pttl(key)
        count, _, ttl_ms = await pipe.execute()

        now = self._clock()
        reset_at = now + (ttl_ms / 1000 if ttl_ms and ttl_ms > 0 else window_s)

        if count > limit:
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)
        return RateLimitResult(allowed=True, remaining=limit - count, reset_at=reset_at)

    async def reset(self, identifier: str, endpoint: str) -> None:
        await self._get_client().delete(self._key(identifier, endpoint))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
