"""Rate limiter facade used by route guards."""

from __future__ import annotations

from storepilot.core.limits import RateLimitResult, RateLimitStore
from storepilot.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Per-identifier, per-endpoint request limiter.

    Advisory only: ``check`` reports whether the request fits and callers
    decide what to do with a rejection.
    """

    def __init__(self, store: RateLimitStore):
        self.store = store

    async def check(
        self,
        identifier: str,
        endpoint: str,
        max_requests: int,
        window_seconds: float,
    ) -> RateLimitResult:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        result = await self.store.hit(identifier, endpoint, max_requests, window_seconds)
        if not result.allowed:
            logger.warning(
                "Rate limit exceeded",
                data={"identifier": identifier, "endpoint": endpoint, "max": max_requests},
            )
        return result

    async def reset(self, identifier: str, endpoint: str) -> None:
        await self.store.reset(identifier, endpoint)

    async def aclose(self) -> None:
        close = getattr(self.store, "aclose", None)
        if close is not None:
            await close()
