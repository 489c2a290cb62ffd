"""Rate limit store abstractions.

The limiter counts requests per (identifier, endpoint) pair inside a fixed
window that opens on the first request and resets discretely once it has
elapsed. Backends are pluggable so the same handlers run against per-process
tables or a shared Redis instance.

Usage:
    from storepilot.core.limits.factory import get_rate_limit_store
    from storepilot.core.limits.limiter import RateLimiter

    # In app lifespan:
    limiter = RateLimiter(get_rate_limit_store(settings.limits_backend))

    # In handlers:
    result = await limiter.check("1.2.3.4", "/api/auth/login", 5, 900)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = [
    "RateLimitResult",
    "RateLimitStore",
]


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed.
        remaining: Requests left in the current window.
        reset_at: Epoch seconds at which the current window closes.
    """
    allowed: bool
    remaining: int
    reset_at: float

    def retry_after(self, now: float) -> float:
        """Seconds until the window closes (never negative)."""
        return max(0.0, self.reset_at - now)


class RateLimitStore(Protocol):
    """Protocol for rate limit backends."""

    async def hit(
        self, identifier: str, endpoint: str, limit: int, window_s: float
    ) -> RateLimitResult:
        """Record a request and check it against the limit.

        Args:
            identifier: Subject key (client IP or user id).
            endpoint: Logical endpoint name; each endpoint has its own table.
            limit: Maximum requests allowed in the window.
            window_s: Window duration in seconds.
        """
        ...

    async def reset(self, identifier: str, endpoint: str) -> None:
        """Forget any window for the pair."""
        ...
