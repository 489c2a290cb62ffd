"""In-memory rate limit store.

Tables are per-process and only correct for a single instance. For
multi-instance deployments use the Redis store.
"""

from __future__ import annotations

from asyncio import Lock
from dataclasses import dataclass

from storepilot.core.limits import RateLimitResult, RateLimitStore
from storepilot.core.time import Clock, system_clock


@dataclass
class RateLimitEntry:
    count: int
    window_start: float


class InMemoryRateLimitStore(RateLimitStore):
    """Fixed-window counters kept in per-endpoint dicts.

    Each endpoint table is kept in window-start order (an entry is removed
    and re-inserted whenever its window restarts), so purging expired
    entries stops at the first live one instead of scanning the table.
    """

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock
        self._tables: dict[str, dict[str, RateLimitEntry]] = {}
        self._lock = Lock()

    @staticmethod
    def _purge(table: dict[str, RateLimitEntry], cutoff: float) -> None:
        while table:
            identifier = next(iter(table))
            if table[identifier].window_start >= cutoff:
                break
            del table[identifier]

    async def hit(
        self, identifier: str, endpoint: str, limit: int, window_s: float
    ) -> RateLimitResult:
        now = self._clock()

        async with self._lock:
            table = self._tables.setdefault(endpoint, {})
            self._purge(table, now - window_s)

            entry = table.get(identifier)
            if entry is None:
                entry = RateLimitEntry(count=1, window_start=now)
                table[identifier] = entry
                return RateLimitResult(
                    allowed=True,
                    remaining=limit - 1,
                    reset_at=now + window_s,
                )

            reset_at = entry.window_start + window_s
            if entry.count >= limit:
                return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=limit - entry.count,
                reset_at=reset_at,
            )

    async def reset(self, identifier: str, endpoint: str) -> None:
        async with self._lock:
            table = self._tables.get(endpoint)
            if table is not None:
                table.pop(identifier, None)

    def size(self, endpoint: str) -> int:
        """Number of entries currently held for an endpoint."""
        return len(self._tables.get(endpoint, {}))
