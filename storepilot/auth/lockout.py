"""Failed-login tracking with a fixed lockout.

Per identifier the tracker moves through:

    Clear -> Counting (1..max_attempts-1 failures)
          -> Locked (max_attempts-th failure, for lockout_seconds)
          -> Clear (lock elapsed, or a successful login)

While locked every check is rejected, even if the window that accumulated
the failures has since closed. Tables are per-process.

Entries are kept in the order they last (re)started a window or became
locked, and every call drops stale entries from the front of the table.
"""

from __future__ import annotations

from asyncio import Lock
from dataclasses import dataclass
from typing import Optional

from storepilot.core.logging import get_logger
from storepilot.core.time import Clock, system_clock

logger = get_logger(__name__)


@dataclass
class LoginAttemptEntry:
    count: int
    window_start: float
    locked_until: Optional[float] = None


@dataclass(frozen=True)
class LockoutStatus:
    allowed: bool
    remaining: int
    locked_until: Optional[float] = None

    def retry_after(self, now: float) -> float:
        if self.locked_until is None:
            return 0.0
        return max(0.0, self.locked_until - now)


class LoginLockoutTracker:
    """Counts failed logins per identifier and locks after ``max_attempts``."""

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        lockout_seconds: float = 30 * 60,
        clock: Clock = system_clock,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._entries: dict[str, LoginAttemptEntry] = {}
        self._lock = Lock()

    def _is_locked(self, entry: LoginAttemptEntry, now: float) -> bool:
        return entry.locked_until is not None and now < entry.locked_until

    def _is_stale(self, entry: LoginAttemptEntry, now: float) -> bool:
        """Entry neither locked nor inside its counting window."""
        if entry.locked_until is not None:
            return now >= entry.locked_until
        return entry.window_start + self.window_seconds < now

    def _purge(self, now: float) -> None:
        while self._entries:
            identifier = next(iter(self._entries))
            if not self._is_stale(self._entries[identifier], now):
                break
            del self._entries[identifier]

    async def check(self, identifier: str) -> LockoutStatus:
        """Report whether a login attempt from ``identifier`` may proceed."""
        now = self._clock()
        async with self._lock:
            self._purge(now)
            entry = self._entries.get(identifier)
            if entry is None:
                return LockoutStatus(allowed=True, remaining=self.max_attempts)

            if self._is_locked(entry, now):
                return LockoutStatus(allowed=False, remaining=0, locked_until=entry.locked_until)

            if self._is_stale(entry, now):
                del self._entries[identifier]
                return LockoutStatus(allowed=True, remaining=self.max_attempts)

            return LockoutStatus(allowed=True, remaining=self.max_attempts - entry.count)

    async def record_failure(self, identifier: str) -> LockoutStatus:
        """Count a failed attempt, locking the identifier on the last allowed one."""
        now = self._clock()
        async with self._lock:
            self._purge(now)
            entry = self._entries.get(identifier)
            if entry is not None and self._is_locked(entry, now):
                return LockoutStatus(allowed=False, remaining=0, locked_until=entry.locked_until)

            if entry is None or self._is_stale(entry, now):
                self._entries.pop(identifier, None)
                entry = LoginAttemptEntry(count=1, window_start=now)
                self._entries[identifier] = entry
            else:
                entry.count += 1

            if entry.count >= self.max_attempts:
                entry.locked_until = now + self.lockout_seconds
                self._entries[identifier] = self._entries.pop(identifier)
                logger.warning(
                    "Login locked after repeated failures",
                    data={
                        "identifier": identifier,
                        "attempts": entry.count,
                        "lockout_seconds": self.lockout_seconds,
                    },
                )
                return LockoutStatus(allowed=False, remaining=0, locked_until=entry.locked_until)

            return LockoutStatus(allowed=True, remaining=self.max_attempts - entry.count)

    async def clear(self, identifier: str) -> None:
        """Forget every failure for ``identifier`` (successful login)."""
        async with self._lock:
            self._entries.pop(identifier, None)

    def size(self) -> int:
        """Number of identifiers currently tracked."""
        return len(self._entries)

    def entry_for(self, identifier: str) -> Optional[LoginAttemptEntry]:
        return self._entries.get(identifier)
