"""Time helpers.

Rate limiting, lockout and token expiry all read the same clock so their
comparisons agree. Components accept a ``clock`` callable returning epoch
seconds; tests pass a controllable one.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], float]


def system_clock() -> float:
    """Current wall-clock time in epoch seconds."""
    return time.time()


def utcnow() -> datetime:
    """Timezone-aware current UTC datetime."""
    return datetime.now(UTC)


def from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)

