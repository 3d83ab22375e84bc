"""Time sources used by the bucket wrappers."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Protocol

from tokenbucket.core.constants import MICROSECOND, SECOND
from tokenbucket.core.exceptions import ValidationError

Duration = int | timedelta


class Clock(Protocol):
    """Source of monotonic time in nanoseconds."""

    def now(self) -> int:
        """Return the current reading in nanoseconds."""
        ...

    def sleep(self, duration: int) -> None:
        """Suspend the caller for ``duration`` nanoseconds."""
        ...


class SystemClock:
    """Clock backed by ``time.monotonic_ns`` and ``time.sleep``."""

    def now(self) -> int:
        return time.monotonic_ns()

    def sleep(self, duration: int) -> None:
        if duration <= 0:
            return
        time.sleep(duration / SECOND)


def to_nanoseconds(value: Duration) -> int:
    """Convert an ``int`` (nanoseconds) or ``timedelta`` to integer nanoseconds."""
    if isinstance(value, timedelta):
        whole_seconds = value.days * 86400 + value.seconds
        return whole_seconds * SECOND + value.microseconds * MICROSECOND
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValidationError(f"duration must be int nanoseconds or timedelta, got {value!r}", value)
