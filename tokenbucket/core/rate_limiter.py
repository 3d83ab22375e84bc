"""Token bucket rate limiter with tick-based accounting."""

from __future__ import annotations

import math
import threading
from typing import NoReturn

from tokenbucket.core.clock import Clock, Duration, SystemClock, to_nanoseconds
from tokenbucket.core.constants import MAX_QUANTUM, RATE_MARGIN, SECOND
from tokenbucket.core.exceptions import ConfigurationError, ValidationError
from tokenbucket.core.logger import logger
from tokenbucket.core.metrics import ThrottleMetrics


class Bucket:
    """Token bucket filled with ``quantum`` tokens every ``fill_interval``.

    Tokens are never added by a background task. The count is reconciled
    from the number of whole intervals (ticks) elapsed since ``start_time``
    whenever the bucket is used. Reservations that cannot be served
    immediately drive the count negative; that debt is what later callers
    wait behind.

    Methods taking ``now`` are the accounting core and never read the clock.
    The remaining public methods supply the time from ``clock``.

    Durations are integer nanoseconds (``timedelta`` is accepted on input).
    """

    def __init__(
        self,
        fill_interval: Duration,
        capacity: int,
        quantum: int = 1,
        *,
        clock: Clock | None = None,
        metrics: ThrottleMetrics | None = None,
    ) -> None:
        fill_interval = to_nanoseconds(fill_interval)
        if fill_interval <= 0:
            _fail("token bucket fill interval is not > 0")
        if not _is_int(capacity) or not _is_int(quantum):
            _fail(f"token bucket capacity and quantum must be integers: {capacity!r}, {quantum!r}")
        if capacity <= 0:
            _fail("token bucket capacity is not > 0")
        if quantum <= 0:
            _fail("token bucket quantum is not > 0")

        self._clock = clock or SystemClock()
        self._metrics = metrics
        self._lock = threading.Lock()
        self._fill_interval = fill_interval
        self._capacity = capacity
        self._quantum = quantum
        self.start_time = self._clock.now()
        self._available_tokens = capacity
        self._latest_tick = 0

        logger.debug(
            "Bucket created: fill_interval=%dns quantum=%d capacity=%d",
            fill_interval,
            quantum,
            capacity,
        )

    @classmethod
    def with_rate(
        cls,
        rate: float,
        capacity: int,
        *,
        clock: Clock | None = None,
        metrics: ThrottleMetrics | None = None,
    ) -> "Bucket":
        """Build a bucket whose rate is within ``RATE_MARGIN`` of ``rate`` tokens/s.

        High rates cannot be expressed with one token per tick because the
        fill interval has nanosecond resolution, so the quantum is grown
        geometrically until the rounded interval gives a close enough rate.
        """
        if not math.isfinite(rate) or rate <= 0:
            _fail(f"token bucket rate is not a positive number: {rate!r}")

        quantum = 1
        while quantum < MAX_QUANTUM:
            interval = SECOND * quantum / rate
            if not math.isfinite(interval):
                break
            fill_interval = round(interval)
            if fill_interval > 0:
                effective = SECOND * quantum / fill_interval
                if abs(effective - rate) / rate <= RATE_MARGIN:
                    logger.debug(
                        "Rate %g solved with quantum=%d fill_interval=%dns (effective %g)",
                        rate,
                        quantum,
                        fill_interval,
                        effective,
                    )
                    return cls(fill_interval, capacity, quantum, clock=clock, metrics=metrics)
            quantum = _next_quantum(quantum)

        _fail(f"cannot find suitable quantum for {rate!r}")

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def quantum(self) -> int:
        return self._quantum

    @property
    def fill_interval(self) -> int:
        return self._fill_interval

    def rate(self) -> float:
        """Return the fill rate in tokens per second."""
        return SECOND * self._quantum / self._fill_interval

    # ------------------------------------------------------------------
    # Clock-driven wrappers
    # ------------------------------------------------------------------

    def wait(self, count: int) -> None:
        """Take ``count`` tokens, sleeping until they are available."""
        self._clock.sleep(self.take(count))

    def wait_max_duration(self, count: int, max_wait: Duration) -> bool:
        """Like ``wait`` but gives up without taking anything past ``max_wait``.

        Returns True if the tokens were taken.
        """
        wait_ns, ok = self.take_max_duration(count, max_wait)
        if ok:
            self._clock.sleep(wait_ns)
        return ok

    def take(self, count: int) -> int:
        """Take ``count`` tokens and return how long the caller must wait (ns).

        The tokens are considered consumed even if the caller never waits.
        """
        wait_ns, _ = self.reserve(self._clock.now(), count)
        self._record(count, wait_ns, True)
        return wait_ns

    def take_max_duration(self, count: int, max_wait: Duration) -> tuple[int, bool]:
        """Take ``count`` tokens only if the wait would not exceed ``max_wait``.

        Returns ``(wait, True)`` on success and ``(0, False)`` otherwise, in
        which case the bucket is left unchanged.
        """
        wait_ns, ok = self.reserve(self._clock.now(), count, max_wait)
        self._record(count, wait_ns, ok)
        return wait_ns, ok

    def take_available(self, count: int) -> int:
        """Take up to ``count`` tokens without waiting; return how many were taken."""
        taken = self.consume_available(self._clock.now(), count)
        self._record(taken, 0, True)
        return taken

    def available(self) -> int:
        """Return the current token count; negative while callers are owed tokens."""
        return self.available_at(self._clock.now())

    # ------------------------------------------------------------------
    # Accounting core
    # ------------------------------------------------------------------

    def current_tick(self, now: int) -> int:
        """Return the number of whole fill intervals elapsed at ``now``."""
        return (now - self.start_time) // self._fill_interval

    def available_at(self, now: int) -> int:
        with self._lock:
            self._adjust_available_tokens(self.current_tick(now))
            return self._available_tokens

    def reserve(self, now: int, count: int, max_wait: Duration | None = None) -> tuple[int, bool]:
        """Reserve ``count`` tokens at ``now``.

        ``max_wait`` of None means no limit. When the required wait exceeds
        ``max_wait`` nothing is committed and ``(0, False)`` is returned.
        """
        _check_count(count)
        if max_wait is not None:
            max_wait = to_nanoseconds(max_wait)
        if count == 0:
            return 0, True

        with self._lock:
            tick = self.current_tick(now)
            self._adjust_available_tokens(tick)
            avail = self._available_tokens - count
            if avail >= 0:
                self._available_tokens = avail
                return 0, True

            # Ceiling division: ticks needed to pay off the deficit.
            end_tick = tick + (-avail + self._quantum - 1) // self._quantum
            end_time = self.start_time + end_tick * self._fill_interval
            wait_ns = end_time - now
            if max_wait is not None and wait_ns > max_wait:
                logger.debug(
                    "Reservation of %d tokens denied: wait %dns exceeds %dns",
                    count,
                    wait_ns,
                    max_wait,
                )
                return 0, False

            self._available_tokens = avail
            return wait_ns, True

    def consume_available(self, now: int, count: int) -> int:
        """Take as many of ``count`` tokens as are available at ``now``."""
        _check_count(count)
        if count == 0:
            return 0

        with self._lock:
            self._adjust_available_tokens(self.current_tick(now))
            if self._available_tokens <= 0:
                return 0
            taken = min(count, self._available_tokens)
            self._available_tokens -= taken
            return taken

    def _adjust_available_tokens(self, tick: int) -> None:
        # Caller holds the lock. Ticks elapsed while full are dropped.
        if tick <= self._latest_tick:
            return
        last_tick = self._latest_tick
        self._latest_tick = tick
        if self._available_tokens >= self._capacity:
            return
        self._available_tokens = min(
            self._capacity,
            self._available_tokens + (tick - last_tick) * self._quantum,
        )

    def _record(self, tokens: int, wait_ns: int, granted: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_reservation(tokens, wait_ns, granted)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(fill_interval={self._fill_interval}, "
            f"capacity={self._capacity}, quantum={self._quantum})"
        )


def new_limiter(
    fill_interval: Duration,
    capacity: int,
    *,
    clock: Clock | None = None,
    metrics: ThrottleMetrics | None = None,
) -> Bucket:
    """Return a bucket adding one token every ``fill_interval``."""
    return Bucket(fill_interval, capacity, clock=clock, metrics=metrics)


def new_limiter_with_quantum(
    fill_interval: Duration,
    quantum: int,
    capacity: int,
    *,
    clock: Clock | None = None,
    metrics: ThrottleMetrics | None = None,
) -> Bucket:
    """Return a bucket adding ``quantum`` tokens every ``fill_interval``."""
    return Bucket(fill_interval, capacity, quantum, clock=clock, metrics=metrics)


def new_limiter_with_rate(
    rate: float,
    capacity: int,
    *,
    clock: Clock | None = None,
    metrics: ThrottleMetrics | None = None,
) -> Bucket:
    """Return a bucket filling at approximately ``rate`` tokens per second."""
    return Bucket.with_rate(rate, capacity, clock=clock, metrics=metrics)


def _next_quantum(quantum: int) -> int:
    grown = quantum * 11 // 10
    return grown if grown > quantum else quantum + 1


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_count(count: int) -> None:
    if not _is_int(count):
        raise ValidationError(f"token count must be an integer: {count!r}", count)
    if count < 0:
        raise ValidationError(f"token count is negative: {count}", count)


def _fail(message: str) -> NoReturn:
    logger.error("Invalid bucket configuration: %s", message)
    raise ConfigurationError(message)
