"""Throttling metrics and timing helpers."""

from __future__ import annotations

import functools
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from tokenbucket.core.constants import MILLISECOND, SLOW_OPERATION_LOG_SEC
from tokenbucket.core.logger import logger


@dataclass
class ThrottleMetrics:
    """Counters describing what a bucket imposed on its callers.

    Shared by every caller of a bucket, so updates are serialized.
    """

    requests: int = 0
    tokens_granted: int = 0
    denied: int = 0
    delayed: int = 0
    total_wait_ns: int = 0
    max_wait_ns: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_reservation(self, tokens: int, wait_ns: int, granted: bool) -> None:
        """Record one reservation attempt."""
        with self._lock:
            self.requests += 1
            if not granted:
                self.denied += 1
                return
            self.tokens_granted += tokens
            if wait_ns > 0:
                self.delayed += 1
                self.total_wait_ns += wait_ns
                self.max_wait_ns = max(self.max_wait_ns, wait_ns)

    def summary(self) -> dict[str, Any]:
        """Return a snapshot of the collected counters."""
        with self._lock:
            return {
                "requests": self.requests,
                "tokens_granted": self.tokens_granted,
                "denied": self.denied,
                "delayed": self.delayed,
                "total_wait_ms": self.total_wait_ns / MILLISECOND,
                "max_wait_ms": self.max_wait_ns / MILLISECOND,
                "since": self.started_at.isoformat(timespec="seconds"),
            }


def timed(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that logs how long a throttled operation ran.

    Throttled calls are expected to take a while, so long runs are INFO.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            if elapsed > SLOW_OPERATION_LOG_SEC:
                logger.info("%s took %.2fs", func.__name__, elapsed)
            else:
                logger.debug("%s took %.3fs", func.__name__, elapsed)

    return wrapper
