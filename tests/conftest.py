"""Shared pytest fixtures."""

from __future__ import annotations

import threading

import pytest


class FakeClock:
    """Manually driven clock that records every sleep instead of blocking."""

    def __init__(self, start: int = 0) -> None:
        self.time = start
        self.sleeps: list[int] = []
        self._lock = threading.Lock()

    def now(self) -> int:
        return self.time

    def sleep(self, duration: int) -> None:
        with self._lock:
            self.sleeps.append(duration)
            if duration > 0:
                self.time += duration

    def advance(self, duration: int) -> None:
        self.time += duration


@pytest.fixture()
def clock() -> FakeClock:
    """Return a fake clock starting at an arbitrary non-zero instant."""
    return FakeClock(start=1_234_567_890)
