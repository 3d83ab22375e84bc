"""Tests for throttled stream wrappers."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

from tokenbucket import new_limiter
from tokenbucket.core.constants import SECOND
from tokenbucket.streams import RateLimitedReader, RateLimitedWriter, copy_stream


def test_writer_waits_before_writing(clock) -> None:
    bucket = new_limiter(SECOND, 4, clock=clock)
    raw = io.BytesIO()
    writer = RateLimitedWriter(raw, bucket)

    assert writer.write(b"abcd") == 4
    assert writer.write(b"ef") == 2

    assert raw.getvalue() == b"abcdef"
    assert clock.sleeps == [0, 2 * SECOND]


def test_reader_waits_for_bytes_read(clock) -> None:
    bucket = new_limiter(SECOND, 2, clock=clock)
    reader = RateLimitedReader(io.BytesIO(b"hello"), bucket)

    assert reader.read(2) == b"he"
    assert reader.read(3) == b"llo"
    assert reader.read(3) == b""

    assert clock.sleeps == [0, 3 * SECOND]


def test_reader_readinto(clock) -> None:
    bucket = new_limiter(SECOND, 8, clock=clock)
    reader = RateLimitedReader(io.BytesIO(b"xyz"), bucket)
    buffer = bytearray(8)

    assert reader.readinto(buffer) == 3
    assert bytes(buffer[:3]) == b"xyz"
    assert reader.readinto(buffer) == 0
    assert bucket.available() == 5


def test_context_manager_closes_wrapped_stream(clock) -> None:
    raw = io.BytesIO()
    with RateLimitedWriter(raw, new_limiter(SECOND, 1, clock=clock)) as writer:
        assert writer.closed is False
    assert raw.closed is True


def test_copy_stream_throttles_whole_payload(clock) -> None:
    bucket = new_limiter(SECOND, 10, clock=clock)
    src = io.BytesIO(b"0123456789" * 3)
    dst = io.BytesIO()

    copied = copy_stream(src, dst, bucket, chunk_size=10)

    assert copied == 30
    assert dst.getvalue() == b"0123456789" * 3
    assert sum(clock.sleeps) == 20 * SECOND


def test_reader_readinto_passes_through_no_data(clock) -> None:
    bucket = new_limiter(SECOND, 4, clock=clock)
    raw = MagicMock()
    raw.readinto.return_value = None
    reader = RateLimitedReader(raw, bucket)

    assert reader.readinto(bytearray(4)) is None
    assert clock.sleeps == []
    assert bucket.available() == 4
