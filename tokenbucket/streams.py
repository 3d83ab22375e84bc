"""Binary stream wrappers throttled by a token bucket (one token per byte)."""

from __future__ import annotations

from typing import BinaryIO

from tokenbucket.core.metrics import timed
from tokenbucket.core.rate_limiter import Bucket


class _ThrottledStream:
    def __init__(self, raw: BinaryIO, bucket: Bucket) -> None:
        self.raw = raw
        self.bucket = bucket

    def close(self) -> None:
        self.raw.close()

    @property
    def closed(self) -> bool:
        return self.raw.closed

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class RateLimitedReader(_ThrottledStream):
    """Reader that waits for tokens after each read.

    The wait happens after the data arrives because the byte count is only
    known then.
    """

    def read(self, size: int = -1) -> bytes:
        data = self.raw.read(size)
        if data:
            self.bucket.wait(len(data))
        return data

    def readinto(self, buffer: bytearray | memoryview) -> int | None:
        # None means a non-blocking stream has no data yet, not EOF.
        n = self.raw.readinto(buffer)
        if n:
            self.bucket.wait(n)
        return n


class RateLimitedWriter(_ThrottledStream):
    """Writer that waits for tokens before each write."""

    def write(self, data: bytes) -> int:
        self.bucket.wait(len(data))
        return self.raw.write(data)

    def flush(self) -> None:
        self.raw.flush()


@timed
def copy_stream(src: BinaryIO, dst: BinaryIO, bucket: Bucket, chunk_size: int = 8192) -> int:
    """Copy ``src`` to ``dst`` at the bucket's rate; return bytes copied."""
    writer = RateLimitedWriter(dst, bucket)
    copied = 0
    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            break
        writer.write(chunk)
        copied += len(chunk)
    writer.flush()
    return copied
