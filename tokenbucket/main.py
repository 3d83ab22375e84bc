"""
Throttled copy
==============

Copies a byte stream at a limited rate using a token bucket
(one token per byte).

Usage:
    python -m tokenbucket.main --rate 65536 < in.bin > out.bin
    python -m tokenbucket.main --rate 1e6 --capacity 4096 --input a --output b
    python -m tokenbucket.main --rate 512 --stats < in.bin > /dev/null
"""

from __future__ import annotations

import argparse
import json
import sys
from contextlib import ExitStack
from typing import BinaryIO

from tokenbucket.core.config_validator import validate_configuration
from tokenbucket.core.constants import DEFAULT_CAPACITY, DEFAULT_CHUNK_SIZE, DEFAULT_RATE
from tokenbucket.core.exceptions import ConfigurationError
from tokenbucket.core.logger import logger
from tokenbucket.core.metrics import ThrottleMetrics
from tokenbucket.core.rate_limiter import new_limiter_with_rate
from tokenbucket.streams import copy_stream


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Copy stdin to stdout at a limited rate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tokenbucket.main --rate 65536 < in.bin > out.bin
  python -m tokenbucket.main --rate 1e6 --input a.bin --output b.bin --stats
        """,
    )
    parser.add_argument("--rate", type=float, default=DEFAULT_RATE,
                        help=f"Bytes per second (default: {DEFAULT_RATE:g})")
    parser.add_argument("--capacity", type=int, default=DEFAULT_CAPACITY,
                        help=f"Maximum burst in bytes (default: {DEFAULT_CAPACITY})")
    parser.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
                        help=f"Bytes read per iteration (default: {DEFAULT_CHUNK_SIZE})")
    parser.add_argument("--input", type=str, metavar="PATH",
                        help="Read from PATH instead of stdin")
    parser.add_argument("--output", type=str, metavar="PATH",
                        help="Write to PATH instead of stdout")
    parser.add_argument("--stats", action="store_true",
                        help="Log throttling statistics when done")
    return parser


def run_copy(args: argparse.Namespace, src: BinaryIO, dst: BinaryIO) -> int:
    """Build the bucket from ``args`` and copy ``src`` into ``dst``."""
    if args.chunk_size <= 0:
        raise ConfigurationError("chunk size is not > 0")

    metrics = ThrottleMetrics()
    bucket = new_limiter_with_rate(args.rate, args.capacity, metrics=metrics)
    logger.info(
        "Copying at %.6g bytes/s (quantum=%d, interval=%dns, burst=%d)",
        bucket.rate(),
        bucket.quantum,
        bucket.fill_interval,
        bucket.capacity,
    )

    copied = copy_stream(src, dst, bucket, args.chunk_size)
    logger.info("Copied %d bytes", copied)
    if args.stats:
        logger.info("Stats: %s", json.dumps(metrics.summary()))
    return copied


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not validate_configuration():
        return 2

    try:
        with ExitStack() as stack:
            src = stack.enter_context(open(args.input, "rb")) if args.input else sys.stdin.buffer
            dst = stack.enter_context(open(args.output, "wb")) if args.output else sys.stdout.buffer
            run_copy(args, src, dst)
    except ConfigurationError as e:
        logger.error(f"[ERROR] {e}")
        return 2
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except OSError as e:
        logger.error(f"[ERROR] I/O failure: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
