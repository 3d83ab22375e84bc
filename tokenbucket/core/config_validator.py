"""Startup validation of environment configuration."""

from __future__ import annotations

import math
import os

from tokenbucket.core.logger import logger


def validate_configuration() -> bool:
    """Validate the numeric environment variables used by the CLI.

    Unset variables fall back to defaults and are not reported.

    Returns:
        True when every configured value is usable, False otherwise.
    """
    checks = {
        "TOKENBUCKET_DEFAULT_RATE": ("rate in tokens per second", float),
        "TOKENBUCKET_DEFAULT_CAPACITY": ("bucket capacity", int),
        "TOKENBUCKET_CHUNK_SIZE": ("copy chunk size", int),
    }

    problems = []
    for var, (description, parse) in checks.items():
        raw = os.getenv(var)
        if raw is None or raw.strip() == "":
            continue
        try:
            value = parse(raw)
        except ValueError:
            problems.append(f"  {var} ({description}) is not numeric: {raw!r}")
            continue
        if not math.isfinite(value) or value <= 0:
            problems.append(f"  {var} ({description}) must be > 0: {raw!r}")

    level = os.getenv("TOKENBUCKET_LOG_LEVEL")
    if level and level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        logger.warning("Unknown TOKENBUCKET_LOG_LEVEL %r, using INFO", level)

    if problems:
        logger.error("=" * 60)
        logger.error("Invalid configuration")
        logger.error("=" * 60)
        for problem in problems:
            logger.error(problem)
        return False

    logger.debug("Configuration validated")
    return True
