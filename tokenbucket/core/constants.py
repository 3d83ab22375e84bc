"""Shared constants and environment configuration."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Absolute path so config.env is found regardless of the working directory.
ENV_CONFIG_FILE = str(PROJECT_ROOT / "config.env")

# Real environment variables always win over config.env.
USE_DOTENV = os.getenv("USE_DOTENV", "true").strip().lower() in {"1", "true", "yes", "y", "on"}
if USE_DOTENV:
    load_dotenv(ENV_CONFIG_FILE, override=False)


def _get_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = os.getenv("TOKENBUCKET_LOG_LEVEL", "INFO")
LOGS_DIR = os.getenv("TOKENBUCKET_LOG_DIR", "logs")
LOG_TO_FILE = _get_bool_env("TOKENBUCKET_LOG_TO_FILE", False)

# =============================================================================
# DURATIONS (nanoseconds)
# =============================================================================
NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

# =============================================================================
# RATE SOLVER
# =============================================================================
# Maximum relative error accepted between the requested and the effective rate.
RATE_MARGIN = 0.01
# Quantum search ceiling; bounds the number of solver iterations.
MAX_QUANTUM = 1 << 50

# =============================================================================
# CLI DEFAULTS
# =============================================================================
DEFAULT_RATE = _get_float_env("TOKENBUCKET_DEFAULT_RATE", 1024 * 1024)
DEFAULT_CAPACITY = _get_int_env("TOKENBUCKET_DEFAULT_CAPACITY", 64 * 1024)
DEFAULT_CHUNK_SIZE = _get_int_env("TOKENBUCKET_CHUNK_SIZE", 8192)

# Throttled operations slower than this are logged at INFO.
SLOW_OPERATION_LOG_SEC = 5
