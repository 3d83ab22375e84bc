"""Token bucket rate limiting."""

from tokenbucket.core.clock import Clock, SystemClock
from tokenbucket.core.exceptions import ConfigurationError, TokenBucketError, ValidationError
from tokenbucket.core.metrics import ThrottleMetrics
from tokenbucket.core.rate_limiter import (
    Bucket,
    new_limiter,
    new_limiter_with_quantum,
    new_limiter_with_rate,
)

__all__ = [
    "Bucket",
    "Clock",
    "ConfigurationError",
    "SystemClock",
    "ThrottleMetrics",
    "TokenBucketError",
    "ValidationError",
    "new_limiter",
    "new_limiter_with_quantum",
    "new_limiter_with_rate",
]
