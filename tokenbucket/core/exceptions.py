"""Custom exceptions for tokenbucket."""

from __future__ import annotations


class TokenBucketError(Exception):
    """Base exception for limiter errors."""


class ConfigurationError(TokenBucketError, ValueError):
    """Invalid bucket construction parameters.

    Raised only by constructors; a bucket is never returned in this case.
    """


class ValidationError(TokenBucketError, ValueError):
    """Invalid argument passed to a bucket operation."""

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message)
        self.value = value
