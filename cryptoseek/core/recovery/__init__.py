"""
Error Recovery Module

Provides error classification and retry logic for resilient
upstream fetches.
"""

from .errors import (
    ErrorCategory,
    ErrorContext,
    RecoverableError,
    UnrecoverableError,
    TransientSourceError,
    SourceTimeoutError,
    HTTPStatusError,
    ShapeError,
    classify_error,
)
from .strategies import (
    AttemptRecord,
    RetryConfig,
    RetryOutcome,
    RetryState,
    RetryStrategy,
)

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "RecoverableError",
    "UnrecoverableError",
    "TransientSourceError",
    "SourceTimeoutError",
    "HTTPStatusError",
    "ShapeError",
    "classify_error",
    # Strategies
    "AttemptRecord",
    "RetryConfig",
    "RetryOutcome",
    "RetryState",
    "RetryStrategy",
]
