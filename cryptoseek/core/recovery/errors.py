"""
Error Classification

Defines error types for upstream fetches.
Errors are classified as recoverable (retry the source) or unrecoverable
(report straight to the caller).
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


# Suggested actions are shown to the caller once a source is exhausted
NETWORK_ACTION = "The upstream API could not be reached. Please try again in a few moments"
TIMEOUT_ACTION = "The upstream API is responding slowly. Try again later or query a single chain"
RATE_LIMIT_ACTION = "The upstream API is rate limiting requests. Wait a minute before retrying"
STATUS_ACTION = "The upstream API returned an error. Please try again in a few moments"
SHAPE_ACTION = "The upstream API returned unexpected data. Retry later or use an alternative tool"
UNKNOWN_ACTION = "Please try again in a few moments"


class ErrorCategory(str, Enum):
    """Categories of errors for recovery decisions."""

    NETWORK = "network"           # Connection reset, DNS failure, refused
    TIMEOUT = "timeout"           # Attempt deadline expired or aborted
    HTTP_STATUS = "http_status"   # Non-2xx response
    RATE_LIMIT = "rate_limit"     # 429 responses
    SHAPE = "shape"               # 2xx body that does not match the schema
    VALIDATION = "validation"     # Caller input problem
    UNKNOWN = "unknown"           # Unclassified error


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = True
    suggested_action: Optional[str] = None
    source: Optional[str] = None
    status_code: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


class RecoverableError(Exception):
    """
    Base class for errors that are worth another attempt.

    These errors are typically transient:
    - Network issues
    - Timeouts
    - Upstream 5xx / rate limits
    - Malformed payloads from a flaky upstream
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context or ErrorContext(category=category, recoverable=True)


class UnrecoverableError(Exception):
    """Base class for errors that another attempt cannot fix."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context or ErrorContext(category=category, recoverable=False)


class TransientSourceError(RecoverableError):
    """Network-level failure talking to a source."""

    def __init__(self, message: str = "Network error", source: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            context=ErrorContext(
                category=ErrorCategory.NETWORK,
                recoverable=True,
                source=source,
                suggested_action=NETWORK_ACTION,
            ),
        )


class SourceTimeoutError(RecoverableError):
    """A single attempt did not settle before its deadline."""

    def __init__(
        self,
        message: str = "Request timed out",
        source: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.TIMEOUT,
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                recoverable=True,
                source=source,
                suggested_action=TIMEOUT_ACTION,
                details={"timeout_seconds": timeout_seconds} if timeout_seconds else {},
            ),
        )


class HTTPStatusError(RecoverableError):
    """Upstream answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        source: Optional[str] = None,
    ):
        category = ErrorCategory.RATE_LIMIT if status_code == 429 else ErrorCategory.HTTP_STATUS
        message = f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}"
        super().__init__(
            message,
            category=category,
            context=ErrorContext(
                category=category,
                recoverable=True,
                source=source,
                status_code=status_code,
                suggested_action=RATE_LIMIT_ACTION if status_code == 429 else STATUS_ACTION,
            ),
        )
        self.status_code = status_code


class ShapeError(RecoverableError):
    """A 2xx body that does not match the expected schema."""

    def __init__(self, message: str = "Invalid response format", source: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.SHAPE,
            context=ErrorContext(
                category=ErrorCategory.SHAPE,
                recoverable=True,
                source=source,
                suggested_action=SHAPE_ACTION,
            ),
        )


def classify_error(error: BaseException) -> ErrorContext:
    """
    Classify an exception and return its error context.

    Known exception types are mapped directly; anything else is classified
    from its message, defaulting to recoverable.
    """
    if isinstance(error, (RecoverableError, UnrecoverableError)):
        return error.context

    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorContext(
            category=ErrorCategory.TIMEOUT,
            recoverable=True,
            suggested_action=TIMEOUT_ACTION,
        )

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return ErrorContext(
            category=ErrorCategory.RATE_LIMIT if status == 429 else ErrorCategory.HTTP_STATUS,
            recoverable=True,
            status_code=status,
            suggested_action=RATE_LIMIT_ACTION if status == 429 else STATUS_ACTION,
        )

    if isinstance(error, httpx.TransportError):
        return ErrorContext(
            category=ErrorCategory.NETWORK,
            recoverable=True,
            suggested_action=NETWORK_ACTION,
        )

    message = str(error).lower()

    rate_limit_patterns = ["rate limit", "too many requests", "429"]
    if any(p in message for p in rate_limit_patterns):
        return ErrorContext(
            category=ErrorCategory.RATE_LIMIT,
            recoverable=True,
            suggested_action=RATE_LIMIT_ACTION,
        )

    network_patterns = [
        "econnreset",
        "enotfound",
        "connection",
        "network",
        "unreachable",
        "refused",
        "dns",
        "socket",
    ]
    if any(p in message for p in network_patterns):
        return ErrorContext(
            category=ErrorCategory.NETWORK,
            recoverable=True,
            suggested_action=NETWORK_ACTION,
        )

    timeout_patterns = ["etimedout", "timeout", "timed out", "abort", "deadline"]
    if any(p in message for p in timeout_patterns):
        return ErrorContext(
            category=ErrorCategory.TIMEOUT,
            recoverable=True,
            suggested_action=TIMEOUT_ACTION,
        )

    if isinstance(error, (ValueError, TypeError, KeyError)):
        return ErrorContext(
            category=ErrorCategory.SHAPE,
            recoverable=True,
            suggested_action=SHAPE_ACTION,
        )

    return ErrorContext(
        category=ErrorCategory.UNKNOWN,
        recoverable=True,
        suggested_action=UNKNOWN_ACTION,
    )
