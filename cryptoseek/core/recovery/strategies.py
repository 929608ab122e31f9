"""
Retry Strategies

Per-source retry with exponential backoff, modelled as a small state machine:

    ATTEMPTING(n) -> SUCCEEDED
    ATTEMPTING(n) -> ATTEMPTING(n + 1)   (after a backoff sleep)
    ATTEMPTING(n) -> EXHAUSTED           (budget spent or unrecoverable error)

When ``RetryConfig.timeout_seconds`` is set each attempt is aborted at that
deadline and counts as a timeout failure.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, Generic, List, Optional, TypeVar

from .errors import ErrorCategory, SourceTimeoutError, UnrecoverableError, classify_error

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]


class RetryState(str, Enum):
    """States of a single source's retry sequence."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    backoff_factor: float = 2.0
    timeout_seconds: Optional[float] = None

    def get_delay(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based).

        There is no ceiling: the attempt budget bounds the total wait.
        """
        if attempt < 1:
            return 0.0
        return self.initial_delay_seconds * (self.backoff_factor ** (attempt - 1))


@dataclass
class AttemptRecord:
    attempt: int
    error: str
    category: ErrorCategory
    delay_seconds: float = 0.0


@dataclass
class RetryOutcome(Generic[T]):
    """Terminal state of a retry sequence."""

    state: RetryState
    result: Optional[T] = None
    error: Optional[BaseException] = None
    category: Optional[ErrorCategory] = None
    attempts: int = 0
    history: List[AttemptRecord] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state == RetryState.SUCCEEDED

    @property
    def error_message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or self.error.__class__.__name__


class RetryStrategy:
    """
    Retry an async operation with exponential backoff.

    Unlike a raising retry helper, ``run`` always returns a ``RetryOutcome``;
    failures become data so callers can fan out over many sources and
    collect errors as values.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Optional[SleepFunc] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep or asyncio.sleep
        self.logger = logger or logging.getLogger(__name__)

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        if attempt >= self.config.max_attempts:
            return False
        if isinstance(error, UnrecoverableError):
            return False
        return classify_error(error).recoverable

    async def _attempt(
        self,
        operation: Callable[[], Coroutine[Any, Any, T]],
        label: str,
    ) -> T:
        """One attempt, aborted once ``timeout_seconds`` elapses."""
        timeout = self.config.timeout_seconds
        if timeout is None:
            return await operation()
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SourceTimeoutError(
                f"{label} timed out after {timeout}s",
                timeout_seconds=timeout,
            ) from e

    async def run(
        self,
        operation: Callable[[], Coroutine[Any, Any, T]],
        label: str = "operation",
    ) -> RetryOutcome[T]:
        started = time.perf_counter()
        history: List[AttemptRecord] = []
        attempt = 0
        state = RetryState.ATTEMPTING

        while state == RetryState.ATTEMPTING:
            attempt += 1
            try:
                result = await self._attempt(operation, label)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                category = classify_error(e).category
                record = AttemptRecord(attempt=attempt, error=str(e), category=category)
                history.append(record)

                if not self.should_retry(e, attempt):
                    self.logger.warning(
                        f"{label}: attempt {attempt}/{self.config.max_attempts} failed "
                        f"({category.value}): {e}. Giving up"
                    )
                    return RetryOutcome(
                        state=RetryState.EXHAUSTED,
                        error=e,
                        category=category,
                        attempts=attempt,
                        history=history,
                        duration_seconds=time.perf_counter() - started,
                    )

                delay = self.config.get_delay(attempt)
                record.delay_seconds = delay
                self.logger.info(
                    f"{label}: attempt {attempt}/{self.config.max_attempts} failed "
                    f"({category.value}): {e}. Retrying in {delay:.1f}s"
                )
                await self._sleep(delay)
            else:
                state = RetryState.SUCCEEDED
                return RetryOutcome(
                    state=state,
                    result=result,
                    attempts=attempt,
                    history=history,
                    duration_seconds=time.perf_counter() - started,
                )

        raise RuntimeError("Unexpected retry state")  # pragma: no cover

