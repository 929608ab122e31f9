"""
Tests for the Error Recovery System

Tests for error classification and the per-source retry state machine.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

import httpx

from cryptoseek.core.recovery import (
    # Errors
    HTTPStatusError,
    RecoverableError,
    ShapeError,
    SourceTimeoutError,
    TransientSourceError,
    UnrecoverableError,
    classify_error,
    # Strategies
    RetryStrategy,
)
from cryptoseek.core.recovery.errors import (
    RATE_LIMIT_ACTION,
    STATUS_ACTION,
    TIMEOUT_ACTION,
    ErrorCategory,
)
from cryptoseek.core.recovery.strategies import RetryConfig, RetryState


# =============================================================================
# Error Classification Tests
# =============================================================================

class TestErrorClassification:
    """Tests for error classification."""

    def test_recoverable_error_is_recoverable(self):
        error = RecoverableError("Test error")
        assert error.context.recoverable is True

    def test_unrecoverable_error_is_not_recoverable(self):
        error = UnrecoverableError("Test error")
        assert error.context.recoverable is False

    def test_http_status_error(self):
        """Non-2xx statuses keep their code and message."""
        error = HTTPStatusError(503, "Service Unavailable", source="base")

        assert str(error) == "HTTP 503: Service Unavailable"
        assert error.status_code == 503
        assert error.category == ErrorCategory.HTTP_STATUS
        assert error.context.source == "base"
        assert error.context.recoverable is True

    def test_http_429_is_rate_limit(self):
        error = HTTPStatusError(429, "Too Many Requests")
        assert error.category == ErrorCategory.RATE_LIMIT

    def test_timeout_error_details(self):
        error = SourceTimeoutError("timed out", source="blast", timeout_seconds=10.0)

        assert error.category == ErrorCategory.TIMEOUT
        assert error.context.details["timeout_seconds"] == 10.0

    def test_validation_error_is_unrecoverable(self):
        error = UnrecoverableError("bad pair", category=ErrorCategory.VALIDATION)

        assert classify_error(error).category == ErrorCategory.VALIDATION
        assert classify_error(error).recoverable is False

    def test_classify_asyncio_timeout(self):
        context = classify_error(asyncio.TimeoutError())
        assert context.category == ErrorCategory.TIMEOUT
        assert context.recoverable is True

    def test_classify_httpx_errors(self):
        request = httpx.Request("GET", "https://example.com")

        assert classify_error(httpx.ConnectError("boom", request=request)).category == ErrorCategory.NETWORK
        assert classify_error(httpx.ReadTimeout("slow", request=request)).category == ErrorCategory.TIMEOUT

        response = httpx.Response(429, request=request)
        status_error = httpx.HTTPStatusError("429", request=request, response=response)
        context = classify_error(status_error)
        assert context.category == ErrorCategory.RATE_LIMIT
        assert context.status_code == 429

    def test_classify_from_message(self):
        assert classify_error(Exception("read ECONNRESET")).category == ErrorCategory.NETWORK
        assert classify_error(Exception("getaddrinfo ENOTFOUND host")).category == ErrorCategory.NETWORK
        assert classify_error(Exception("The operation was aborted")).category == ErrorCategory.TIMEOUT
        assert classify_error(Exception("Too Many Requests")).category == ErrorCategory.RATE_LIMIT

    def test_classify_shape_errors(self):
        assert classify_error(KeyError("data")).category == ErrorCategory.SHAPE
        assert classify_error(ShapeError("bad body")).category == ErrorCategory.SHAPE

    def test_classify_unknown_defaults_recoverable(self):
        context = classify_error(RuntimeError("something odd"))
        assert context.category == ErrorCategory.UNKNOWN
        assert context.recoverable is True


# =============================================================================
# Retry Strategy Tests
# =============================================================================

class TestRetryConfig:
    """Backoff schedule."""

    def test_default_delays(self):
        config = RetryConfig()
        assert [config.get_delay(n) for n in (1, 2)] == [1.0, 2.0]

    def test_delay_grows_without_ceiling(self):
        config = RetryConfig(max_attempts=10, initial_delay_seconds=1.0, backoff_factor=2.0)
        assert config.get_delay(1) == 1.0
        assert config.get_delay(4) == 8.0
        assert config.get_delay(10) == 512.0

    def test_no_delay_before_first_attempt(self):
        assert RetryConfig().get_delay(0) == 0.0


class TestRetryStrategy:
    """Tests for the retry state machine."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        sleep = AsyncMock()
        strategy = RetryStrategy(sleep=sleep)
        operation = AsyncMock(return_value="success")

        outcome = await strategy.run(operation, label="ethereum")

        assert outcome.state == RetryState.SUCCEEDED
        assert outcome.result == "success"
        assert outcome.attempts == 1
        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self):
        """Two network failures, then data; sleeps follow the backoff schedule."""
        sleep = AsyncMock()
        strategy = RetryStrategy(RetryConfig(max_attempts=3), sleep=sleep)
        operation = AsyncMock(side_effect=[
            TransientSourceError("ECONNRESET"),
            TransientSourceError("ECONNRESET"),
            ["trade"],
        ])

        outcome = await strategy.run(operation)

        assert outcome.succeeded
        assert outcome.result == ["trade"]
        assert outcome.attempts == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
        assert [r.delay_seconds for r in outcome.history] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_after_max_attempts(self):
        """Exactly max_attempts calls, and no sleep after the last one."""
        sleep = AsyncMock()
        strategy = RetryStrategy(RetryConfig(max_attempts=3), sleep=sleep)
        operation = AsyncMock(side_effect=HTTPStatusError(500, "Internal Server Error"))

        outcome = await strategy.run(operation)

        assert outcome.state == RetryState.EXHAUSTED
        assert outcome.attempts == 3
        assert operation.await_count == 3
        assert sleep.await_count == 2
        assert outcome.category == ErrorCategory.HTTP_STATUS
        assert outcome.error_message == "HTTP 500: Internal Server Error"

    @pytest.mark.asyncio
    async def test_no_retry_unrecoverable(self):
        sleep = AsyncMock()
        strategy = RetryStrategy(sleep=sleep)
        operation = AsyncMock(side_effect=UnrecoverableError("bad input"))

        outcome = await strategy.run(operation)

        assert outcome.state == RetryState.EXHAUSTED
        assert outcome.attempts == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        strategy = RetryStrategy(sleep=AsyncMock())
        operation = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await strategy.run(operation)

    def test_should_retry(self):
        strategy = RetryStrategy(RetryConfig(max_attempts=3))

        assert strategy.should_retry(TransientSourceError("test"), attempt=1) is True
        assert strategy.should_retry(TransientSourceError("test"), attempt=3) is False
        assert strategy.should_retry(UnrecoverableError("test"), attempt=1) is False

    @pytest.mark.asyncio
    async def test_backoff_schedule(self):
        sleep = AsyncMock()
        strategy = RetryStrategy(
            RetryConfig(max_attempts=4, initial_delay_seconds=0.5, backoff_factor=3.0),
            sleep=sleep,
        )

        outcome = await strategy.run(AsyncMock(side_effect=SourceTimeoutError()))

        assert outcome.attempts == 4
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.5, 4.5]
        assert outcome.category == ErrorCategory.TIMEOUT


class TestAttemptDeadline:
    """Each attempt is aborted once timeout_seconds elapses."""

    @pytest.mark.asyncio
    async def test_hanging_attempt_times_out(self):
        strategy = RetryStrategy(
            RetryConfig(max_attempts=2, timeout_seconds=0.05),
            sleep=AsyncMock(),
        )

        async def hang():
            await asyncio.sleep(3600)

        outcome = await asyncio.wait_for(strategy.run(hang, label="source base"), timeout=2)

        assert outcome.state == RetryState.EXHAUSTED
        assert outcome.attempts == 2
        assert outcome.category == ErrorCategory.TIMEOUT
        assert isinstance(outcome.error, SourceTimeoutError)
        assert outcome.error_message == "source base timed out after 0.05s"

    @pytest.mark.asyncio
    async def test_slow_first_attempt_then_success(self):
        strategy = RetryStrategy(
            RetryConfig(max_attempts=3, timeout_seconds=0.05),
            sleep=AsyncMock(),
        )
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                await asyncio.sleep(3600)
            return ["trade"]

        outcome = await asyncio.wait_for(strategy.run(flaky), timeout=2)

        assert outcome.succeeded
        assert outcome.result == ["trade"]
        assert outcome.attempts == 2

    @pytest.mark.asyncio
    async def test_no_deadline_by_default(self):
        assert RetryConfig().timeout_seconds is None

        strategy = RetryStrategy(sleep=AsyncMock())
        outcome = await strategy.run(AsyncMock(return_value="ok"))

        assert outcome.result == "ok"


class TestSuggestedActions:
    """Exhausted sources carry an action the caller can take."""

    def test_shape_suggests_alternative_tool(self):
        assert "alternative tool" in ShapeError("bad body").context.suggested_action
        assert "alternative tool" in classify_error(KeyError("data")).suggested_action

    def test_rate_limit_suggests_waiting(self):
        assert classify_error(HTTPStatusError(429)).suggested_action == RATE_LIMIT_ACTION
        assert classify_error(HTTPStatusError(502)).suggested_action == STATUS_ACTION

    def test_timeout_suggestion(self):
        assert SourceTimeoutError().context.suggested_action == TIMEOUT_ACTION
        assert classify_error(asyncio.TimeoutError()).suggested_action == TIMEOUT_ACTION
