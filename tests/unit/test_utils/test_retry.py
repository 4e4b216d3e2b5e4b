"""Unit tests for the retry coordinator."""

import asyncio
import random
from unittest.mock import AsyncMock, patch

import pytest
from google.genai import errors as genai_errors

from lgtm_reviewer.errors import RetryExhaustedError, ReviewCancelledError
from lgtm_reviewer.models.retry import ClassifiedError, ErrorDisposition, RetryPolicy
from lgtm_reviewer.utils.retry import RetryCoordinator, compute_backoff


def rate_limit_error(retry_delay: str | None = None) -> genai_errors.APIError:
    body = {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "quota"}}
    if retry_delay is not None:
        body["error"]["details"] = [
            {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": retry_delay}
        ]
    return genai_errors.APIError(429, body)


def not_implemented_error() -> genai_errors.APIError:
    return genai_errors.APIError(
        501, {"error": {"code": 501, "status": "UNIMPLEMENTED", "message": "nope"}}
    )


def failing_then(results: list):
    """Return an AsyncMock that raises or returns each item in turn."""
    return AsyncMock(side_effect=results)


class TestComputeBackoff:
    """Tests for compute_backoff."""

    def test_first_attempt_stays_within_jitter_band(self):
        """Test the first backoff lies within +/-20% of the initial delay."""
        policy = RetryPolicy(initial_backoff=1.0, max_backoff=60.0, backoff_multiplier=2.0)
        rng = random.Random(1234)

        for _ in range(200):
            delay = compute_backoff(0, policy, rng)
            assert 0.8 <= delay <= 1.2

    def test_backoff_grows_exponentially(self):
        """Test attempt k waits within [0.8, 1.2] x initial x multiplier^k."""
        policy = RetryPolicy(initial_backoff=1.0, max_backoff=1000.0, backoff_multiplier=2.0)
        rng = random.Random(42)

        for attempt in range(6):
            base = 2.0**attempt
            delay = compute_backoff(attempt, policy, rng)
            assert 0.8 * base <= delay <= 1.2 * base

    def test_backoff_is_capped(self):
        """Test the delay never exceeds max_backoff."""
        policy = RetryPolicy(initial_backoff=1.0, max_backoff=5.0, backoff_multiplier=3.0)

        for attempt in range(10):
            assert compute_backoff(attempt, policy) <= 5.0

    def test_huge_attempt_falls_back_to_max(self):
        """Test overflowing exponents return max_backoff."""
        policy = RetryPolicy(initial_backoff=1.0, max_backoff=60.0, backoff_multiplier=10.0)

        assert compute_backoff(10_000, policy) == 60.0


class TestRetryCoordinatorExecute:
    """Tests for RetryCoordinator.execute."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, null_logger):
        """Test a successful operation runs once and returns its result."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=3), logger=null_logger)
        operation = failing_then(["ok"])

        result = await coordinator.execute(operation, "test_op")

        assert result == "ok"
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_zero_retries_runs_once_and_returns_error_verbatim(self, null_logger):
        """Test max_retries=0 disables retry and surfaces the original error."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=0), logger=null_logger)
        error = rate_limit_error()
        operation = failing_then([error])

        with pytest.raises(genai_errors.APIError) as exc_info:
            await coordinator.execute(operation, "test_op")

        assert exc_info.value is error
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_retryable_error_exhausts_after_max_retries_plus_one(self, null_logger):
        """Test a persistent retryable error is attempted max_retries + 1 times."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=3), logger=null_logger)
        operation = AsyncMock(side_effect=rate_limit_error())

        with patch("lgtm_reviewer.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(RetryExhaustedError) as exc_info:
                await coordinator.execute(operation, "test_op")

        assert operation.await_count == 4
        assert mock_sleep.await_count == 3
        assert exc_info.value.attempts == 4
        assert exc_info.value.operation == "test_op"
        assert isinstance(exc_info.value.last_error, genai_errors.APIError)
        assert "failed after 4 attempts" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_fatal_error_is_attempted_once(self, null_logger):
        """Test 501 Not Implemented is not retried regardless of the budget."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=5), logger=null_logger)
        error = not_implemented_error()
        operation = AsyncMock(side_effect=error)

        with patch("lgtm_reviewer.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(genai_errors.APIError) as exc_info:
                await coordinator.execute(operation, "test_op")

        assert exc_info.value is error
        assert operation.await_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_after_two_rate_limits(self, null_logger):
        """Test two rate limits then success sleeps twice with growing delays."""
        policy = RetryPolicy(max_retries=5, initial_backoff=1.0, backoff_multiplier=2.0)
        coordinator = RetryCoordinator(policy, logger=null_logger)
        operation = failing_then([rate_limit_error(), rate_limit_error(), "done"])

        with patch("lgtm_reviewer.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await coordinator.execute(operation, "test_op")

        assert result == "done"
        assert operation.await_count == 3
        delays = [c.args[0] for c in mock_sleep.await_args_list]
        assert len(delays) == 2
        assert 0.8 <= delays[0] <= 1.2
        assert 1.6 <= delays[1] <= 2.4

    @pytest.mark.asyncio
    async def test_provider_delay_is_preferred(self, null_logger):
        """Test the RetryInfo delay replaces the computed backoff."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=2), logger=null_logger)
        operation = failing_then([rate_limit_error("15s"), "done"])

        with patch("lgtm_reviewer.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await coordinator.execute(operation, "test_op")

        assert result == "done"
        mock_sleep.assert_awaited_once_with(15.0)

    @pytest.mark.asyncio
    async def test_custom_classifier_overrides_default(self, null_logger):
        """Test a per-call classifier decides retryability."""
        def always_retry(error):
            return ClassifiedError(error=error, disposition=ErrorDisposition.RETRYABLE)

        coordinator = RetryCoordinator(RetryPolicy(max_retries=1), logger=null_logger)
        operation = failing_then([ValueError("odd"), "done"])

        with patch("lgtm_reviewer.utils.retry.asyncio.sleep", new_callable=AsyncMock):
            result = await coordinator.execute(operation, "test_op", classify=always_retry)

        assert result == "done"

    @pytest.mark.asyncio
    async def test_unclassified_error_is_fatal(self, null_logger):
        """Test an arbitrary exception is not retried."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=3), logger=null_logger)
        operation = AsyncMock(side_effect=ValueError("bad request"))

        with pytest.raises(ValueError):
            await coordinator.execute(operation, "test_op")

        assert operation.await_count == 1


class TestRetryCancellation:
    """Tests for cancellation inside the retry loop."""

    @pytest.mark.asyncio
    async def test_preset_event_prevents_any_attempt(self, null_logger):
        """Test a cancel event set up front stops the first attempt."""
        coordinator = RetryCoordinator(RetryPolicy(max_retries=3), logger=null_logger)
        operation = AsyncMock(return_value="ok")
        event = asyncio.Event()
        event.set()

        with pytest.raises(ReviewCancelledError):
            await coordinator.execute(operation, "test_op", cancel_event=event)

        operation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_is_not_exhaustion(self, null_logger):
        """Test setting the event mid-sleep raises ReviewCancelledError promptly."""
        policy = RetryPolicy(max_retries=3, initial_backoff=30.0, max_backoff=60.0)
        coordinator = RetryCoordinator(policy, logger=null_logger)
        event = asyncio.Event()

        async def operation():
            asyncio.get_running_loop().call_later(0.01, event.set)
            raise rate_limit_error()

        with pytest.raises(ReviewCancelledError) as exc_info:
            await asyncio.wait_for(
                coordinator.execute(operation, "test_op", cancel_event=event), timeout=5
            )

        assert not isinstance(exc_info.value, RetryExhaustedError)
        assert exc_info.value.operation == "test_op"

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self, null_logger):
        """Test cancelling the task during backoff raises CancelledError."""
        policy = RetryPolicy(max_retries=3, initial_backoff=30.0, max_backoff=60.0)
        coordinator = RetryCoordinator(policy, logger=null_logger)
        operation = AsyncMock(side_effect=rate_limit_error())

        task = asyncio.create_task(coordinator.execute(operation, "test_op"))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
