"""Retry coordination for calls to the remote model."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from lgtm_reviewer.errors import RetryExhaustedError, ReviewCancelledError
from lgtm_reviewer.models.retry import Attempt, ClassifiedError, RetryPolicy
from lgtm_reviewer.utils.error_classifier import classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_FRACTION = 0.2

Classifier = Callable[[BaseException], ClassifiedError]


def compute_backoff(
    attempt: int, policy: RetryPolicy, rng: random.Random | None = None
) -> float:
    """Calculate the exponential backoff with jitter for a zero-based attempt.

    The delay is ``initial_backoff * multiplier ** attempt`` scaled by a
    symmetric jitter of +/-20%, then capped at ``max_backoff``.

    Args:
        attempt: Zero-based index of the attempt that just failed
        policy: Retry policy supplying the backoff parameters
        rng: Random source for the jitter (module ``random`` by default)

    Returns:
        Delay in seconds
    """
    try:
        backoff = policy.initial_backoff * policy.backoff_multiplier**attempt
    except OverflowError:
        return policy.max_backoff

    jitter = (rng or random).uniform(-JITTER_FRACTION, JITTER_FRACTION)
    backoff *= 1 + jitter

    return min(backoff, policy.max_backoff)


class RetryCoordinator:
    """Runs a fallible coroutine with bounded retries and exponential backoff.

    Only errors the classifier marks as retryable are retried. Fatal errors
    are re-raised unchanged after a single attempt, and a retryable error
    that outlives the budget is wrapped in ``RetryExhaustedError``.

    Cancellation comes from two places. Cancelling the surrounding task
    raises ``asyncio.CancelledError`` wherever the coroutine is suspended.
    Setting the optional ``cancel_event`` is observed at the top of every
    attempt and around the backoff sleep, and raises ``ReviewCancelledError``.
    Neither is ever reported as retry exhaustion.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        logger: logging.Logger | None = None,
        classify: Classifier = classify_error,
        rng: random.Random | None = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.logger = logger or logging.getLogger(__name__)
        self.classify = classify
        self.rng = rng

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        *,
        classify: Classifier | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds, fails fatally, or the budget runs out.

        Args:
            operation: Zero-argument coroutine function performing one try
            operation_name: Name used in log lines and error messages
            classify: Overrides the coordinator's classifier for this call
            cancel_event: Optional external cancellation signal

        Returns:
            The operation's result

        Raises:
            RetryExhaustedError: If every allowed attempt failed retryably
            ReviewCancelledError: If ``cancel_event`` was set
            Exception: The operation's own error when classified fatal
        """
        classify = classify or self.classify
        max_retries = self.policy.max_retries

        if max_retries == 0:
            _raise_if_cancelled(cancel_event, operation_name)
            return await operation()

        for attempt in range(max_retries + 1):
            _raise_if_cancelled(cancel_event, operation_name)

            try:
                return await operation()
            except Exception as error:
                classified = classify(error)
                if not classified.is_retryable:
                    self.logger.debug(
                        f"Non-retryable error in {operation_name}: "
                        f"{type(error).__name__}: {error}"
                    )
                    raise
                if attempt >= max_retries:
                    self.logger.warning(
                        f"All {max_retries + 1} attempts of {operation_name} failed. "
                        f"Last error: {error}"
                    )
                    raise RetryExhaustedError(
                        operation_name, max_retries + 1, error
                    ) from error

            failed = self._plan_attempt(attempt, classified)
            self.logger.debug(
                f"Using {'API-provided retry delay' if failed.provider_delay else 'calculated backoff'} "
                f"operation={operation_name} attempt={attempt + 1} delay={failed.wait:.2f}s"
            )

            _raise_if_cancelled(cancel_event, operation_name)
            await _sleep(failed.wait, cancel_event, operation_name)
            _raise_if_cancelled(cancel_event, operation_name)

            self.logger.info(
                f"Retrying operation after transient error "
                f"operation={operation_name} attempt={attempt + 2} "
                f"max_attempts={max_retries + 1}"
            )

        # The loop always returns or raises on its final attempt.
        raise AssertionError("unreachable")

    def _plan_attempt(self, attempt: int, classified: ClassifiedError) -> Attempt:
        if classified.retry_delay is not None and classified.retry_delay > 0:
            return Attempt(
                index=attempt,
                error=classified.error,
                wait=classified.retry_delay,
                provider_delay=True,
            )
        return Attempt(
            index=attempt,
            error=classified.error,
            wait=compute_backoff(attempt, self.policy, self.rng),
        )


def _raise_if_cancelled(cancel_event: asyncio.Event | None, operation_name: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ReviewCancelledError(operation_name)


async def _sleep(
    delay: float, cancel_event: asyncio.Event | None, operation_name: str
) -> None:
    """Sleep for ``delay`` seconds, waking early if ``cancel_event`` is set."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise ReviewCancelledError(operation_name)
