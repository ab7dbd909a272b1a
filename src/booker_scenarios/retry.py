"""Bounded retry for requests against the unstable booking service.

Retries transport failures and the statuses a step's policy marks RETRY, with a
fixed number of attempts and a constant delay. Exhausting the budget is not an
error here: the last response or transport error is handed back to the step.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from .errors import BookerClientError
from .policy import StatusPolicy
from .shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY = 1.0


class RetryableStatus(Exception):
    """Control exception used to re-issue a request on a RETRY status."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"Retry due to HTTP {response.status_code}")
        self.response = response


@dataclass
class RetryBudget:
    """Fixed retry budget: ``retries`` extra attempts, ``delay`` seconds apart."""

    retries: int = DEFAULT_RETRY_COUNT
    delay: float = DEFAULT_RETRY_DELAY

    @property
    def max_attempts(self) -> int:
        return max(self.retries, 0) + 1


@dataclass
class AttemptResult:
    """Last response or transport error after the retry loop."""

    response: httpx.Response | None
    error: BookerClientError | None
    attempts: int


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, RetryableStatus):
        return True
    return isinstance(exc, BookerClientError) and exc.retryable


async def call_with_retry(
    call: Callable[[], Awaitable[httpx.Response]],
    policy: StatusPolicy,
    budget: RetryBudget,
    step: str = "",
) -> AttemptResult:
    """Run ``call`` until it yields a non-retry status or the budget is spent.

    Args:
        call: Zero-argument coroutine factory issuing one request
        policy: Status policy deciding which statuses to retry
        budget: Retry count and delay
        step: Step name for log context

    Returns:
        AttemptResult holding the final response or error and attempt count
    """
    attempts = 0

    def before_sleep(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.info(
            "retrying_request",
            step=step,
            attempt=retry_state.attempt_number,
            max_attempts=budget.max_attempts,
            delay=budget.delay,
            reason=str(exception),
        )

    retrying = AsyncRetrying(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(budget.max_attempts),
        wait=wait_fixed(budget.delay),
        before_sleep=before_sleep,
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                attempts = attempt.retry_state.attempt_number
                response = await call()
                if policy.should_retry(response.status_code):
                    raise RetryableStatus(response)
    except RetryableStatus as exc:
        return AttemptResult(response=exc.response, error=None, attempts=attempts)
    except BookerClientError as exc:
        return AttemptResult(response=None, error=exc, attempts=attempts)

    return AttemptResult(response=response, error=None, attempts=attempts)
