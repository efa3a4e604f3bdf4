"""
Retrying HTTP fetcher.

Wraps a single httpx request with bounded exponential backoff:
- Only 2xx responses are returned
- HTTP 403 raises AntiBotRejection, other non-2xx raise UpstreamApiError
- Network-level request errors are retried like HTTP failures
- After the last attempt a RetryExhaustedError carries the last error

Usage:
    from utils.http import BackoffPolicy, fetch_with_retry

    response = await fetch_with_retry(client, "GET", url, policy=BackoffPolicy(max_attempts=5))
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
)

from utils.errors import AntiBotRejection, RetryExhaustedError, UpstreamApiError

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (UpstreamApiError, httpx.RequestError)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry state description for one request.

    The delay before attempt ``i`` (0-based, i > 0) is ``base ** i`` seconds.
    No jitter and no cap. ``deadline`` optionally bounds the total time spent
    retrying, measured from the first attempt.
    """

    max_attempts: int = 5
    base: float = 2.0
    deadline: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def delay_before(self, attempt: int) -> float:
        if attempt < 1:
            return 0.0
        return self.base ** attempt

    def delays(self) -> list[float]:
        """All delays slept through when every attempt fails."""
        return [self.delay_before(i) for i in range(1, self.max_attempts)]

    def wait(self, retry_state: RetryCallState) -> float:
        # attempt_number is the 1-based attempt that just failed, which is
        # also the 0-based index of the next attempt
        return self.delay_before(retry_state.attempt_number)

    def stop(self):
        stop = stop_after_attempt(self.max_attempts)
        if self.deadline is not None:
            stop = stop | stop_after_delay(self.deadline)
        return stop


def raise_for_status(response: httpx.Response) -> None:
    """Classify a non-2xx response into the retryable error types."""
    if response.status_code == 403:
        raise AntiBotRejection(403, response.reason_phrase, str(response.request.url))
    if not response.is_success:
        raise UpstreamApiError(
            response.status_code, response.reason_phrase, str(response.request.url)
        )


def _log_before_sleep(policy: BackoffPolicy, url: str) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "Request failed (attempt %d/%d), retrying in %ds: %s",
            retry_state.attempt_number,
            policy.max_attempts,
            delay,
            str(error),
            extra={"url": url},
        )

    return log


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    policy: Optional[BackoffPolicy] = None,
    sleep: Sleep = asyncio.sleep,
    **request_kwargs: Any,
) -> httpx.Response:
    """
    Issue an HTTP request, retrying failed attempts with exponential backoff.

    Args:
        client: Shared async HTTP client
        method: HTTP method
        url: Target URL
        policy: Backoff policy, defaults to 5 attempts with base 2
        sleep: Awaitable sleep used between attempts
        **request_kwargs: Passed through to ``client.request``

    Returns:
        First response with a 2xx status

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error
    """
    policy = policy or BackoffPolicy()

    retrying = AsyncRetrying(
        stop=policy.stop(),
        wait=policy.wait,
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_before_sleep(policy, url),
        sleep=sleep,
    )

    try:
        async for attempt in retrying:
            with attempt:
                response = await client.request(method, url, **request_kwargs)
                raise_for_status(response)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.error(
            "Request failed after %d attempts: url=%s, error=%s",
            e.last_attempt.attempt_number,
            url,
            str(last_error),
        )
        raise RetryExhaustedError(e.last_attempt.attempt_number, last_error) from last_error

    return response
