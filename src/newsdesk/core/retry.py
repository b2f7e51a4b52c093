from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from newsdesk.core.logger import get_logger

log = get_logger("retry")

T = TypeVar("T")

# Transport-level failures only; HTTP status errors are not retried.
RETRY_MAX_WAIT = 5.0

RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = RETRY_MAX_WAIT,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    **kwargs: Any,
) -> T:
    """Await ``func(*args, **kwargs)`` with exponential backoff and jitter.

    Args:
        func: Coroutine function to call
        max_attempts: Maximum number of attempts (1 disables retrying)
        min_wait: Initial wait between attempts in seconds
        max_wait: Cap on the wait between attempts in seconds
        exceptions: Tuple of exception types to retry on

    The last exception is re-raised once attempts are exhausted.

    Example:
        response = await call_with_retry(client.get, url, max_attempts=2)
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=min_wait, max=max_wait, jitter=min_wait / 2),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(log, log_level=logging.INFO),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await func(*args, **kwargs)
    raise RuntimeError("Retry logic failed unexpectedly")
