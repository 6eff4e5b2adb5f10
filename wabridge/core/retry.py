"""Bounded retry with exponential backoff for provider calls."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Type, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from wabridge.observability.logging import get_logger

T = TypeVar("T")
log = get_logger("retry")


class RetryableError(Exception):
    """Base exception for provider answers that should trigger retries."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TransientError(RetryableError):
    """Provider-side failure (5xx) that may succeed on retry."""


class RateLimitError(RetryableError):
    """Provider throttled the request (429)."""


DEFAULT_RETRYABLE: tuple[Type[Exception], ...] = (
    TransientError,
    RateLimitError,
    httpx.TransportError,
    asyncio.TimeoutError,
)


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 5.0,
    retryable_exceptions: tuple[Type[Exception], ...] = DEFAULT_RETRYABLE,
    on_attempt: Callable[[int], None] | None = None,
    **kwargs: Any,
) -> T:
    """
    Retry an async function with exponential backoff.

    Args:
        func: Async function to retry
        *args: Positional arguments for func
        max_attempts: Maximum number of attempts (1 means no retry)
        min_wait: Minimum wait time between attempts (seconds)
        max_wait: Maximum wait time between attempts (seconds)
        retryable_exceptions: Exceptions that should trigger retry
        on_attempt: Called with the attempt number before each attempt
        **kwargs: Keyword arguments for func

    Returns:
        Function result

    Raises:
        The last exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    retry_config = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retryable_exceptions),
        reraise=True,
    )

    attempt = 0
    async for attempt_state in retry_config:
        with attempt_state:
            attempt += 1
            if on_attempt:
                on_attempt(attempt)
            try:
                result = await func(*args, **kwargs)
                if attempt > 1:
                    log.info(
                        "retry_succeeded",
                        func=func.__name__,
                        attempts=attempt,
                    )
                return result
            except Exception as e:
                log.warning(
                    "retry_failed_attempt",
                    func=func.__name__,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

    # This should never be reached due to reraise=True
    raise RuntimeError("Retry logic failed unexpectedly")
