"""Retry logic using tenacity library.

Provides exponential backoff with jitter for catalog requests. Theme song
downloads are deliberately not retried; the next scheduled run picks them up.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity import (
    retry as _retry,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


def retry_with_backoff(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: float = 1.0,
    retry_exceptions: tuple[type[BaseException], ...] | None = None,
    logger_instance: logging.Logger | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator with exponential backoff and jitter.

    Args:
        max_attempts: Total attempts including the first try
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        jitter: Random jitter added to each wait, in seconds
        retry_exceptions: Tuple of exception types to retry on
        logger_instance: Logger for retry warnings (uses module logger if None)

    Returns:
        Decorator function

    Example:
        @retry_with_backoff(max_attempts=3, retry_exceptions=NETWORK_EXCEPTIONS)
        def fetch_items():
            return client.get("/Items")
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    return _retry(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=base_delay, max=max_delay, jitter=jitter),
        retry=retry_if_exception_type(retry_exceptions or (Exception,)),
        before_sleep=before_sleep_log(logger_instance or logger, logging.WARNING),
    )


# Transport-level failures worth a second attempt. HTTP status errors are not
# included: a 401 or 404 will not fix itself.
NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
)
