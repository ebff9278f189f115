"""
Retry policy for outbound calls.
"""
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)
import logging
from typing import Callable

logger = logging.getLogger(__name__)


def with_retry(
    max_attempts: int = 1,
    min_wait: float = 1,
    max_wait: float = 10,
    exception_types: tuple = (Exception,)
) -> Callable:
    """
    Retry decorator factory with exponential backoff.

    Works on both plain and coroutine functions. The last exception is
    re-raised once attempts are exhausted, so callers see the real error
    rather than a tenacity wrapper. ``max_attempts=1`` means a single call.

    Usage:
        @with_retry(max_attempts=3, exception_types=(httpx.TransportError,))
        async def post(...):
            ...
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exception_types),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
