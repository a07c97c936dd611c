"""Retry utilities with exponential backoff."""

import logging

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.stdlib.get_logger(__name__)

# Statuses worth another attempt; other 4xx answers will not change on retry
TRANSIENT_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})


def is_transient(exc: BaseException) -> bool:
    """True for transport failures and retryable HTTP statuses."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in TRANSIENT_STATUSES
    return isinstance(exc, httpx.TransportError)


def http_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 5.0,
    predicate=is_transient,
):
    """Retry decorator for draw source requests.

    Waits stay short: the fetch job runs every few seconds and a
    late retry would collide with the next tick.

    Args:
        max_attempts: Max attempts, first call included
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
        predicate: Called with the raised exception; retry when it returns True
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception(predicate),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
