"""Retry policy for startup connection attempts using tenacity.

Startup waiting uses the simplest bounded policy: a constant delay between
attempts and a hard cap on the number of retries. No backoff, no jitter.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def retry_all_exceptions(exception: BaseException) -> bool:
    """Retry every ordinary failure; cancellation and exit signals pass through."""
    return isinstance(exception, Exception)


def fixed_delay_retrying(
    max_retries: int,
    delay: float,
    retry_condition: Callable[[BaseException], bool] = retry_all_exceptions,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
    sleep: Optional[SleepFunc] = None,
) -> AsyncRetrying:
    """Create an async retry controller with a fixed delay.

    Args:
        max_retries: Retries permitted after the initial attempt
        delay: Seconds to wait between attempts
        retry_condition: Returns True if the exception should be retried
        before_sleep: Optional callback before sleep (defaults to logging)
        sleep: Awaitable sleep function (defaults to asyncio.sleep)

    Returns:
        AsyncRetrying instance that re-raises the last failure once stopped
    """
    if max_retries < 0:
        raise ValueError("max_retries must be non-negative")
    if delay < 0:
        raise ValueError("delay must be non-negative")

    if before_sleep is None:
        before_sleep = before_sleep_log(logger, logging.WARNING)

    def _condition(exception: BaseException) -> bool:
        return isinstance(exception, Exception) and retry_condition(exception)

    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_fixed(delay),
        retry=retry_if_exception(_condition),
        reraise=True,
        before_sleep=before_sleep,
        sleep=sleep or asyncio.sleep,
    )
