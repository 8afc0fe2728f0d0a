"""Retry logic with exponential backoff"""

import asyncio
import random
from typing import Awaitable, Callable, Optional

import httpx
from loguru import logger

from .config import DEFAULT_RETRY_POLICY, JITTER_RANGE
from .exceptions import ScraperError
from .models import ErrorReason, RetryPolicy

RETRYABLE_REASONS = frozenset({ErrorReason.NAVIGATION_FAILED, ErrorReason.TIMEOUT})


async def retry_with_backoff(
    func: Callable[..., Awaitable],
    *args,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    on_retry: Optional[Callable] = None,
    **kwargs,
):
    """
    Execute function with exponential backoff retry logic.

    Only retryable failures (navigation, timeout) are retried; anything
    else propagates on the first attempt.

    Args:
        func: Async function to execute
        policy: Attempt cap and backoff settings
        on_retry: Optional callback called on each retry: on_retry(attempt, error)
    """
    max_attempts = max(1, policy.max_attempts)

    for attempt in range(max_attempts):
        try:
            result = await func(*args, **kwargs)

            if attempt > 0:
                logger.success(f"✓ Recovered after {attempt} retries")

            return result

        except Exception as e:
            if not is_retryable(e):
                raise

            if attempt + 1 >= max_attempts:
                logger.error(f"❌ Failed after {max_attempts} attempts: {_summary(e)}")
                raise

            sleep_time = compute_backoff(attempt, policy)
            logger.warning(
                f"⚠️ Attempt {attempt + 1}/{max_attempts} failed "
                f"({classify_error(e).value}): {_summary(e)}"
            )
            logger.info(f"   Retrying in {sleep_time:.1f}s...")

            if on_retry:
                await on_retry(attempt, e)

            await asyncio.sleep(sleep_time)


def compute_backoff(attempt: int, policy: RetryPolicy = DEFAULT_RETRY_POLICY) -> float:
    """Delay before retry number ``attempt + 1``: exponential, jittered, capped"""
    backoff = policy.initial_delay * (policy.backoff_factor ** attempt)
    jitter = random.uniform(*JITTER_RANGE)
    return min(backoff * jitter, policy.max_delay)


def classify_error(error: Exception) -> ErrorReason:
    """Classify error for appropriate handling"""
    if isinstance(error, ScraperError):
        return error.reason
    elif isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorReason.TIMEOUT
    elif isinstance(error, httpx.HTTPError):
        return ErrorReason.NAVIGATION_FAILED
    else:
        return ErrorReason.UNKNOWN


def is_retryable(error: Exception) -> bool:
    return classify_error(error) in RETRYABLE_REASONS


def _summary(error: Exception) -> str:
    if isinstance(error, ScraperError):
        return error.message.splitlines()[0]
    return str(error)
