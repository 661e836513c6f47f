"""
Resilience patterns for error recovery
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from dispatch.config import get_settings
from dispatch.observability.metrics import observe_retry_attempt

logger = logging.getLogger(__name__)

T = TypeVar('T')

Sleep = Callable[[float], Awaitable[Any]]


async def exponential_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    sleep: Sleep = asyncio.sleep
) -> T:
    """
    Run `operation` until it succeeds, waiting 2**attempt * base_delay between tries.

    Attempts are strictly sequential. Every Exception is retried the same way;
    the last one is re-raised unchanged. Cancellation is not caught.

    Args:
        operation: Zero-argument coroutine function
        max_retries: Total number of attempts (default: settings.max_retries, 5)
        base_delay: Delay after the first failure in seconds
            (default: settings.retry_base_delay_seconds, 1.0)
        sleep: Awaitable delay, injectable for tests

    Returns:
        The operation's result

    Raises:
        ValueError: If max_retries is less than 1
    """
    if max_retries is None:
        max_retries = get_settings().max_retries
    if base_delay is None:
        base_delay = get_settings().retry_base_delay_seconds

    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    for attempt in range(max_retries):
        try:
            result = await operation()
        except Exception as e:
            if attempt == max_retries - 1:
                observe_retry_attempt('exhausted')
                logger.error(
                    f"Operation failed after {max_retries} attempts: {type(e).__name__}: {e}"
                )
                raise

            delay = (2 ** attempt) * base_delay
            observe_retry_attempt('retry')
            logger.warning(
                f"Attempt {attempt + 1}/{max_retries} failed ({type(e).__name__}: {e}), "
                f"retrying in {delay:.1f}s"
            )
            await sleep(delay)
        else:
            observe_retry_attempt('success')
            return result


def with_retry(max_attempts: int = 3, delay: float = 1.0, sleep: Sleep = asyncio.sleep):
    """
    Decorator for retrying failed async operations with exponential backoff

    Args:
        max_attempts: Maximum number of attempts
        delay: Delay after the first failure in seconds, doubled each retry
        sleep: Awaitable delay, injectable for tests
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await exponential_backoff(
                lambda: func(*args, **kwargs),
                max_retries=max_attempts,
                base_delay=delay,
                sleep=sleep
            )

        return wrapper
    return decorator
