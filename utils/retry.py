"""
Retry logic with exponential backoff for async calls.

Handles transient failures in API calls. The AsyncCaller wraps every
outbound request made by the REST gateway and the tenant resolver.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

import httpx

from utils.logging_config import get_logger

logger = get_logger("retry")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 6
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_factor: float = 0.1


# Malformed URLs and local protocol errors are permanent and not listed
TRANSIENT_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    httpx.NetworkError,
    httpx.TimeoutException,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)


def compute_delay(attempt: int, config: RetryConfig) -> float:
    """Backoff delay in seconds before the attempt following `attempt`."""
    delay = min(
        config.initial_delay * (config.exponential_base ** (attempt - 1)),
        config.max_delay,
    )
    if config.jitter:
        jitter_range = delay * config.jitter_factor
        delay += random.uniform(-jitter_range, jitter_range)
    return max(delay, 0.0)


async def retry_with_backoff(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    config: Optional[RetryConfig] = None,
    retryable_exceptions: Tuple[Type[Exception], ...] = TRANSIENT_EXCEPTIONS,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs: Any,
) -> Any:
    """
    Await a coroutine function with exponential backoff retry.

    Args:
        func: Coroutine function to execute
        *args: Positional arguments
        config: Retry configuration
        retryable_exceptions: Exception types that trigger retry
        on_retry: Callback on each retry (exception, attempt_number)
        **kwargs: Keyword arguments

    Returns:
        Result of func

    Raises:
        Last exception if all retries exhausted
    """
    config = config or RetryConfig()
    name = getattr(func, "__name__", repr(func))

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func(*args, **kwargs)

        except retryable_exceptions as e:
            if attempt == config.max_attempts:
                logger.error(f"All {config.max_attempts} attempts failed for {name}: {e}")
                raise

            delay = compute_delay(attempt, config)
            logger.warning(
                f"Attempt {attempt}/{config.max_attempts} failed for {name}: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            if on_retry:
                on_retry(e, attempt)
            await asyncio.sleep(delay)

    raise RuntimeError("unreachable")


class AsyncCaller:
    """
    Runs async calls with retry and an optional concurrency cap.

    Usage:
        caller = AsyncCaller(max_retries=3, max_concurrency=4)
        response = await caller.call(client.get, url)
    """

    def __init__(
        self,
        max_retries: int = 6,
        max_concurrency: Optional[int] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Args:
            max_retries: Retries after the first attempt.
            max_concurrency: Max in-flight calls; None means unbounded.
            retry_config: Backoff settings (max_attempts is derived from max_retries).
        """
        base = retry_config or RetryConfig()
        self.retry_config = RetryConfig(
            max_attempts=max_retries + 1,
            initial_delay=base.initial_delay,
            max_delay=base.max_delay,
            exponential_base=base.exponential_base,
            jitter=base.jitter,
            jitter_factor=base.jitter_factor,
        )
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def call(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Await func(*args, **kwargs), retrying transient failures."""
        if self._semaphore is None:
            return await retry_with_backoff(func, *args, config=self.retry_config, **kwargs)
        async with self._semaphore:
            return await retry_with_backoff(func, *args, config=self.retry_config, **kwargs)
