"""Retry utilities with exponential backoff for analysis calls."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def retry_with_exponential_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 2,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    retry_on_exceptions: tuple[type[Exception], ...] = (Exception,),
    **kwargs: Any,
) -> T:
    """
    Await a coroutine function, retrying selected failures with exponential backoff.

    Args:
        func: Async function to call
        *args: Positional arguments for the function
        max_retries: Retries after the first attempt
        initial_delay: Delay in seconds before the first retry
        backoff_factor: Multiplier applied to the delay after each retry
        retry_on_exceptions: Exception types that trigger a retry
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the first successful call

    Raises:
        The last exception once retries are exhausted, or any exception not
        listed in retry_on_exceptions immediately
    """
    delay = initial_delay
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except retry_on_exceptions as e:
            if attempt >= max_retries:
                logger.error(
                    "retry_exhausted",
                    function=getattr(func, "__name__", repr(func)),
                    attempts=attempt + 1,
                    error=str(e),
                )
                raise

            attempt += 1
            logger.warning(
                "retry_attempt",
                function=getattr(func, "__name__", repr(func)),
                attempt=attempt,
                max_retries=max_retries,
                delay=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)
            delay *= backoff_factor
