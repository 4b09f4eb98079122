"""
Retry utilities for search engine calls.

Provides a bounded, linearly growing backoff. Delay calculation is a pure
function of the attempt number and the sleep function is injectable, so
retry behaviour can be tested without real delays.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar, Union

logger = logging.getLogger(__name__)

R = TypeVar("R")

SleepFunc = Callable[[float], Awaitable[None]]
RetryCallback = Callable[[int, Exception, float], Awaitable[None]]


class RetryError(Exception):
    """Raised when all retry attempts have been exhausted"""

    def __init__(self, attempts: int, last_exception: Exception):
        self.attempts = attempts
        self.last_exception = last_exception
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_exception}")


class RetryConfig:
    """Configuration for retry behavior"""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        delay_step: float = 1.0,
        max_delay: float = 60.0,
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Total number of attempts, including the first one
            base_delay: Delay in seconds after the first failed attempt
            delay_step: Seconds added to the delay for each further attempt
            max_delay: Maximum delay in seconds
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.delay_step = delay_step
        self.max_delay = max_delay

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for given attempt number.

        With the defaults this is ``attempt + 2`` seconds.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.base_delay + self.delay_step * attempt
        return max(0.0, min(delay, self.max_delay))


async def retry_with_config(
    func: Callable[[], Awaitable[R]],
    config: RetryConfig,
    exceptions: Union[Type[Exception], Tuple[Type[Exception], ...]] = (Exception,),
    on_retry: Optional[RetryCallback] = None,
    sleep: SleepFunc = asyncio.sleep,
) -> R:
    """
    Retry an async function with custom retry configuration.

    Args:
        func: Zero-argument coroutine function to call
        config: Retry configuration
        exceptions: Exception types to catch and retry
        on_retry: Optional callback called before each retry sleep
        sleep: Sleep function used between attempts

    Returns:
        Result of successful function call

    Raises:
        RetryError: If all retry attempts fail
        Exception: If function raises an exception not in the exceptions list
    """
    last_exception: Optional[Exception] = None
    name = getattr(func, "__name__", repr(func))

    for attempt in range(config.max_attempts):
        try:
            result = await func()

            if attempt > 0:
                logger.info(f"{name} succeeded after {attempt + 1} attempts")

            return result

        except exceptions as e:
            last_exception = e

            if attempt + 1 >= config.max_attempts:
                break

            delay = config.calculate_delay(attempt)

            logger.warning(
                f"{name} failed (attempt {attempt + 1}/{config.max_attempts}), retrying in {delay:.2f}s: {e}"
            )

            if on_retry:
                await on_retry(attempt + 1, e, delay)

            if delay > 0:
                await sleep(delay)

    raise RetryError(config.max_attempts, last_exception or Exception("No exception captured during retries"))


IMPORT_RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=2.0, delay_step=1.0)
