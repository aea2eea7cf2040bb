"""Retry mechanism with exponential backoff for API calls.

This module provides a configurable retry policy, a helper that runs an
async operation under that policy, and a decorator form of the same.
"""

import asyncio
import functools
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from venice_client.core.config import ClientSettings
from venice_client.core.logging import get_logger
from venice_client.exceptions import (
    ApiError,
    NetworkError,
    RateLimitExceededError,
)

logger = get_logger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


def is_retryable_error(exception: BaseException) -> bool:
    """Check if an exception should trigger a retry.

    Network errors (including timeouts) and rate limit errors are retryable.
    API errors are retryable only for 5xx statuses. Everything else
    (parse errors, invalid input, authentication) is fatal.
    """
    if isinstance(exception, (NetworkError, RateLimitExceededError)):
        return True
    if isinstance(exception, ApiError):
        return 500 <= exception.status < 600
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Delay before the first retry in seconds (default: 0.5)
        max_delay: Maximum delay between retries in seconds (default: 10.0)
        backoff_factor: Multiplier applied after each failed attempt (default: 2.0)
        jitter: Scale each delay by a random factor in [1.0, 1.5) (default: True)

    Example:
        >>> policy = RetryPolicy(max_retries=5, initial_delay=1.0, jitter=False)
        >>> policy.calculate_delay(attempt=3)
        4.0
    """

    max_retries: int = 3
    initial_delay: float = 0.5
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    jitter: bool = True

    @classmethod
    def from_settings(cls, config: ClientSettings) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            initial_delay=config.retry_initial_delay,
            max_delay=config.retry_max_delay,
            backoff_factor=config.retry_backoff_factor,
            jitter=config.retry_jitter,
        )

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay after a failed attempt.

        delay = min(initial_delay * backoff_factor ^ (attempt - 1), max_delay),
        then scaled by a factor in [1.0, 1.5) when jitter is enabled.

        Args:
            attempt: The failed attempt number (1-indexed)

        Returns:
            Delay in seconds
        """
        delay = min(self.initial_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay *= 1.0 + random.random() * 0.5
        return delay

    def is_retryable(self, exception: BaseException) -> bool:
        return is_retryable_error(exception)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    description: str = "request",
) -> T:
    """Run ``operation`` until it succeeds, fails fatally, or retries run out.

    ``operation`` is invoked at most ``max_retries + 1`` times and must be
    safe to invoke again after a failure.

    Args:
        operation: Zero-argument coroutine function to invoke
        policy: RetryPolicy configuration. Uses defaults if not provided.
        description: Name used in log messages

    Returns:
        The operation's result

    Raises:
        The last exception raised by ``operation``
    """
    retry_policy = policy or RetryPolicy()
    attempt = 0

    while True:
        try:
            return await operation()
        except Exception as e:
            attempt += 1

            if not retry_policy.is_retryable(e):
                logger.debug(
                    f"Non-retryable exception in {description}: {type(e).__name__}: {e}"
                )
                raise

            if attempt > retry_policy.max_retries:
                logger.warning(
                    f"Max retries ({retry_policy.max_retries}) exceeded for {description}: "
                    f"{type(e).__name__}: {e}"
                )
                raise

            delay = retry_policy.calculate_delay(attempt)
            logger.warning(
                f"Retry {attempt}/{retry_policy.max_retries} for {description} "
                f"after {type(e).__name__}: {e}. Waiting {delay:.2f}s...",
                extra={"attempt": attempt},
            )
            await asyncio.sleep(delay)


def with_retry(policy: Optional[RetryPolicy] = None) -> Callable[[F], F]:
    """Decorator that adds retry logic with exponential backoff.

    Example:
        >>> @with_retry(policy=RetryPolicy(max_retries=3))
        ... async def list_models(client):
        ...     return await client.get("models")
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await call_with_retry(
                lambda: func(*args, **kwargs), policy, description=func.__name__
            )

        return wrapper  # type: ignore

    return decorator
