"""Rate limiting and retry layers wrapped around the transport."""

from venice_client.middleware.rate_limit import (
    RateLimiter,
    RateLimiterConfig,
    new_shared_rate_limiter,
)
from venice_client.middleware.retry import (
    RetryPolicy,
    call_with_retry,
    is_retryable_error,
    with_retry,
)

__all__ = [
    "RateLimiter",
    "RateLimiterConfig",
    "RetryPolicy",
    "call_with_retry",
    "is_retryable_error",
    "new_shared_rate_limiter",
    "with_retry",
]
