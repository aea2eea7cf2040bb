"""Async client library for the Venice API."""

from venice_client.client import Client
from venice_client.core.config import DEFAULT_BASE_URL, ClientSettings
from venice_client.core.logging import setup_logging
from venice_client.exceptions import (
    ApiError,
    AuthenticationError,
    InvalidInputError,
    NetworkError,
    ParseError,
    RateLimitExceededError,
    RequestTimeoutError,
    VeniceError,
)
from venice_client.http.transport import BinaryResult, Transport, TransportResult
from venice_client.middleware.rate_limit import (
    RateLimiter,
    RateLimiterConfig,
    new_shared_rate_limiter,
)
from venice_client.middleware.retry import RetryPolicy, with_retry
from venice_client.models.rate_limit import RateLimitSnapshot
from venice_client.services.pagination import PageResult, PaginationParams, Paginator
from venice_client.services.streaming import ChatCompletionStream

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "AuthenticationError",
    "BinaryResult",
    "ChatCompletionStream",
    "Client",
    "ClientSettings",
    "DEFAULT_BASE_URL",
    "InvalidInputError",
    "NetworkError",
    "PageResult",
    "PaginationParams",
    "Paginator",
    "ParseError",
    "RateLimitExceededError",
    "RateLimitSnapshot",
    "RateLimiter",
    "RateLimiterConfig",
    "RequestTimeoutError",
    "RetryPolicy",
    "Transport",
    "TransportResult",
    "VeniceError",
    "new_shared_rate_limiter",
    "setup_logging",
    "with_retry",
]
