"""Custom exceptions for the client library."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from venice_client.models.rate_limit import RateLimitSnapshot


class VeniceError(Exception):
    """Base class for client exceptions.

    All library errors inherit from this class. When the error was built
    from a received HTTP response, ``rate_limit`` holds the snapshot parsed
    from that response's headers.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "Client error",
        rate_limit: Optional["RateLimitSnapshot"] = None,
    ):
        self.message = message
        self.rate_limit = rate_limit
        super().__init__(message)


class NetworkError(VeniceError):
    """Raised on connection, TLS or transport-level failures."""

    retryable = True

    def __init__(self, message: str = "Network error", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class RequestTimeoutError(NetworkError):
    """Raised when a request exceeds its timeout."""


class RateLimitExceededError(VeniceError):
    """Raised on HTTP 429 or when the local rate limiter is exhausted.

    ``origin`` is ``"remote"`` for a 429 from the server and ``"local"``
    when the client-side limiter refused the call.
    """

    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        rate_limit: Optional["RateLimitSnapshot"] = None,
        origin: str = "remote",
    ):
        self.origin = origin
        super().__init__(message, rate_limit)


class ApiError(VeniceError):
    """Raised when the API returns a non-2xx, non-429 response."""

    def __init__(
        self,
        status: int,
        code: str,
        message: str,
        rate_limit: Optional["RateLimitSnapshot"] = None,
    ):
        self.status = status
        self.code = code
        super().__init__(message, rate_limit)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return 500 <= self.status < 600

    def __str__(self) -> str:
        return f"API error {self.status}: {self.code} - {self.message}"


class AuthenticationError(ApiError):
    """Raised when the API rejects the credentials (401/403)."""


class ParseError(VeniceError):
    """Raised when a response body or stream chunk cannot be decoded."""


class InvalidInputError(VeniceError):
    """Raised on bad configuration or arguments supplied by the caller."""
