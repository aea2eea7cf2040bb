"""Response classification for the transport layer.

Turns an ``httpx.Response`` into either a parsed payload or one of the
library's exceptions. Every function here reads the rate limit snapshot
first so that errors raised from a received response still carry it.
"""

import json
from typing import Any, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from venice_client.exceptions import (
    ApiError,
    AuthenticationError,
    ParseError,
    RateLimitExceededError,
)
from venice_client.models.rate_limit import RateLimitSnapshot

T = TypeVar("T")

DEFAULT_MIME_TYPE = "application/octet-stream"


def extract_error_details(body: str) -> Tuple[str, str]:
    """Extract ``(code, message)`` from an error response body.

    Handles ``{"error": {"code": ..., "message": ...}}``, ``{"error": "..."}``
    and falls back to the raw body text for anything else.
    """
    try:
        data = json.loads(body)
    except (ValueError, TypeError):
        return "unknown", f"Unexpected error response: {body}"

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message")
        return (
            str(code) if code is not None else "unknown",
            str(message) if message is not None else "Unknown error",
        )
    if isinstance(error, str):
        return "api_error", error
    if error is not None:
        return "unknown", f"Unexpected error format: {body}"
    return "unknown", f"Unexpected error response: {body}"


def check_response(response: httpx.Response, snapshot: RateLimitSnapshot) -> None:
    """Raise the classified error for a non-2xx response.

    The response body must already be read.

    Raises:
        RateLimitExceededError: On HTTP 429, whatever the body says
        AuthenticationError: On HTTP 401/403
        ApiError: On any other non-2xx status
    """
    status = response.status_code
    if status == 429:
        raise RateLimitExceededError(
            f"Rate limit exceeded: {snapshot}", rate_limit=snapshot, origin="remote"
        )
    if 200 <= status < 300:
        return

    try:
        body = response.text
    except (UnicodeDecodeError, LookupError):
        body = response.content.decode("utf-8", errors="replace")
    code, message = extract_error_details(body)
    error_cls = AuthenticationError if status in (401, 403) else ApiError
    raise error_cls(status=status, code=code, message=message, rate_limit=snapshot)


def parse_payload(
    response: httpx.Response,
    snapshot: RateLimitSnapshot,
    response_model: Optional[Type[T]] = None,
) -> Any:
    """Deserialize a 2xx body, optionally validating it into ``response_model``.

    Raises:
        ParseError: If the body is not valid JSON or fails validation
    """
    try:
        if response_model is None:
            return response.json()
        return TypeAdapter(response_model).validate_json(response.content)
    except ValidationError as e:
        raise ParseError(f"Failed to parse response: {e}", rate_limit=snapshot) from e
    except ValueError as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise ParseError(f"Failed to parse response: {e}", rate_limit=snapshot) from e


def process_response(
    response: httpx.Response,
    response_model: Optional[Type[T]] = None,
) -> Tuple[Any, RateLimitSnapshot]:
    """Classify a fully read response and return ``(payload, snapshot)``."""
    snapshot = RateLimitSnapshot.from_headers(response.headers)
    check_response(response, snapshot)
    return parse_payload(response, snapshot, response_model), snapshot


def process_binary_response(
    response: httpx.Response,
) -> Tuple[bytes, str, RateLimitSnapshot]:
    """Classify a fully read response and return ``(content, mime_type, snapshot)``."""
    snapshot = RateLimitSnapshot.from_headers(response.headers)
    check_response(response, snapshot)
    mime_type = response.headers.get("content-type", DEFAULT_MIME_TYPE)
    return response.content, mime_type, snapshot
