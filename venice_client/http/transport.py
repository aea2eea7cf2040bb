"""HTTP transport for the API.

The transport only handles HTTP communication: URL building, authentication
headers, sending, and classifying the response. Rate limiting and retries
are layered on top by :class:`~venice_client.client.Client`.
"""

import asyncio
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Generic, Iterator, Mapping, Optional, Type, TypeVar

import httpx

from venice_client.core.config import ClientSettings
from venice_client.core.http_client import create_http_client
from venice_client.core.logging import get_log_context, get_logger
from venice_client.exceptions import (
    InvalidInputError,
    NetworkError,
    RequestTimeoutError,
    VeniceError,
)
from venice_client.http.response import (
    check_response,
    process_binary_response,
    process_response,
)
from venice_client.http.url import build_url
from venice_client.models.rate_limit import RateLimitSnapshot

logger = get_logger(__name__)

T = TypeVar("T")

# RFC 7230 token characters
_HEADER_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True)
class TransportResult(Generic[T]):
    """A parsed payload together with the rate limit snapshot of its response."""

    data: T
    rate_limit: RateLimitSnapshot


@dataclass(frozen=True)
class BinaryResult:
    """Raw response bytes, their MIME type and the rate limit snapshot."""

    content: bytes
    mime_type: str
    rate_limit: RateLimitSnapshot


@contextmanager
def _transport_errors(endpoint: str) -> Iterator[None]:
    """Translate httpx and deadline failures into library errors."""
    try:
        yield
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise RequestTimeoutError(f"Request to {endpoint} timed out", cause=e) from e
    except (httpx.RequestError, httpx.StreamError) as e:
        raise NetworkError(f"HTTP error: {type(e).__name__}: {e}", cause=e) from e
    except httpx.InvalidURL as e:
        raise InvalidInputError(f"Invalid URL for {endpoint}: {e}") from e


def _validate_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    validated = {}
    for name, value in headers.items():
        if not _HEADER_NAME.match(str(name)):
            raise InvalidInputError(f"Invalid header name: {name!r}")
        value = str(value)
        if "\r" in value or "\n" in value:
            raise InvalidInputError(f"Invalid header value for {name}")
        validated[str(name)] = value
    return validated


class Transport:
    """Issues authenticated requests and classifies their responses.

    If ``http_client`` is provided it is used for every request and the
    caller keeps ownership of it. Otherwise the transport creates its own
    pooled client from ``config`` and closes it in :meth:`aclose`.
    """

    def __init__(
        self,
        config: ClientSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not config.api_key or not config.api_key.strip():
            raise InvalidInputError("API key must not be empty")
        if "\r" in config.api_key or "\n" in config.api_key:
            raise InvalidInputError("Invalid API key format")

        self.config = config
        self.base_url = config.base_url
        self.request_timeout = config.request_timeout
        self.headers = self._build_headers()
        self._owns_client = http_client is None
        self._http_client = http_client or create_http_client(config)

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    def _build_headers(self) -> Dict[str, str]:
        """Build the headers sent with every request."""
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Accept": "application/json",
        }
        headers.update(_validate_headers(self.config.custom_headers))
        return headers

    def _request_headers(self, json_body: bool) -> Dict[str, str]:
        headers = dict(self.headers)
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _with_deadline(self, awaitable: Awaitable[T]) -> T:
        if self.request_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.request_timeout)

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        files: Any = None,
        data: Optional[Mapping[str, Any]] = None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send one request, mapping transport failures to library errors."""
        url = build_url(self.base_url, endpoint)
        started = time.monotonic()
        with _transport_errors(endpoint):
            request = self._http_client.build_request(
                method,
                url,
                params=params,
                json=json,
                files=files,
                data=data,
                headers=self._request_headers(json_body=files is None),
            )
            if stream:
                response = await self._with_deadline(
                    self._http_client.send(request, stream=True)
                )
            else:
                response = await self._with_deadline(self._send_and_read(request))

        logger.debug(
            f"{method} {endpoint} -> {response.status_code}",
            extra=get_log_context(
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            ),
        )
        return response

    async def _send_and_read(self, request: httpx.Request) -> httpx.Response:
        response = await self._http_client.send(request, stream=True)
        try:
            await response.aread()
        finally:
            await response.aclose()
        return response

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        response_model: Optional[Type[T]] = None,
    ) -> TransportResult[T]:
        """Send a JSON request and return the parsed payload with its snapshot.

        Raises:
            RateLimitExceededError: On HTTP 429
            ApiError: On other non-2xx responses
            NetworkError: On connection failures and timeouts
            ParseError: If a 2xx body cannot be parsed into ``response_model``
            InvalidInputError: If the URL cannot be built
        """
        response = await self._send(method, endpoint, params=params, json=json)
        payload, snapshot = process_response(response, response_model)
        return TransportResult(data=payload, rate_limit=snapshot)

    async def get(
        self, endpoint: str, response_model: Optional[Type[T]] = None
    ) -> TransportResult[T]:
        return await self.request("GET", endpoint, response_model=response_model)

    async def get_with_query(
        self,
        endpoint: str,
        query: Mapping[str, Any],
        response_model: Optional[Type[T]] = None,
    ) -> TransportResult[T]:
        params = {k: v for k, v in query.items() if v is not None}
        return await self.request(
            "GET", endpoint, params=params, response_model=response_model
        )

    async def post(
        self, endpoint: str, body: Any, response_model: Optional[Type[T]] = None
    ) -> TransportResult[T]:
        return await self.request("POST", endpoint, json=body, response_model=response_model)

    async def delete(
        self, endpoint: str, response_model: Optional[Type[T]] = None
    ) -> TransportResult[T]:
        return await self.request("DELETE", endpoint, response_model=response_model)

    async def post_multipart(
        self,
        endpoint: str,
        files: Mapping[str, Any],
        data: Optional[Mapping[str, Any]] = None,
        response_model: Optional[Type[T]] = None,
    ) -> TransportResult[T]:
        """Send a multipart form and parse a JSON response."""
        response = await self._send("POST", endpoint, files=files, data=data)
        payload, snapshot = process_response(response, response_model)
        return TransportResult(data=payload, rate_limit=snapshot)

    async def post_multipart_binary(
        self,
        endpoint: str,
        files: Mapping[str, Any],
        data: Optional[Mapping[str, Any]] = None,
    ) -> BinaryResult:
        """Send a multipart form and return the raw response bytes.

        The response's ``Content-Type`` header is returned verbatim as the
        MIME type.
        """
        response = await self._send("POST", endpoint, files=files, data=data)
        content, mime_type, snapshot = process_binary_response(response)
        return BinaryResult(content=content, mime_type=mime_type, rate_limit=snapshot)

    async def open_stream(self, endpoint: str, body: Any) -> httpx.Response:
        """POST ``body`` and return the still-open response for streaming.

        Error responses are read, closed and raised. On success the caller
        owns the response and must close it.
        """
        response = await self._send("POST", endpoint, json=body, stream=True)
        if 200 <= response.status_code < 300:
            return response
        snapshot = RateLimitSnapshot.from_headers(response.headers)
        try:
            with _transport_errors(endpoint):
                await self._with_deadline(response.aread())
        finally:
            await response.aclose()
        check_response(response, snapshot)
        # check_response always raises for non-2xx
        raise VeniceError(f"Unexpected status {response.status_code}", rate_limit=snapshot)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._http_client.aclose()
