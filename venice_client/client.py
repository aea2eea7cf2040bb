"""The main client for the API.

A :class:`Client` owns one immutable configuration and one transport, and
optionally a rate limiter and a retry policy. Every request goes through the
same path: wait for the limiter, send (retrying when configured), and feed
the response's rate limit snapshot back into the limiter.
"""

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from venice_client.core.config import ClientSettings
from venice_client.exceptions import InvalidInputError, VeniceError
from venice_client.http.transport import BinaryResult, Transport, TransportResult
from venice_client.middleware.rate_limit import RateLimiter, RateLimiterConfig
from venice_client.middleware.retry import RetryPolicy, call_with_retry
from venice_client.models.chat import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
)
from venice_client.models.image import (
    ImageGenerateRequest,
    ImageGenerateResponse,
    ListImageStylesResponse,
)
from venice_client.models.resources import (
    ApiKey,
    CreateApiKeyRequest,
    CreateApiKeyResponse,
    DeleteApiKeyResponse,
    ListApiKeysResponse,
    ListModelsResponse,
    Model,
)
from venice_client.services.pagination import PaginationParams, Paginator
from venice_client.services.streaming import ChatCompletionStream

T = TypeVar("T")
R = TypeVar("R")

MODELS_ENDPOINT = "models"
API_KEYS_ENDPOINT = "api_keys"
CHAT_COMPLETIONS_ENDPOINT = "chat/completions"
IMAGE_GENERATE_ENDPOINT = "image/generate"
IMAGE_STYLES_ENDPOINT = "image/styles"
IMAGE_UPSCALE_ENDPOINT = "image/upscale"

ChatRequest = Union[ChatCompletionRequest, Mapping[str, Any]]
ImageRequest = Union[ImageGenerateRequest, Mapping[str, Any]]
ApiKeyRequest = Union[CreateApiKeyRequest, Mapping[str, Any]]


def _build_settings(config: Optional[ClientSettings], **overrides: Any) -> ClientSettings:
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        if config is None:
            return ClientSettings(**overrides)
        if not overrides:
            return config
        return ClientSettings(**{**config.model_dump(), **overrides})
    except ValidationError as e:
        raise InvalidInputError(f"Invalid client configuration: {e}") from e


def _chat_payload(request: ChatRequest, stream: bool) -> Dict[str, Any]:
    if isinstance(request, ChatCompletionRequest):
        payload = request.to_payload()
    else:
        payload = dict(request)
    if "model" not in payload or not payload.get("messages"):
        raise InvalidInputError("Chat completion requires a model and at least one message")
    payload["stream"] = stream
    return payload


class Client:
    """Async client for the API.

    Rate limiting and retries are off unless a limiter or policy is given;
    :meth:`from_settings` enables both from configuration.

    Example:
        >>> async with Client(api_key="...", retry_policy=RetryPolicy()) as client:
        ...     models = await client.list_models().all_pages()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        config: Optional[ClientSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        **overrides: Any,
    ):
        """Initialize the client.

        Args:
            api_key: API key; falls back to ``VENICE_API_KEY``
            base_url: API base URL; falls back to ``VENICE_BASE_URL``
            config: Complete settings to start from instead of the environment
            http_client: Shared HTTP client; the caller keeps ownership
            retry_policy: Retry transient failures with this policy
            rate_limiter: Limiter to gate requests with; may be shared
            **overrides: Any other ``ClientSettings`` field

        Raises:
            InvalidInputError: If the configuration is invalid or has no API key
        """
        self.config = _build_settings(config, api_key=api_key, base_url=base_url, **overrides)
        self.transport = Transport(self.config, http_client=http_client)
        self.retry_policy = retry_policy
        self.rate_limiter = rate_limiter

    @classmethod
    def from_settings(
        cls,
        config: Optional[ClientSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "Client":
        """Create a client with retries and rate limiting configured from settings."""
        config = _build_settings(config)
        return cls(
            config=config,
            http_client=http_client,
            retry_policy=RetryPolicy.from_settings(config),
            rate_limiter=RateLimiter(
                RateLimiterConfig(
                    auto_wait=config.rate_limit_auto_wait,
                    max_wait_time=config.rate_limit_max_wait,
                )
            ),
        )

    def _record(self, rate_limit) -> None:
        if self.rate_limiter is not None and rate_limit is not None:
            self.rate_limiter.update_from_response(rate_limit)

    async def _execute(
        self,
        description: str,
        send: Callable[[], Awaitable[R]],
    ) -> R:
        """Run one logical call through the rate limiter and retry policy."""
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        async def attempt() -> R:
            try:
                result = await send()
            except VeniceError as e:
                self._record(e.rate_limit)
                raise
            self._record(result.rate_limit)
            return result

        if self.retry_policy is None:
            return await attempt()
        return await call_with_retry(attempt, self.retry_policy, description=description)

    async def get(
        self, endpoint: str, response_model: Optional[Type[T]] = None
    ) -> TransportResult[T]:
        """Send a GET request to the API."""
        return await self._execute(
            f"GET {endpoint}", lambda: self.transport.get(endpoint, response_model)
        )

    async def get_with_query(
        self,
        endpoint: str,
        query: Mapping[str, Any],
        response_model: Optional[Type[T]] = None,
    ) -> TransportResult[T]:
        """Send a GET request with query parameters to the API."""
        return await self._execute(
            f"GET {endpoint}",
            lambda: self.transport.get_with_query(endpoint, query, response_model),
        )

    async def post(
        self, endpoint: str, body: Any, response_model: Optional[Type[T]] = None
    ) -> TransportResult[T]:
        """Send a POST request to the API."""
        return await self._execute(
            f"POST {endpoint}", lambda: self.transport.post(endpoint, body, response_model)
        )

    async def delete(
        self, endpoint: str, response_model: Optional[Type[T]] = None
    ) -> TransportResult[T]:
        """Send a DELETE request to the API."""
        return await self._execute(
            f"DELETE {endpoint}", lambda: self.transport.delete(endpoint, response_model)
        )

    async def post_multipart(
        self,
        endpoint: str,
        files: Mapping[str, Any],
        data: Optional[Mapping[str, Any]] = None,
        response_model: Optional[Type[T]] = None,
    ) -> TransportResult[T]:
        """Send a multipart POST request to the API.

        File contents should be passed as bytes so a retry can resend them.
        """
        return await self._execute(
            f"POST {endpoint}",
            lambda: self.transport.post_multipart(endpoint, files, data, response_model),
        )

    async def post_multipart_binary(
        self,
        endpoint: str,
        files: Mapping[str, Any],
        data: Optional[Mapping[str, Any]] = None,
    ) -> BinaryResult:
        """Send a multipart POST request and return the binary response."""
        return await self._execute(
            f"POST {endpoint}",
            lambda: self.transport.post_multipart_binary(endpoint, files, data),
        )

    async def post_streaming(
        self,
        endpoint: str,
        body: Any,
        chunk_model: Type[T] = ChatCompletionChunk,  # type: ignore[assignment]
        skip_invalid: bool = False,
    ) -> ChatCompletionStream:
        """POST and return a lazy stream of decoded chunks.

        Only opening the stream is retried; errors while reading it are
        raised to the consumer.
        """

        async def open_stream() -> ChatCompletionStream:
            response = await self.transport.open_stream(endpoint, body)
            return ChatCompletionStream(
                response, chunk_model=chunk_model, skip_invalid=skip_invalid
            )

        return await self._execute(f"POST {endpoint} (stream)", open_stream)

    def list_models(self, limit: Optional[int] = None, cursor: Optional[str] = None) -> Paginator[Model]:
        """Paginate over the available models."""

        async def fetch_page(params: PaginationParams):
            result = await self.get_with_query(
                MODELS_ENDPOINT, params.to_query(), ListModelsResponse
            )
            return result.data, result.rate_limit

        return Paginator(fetch_page, PaginationParams(limit=limit, cursor=cursor))

    def list_api_keys(self, limit: Optional[int] = None, cursor: Optional[str] = None) -> Paginator[ApiKey]:
        """Paginate over the account's API keys."""

        async def fetch_page(params: PaginationParams):
            result = await self.get_with_query(
                API_KEYS_ENDPOINT, params.to_query(), ListApiKeysResponse
            )
            return result.data, result.rate_limit

        return Paginator(fetch_page, PaginationParams(limit=limit, cursor=cursor))

    async def create_api_key(self, request: ApiKeyRequest) -> TransportResult[CreateApiKeyResponse]:
        """Create an API key. The secret is only returned in this response."""
        if isinstance(request, CreateApiKeyRequest):
            payload = request.to_payload()
        else:
            payload = dict(request)
        if not str(payload.get("name") or "").strip():
            raise InvalidInputError("API key name must not be empty")
        return await self.post(API_KEYS_ENDPOINT, payload, CreateApiKeyResponse)

    async def delete_api_key(self, key_id: str) -> TransportResult[DeleteApiKeyResponse]:
        if not key_id or not key_id.strip():
            raise InvalidInputError("API key id must not be empty")
        return await self.delete(f"{API_KEYS_ENDPOINT}/{key_id}", DeleteApiKeyResponse)

    async def create_chat_completion(
        self, request: ChatRequest
    ) -> TransportResult[ChatCompletionResponse]:
        """Send a non-streaming chat completion request."""
        return await self.post(
            CHAT_COMPLETIONS_ENDPOINT,
            _chat_payload(request, stream=False),
            ChatCompletionResponse,
        )

    async def stream_chat_completion(
        self, request: ChatRequest, skip_invalid: bool = False
    ) -> ChatCompletionStream[ChatCompletionChunk]:
        """Send a streaming chat completion request."""
        return await self.post_streaming(
            CHAT_COMPLETIONS_ENDPOINT,
            _chat_payload(request, stream=True),
            skip_invalid=skip_invalid,
        )

    async def generate_image(self, request: ImageRequest) -> TransportResult[ImageGenerateResponse]:
        """Generate images from a prompt; images come back base64 encoded."""
        if isinstance(request, ImageGenerateRequest):
            payload = request.to_payload()
        else:
            payload = dict(request)
        if not payload.get("model") or not payload.get("prompt"):
            raise InvalidInputError("Image generation requires a model and a prompt")
        return await self.post(IMAGE_GENERATE_ENDPOINT, payload, ImageGenerateResponse)

    async def list_styles(self) -> TransportResult[ListImageStylesResponse]:
        """List the style presets accepted by image generation."""
        return await self.get(IMAGE_STYLES_ENDPOINT, ListImageStylesResponse)

    async def upscale_image(
        self,
        image: bytes,
        scale: int = 2,
        filename: str = "image.png",
    ) -> BinaryResult:
        """Upscale an image and return the resulting image bytes and MIME type."""
        if not image:
            raise InvalidInputError("Image must not be empty")
        if scale not in (2, 4):
            raise InvalidInputError(f"Unsupported upscale factor: {scale}")
        return await self.post_multipart_binary(
            IMAGE_UPSCALE_ENDPOINT,
            files={"image": (filename, image)},
            data={"scale": str(scale)},
        )

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
