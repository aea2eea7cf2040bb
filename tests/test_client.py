"""Integration tests for the client against a mocked API."""

import asyncio
import json
import time
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from venice_client import (
    ApiError,
    Client,
    ClientSettings,
    InvalidInputError,
    ParseError,
    RateLimitExceededError,
    RateLimiter,
    RateLimiterConfig,
    RequestTimeoutError,
    RetryPolicy,
)
from venice_client.models.chat import ChatCompletionRequest, ChatCompletionResponse, ChatMessage
from venice_client.models.image import ImageGenerateRequest
from venice_client.models.resources import CreateApiKeyRateLimits, CreateApiKeyRequest

BASE_URL = "https://api.test.local/api/v1"


def make_client(**kwargs) -> Client:
    return Client(api_key="test-key", base_url=BASE_URL, **kwargs)


class TestClientConstruction:
    """Test configuration handling."""

    def test_invalid_base_url(self):
        """Test configuration errors surface as InvalidInputError."""
        with pytest.raises(InvalidInputError):
            Client(api_key="k", base_url="not-a-url")

    def test_missing_api_key(self, monkeypatch):
        """Test a client without API key cannot be built."""
        monkeypatch.delenv("VENICE_API_KEY", raising=False)
        with pytest.raises(InvalidInputError):
            Client(base_url=BASE_URL)

    def test_overrides_apply_on_top_of_config(self):
        """Test keyword overrides replace fields of a supplied config."""
        config = ClientSettings(api_key="k", base_url=BASE_URL, max_retries=1)

        client = Client(config=config, max_retries=7)

        assert client.config.max_retries == 7
        assert client.config.base_url == BASE_URL
        assert config.max_retries == 1

    def test_from_settings_enables_middleware(self):
        """Test from_settings builds a retry policy and rate limiter."""
        config = ClientSettings(
            api_key="k", base_url=BASE_URL, max_retries=2, rate_limit_auto_wait=False
        )

        client = Client.from_settings(config)

        assert client.retry_policy.max_retries == 2
        assert client.rate_limiter.config.auto_wait is False

    def test_plain_client_has_no_middleware(self):
        """Test retries and rate limiting are opt-in."""
        client = make_client()

        assert client.retry_policy is None
        assert client.rate_limiter is None


class TestClientRequests:
    """Test requests through the full stack."""

    @pytest.mark.asyncio
    async def test_list_models_all_pages(self, respx_mock):
        """Test pagination follows cursors through the API."""
        route = respx_mock.get(f"{BASE_URL}/models").mock(
            side_effect=[
                httpx.Response(
                    200,
                    json={"data": [{"id": "m1"}, {"id": "m2"}], "has_more": True, "next_cursor": "p2"},
                ),
                httpx.Response(200, json={"data": [{"id": "m3"}], "has_more": False}),
            ]
        )

        async with make_client() as client:
            models = await client.list_models(limit=2).all_pages()

        assert [m.id for m in models] == ["m1", "m2", "m3"]
        assert route.calls[0].request.url.params["limit"] == "2"
        assert "cursor" not in route.calls[0].request.url.params
        assert route.calls[1].request.url.params["cursor"] == "p2"

    @pytest.mark.asyncio
    async def test_list_api_keys(self, respx_mock):
        """Test API key listing maps aliased fields."""
        respx_mock.get(f"{BASE_URL}/api_keys").mock(
            return_value=httpx.Response(
                200,
                json={
                    "object": "list",
                    "data": [{"id": "k1", "apiKeyType": "ADMIN", "createdAt": "2024-01-01"}],
                },
            )
        )

        async with make_client() as client:
            keys = await client.list_api_keys().all_pages()

        assert keys[0].id == "k1"
        assert keys[0].api_key_type == "ADMIN"

    @pytest.mark.asyncio
    async def test_delete_api_key(self, respx_mock):
        """Test deleting an API key by id."""
        respx_mock.delete(f"{BASE_URL}/api_keys/k1").mock(
            return_value=httpx.Response(
                200, json={"deleted": True, "id": "k1", "object": "api_key"}
            )
        )

        async with make_client() as client:
            result = await client.delete_api_key("k1")

            assert result.data.deleted is True
            assert result.data.id == "k1"
            assert result.data.object == "api_key"
            with pytest.raises(InvalidInputError):
                await client.delete_api_key(" ")

    @pytest.mark.asyncio
    async def test_delete_api_key_without_confirmation_is_parse_error(self, respx_mock):
        """Test a delete response missing the deleted flag is rejected."""
        respx_mock.delete(f"{BASE_URL}/api_keys/k1").mock(
            return_value=httpx.Response(200, json={"success": True})
        )

        async with make_client() as client:
            with pytest.raises(ParseError):
                await client.delete_api_key("k1")

    @pytest.mark.asyncio
    async def test_create_api_key(self, respx_mock):
        """Test creating an API key returns the one-time secret."""
        route = respx_mock.post(f"{BASE_URL}/api_keys").mock(
            return_value=httpx.Response(
                200,
                json={
                    "object": "api_key",
                    "data": {
                        "id": "k2",
                        "object": "api_key",
                        "name": "ci",
                        "created": 1700000000,
                        "key": "vk-secret",
                        "rate_limits": {"requests_per_minute": 30},
                    },
                },
            )
        )
        request = CreateApiKeyRequest(
            name="ci", rate_limits=CreateApiKeyRateLimits(requests_per_minute=30)
        )

        async with make_client() as client:
            result = await client.create_api_key(request)
            with pytest.raises(InvalidInputError):
                await client.create_api_key({"name": " "})

        assert result.data.data.key == "vk-secret"
        assert result.data.data.rate_limits.requests_per_minute == 30
        sent = json.loads(route.calls.last.request.content)
        assert sent == {"name": "ci", "rate_limits": {"requests_per_minute": 30}}

    @pytest.mark.asyncio
    async def test_create_chat_completion(self, respx_mock):
        """Test a chat completion is parsed into a typed response."""
        route = respx_mock.post(f"{BASE_URL}/chat/completions").mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": "chat-1",
                    "object": "chat.completion",
                    "created": 1700000000,
                    "model": "llama-3.3-70b",
                    "choices": [
                        {
                            "index": 0,
                            "message": {"role": "assistant", "content": "Hello!"},
                            "finish_reason": "stop",
                        }
                    ],
                    "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
                },
            )
        )
        request = ChatCompletionRequest(
            model="llama-3.3-70b", messages=[ChatMessage(role="user", content="Hi")]
        )

        async with make_client() as client:
            result = await client.create_chat_completion(request)

        assert isinstance(result.data, ChatCompletionResponse)
        assert result.data.content == "Hello!"
        assert result.data.choices[0].finish_reason == "stop"
        assert result.data.usage.total_tokens == 7
        assert json.loads(route.calls.last.request.content)["stream"] is False

    @pytest.mark.asyncio
    async def test_generate_image(self, respx_mock):
        """Test image generation sends only the set fields and parses images."""
        route = respx_mock.post(f"{BASE_URL}/image/generate").mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": "img-1",
                    "images": ["aGVsbG8="],
                    "request": {"model": "fluently-xl", "prompt": "a cat", "width": 512},
                    "timing": {"total_ms": 1234.5},
                },
            )
        )
        request = ImageGenerateRequest(model="fluently-xl", prompt="a cat", width=512)

        async with make_client() as client:
            result = await client.generate_image(request)
            with pytest.raises(InvalidInputError):
                await client.generate_image({"model": "fluently-xl", "prompt": ""})

        assert result.data.images == ["aGVsbG8="]
        assert result.data.request.width == 512
        assert result.data.timing.total_ms == 1234.5
        sent = json.loads(route.calls.last.request.content)
        assert sent == {"model": "fluently-xl", "prompt": "a cat", "width": 512}

    @pytest.mark.asyncio
    async def test_list_styles(self, respx_mock):
        """Test style listing accepts both style objects and bare names."""
        respx_mock.get(f"{BASE_URL}/image/styles").mock(
            return_value=httpx.Response(
                200,
                json={"object": "list", "data": ["Anime", {"id": "3d", "name": "3D Model"}]},
            )
        )

        async with make_client() as client:
            result = await client.list_styles()

        assert result.data.names == ["Anime", "3D Model"]
        assert result.data.data[1].id == "3d"

    @pytest.mark.asyncio
    async def test_stream_chat_completion(self, respx_mock):
        """Test a streaming chat completion yields decoded chunks."""
        body = (
            b'data: {"id": "c1", "choices": [{"index": 0, "delta": {"content": "Hi"}}]}\n\n'
            b'data: {"id": "c2", "choices": [{"index": 0, "delta": {"content": " there"}}]}\n\n'
            b"data: [DONE]\n\n"
        )
        route = respx_mock.post(f"{BASE_URL}/chat/completions").mock(
            return_value=httpx.Response(
                200,
                content=body,
                headers={"content-type": "text/event-stream", "x-ratelimit-remaining-requests": "9"},
            )
        )
        request = ChatCompletionRequest(
            model="llama-3.3-70b", messages=[ChatMessage(role="user", content="Hello")]
        )

        async with make_client() as client:
            async with await client.stream_chat_completion(request) as stream:
                text = "".join([chunk.content async for chunk in stream])

        assert text == "Hi there"
        assert stream.rate_limit.remaining_requests == 9
        sent = route.calls.last.request.content
        assert b'"stream":true' in sent.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_create_chat_completion_requires_messages(self):
        """Test chat requests without messages are rejected locally."""
        async with make_client() as client:
            with pytest.raises(InvalidInputError):
                await client.create_chat_completion({"model": "m", "messages": []})

    @pytest.mark.asyncio
    async def test_upscale_image(self, respx_mock):
        """Test image upscaling returns bytes and MIME type."""
        respx_mock.post(f"{BASE_URL}/image/upscale").mock(
            return_value=httpx.Response(200, content=b"PNGDATA", headers={"content-type": "image/png"})
        )

        async with make_client() as client:
            result = await client.upscale_image(b"raw-image", scale=4)

        assert result.content == b"PNGDATA"
        assert result.mime_type == "image/png"


class TestClientMiddleware:
    """Test rate limiting and retries wired into the client."""

    @pytest.mark.asyncio
    async def test_retry_on_503(self, respx_mock):
        """Test a 5xx response is retried until success."""
        route = respx_mock.get(f"{BASE_URL}/models").mock(
            side_effect=[
                httpx.Response(503, json={"error": "unavailable"}),
                httpx.Response(200, json={"data": [{"id": "m1"}]}),
            ]
        )

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            async with make_client(retry_policy=RetryPolicy(jitter=False)) as client:
                models = await client.list_models().all_pages()

        assert [m.id for m in models] == ["m1"]
        assert route.call_count == 2
        mock_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_no_retry_on_4xx(self, respx_mock):
        """Test client errors are raised after one attempt."""
        route = respx_mock.get(f"{BASE_URL}/models").mock(
            return_value=httpx.Response(400, json={"error": {"code": "bad", "message": "no"}})
        )

        async with make_client(retry_policy=RetryPolicy()) as client:
            with pytest.raises(ApiError):
                await client.get("models")

        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_limiter_updated_from_success(self, respx_mock):
        """Test every response's headers feed the rate limiter."""
        respx_mock.get(f"{BASE_URL}/models").mock(
            return_value=httpx.Response(
                200,
                json={"data": []},
                headers={"x-ratelimit-limit-requests": "50", "x-ratelimit-remaining-requests": "49"},
            )
        )
        limiter = RateLimiter()

        async with make_client(rate_limiter=limiter) as client:
            await client.get("models")

        assert limiter.max_requests == 50
        assert limiter.remaining_requests == 49

    @pytest.mark.asyncio
    async def test_429_blocks_next_call_locally(self, respx_mock):
        """Test a 429 updates the limiter so the next call is refused locally."""
        route = respx_mock.get(f"{BASE_URL}/models").mock(
            return_value=httpx.Response(
                429,
                json={"error": "Too many requests"},
                headers={
                    "x-ratelimit-remaining-requests": "0",
                    "x-ratelimit-reset-requests": str(int(time.time()) + 3600),
                },
            )
        )
        limiter = RateLimiter(RateLimiterConfig(auto_wait=False))

        async with make_client(rate_limiter=limiter) as client:
            with pytest.raises(RateLimitExceededError) as remote:
                await client.get("models")
            with pytest.raises(RateLimitExceededError) as local:
                await client.get("models")

        assert remote.value.origin == "remote"
        assert local.value.origin == "local"
        assert route.call_count == 1
        assert limiter.is_rate_limited()

    @pytest.mark.asyncio
    async def test_shared_limiter_across_clients(self, respx_mock):
        """Test two clients sharing one limiter observe each other's responses."""
        respx_mock.get(f"{BASE_URL}/models").mock(
            return_value=httpx.Response(
                200, json={"data": []}, headers={"x-ratelimit-remaining-tokens": "0"}
            )
        )
        shared = RateLimiter(RateLimiterConfig(auto_wait=False))

        async with make_client(rate_limiter=shared) as first, make_client(rate_limiter=shared) as second:
            await first.get("models")
            with pytest.raises(RateLimitExceededError):
                await second.get("models")

    @pytest.mark.asyncio
    async def test_request_timeout_leaves_limiter_untouched(self):
        """Test a request slower than request_timeout fails without updating the limiter."""

        async def slow_handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={}, headers={"x-ratelimit-remaining-requests": "0"})

        limiter = RateLimiter()
        async with httpx.AsyncClient(transport=httpx.MockTransport(slow_handler)) as http_client:
            async with make_client(
                http_client=http_client, request_timeout=0.05, rate_limiter=limiter
            ) as client:
                with pytest.raises(RequestTimeoutError) as exc_info:
                    await client.get("models")

        assert exc_info.value.rate_limit is None
        assert exc_info.value.retryable
        assert limiter.remaining_requests == 1
        assert limiter.max_requests == 0
        assert limiter.reset_time_requests == 0.0
