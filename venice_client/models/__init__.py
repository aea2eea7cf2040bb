"""Data models shared across the client library."""

from venice_client.models.chat import (
    ChatCompletionChoice,
    ChatCompletionChunk,
    ChatCompletionChunkChoice,
    ChatCompletionChunkDelta,
    ChatCompletionMessage,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionUsage,
    ChatMessage,
    ChatRole,
)
from venice_client.models.image import (
    ImageGenerateRequest,
    ImageGenerateResponse,
    ImageStyle,
    ListImageStylesResponse,
)
from venice_client.models.rate_limit import RateLimitSnapshot, parse_reset_value
from venice_client.models.resources import (
    ApiKey,
    CreateApiKeyRateLimits,
    CreateApiKeyRequest,
    CreateApiKeyResponse,
    CreatedApiKey,
    DeleteApiKeyResponse,
    ListApiKeysResponse,
    ListModelsResponse,
    Model,
)

__all__ = [
    "ApiKey",
    "ChatCompletionChoice",
    "ChatCompletionChunk",
    "ChatCompletionChunkChoice",
    "ChatCompletionChunkDelta",
    "ChatCompletionMessage",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatCompletionUsage",
    "ChatMessage",
    "ChatRole",
    "CreateApiKeyRateLimits",
    "CreateApiKeyRequest",
    "CreateApiKeyResponse",
    "CreatedApiKey",
    "DeleteApiKeyResponse",
    "ImageGenerateRequest",
    "ImageGenerateResponse",
    "ImageStyle",
    "ListApiKeysResponse",
    "ListImageStylesResponse",
    "ListModelsResponse",
    "Model",
    "RateLimitSnapshot",
    "parse_reset_value",
]
