"""Chat completion request and streaming chunk schemas."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(str, Enum):
    """Chat message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    FUNCTION = "function"
    TOOL = "tool"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str
    name: Optional[str] = None


class ChatCompletionRequest(BaseModel):
    """Request body for ``chat/completions``.

    Vendor-specific parameters not modelled here can be passed through
    ``extra``; they are merged into the serialized body.
    """

    model: str
    messages: List[ChatMessage] = Field(min_length=1)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    stream: Optional[bool] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON body sent to the API, omitting unset fields."""
        payload = self.model_dump(mode="json", exclude_none=True, exclude={"extra"})
        payload.update(self.extra)
        return payload


class ChatCompletionChunkDelta(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Optional[str] = None
    content: Optional[str] = None


class ChatCompletionChunkChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    delta: ChatCompletionChunkDelta = Field(default_factory=ChatCompletionChunkDelta)
    finish_reason: Optional[str] = None


class ChatCompletionChunk(BaseModel):
    """One decoded unit of a streaming chat completion."""

    model_config = ConfigDict(extra="allow")

    id: str
    object: str = "chat.completion.chunk"
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[ChatCompletionChunkChoice] = Field(default_factory=list)

    @property
    def content(self) -> str:
        """Concatenated delta content of all choices in this chunk."""
        return "".join(choice.delta.content or "" for choice in self.choices)


class ChatCompletionMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: Optional[str] = None


class ChatCompletionChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: ChatCompletionMessage
    finish_reason: Optional[str] = None


class ChatCompletionUsage(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    """A complete, non-streaming chat completion."""

    model_config = ConfigDict(extra="allow")

    id: str
    object: str = "chat.completion"
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[ChatCompletionChoice] = Field(default_factory=list)
    usage: Optional[ChatCompletionUsage] = None

    @property
    def content(self) -> str:
        """Message content of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""
