"""Model and API key resources.

Each paged list response implements the pagination capability interface
(``get_items()``, ``has_more``, ``next_cursor``) so one paginator serves
every resource.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Model(BaseModel):
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    id: str
    object: str = "model"
    owned_by: Optional[str] = None
    type: Optional[str] = None
    context_size: Optional[int] = None
    supports_streaming: bool = False


class ListModelsResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[Model] = Field(default_factory=list)
    object: Optional[str] = None
    has_more: bool = False
    next_cursor: Optional[str] = None

    def get_items(self) -> List[Model]:
        return list(self.data)


class ApiKey(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    object: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    api_key_type: Optional[str] = Field(default=None, alias="apiKeyType")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    last_used_at: Optional[str] = Field(default=None, alias="lastUsedAt")


class ListApiKeysResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[ApiKey] = Field(default_factory=list)
    object: Optional[str] = None
    has_more: bool = False
    next_cursor: Optional[str] = None

    def get_items(self) -> List[ApiKey]:
        return list(self.data)


class DeleteApiKeyResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    deleted: bool
    id: str
    object: Optional[str] = None


class CreateApiKeyRateLimits(BaseModel):
    model_config = ConfigDict(extra="allow")

    requests_per_minute: Optional[int] = Field(default=None, ge=0)
    requests_per_day: Optional[int] = Field(default=None, ge=0)
    tokens_per_minute: Optional[int] = Field(default=None, ge=0)


class CreateApiKeyRequest(BaseModel):
    """Request body for creating an API key."""

    name: str = Field(min_length=1)
    rate_limits: Optional[CreateApiKeyRateLimits] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", exclude_none=True, exclude={"extra"})
        payload.update(self.extra)
        return payload


class CreatedApiKey(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    object: Optional[str] = None
    name: Optional[str] = None
    created: Optional[int] = None
    # The secret is only ever returned once, at creation
    key: str
    rate_limits: Optional[CreateApiKeyRateLimits] = None


class CreateApiKeyResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: CreatedApiKey
    object: Optional[str] = None
