"""Image generation and style schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageGenerateRequest(BaseModel):
    """Request body for ``image/generate``.

    Parameters not modelled here can be passed through ``extra``.
    """

    model: str = Field(min_length=1)
    prompt: str = Field(min_length=1)
    negative_prompt: Optional[str] = None
    style_preset: Optional[str] = None
    height: Optional[int] = Field(default=None, gt=0)
    width: Optional[int] = Field(default=None, gt=0)
    steps: Optional[int] = Field(default=None, gt=0)
    cfg_scale: Optional[float] = None
    seed: Optional[int] = None
    lora_strength: Optional[int] = None
    safe_mode: Optional[bool] = None
    return_binary: Optional[bool] = None
    hide_watermark: Optional[bool] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", exclude_none=True, exclude={"extra"})
        payload.update(self.extra)
        return payload


class ImageGenerateRequestDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    model: Optional[str] = None
    prompt: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    steps: Optional[int] = None
    seed: Optional[int] = None


class ImageGenerateTiming(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_ms: Optional[float] = None


class ImageGenerateResponse(BaseModel):
    """Generated images, base64 encoded."""

    model_config = ConfigDict(extra="allow")

    id: str
    images: List[str] = Field(default_factory=list)
    request: Optional[ImageGenerateRequestDetails] = None
    timing: Optional[ImageGenerateTiming] = None


class ImageStyle(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    sample_prompt: Optional[str] = None
    sample_image_url: Optional[str] = None
    supported_models: List[str] = Field(default_factory=list)


class ListImageStylesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[ImageStyle] = Field(default_factory=list)
    object: Optional[str] = None

    @field_validator("data", mode="before")
    @classmethod
    def accept_style_names(cls, v: Any) -> Any:
        # Some deployments return bare style names instead of objects
        if isinstance(v, list):
            return [{"id": item, "name": item} if isinstance(item, str) else item for item in v]
        return v

    @property
    def names(self) -> List[str]:
        return [style.name or style.id for style in self.data]
