from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.venice.ai/api/v1"


class ClientSettings(BaseSettings):
    """Client settings loaded from environment variables.

    Every field can be set through a ``VENICE_``-prefixed environment
    variable (e.g. ``VENICE_API_KEY``). Instances are frozen so a single
    configuration can be shared across concurrent calls.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL

    # Extra headers sent with every request
    custom_headers: Dict[str, str] = Field(default_factory=dict)

    # HTTP client connection pool settings
    timeout: float = 60.0  # Default timeout for all operations
    connect_timeout: float = 10.0  # Time to establish connection
    read_timeout: float = 60.0  # Time to read response data
    write_timeout: float = 10.0  # Time to send request data
    pool_timeout: float = 5.0  # Time to acquire connection from pool
    keepalive_expiry: float = 30.0
    max_connections: int = 100
    max_keepalive_connections: int = 20

    # Overall deadline for one request, on top of the httpx timeouts
    request_timeout: Optional[float] = None

    # Retry settings
    max_retries: int = 3
    retry_initial_delay: float = 0.5
    retry_max_delay: float = 10.0
    retry_backoff_factor: float = 2.0
    retry_jitter: bool = True

    # Rate limiter settings
    rate_limit_auto_wait: bool = True
    rate_limit_max_wait: float = 60.0

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the base URL carries a scheme."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator(
        "timeout",
        "connect_timeout",
        "read_timeout",
        "write_timeout",
        "pool_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must not be negative")
        return v

    @field_validator(
        "retry_initial_delay",
        "retry_max_delay",
        "rate_limit_max_wait",
    )
    @classmethod
    def validate_delay_non_negative(cls, v: float) -> float:
        """Validate delay values are not negative."""
        if v < 0:
            raise ValueError("Delay values must not be negative")
        return v

    @field_validator("retry_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError("retry_backoff_factor must be at least 1.0")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: Any) -> str:
        v = str(v).lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(
        env_prefix="VENICE_", extra="ignore", frozen=True
    )


# Global settings instance
settings = ClientSettings()
