"""
Configuration settings for toolchat.

Settings come from environment variables prefixed with ``TOOLCHAT_``, then a
``.env`` file, then the defaults below.
"""

from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.client.auth import DEFAULT_AUTH_URL, DEFAULT_SCOPE
from ..core.client.transport import DEFAULT_BASE_URL
from ..core.client.turn import CallConvention

_MASK = "***masked***"
_SECRET_FIELDS = ("credentials", "access_token")


class ToolChatSettings(BaseSettings):
    """
    Main configuration settings for toolchat.

    Settings are loaded from multiple sources in order of preference:
    1. Environment variables (prefixed with TOOLCHAT_)
    2. The .env file
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Authentication
    credentials: Optional[str] = Field(
        default=None,
        description="Base64 authorization data exchanged for a bearer token"
    )

    access_token: Optional[str] = Field(
        default=None,
        description="Pre-issued bearer token; skips the OAuth exchange"
    )

    # Endpoints
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Chat-completion endpoint base URL"
    )

    auth_url: str = Field(
        default=DEFAULT_AUTH_URL,
        description="OAuth token endpoint"
    )

    scope: str = Field(
        default=DEFAULT_SCOPE,
        description="OAuth scope"
    )

    # Model Configuration
    model: str = Field(
        default="GigaChat",
        description="Model name"
    )

    temperature: float = Field(
        default=0.7,
        description="Temperature for response generation",
        ge=0.0,
        le=2.0
    )

    max_tokens: int = Field(
        default=1024,
        description="Maximum tokens for responses",
        gt=0
    )

    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
        gt=0
    )

    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates of both endpoints"
    )

    # Function calling
    max_function_calls: int = Field(
        default=5,
        description="Maximum tool invocations per conversation",
        ge=0
    )

    call_convention: CallConvention = Field(
        default=CallConvention.INLINE_MARKER,
        description="How function calls are offered to and read from the model"
    )

    # Streaming
    stream_chunk_size: int = Field(
        default=5,
        description="Characters per streamed chunk",
        gt=0
    )

    stream_chunk_delay: float = Field(
        default=0.05,
        description="Seconds between streamed chunks",
        ge=0.0
    )

    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {', '.join(sorted(valid_levels))}")
        return v_upper

    @field_validator("call_convention", mode="before")
    @classmethod
    def validate_call_convention(cls, v: Any) -> Any:
        """Accept convention names case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    @property
    def is_configured(self) -> bool:
        """Check if a token can be obtained."""
        return bool(self.access_token or self.credentials)

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, excluding sensitive data."""
        data = self.model_dump(mode="json")
        # Mask sensitive data
        for name in _SECRET_FIELDS:
            if data.get(name):
                data[name] = _MASK
        return data


def get_settings(**overrides: Any) -> ToolChatSettings:
    """Get the current toolchat settings, with optional explicit overrides."""
    return ToolChatSettings(**overrides)
