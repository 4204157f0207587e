"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from callscope.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.tracing.sample_rate
    1.0

    # Or with environment variables:
    # CALLSCOPE_TRACING_SAMPLE_RATE=0.25
    # CALLSCOPE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CALLSCOPE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"
    include_trace_ids: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class HttpSettings(BaseSettings):
    """Outbound HTTP client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CALLSCOPE_HTTP_",
        extra="ignore",
    )

    endpoint: str = Field(default="https://azure.microsoft.com", description="Base URL of the remote service")
    timeout: PositiveFloat = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = True
    follow_redirects: bool = True
    user_agent: str = "callscope-http/1.0"


class TracingSettings(BaseSettings):
    """Tracing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CALLSCOPE_TRACING_",
        extra="ignore",
    )

    enabled: bool = True
    service_name: str = "callscope"
    exporter: Literal["console", "json", "otlp", "memory", "none"] = "console"
    otlp_endpoint: str | None = Field(
        default=None,
        description="OpenTelemetry collector endpoint",
    )
    sample_rate: Annotated[float, Field(ge=0.0, le=1.0)] = 1.0
    export_batch_size: PositiveInt = 100
    flush_timeout: PositiveFloat = Field(default=30.0, description="Max seconds to drain spans on shutdown")


class CallscopeSettings(BaseSettings):
    """Root settings.

    Loads configuration from environment variables with CALLSCOPE_ prefix.

    Example environment variables:
        CALLSCOPE_LOG_FORMAT=json
        CALLSCOPE_HTTP_ENDPOINT=https://storage.example.com
        CALLSCOPE_TRACING_EXPORTER=otlp
    """

    model_config = SettingsConfigDict(
        env_prefix="CALLSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    tracing: TracingSettings = Field(default_factory=TracingSettings)


@lru_cache(maxsize=1)
def get_settings() -> CallscopeSettings:
    """Get the global settings instance (cached)."""
    return CallscopeSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next `get_settings()` re-reads the environment."""
    get_settings.cache_clear()
