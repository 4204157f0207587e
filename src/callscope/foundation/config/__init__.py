"""Configuration management using pydantic-settings."""

from .settings import (
    CallscopeSettings,
    HttpSettings,
    LoggingSettings,
    TracingSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CallscopeSettings",
    "HttpSettings",
    "LoggingSettings",
    "TracingSettings",
    "clear_settings_cache",
    "get_settings",
]
