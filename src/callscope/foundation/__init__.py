"""Foundation - configuration, errors and shared types."""

from __future__ import annotations

__all__ = [
    # Errors
    "CallscopeError", "ConfigurationError", "TransportError",
    "AttributePrimitive", "JsonDict",
    # Config
    "CallscopeSettings", "get_settings", "clear_settings_cache",
    "LoggingSettings", "HttpSettings", "TracingSettings",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("CallscopeError", "ConfigurationError", "TransportError",
                "AttributePrimitive", "JsonDict"):
        from . import errors
        return getattr(errors, name)
    
    if name in ("CallscopeSettings", "get_settings", "clear_settings_cache",
                "LoggingSettings", "HttpSettings", "TracingSettings"):
        from . import config
        return getattr(config, name)
    
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
