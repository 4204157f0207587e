"""Error types and shared type aliases."""

from .errors import CallscopeError, ConfigurationError, TransportError
from .types import AttributePrimitive, JsonDict

__all__ = [
    "CallscopeError", "ConfigurationError", "TransportError",
    "AttributePrimitive", "JsonDict",
]
