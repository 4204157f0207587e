"""Package exceptions.

Instrumentation itself never raises on behalf of the wrapped call: faults from
the transport propagate unchanged. These types cover misuse of callscope's own
objects.
"""

from __future__ import annotations


class CallscopeError(Exception):
    """Base class for errors raised by callscope itself."""


class TransportError(CallscopeError):
    """Transport used outside its lifecycle (e.g. after `aclose()`)."""


class ConfigurationError(CallscopeError, ValueError):
    """Invalid tracing or client configuration."""
