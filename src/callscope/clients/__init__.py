"""Instrumented clients and the transports they wrap."""

from .interceptor import TracingTransport, add_request_attributes, span_name
from .sample import SampleClient
from .transport import FetchResponse, HttpxTransport, Transport

__all__ = [
    "FetchResponse",
    "HttpxTransport",
    "SampleClient",
    "TracingTransport",
    "Transport",
    "add_request_attributes",
    "span_name",
]
