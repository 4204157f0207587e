"""callscope - instrumented outbound calls.

Wraps client operations in trace spans, enriches only sampled spans, and
translates transport outcomes (response codes, exceptions) into one
normalized status taxonomy for export.

Quick Start:
    >>> from callscope import SampleClient, configure_tracing, SpanKind
    >>>
    >>> tracer = configure_tracing(service_name="my-service", exporter="console")
    >>> client = SampleClient("https://azure.microsoft.com")
    >>> with tracer.span("incoming request", kind=SpanKind.SERVER):
    ...     body = await client.get("/product-categories/compute")
    >>> tracer.shutdown()

Status Translation:
    >>> from callscope import status_from_code, StatusCode
    >>> status_from_code(503).code is StatusCode.UNAVAILABLE
    True
"""

from __future__ import annotations

__version__ = "0.1.0"

from .clients import FetchResponse, HttpxTransport, SampleClient, TracingTransport, Transport
from .foundation.config import CallscopeSettings, get_settings
from .foundation.errors import CallscopeError, ConfigurationError, TransportError
from .runtime.concurrency import TraceContextExecutor, run_in_context
from .runtime.observability import (
    AlwaysSample,
    AttributeValue,
    BatchExporter,
    Completed,
    ConsoleExporter,
    Exporter,
    FaultCategory,
    Faulted,
    InMemoryExporter,
    JsonExporter,
    NeverSample,
    NoOpExporter,
    Outcome,
    ProbabilitySampler,
    Sampler,
    Span,
    SpanContext,
    SpanKind,
    Status,
    StatusCode,
    TraceContext,
    Tracer,
    configure_logging,
    configure_tracing,
    current_span,
    get_tracer,
    status_from_code,
    status_from_exception,
    to_status,
    traced,
    use_span,
)

__all__ = [
    "__version__",
    # Clients
    "SampleClient", "Transport", "HttpxTransport", "TracingTransport", "FetchResponse",
    # Tracing
    "Tracer", "get_tracer", "configure_tracing", "traced",
    "Span", "SpanKind", "SpanContext", "TraceContext", "AttributeValue", "current_span", "use_span",
    "Sampler", "AlwaysSample", "NeverSample", "ProbabilitySampler",
    # Status
    "Status", "StatusCode", "Outcome", "Completed", "Faulted", "FaultCategory",
    "to_status", "status_from_code", "status_from_exception",
    # Export
    "Exporter", "ConsoleExporter", "JsonExporter", "InMemoryExporter", "NoOpExporter", "BatchExporter",
    # Concurrency
    "TraceContextExecutor", "run_in_context",
    # Config / logging / errors
    "CallscopeSettings", "get_settings", "configure_logging",
    "CallscopeError", "ConfigurationError", "TransportError",
]
