"""Observability for outbound calls: tracing, status translation, export, logging.

Quick Start:
    >>> from callscope.runtime.observability import configure_tracing, get_tracer, SpanKind
    >>>
    >>> configure_tracing(service_name="my-service", exporter="console")
    >>> tracer = get_tracer()
    >>> with tracer.span("storage/get", kind=SpanKind.CLIENT) as span:
    ...     if span.is_recording:
    ...         span.set_attribute("path", "/container/blob")
    ...     span.set_status(status_from_code(fetch()))
    >>>
    >>> tracer.shutdown()  # drains pending spans before stopping the exporter
"""

# tracing must load before exporter (exporter depends on tracing.status)
from .tracing import (
    AlwaysSample,
    AttributeValue,
    Completed,
    FaultCategory,
    Faulted,
    NeverSample,
    Outcome,
    ProbabilitySampler,
    Sampler,
    ScopedSpan,
    Span,
    SpanContext,
    SpanEvent,
    SpanKind,
    Status,
    StatusCode,
    TraceContext,
    Tracer,
    classify_fault,
    code_name,
    configure_tracing,
    current_span,
    get_tracer,
    sampler_from_rate,
    status_from_code,
    status_from_exception,
    to_status,
    trace_context,
    traced,
    tracer_from_settings,
    use_span,
)
from .exporter import (
    BatchExporter,
    CompositeExporter,
    ConsoleExporter,
    Exporter,
    InMemoryExporter,
    JsonExporter,
    NoOpExporter,
    OTLPBridge,
    create_otlp_exporter,
)
from .logging import JsonFormatter, TraceContextFilter, configure_logging

__all__ = [
    # Context
    "SpanContext", "TraceContext", "current_span", "trace_context", "use_span",
    # Status
    "Status", "StatusCode", "Outcome", "Completed", "Faulted", "FaultCategory",
    "classify_fault", "code_name", "to_status", "status_from_code", "status_from_exception",
    # Span
    "AttributeValue", "Span", "SpanEvent", "SpanKind",
    # Sampling
    "Sampler", "AlwaysSample", "NeverSample", "ProbabilitySampler", "sampler_from_rate",
    # Tracer
    "ScopedSpan", "Tracer", "configure_tracing", "get_tracer", "traced", "tracer_from_settings",
    # Exporters
    "Exporter", "ConsoleExporter", "JsonExporter", "InMemoryExporter", "NoOpExporter",
    "BatchExporter", "CompositeExporter", "OTLPBridge", "create_otlp_exporter",
    # Logging
    "JsonFormatter", "TraceContextFilter", "configure_logging",
]
