"""Runtime - tracing, export and context propagation.

Contains: observability, concurrency.
"""

from __future__ import annotations

__all__ = [
    # Observability
    "SpanContext", "TraceContext", "current_span", "trace_context", "use_span",
    "Status", "StatusCode", "Outcome", "Completed", "Faulted", "FaultCategory",
    "to_status", "status_from_code", "status_from_exception",
    "AttributeValue", "Span", "SpanEvent", "SpanKind",
    "Sampler", "AlwaysSample", "NeverSample", "ProbabilitySampler",
    "Tracer", "get_tracer", "configure_tracing", "traced",
    "Exporter", "ConsoleExporter", "JsonExporter", "InMemoryExporter", "NoOpExporter",
    "BatchExporter", "CompositeExporter", "OTLPBridge", "create_otlp_exporter",
    "configure_logging",
    # Concurrency
    "TraceContextExecutor", "run_in_context",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("TraceContextExecutor", "run_in_context"):
        from . import concurrency
        return getattr(concurrency, name)
    
    if name in __all__:
        from . import observability
        return getattr(observability, name)
    
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
