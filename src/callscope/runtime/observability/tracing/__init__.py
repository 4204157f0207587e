"""Tracing module: spans, status translation, context and tracer."""

from .context import SpanContext, TraceContext, current_span, trace_context, use_span
from .status import (
    Completed,
    FaultCategory,
    Faulted,
    Outcome,
    Status,
    StatusCode,
    classify_fault,
    code_name,
    status_from_code,
    status_from_exception,
    to_status,
)
from .span import AttributeValue, Span, SpanEvent, SpanKind
from .sampler import AlwaysSample, NeverSample, ProbabilitySampler, Sampler, sampler_from_rate
from .tracer import ScopedSpan, Tracer, configure_tracing, get_tracer, traced, tracer_from_settings

__all__ = [
    # Context
    "SpanContext",
    "TraceContext",
    "current_span",
    "trace_context",
    "use_span",
    # Status
    "Status",
    "StatusCode",
    "Outcome",
    "Completed",
    "Faulted",
    "FaultCategory",
    "classify_fault",
    "code_name",
    "to_status",
    "status_from_code",
    "status_from_exception",
    # Span
    "AttributeValue",
    "Span",
    "SpanEvent",
    "SpanKind",
    # Sampling
    "Sampler",
    "AlwaysSample",
    "NeverSample",
    "ProbabilitySampler",
    "sampler_from_rate",
    # Tracer
    "ScopedSpan",
    "Tracer",
    "configure_tracing",
    "get_tracer",
    "traced",
    "tracer_from_settings",
]
