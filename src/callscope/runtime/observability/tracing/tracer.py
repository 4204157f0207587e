"""Tracer: scoped span lifecycle with guaranteed release.

Uses context managers so every exit path (normal return, early return,
propagated fault, cancellation) closes the span exactly once and restores the
previously active span.

    >>> tracer = Tracer(service_name="sample", exporter=InMemoryExporter())
    >>> with tracer.span("incoming request", kind=SpanKind.SERVER):
    ...     with tracer.span("sample.client/get", kind=SpanKind.CLIENT) as span:
    ...         if span.is_recording:
    ...             span.set_attribute("path", "/compute")
    ...         span.set_status(status_from_code(200))
"""

from __future__ import annotations

import inspect
import logging
from contextlib import AbstractContextManager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from functools import wraps
from typing import TYPE_CHECKING, Callable, ParamSpec, TypeVar

from callscope.foundation.errors import AttributePrimitive, ConfigurationError

from ..exporter import ConsoleExporter, Exporter, NoOpExporter
from .context import SpanContext, TraceContext, current_span, use_span
from .sampler import AlwaysSample, Sampler
from .span import AttributeValue, Span, SpanKind
from .status import Status, status_from_exception

if TYPE_CHECKING:
    from types import TracebackType

    from callscope.foundation.config import TracingSettings

P = ParamSpec("P")
T = TypeVar("T")

Attributes = dict[str, AttributePrimitive | AttributeValue]

logger = logging.getLogger("callscope.tracing")

# Global tracer instance
_tracer: ContextVar[Tracer | None] = ContextVar("tracer", default=None)


@dataclass(slots=True)
class Tracer:
    """Creates spans, decides sampling, and hands closed spans to the exporter.

    Args:
        service_name: Name identifying this service in traces
        exporter: Where closed, recorded spans go
        sampler: Recording decision at span start
        enabled: False turns every span into a non-recording one
    """

    service_name: str = "callscope"
    exporter: Exporter = field(default_factory=ConsoleExporter)
    sampler: Sampler = field(default_factory=AlwaysSample)
    enabled: bool = True
    _started: bool = False

    def configure_global(self) -> None:
        """Set this tracer as the global instance."""
        _tracer.set(self)

    @classmethod
    def current(cls) -> Tracer:
        """Get global tracer or create disabled one."""
        return _tracer.get() or cls(enabled=False, exporter=NoOpExporter())

    def start(self) -> None:
        """Start the exporter. Idempotent; also done lazily by the first span."""
        if not self._started:
            self.exporter.start()
            self._started = True

    def span(
        self,
        name: str,
        kind: SpanKind = SpanKind.UNSPECIFIED,
        attributes: Attributes | None = None,
        parent: SpanContext | TraceContext | None = None,
    ) -> ScopedSpan:
        """Scoped span: opened and made current on enter, closed on every exit path.

        `parent` overrides the ambient span as the parent, for explicit context
        passing.
        """
        return ScopedSpan(self, name, kind, attributes, parent)

    def start_span(
        self,
        name: str,
        kind: SpanKind = SpanKind.UNSPECIFIED,
        attributes: Attributes | None = None,
        parent: SpanContext | TraceContext | None = None,
    ) -> Span:
        """Start a span without making it current. Caller must `end_span()` it."""
        if isinstance(parent, TraceContext):
            parent = parent.span_context
        elif parent is None:
            parent = TraceContext.current().span_context

        ctx = parent.child() if parent is not None else SpanContext.new()
        recording = self.enabled and self.sampler.should_sample(parent, ctx.trace_id, name)
        if recording != ctx.sampled:
            ctx = SpanContext(ctx.trace_id, ctx.span_id, ctx.parent_id, sampled=recording)
        if recording:
            self.start()

        span = Span(name=name, context=ctx, kind=kind, recording=recording)
        if recording:
            span.set_attribute("service.name", self.service_name)
            if attributes:
                span.set_attributes(attributes)
        return span

    def end_span(self, span: Span) -> None:
        """Close `span` and export it if it was recorded. Repeat calls are no-ops."""
        if span.end() and span.recording:
            try:
                self.exporter.export([span])
            except Exception:
                logger.exception("Failed to export span %r", span.name)

    def current_span(self) -> Span | None:
        return current_span()

    def with_span(self, span: Span) -> AbstractContextManager[Span]:
        """Re-enter a captured span (e.g. on a pool thread) without ending it."""
        return use_span(span)

    def shutdown(self, timeout: float | None = 30.0) -> bool:
        """Drain pending spans, then stop the exporter. Returns whether the drain completed.

        The exporter is stopped even if the drain fails; a failed drain counts
        as incomplete.
        """
        drained = False
        try:
            drained = self.exporter.force_flush(timeout)
            if not drained:
                logger.warning("Exporter did not drain within %ss", timeout)
        except Exception:
            logger.exception("Failed to flush exporter")
        finally:
            self.exporter.shutdown()
            self._started = False
        return drained


class ScopedSpan:
    """Context manager owning one span from begin to end.

    On exit with a fault, an unset or Ok status of a recorded span is replaced
    by the status translated from the fault; on a clean exit an unset status
    becomes Ok. Unrecorded spans skip status work entirely.
    The fault itself is never swallowed.
    """

    __slots__ = ("_tracer", "_name", "_kind", "_attributes", "_parent", "_span", "_token")

    def __init__(
        self,
        tracer: Tracer,
        name: str,
        kind: SpanKind,
        attributes: Attributes | None,
        parent: SpanContext | TraceContext | None,
    ) -> None:
        self._tracer, self._name, self._kind = tracer, name, kind
        self._attributes, self._parent = attributes, parent
        self._span: Span | None = None
        self._token: Token[TraceContext] | None = None

    def __enter__(self) -> Span:
        if self._span is not None:
            raise RuntimeError(f"Span scope {self._name!r} is not reentrant")
        self._span = self._tracer.start_span(self._name, self._kind, self._attributes, self._parent)
        self._token = TraceContext.attach(self._span)
        return self._span

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        span, token = self._span, self._token
        if span is None or token is None:
            return
        try:
            if span.recording:
                if exc_val is not None:
                    # A propagating fault must never leave an Ok status behind
                    if span.status is None or span.status.is_ok:
                        span.set_status(status_from_exception(exc_val))
                elif span.status is None:
                    span.set_status(Status.OK)
            self._tracer.end_span(span)
        finally:
            TraceContext.detach(token)
            self._token = None

    async def __aenter__(self) -> Span:
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


# ─────────────────────────────────────────────────────────────────────────────
# Decorator API
# ─────────────────────────────────────────────────────────────────────────────


def traced(
    name: str | None = None,
    kind: SpanKind = SpanKind.UNSPECIFIED,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Run each call of the decorated function inside a scoped span.

    Example:
        >>> @traced("inventory/lookup", kind=SpanKind.CLIENT)
        ... async def lookup(sku: str) -> int: ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__qualname__

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with Tracer.current().span(span_name, kind):
                return func(*args, **kwargs)

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async with Tracer.current().span(span_name, kind):
                return await func(*args, **kwargs)  # type: ignore[misc]

        return async_wrapper if inspect.iscoroutinefunction(func) else wrapper  # type: ignore[return-value]

    return decorator


# ─────────────────────────────────────────────────────────────────────────────
# Convenience Functions
# ─────────────────────────────────────────────────────────────────────────────


def get_tracer() -> Tracer:
    """Get the global tracer (creates disabled one if not configured)."""
    return Tracer.current()


def configure_tracing(
    service_name: str = "callscope",
    exporter: str | Exporter = "console",
    *,
    sampler: Sampler | None = None,
    endpoint: str | None = None,
    batch_size: int | None = None,
    verbose: bool = False,
) -> Tracer:
    """Configure and install the global tracer.

    Args:
        service_name: Name for this service in traces
        exporter: "console", "json", "otlp", "memory", "none", or Exporter instance
        sampler: Sampling decision (default: always sample)
        endpoint: OTLP endpoint (only for otlp exporter)
        batch_size: Wrap the exporter in a BatchExporter of this size
        verbose: Show attributes in console output
    """
    from ..exporter import BatchExporter, InMemoryExporter, JsonExporter, create_otlp_exporter

    if isinstance(exporter, str):
        exporters: dict[str, Callable[[], Exporter]] = {
            "console": lambda: ConsoleExporter(verbose=verbose),
            "json": JsonExporter,
            "otlp": lambda: create_otlp_exporter(endpoint=endpoint or "http://localhost:4317", service_name=service_name),
            "memory": InMemoryExporter,
            "none": NoOpExporter,
        }
        if exporter not in exporters:
            raise ConfigurationError(
                f"Unknown exporter: {exporter}. Use 'console', 'json', 'otlp', 'memory', or 'none'"
            )
        exp = exporters[exporter]()
    else:
        exp = exporter

    if batch_size and batch_size > 1:
        exp = BatchExporter(exp, batch_size=batch_size)

    tracer = Tracer(service_name=service_name, exporter=exp, sampler=sampler or AlwaysSample(), enabled=True)
    tracer.configure_global()
    return tracer


def tracer_from_settings(settings: TracingSettings) -> Tracer:
    """Build and install the global tracer from `TracingSettings`."""
    from .sampler import sampler_from_rate

    if not settings.enabled:
        tracer = Tracer(service_name=settings.service_name, exporter=NoOpExporter(), enabled=False)
        tracer.configure_global()
        return tracer
    return configure_tracing(
        service_name=settings.service_name,
        exporter=settings.exporter,
        sampler=sampler_from_rate(settings.sample_rate),
        endpoint=settings.otlp_endpoint,
        batch_size=settings.export_batch_size if settings.exporter == "otlp" else None,
    )
