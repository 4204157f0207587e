"""Span exporters: where closed spans go.

Provides pluggable export destinations:
- ConsoleExporter: Pretty-printed spans for development
- JsonExporter: JSON lines for log aggregation
- InMemoryExporter: Captures spans for tests
- BatchExporter: Buffers and forwards in batches
- OTLPBridge: OpenTelemetry Protocol for production (optional dep)
- NoOpExporter: Silent export

Exporters are shared by every concurrent call and must be thread-safe.
Shutdown is a two-step contract: `force_flush()` drains anything pending and
reports whether it finished, then `shutdown()` releases resources. Callers must
not rely on `shutdown()` alone to deliver spans.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

from .tracing.status import StatusCode

if TYPE_CHECKING:
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import Event
    from opentelemetry.sdk.util.instrumentation import InstrumentationScope
    from opentelemetry.trace import SpanContext, SpanKind
    from opentelemetry.trace.status import Status

    from .tracing.span import Span

logger = logging.getLogger("callscope.exporter")

_SPAN_COLORS = {"reset": "\033[0m", "bold": "\033[1m", "dim": "\033[2m",
                "red": "\033[31m", "green": "\033[32m", "yellow": "\033[33m", "cyan": "\033[36m"}
_SPAN_NO_COLORS = {k: "" for k in _SPAN_COLORS}


@runtime_checkable
class Exporter(Protocol):
    """Protocol for span exporters. Receives closed, immutable spans."""

    def start(self) -> None:
        """Acquire resources before the first export."""
        ...

    def export(self, spans: list[Span]) -> None:
        """Export batch of closed spans."""
        ...

    def force_flush(self, timeout: float | None = None) -> bool:
        """Deliver everything pending. True if fully drained within `timeout`."""
        ...

    def shutdown(self) -> None:
        """Release resources. Call after `force_flush()`."""
        ...


@dataclass(slots=True)
class NoOpExporter:
    """Silent exporter for disabled tracing."""

    def start(self) -> None:
        pass

    def export(self, spans: list[Span]) -> None:
        pass

    def force_flush(self, timeout: float | None = None) -> bool:
        return True

    def shutdown(self) -> None:
        pass


@dataclass(slots=True)
class InMemoryExporter:
    """Keeps exported spans in a list. Intended for tests."""

    _spans: list[Span] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    stopped: bool = False

    @property
    def spans(self) -> list[Span]:
        with self._lock:
            return list(self._spans)

    def by_name(self, name: str) -> list[Span]:
        return [s for s in self.spans if s.name == name]

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()

    def start(self) -> None:
        self.stopped = False

    def export(self, spans: list[Span]) -> None:
        with self._lock:
            self._spans.extend(spans)

    def force_flush(self, timeout: float | None = None) -> bool:
        return True

    def shutdown(self) -> None:
        self.stopped = True


@dataclass(slots=True)
class ConsoleExporter:
    """Pretty-print spans to console for development.

    Args: output (stderr), colors (True if TTY), verbose (False)
    """

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool = True
    verbose: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.colors and not getattr(self.output, "isatty", lambda: False)():
            self.colors = False

    def start(self) -> None:
        pass

    def export(self, spans: list[Span]) -> None:
        with self._lock:
            for s in spans:
                self._print_span(s)

    def _print_span(self, span: Span) -> None:
        c = _SPAN_COLORS if self.colors else _SPAN_NO_COLORS
        code = span.status.code if span.status else None
        sym, color = ("✓", c["green"]) if code is StatusCode.OK else (("○", c["dim"]) if code is None else ("✗", c["red"]))
        ts = datetime.fromtimestamp(span.start_time, tz=UTC).strftime("%H:%M:%S.%f")[:-3]
        dur = f"{span.duration_ms:.1f}ms" if span.duration_ms is not None else "..."
        indent = "  " if span.context.parent_id else ""

        line = (f"{c['dim']}{ts}{c['reset']} "
                f"{color}{sym}{c['reset']} "
                f"{indent}{c['bold']}{span.name}{c['reset']} "
                f"{c['cyan']}[{span.kind.value}]{c['reset']} "
                f"{c['yellow']}{dur}{c['reset']}")
        if span.status is not None and not span.status.is_ok:
            line += f" {c['red']}status={span.status.code.value}{c['reset']}"
            if span.status.description:
                line += f" {c['dim']}{span.status.description[:60]}{c['reset']}"

        print(line, file=self.output)

        if self.verbose:
            for k, v in span.attributes.items():
                print(f"    {c['dim']}{k}={v.value!r}{c['reset']}", file=self.output)

    def force_flush(self, timeout: float | None = None) -> bool:
        self.output.flush()
        return True

    def shutdown(self) -> None:
        self.output.flush()


@dataclass(slots=True)
class JsonExporter:
    """Export spans as JSON lines (one object per line)."""

    output: TextIO = field(default_factory=lambda: sys.stdout)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def start(self) -> None:
        pass

    def export(self, spans: list[Span]) -> None:
        lines = [orjson.dumps(s.to_dict(), default=str).decode() for s in spans]
        with self._lock:
            for line in lines:
                print(line, file=self.output)

    def force_flush(self, timeout: float | None = None) -> bool:
        self.output.flush()
        return True

    def shutdown(self) -> None:
        self.output.flush()


@dataclass(slots=True)
class BatchExporter:
    """Buffers spans and forwards them in batches.

    Flushes when `batch_size` is reached or on `force_flush()`; spans still
    buffered at `shutdown()` are only delivered if the caller drained first.
    """

    exporter: Exporter
    batch_size: int = 100
    _buffer: list[Span] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def start(self) -> None:
        self.exporter.start()

    def export(self, spans: list[Span]) -> None:
        with self._lock:
            self._buffer.extend(spans)
            if len(self._buffer) < self.batch_size:
                return
            batch, self._buffer = self._buffer, []
        self.exporter.export(batch)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    def force_flush(self, timeout: float | None = None) -> bool:
        with self._lock:
            batch, self._buffer = self._buffer, []
        if batch:
            self.exporter.export(batch)
        return self.exporter.force_flush(timeout)

    def shutdown(self) -> None:
        if dropped := self.pending:
            logger.warning("BatchExporter shut down with %d undelivered spans; call force_flush() first", dropped)
        self.exporter.shutdown()


@dataclass(slots=True)
class CompositeExporter:
    """Fan-out to multiple exporters (e.g. dev console + production backend)."""

    exporters: list[Exporter] = field(default_factory=list)

    def start(self) -> None:
        for e in self.exporters:
            e.start()

    def export(self, spans: list[Span]) -> None:
        for e in self.exporters:
            e.export(spans)

    def force_flush(self, timeout: float | None = None) -> bool:
        return all([e.force_flush(timeout) for e in self.exporters])

    def shutdown(self) -> None:
        for e in self.exporters:
            e.shutdown()


# ─────────────────────────────────────────────────────────────────────────────
# OTLP Exporter (Optional - requires opentelemetry-* packages)
# ─────────────────────────────────────────────────────────────────────────────


def create_otlp_exporter(
    endpoint: str = "http://localhost:4317",
    service_name: str = "callscope",
    insecure: bool = True,
    headers: dict[str, str] | None = None,
) -> Exporter:
    """Create OTLP exporter for OpenTelemetry backends. Requires: pip install callscope[otel]"""
    try:
        import opentelemetry.exporter.otlp.proto.grpc.trace_exporter  # noqa: F401
    except ImportError as e:
        raise ImportError("OTLP exporter requires: pip install callscope[otel]") from e
    return OTLPBridge(endpoint=endpoint, service_name=service_name, insecure=insecure, headers=headers)


@dataclass
class OTLPBridge:
    """Bridge callscope spans to OTel OTLP export.

    OTel only distinguishes OK/ERROR, so the canonical code travels as the
    ``status.code`` attribute and the description as the error message.
    """

    endpoint: str
    service_name: str
    insecure: bool = True
    headers: dict[str, str] | None = None
    _exporter: OTLPSpanExporter | None = field(default=None, init=False, repr=False)
    _resource: Resource | None = field(default=None, init=False, repr=False)

    def start(self) -> None:
        if self._exporter is not None:
            return
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import SERVICE_NAME, Resource

        self._resource = Resource.create({SERVICE_NAME: self.service_name})
        self._exporter = OTLPSpanExporter(endpoint=self.endpoint, insecure=self.insecure, headers=self.headers or {})

    def export(self, spans: list[Span]) -> None:
        if self._exporter is None:
            self.start()
        assert self._exporter is not None
        self._exporter.export([self._to_otel_span(s) for s in spans])

    def _to_otel_span(self, span: Span) -> _ReadableSpanAdapter:
        """Convert a callscope Span to an OTel ReadableSpan."""
        from opentelemetry.sdk.trace import Event
        from opentelemetry.sdk.util.instrumentation import InstrumentationScope
        from opentelemetry.trace import SpanContext, TraceFlags
        from opentelemetry.trace import SpanKind as OtelSpanKind
        from opentelemetry.trace.status import Status, StatusCode as OtelStatusCode

        kind_map = {"server": OtelSpanKind.SERVER, "client": OtelSpanKind.CLIENT, "unspecified": OtelSpanKind.INTERNAL}
        otel_kind = kind_map.get(span.kind.value, OtelSpanKind.INTERNAL)

        trace_id = int(span.context.trace_id, 16)
        flags = TraceFlags(TraceFlags.SAMPLED if span.context.sampled else TraceFlags.DEFAULT)
        ctx = SpanContext(trace_id=trace_id, span_id=int(span.context.span_id, 16), is_remote=False, trace_flags=flags)
        parent_ctx = (SpanContext(trace_id=trace_id, span_id=int(span.context.parent_id, 16), is_remote=False,
                                  trace_flags=flags) if span.context.parent_id else None)

        start_ns = int(span.start_time * 1e9)
        end_ns = int(span.end_time * 1e9) if span.end_time else start_ns

        attrs: dict[str, str | int | float | bool] = {k: v.value for k, v in span.attributes.items()}
        if span.status is None:
            status = Status(OtelStatusCode.UNSET)
        elif span.status.is_ok:
            status = Status(OtelStatusCode.OK)
        else:
            status = Status(OtelStatusCode.ERROR, span.status.description or span.status.code.value)
        if span.status is not None:
            attrs["status.code"] = span.status.code.value

        events = tuple(Event(name=e.name, timestamp=int(e.timestamp * 1e9),
                             attributes={k: v.value for k, v in e.attributes.items()}) for e in span.events)

        assert self._resource is not None
        return _ReadableSpanAdapter(name=span.name, context=ctx, parent=parent_ctx, kind=otel_kind,
                                    start_time=start_ns, end_time=end_ns, attributes=attrs, events=events,
                                    status=status, resource=self._resource,
                                    instrumentation_scope=InstrumentationScope(name="callscope", version="0.1.0"))

    def force_flush(self, timeout: float | None = None) -> bool:
        if self._exporter is None:
            return True
        millis = int(timeout * 1000) if timeout is not None else 30_000
        return bool(self._exporter.force_flush(millis))

    def shutdown(self) -> None:
        if self._exporter is not None:
            self._exporter.shutdown()
            self._exporter = None


@dataclass(slots=True)
class _ReadableSpanAdapter:
    """Adapter implementing the OTel ReadableSpan protocol for direct export."""

    name: str
    context: SpanContext
    parent: SpanContext | None
    kind: SpanKind
    start_time: int  # nanoseconds
    end_time: int  # nanoseconds
    attributes: dict[str, str | int | float | bool]
    events: tuple[Event, ...]
    status: Status
    resource: Resource
    instrumentation_scope: InstrumentationScope | None = None

    def get_span_context(self) -> SpanContext:
        return self.context

    @property
    def parent_span_context(self) -> SpanContext | None:
        return self.parent

    links: tuple[()] = ()
    dropped_attributes: int = 0
    dropped_events: int = 0
    dropped_links: int = 0

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps({"name": self.name, "start_time": self.start_time,
                           "end_time": self.end_time, "attributes": self.attributes}, indent=indent)
