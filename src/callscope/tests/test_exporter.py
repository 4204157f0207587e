"""Tests for span exporters."""

from __future__ import annotations

import io

import orjson
import pytest

from callscope.runtime.observability import (
    BatchExporter,
    CompositeExporter,
    ConsoleExporter,
    Exporter,
    InMemoryExporter,
    JsonExporter,
    NoOpExporter,
    SpanKind,
    Status,
    Tracer,
    status_from_code,
)


class FailingExporter:
    def start(self) -> None:
        pass

    def export(self, spans: list) -> None:
        raise ConnectionError("collector down")

    def force_flush(self, timeout: float | None = None) -> bool:
        return False

    def shutdown(self) -> None:
        pass


@pytest.mark.parametrize(
    "exporter",
    [NoOpExporter(), InMemoryExporter(), ConsoleExporter(io.StringIO()), JsonExporter(io.StringIO()),
     BatchExporter(InMemoryExporter()), CompositeExporter()],
)
def test_exporters_satisfy_protocol(exporter: object) -> None:
    assert isinstance(exporter, Exporter)


def test_console_marks_failures() -> None:
    out = io.StringIO()
    tracer = Tracer(exporter=ConsoleExporter(out, colors=False, verbose=True))
    with tracer.span("incoming request", kind=SpanKind.SERVER):
        with tracer.span("sample.client/get", kind=SpanKind.CLIENT) as span:
            span.set_attribute("path", "/missing")
            span.set_status(status_from_code(404))
    client_line, *client_attrs, server_line, _ = out.getvalue().splitlines()
    assert "✗" in client_line and "sample.client/get" in client_line
    assert "status=NotFound" in client_line and "404 Not Found" in client_line
    assert "    path='/missing'" in client_attrs
    assert "✓" in server_line and "[server]" in server_line


def test_json_lines() -> None:
    out = io.StringIO()
    tracer = Tracer(service_name="svc", exporter=JsonExporter(out))
    with tracer.span("a"):
        pass
    with tracer.span("b") as span:
        span.set_status(Status.UNAVAILABLE)
    first, second = (orjson.loads(line) for line in out.getvalue().splitlines())
    assert first["name"] == "a" and first["status"] == "Ok"
    assert first["attributes"] == {"service.name": "svc"}
    assert second["status"] == "Unavailable"


def test_batch_flushes_at_size() -> None:
    sink = InMemoryExporter()
    batch = BatchExporter(sink, batch_size=2)
    tracer = Tracer(exporter=batch)
    for name in ("a", "b", "c"):
        with tracer.span(name):
            pass
    assert [s.name for s in sink.spans] == ["a", "b"]
    assert batch.pending == 1
    assert batch.force_flush() is True
    assert [s.name for s in sink.spans] == ["a", "b", "c"]


def test_batch_shutdown_without_drain_warns(caplog: pytest.LogCaptureFixture) -> None:
    sink = InMemoryExporter()
    batch = BatchExporter(sink, batch_size=10)
    tracer = Tracer(exporter=batch)
    tracer.end_span(tracer.start_span("x"))
    with caplog.at_level("WARNING", logger="callscope.exporter"):
        batch.shutdown()
    assert "1 undelivered spans" in caplog.text
    assert sink.spans == []


def test_composite_fans_out() -> None:
    a, b = InMemoryExporter(), InMemoryExporter()
    tracer = Tracer(exporter=CompositeExporter([a, b]))
    with tracer.span("x"):
        pass
    assert len(a.spans) == len(b.spans) == 1
    assert tracer.shutdown() is True
    assert a.stopped and b.stopped


def test_export_failure_does_not_break_the_call(caplog: pytest.LogCaptureFixture) -> None:
    tracer = Tracer(exporter=FailingExporter())  # type: ignore[arg-type]
    with caplog.at_level("ERROR", logger="callscope.tracing"):
        with tracer.span("x") as span:
            pass
    assert span.is_ended
    assert "Failed to export span" in caplog.text


def test_shutdown_reports_incomplete_drain() -> None:
    tracer = Tracer(exporter=FailingExporter())  # type: ignore[arg-type]
    assert tracer.shutdown(timeout=0.1) is False


def test_otlp_bridge_maps_status() -> None:
    pytest.importorskip("opentelemetry.exporter.otlp.proto.grpc.trace_exporter")
    from opentelemetry.trace import SpanKind as OtelSpanKind
    from opentelemetry.trace.status import StatusCode as OtelStatusCode

    from callscope.runtime.observability import OTLPBridge

    bridge = OTLPBridge(endpoint="http://localhost:4317", service_name="svc")
    bridge.start()
    tracer = Tracer(exporter=InMemoryExporter())
    with tracer.span("sample.client/get", kind=SpanKind.CLIENT) as span:
        span.set_status(status_from_code(503))
    otel = bridge._to_otel_span(span)
    assert otel.kind is OtelSpanKind.CLIENT
    assert otel.status.status_code is OtelStatusCode.ERROR
    assert otel.status.description == "503 Service Unavailable"
    assert otel.attributes["status.code"] == "Unavailable"
    assert otel.get_span_context().trace_id == int(span.context.trace_id, 16)
    bridge.shutdown()
