"""Tests for the sample instrumented client and context-propagating pools."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from callscope.clients import FetchResponse, SampleClient
from callscope.clients.sample import ENDPOINT_ATTRIBUTE, PATH_ATTRIBUTE
from callscope.runtime.concurrency import TraceContextExecutor, run_in_context
from callscope.runtime.observability import (
    AttributeValue,
    InMemoryExporter,
    SpanKind,
    StatusCode,
    TraceContext,
    Tracer,
    current_span,
)

ENDPOINT = "https://example.invalid"


class FakeTransport:
    """Returns a fixed code, raises a fault, or blocks until cancelled."""

    def __init__(self, code: int = 200, *, error: BaseException | None = None, block: bool = False) -> None:
        self.code, self.error, self.block = code, error, block
        self.paths: list[str] = []
        self.started = asyncio.Event() if block else None

    def fetch_sync(self, path: str) -> FetchResponse:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return FetchResponse(self.code, f"body of {path}")

    async def fetch(self, path: str) -> FetchResponse:
        if self.started is not None:
            self.started.set()
            await asyncio.sleep(10)
        return self.fetch_sync(path)


def _client(tracer: Tracer, transport: FakeTransport, **kwargs: object) -> SampleClient:
    return SampleClient(ENDPOINT, transport, tracer, **kwargs)  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# Outcomes
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_successful_call_under_server_span(tracer: Tracer, exporter: InMemoryExporter) -> None:
    client = _client(tracer, FakeTransport(200))
    with tracer.span("incoming request", kind=SpanKind.SERVER) as server:
        body = await client.get("/compute")
    assert body == "body of /compute"
    (span,) = exporter.by_name(SampleClient.span_name)
    assert span.kind is SpanKind.CLIENT
    assert span.context.parent_id == server.context.span_id
    assert span.status is not None and span.status.code is StatusCode.OK
    assert span.attributes[ENDPOINT_ATTRIBUTE] == AttributeValue.string(ENDPOINT)
    assert span.attributes[PATH_ATTRIBUTE] == AttributeValue.string("/compute")
    assert current_span() is None


@pytest.mark.asyncio
async def test_not_found_keeps_code_in_description(tracer: Tracer, exporter: InMemoryExporter) -> None:
    client = _client(tracer, FakeTransport(404))
    await client.get("/missing")
    (span,) = exporter.spans
    assert span.status is not None
    assert span.status.code is StatusCode.NOT_FOUND
    assert "404" in (span.status.description or "")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (TimeoutError("read timed out"), StatusCode.DEADLINE_EXCEEDED),
        (ConnectionResetError("peer reset"), StatusCode.UNKNOWN),
    ],
)
@pytest.mark.asyncio
async def test_fault_propagates_with_status(
    tracer: Tracer, exporter: InMemoryExporter, error: Exception, expected: StatusCode
) -> None:
    client = _client(tracer, FakeTransport(error=error))
    with pytest.raises(type(error)) as info:
        await client.get("/compute")
    assert info.value is error
    (span,) = exporter.spans
    assert span.is_ended
    assert span.status is not None and span.status.code is expected
    assert str(error) in (span.status.description or "")


@pytest.mark.asyncio
async def test_cancellation_propagates_and_marks_cancelled(tracer: Tracer, exporter: InMemoryExporter) -> None:
    transport = FakeTransport(block=True)
    client = _client(tracer, transport)
    task = asyncio.create_task(client.get("/slow"))
    assert transport.started is not None
    await transport.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    (span,) = exporter.spans
    assert span.status is not None and span.status.code is StatusCode.CANCELLED


def test_sync_variant(tracer: Tracer, exporter: InMemoryExporter) -> None:
    client = _client(tracer, FakeTransport(503))
    assert client.get_sync("/compute") == "body of /compute"
    (span,) = exporter.spans
    assert span.status is not None and span.status.code is StatusCode.UNAVAILABLE


# ─────────────────────────────────────────────────────────────────────────────
# Sampling-Aware Tagging
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_unsampled_call_never_builds_attributes(unsampled_tracer: Tracer, exporter: InMemoryExporter) -> None:
    def exploding_factory(path: str) -> AttributeValue:
        raise AssertionError("attribute built for an unrecorded span")

    transport = FakeTransport(200)
    client = _client(unsampled_tracer, transport, attribute_factory=exploding_factory)
    assert await client.get("/compute") == "body of /compute"
    assert transport.paths == ["/compute"]
    assert exporter.spans == []


@pytest.mark.asyncio
async def test_endpoint_attribute_is_built_once(tracer: Tracer, exporter: InMemoryExporter) -> None:
    client = _client(tracer, FakeTransport(200))
    await client.get("/a")
    await client.get("/b")
    first, second = exporter.spans
    assert first.attributes[ENDPOINT_ATTRIBUTE] is client.endpoint_attribute
    assert second.attributes[ENDPOINT_ATTRIBUTE] is client.endpoint_attribute


@pytest.mark.asyncio
async def test_explicit_parent(tracer: Tracer, exporter: InMemoryExporter) -> None:
    client = _client(tracer, FakeTransport(200))
    with tracer.span("incoming request", kind=SpanKind.SERVER) as server:
        captured = TraceContext.current()
    await client.get("/compute", parent=captured)
    (span,) = exporter.by_name(SampleClient.span_name)
    assert span.context.parent_id == server.context.span_id


@pytest.mark.asyncio
async def test_uses_global_tracer_when_none_given(exporter: InMemoryExporter) -> None:
    Tracer(exporter=exporter).configure_global()
    client = SampleClient(ENDPOINT, FakeTransport(200))  # type: ignore[arg-type]
    await client.get("/compute")
    assert len(exporter.spans) == 1


# ─────────────────────────────────────────────────────────────────────────────
# Worker Pools
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_in_pool_keeps_parent(tracer: Tracer, exporter: InMemoryExporter) -> None:
    with TraceContextExecutor(max_workers=2) as pool:
        client = _client(tracer, FakeTransport(200), executor=pool)
        with tracer.span("incoming request", kind=SpanKind.SERVER) as server:
            await client.get_in_pool("/compute")
    (span,) = exporter.by_name(SampleClient.span_name)
    assert span.context.parent_id == server.context.span_id
    assert span.context.trace_id == server.context.trace_id


@pytest.mark.asyncio
async def test_run_in_context_wraps_plain_pool(tracer: Tracer) -> None:
    with ThreadPoolExecutor(max_workers=1) as pool:
        with tracer.span("incoming request") as server:
            seen = await run_in_context(current_span, executor=pool)
    assert seen is server


def test_executor_submit_propagates_span(tracer: Tracer) -> None:
    with TraceContextExecutor(max_workers=2) as pool:
        with tracer.span("incoming request") as server:
            futures = [pool.submit(current_span) for _ in range(4)]
        assert all(f.result() is server for f in futures)
        assert pool.submit(current_span).result() is None


def test_plain_pool_loses_span(tracer: Tracer) -> None:
    with ThreadPoolExecutor(max_workers=1) as pool:
        with tracer.span("incoming request"):
            assert pool.submit(current_span).result() is None


def test_executor_leaves_borrowed_delegate_running() -> None:
    delegate = ThreadPoolExecutor(max_workers=1)
    pool = TraceContextExecutor(delegate)
    pool.shutdown()
    assert delegate.submit(lambda: 1).result() == 1
    delegate.shutdown()
