"""Tests for spans, attribute values and span identity."""

from __future__ import annotations

import pytest

from callscope.runtime.observability import AttributeValue, Span, SpanContext, SpanKind, Status


def _span(recording: bool = True) -> Span:
    return Span(name="component/op", context=SpanContext.new(sampled=recording), recording=recording)


class TestAttributeValue:
    def test_value_equality(self) -> None:
        assert AttributeValue.string("abc") == AttributeValue.string("abc")
        assert AttributeValue.string("abc") != AttributeValue.string("abd")
        assert AttributeValue.integer(3) == AttributeValue.of(3)

    def test_constructors_coerce(self) -> None:
        assert AttributeValue.string(42).value == "42"  # type: ignore[arg-type]
        assert AttributeValue.double(1).value == 1.0
        assert AttributeValue.boolean(0).value is False  # type: ignore[arg-type]

    def test_of_passes_existing_value_through(self) -> None:
        value = AttributeValue.string("x")
        assert AttributeValue.of(value) is value

    def test_of_rejects_unsupported(self) -> None:
        with pytest.raises(TypeError, match="Unsupported attribute type"):
            AttributeValue.of([1, 2])  # type: ignore[arg-type]

    def test_str(self) -> None:
        assert str(AttributeValue.integer(7)) == "7"


class TestSpanContext:
    def test_new_ids_are_hex(self) -> None:
        ctx = SpanContext.new()
        assert len(ctx.trace_id) == 32 and int(ctx.trace_id, 16) >= 0
        assert len(ctx.span_id) == 16
        assert ctx.parent_id is None

    def test_child_keeps_trace(self) -> None:
        parent = SpanContext.new()
        child = parent.child()
        assert child.trace_id == parent.trace_id
        assert child.parent_id == parent.span_id
        assert child.span_id != parent.span_id
        assert child.sampled == parent.sampled


class TestSpan:
    def test_recording_span_collects_attributes(self) -> None:
        span = _span()
        span.set_attribute("path", "/compute").set_attribute("retries", 2)
        assert span.attributes == {
            "path": AttributeValue.string("/compute"),
            "retries": AttributeValue.integer(2),
        }

    def test_non_recording_span_drops_attributes_and_events(self) -> None:
        span = _span(recording=False)
        span.set_attributes({"path": "/compute"})
        span.add_event("retry")
        assert span.attributes == {}
        assert span.events == []
        assert not span.is_recording

    def test_end_returns_true_once(self) -> None:
        span = _span()
        assert span.end() is True
        end_time = span.end_time
        assert span.end() is False
        assert span.end_time == end_time
        assert span.duration_ms is not None and span.duration_ms >= 0

    def test_mutation_after_end_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        span = _span()
        span.set_status(Status.OK)
        span.end()
        with caplog.at_level("WARNING", logger="callscope.tracing.span"):
            span.set_attribute("late", "x")
            span.set_status(Status.UNKNOWN)
            span.set_kind(SpanKind.SERVER)
        assert "late" not in span.attributes
        assert span.status == Status.OK
        assert span.kind is SpanKind.UNSPECIFIED
        assert "ended span" in caplog.text

    def test_events_carry_attributes(self) -> None:
        span = _span()
        span.add_event("retry", {"attempt": 2})
        (event,) = span.events
        assert event.name == "retry"
        assert event.attributes["attempt"] == AttributeValue.integer(2)

    def test_to_dict(self) -> None:
        span = _span()
        span.set_attribute("path", "/compute")
        span.set_status(Status.NOT_FOUND.with_description("404 Not Found"))
        span.end()
        data = span.to_dict()
        assert data["name"] == "component/op"
        assert data["status"] == "NotFound"
        assert data["status_description"] == "404 Not Found"
        assert data["attributes"] == {"path": "/compute"}
        assert data["trace_id"] == span.context.trace_id
