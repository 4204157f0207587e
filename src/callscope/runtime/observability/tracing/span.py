"""Span types for tracing outbound calls.

A span is one traced unit of work. Its recording flag is decided by the
sampler when the span starts and never changes afterwards. Attributes and
status are mutable only while the span is open; `end()` closes it exactly once.

Non-recording spans accept the same calls but drop them, so callers should gate
any nontrivial attribute construction behind `span.is_recording`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict

from callscope.foundation.errors import AttributePrimitive, JsonDict

from .context import SpanContext
from .status import Status

logger = logging.getLogger("callscope.tracing.span")


class SpanKind(StrEnum):
    """Role of the span at a process boundary."""

    UNSPECIFIED = "unspecified"
    SERVER = "server"  # Inbound boundary of request handling
    CLIENT = "client"  # Outbound call


class AttributeValue(BaseModel):
    """Typed, immutable attribute value with value-based equality.

    Build once and reuse when the same value tags many spans (e.g. a client's
    endpoint).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", revalidate_instances="never")

    value: AttributePrimitive

    @classmethod
    def string(cls, value: str) -> AttributeValue:
        return cls(value=str(value))

    @classmethod
    def boolean(cls, value: bool) -> AttributeValue:
        return cls(value=bool(value))

    @classmethod
    def integer(cls, value: int) -> AttributeValue:
        return cls(value=int(value))

    @classmethod
    def double(cls, value: float) -> AttributeValue:
        return cls(value=float(value))

    @classmethod
    def of(cls, value: AttributePrimitive | AttributeValue) -> AttributeValue:
        """Wrap a raw primitive; existing values pass through."""
        if isinstance(value, AttributeValue):
            return value
        if not isinstance(value, (str, bool, int, float)):
            raise TypeError(f"Unsupported attribute type: {type(value).__name__}")
        return cls(value=value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(slots=True)
class SpanEvent:
    """Point-in-time event within a span."""

    name: str
    timestamp: float = field(default_factory=time.time)
    attributes: dict[str, AttributeValue] = field(default_factory=dict)


@dataclass(slots=True, eq=False)
class Span:
    """A traced unit of work.

    Attributes:
        name: ``component/operation`` style name (e.g. ``"sample.client/get"``)
        context: Trace/span identity
        kind: Boundary role (server, client, unspecified)
        recording: Sampling decision, fixed at start
        attributes: Tags, only populated while recording
        status: Normalized outcome; last write wins until the span ends
    """

    name: str
    context: SpanContext
    kind: SpanKind = SpanKind.UNSPECIFIED
    recording: bool = True
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    events: list[SpanEvent] = field(default_factory=list)
    status: Status | None = None

    @property
    def is_recording(self) -> bool:
        """Whether the sampler selected this span; constant for its lifetime."""
        return self.recording

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    @property
    def duration_ms(self) -> float | None:
        """Duration in milliseconds, or None if not ended."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000

    def _mutable(self, what: str) -> bool:
        if self.end_time is not None:
            logger.warning("Ignoring %s on ended span %r", what, self.name)
            return False
        return True

    def set_attribute(self, key: str, value: AttributePrimitive | AttributeValue) -> Self:
        """Attach a tag. Dropped on non-recording spans."""
        if self.recording and self._mutable("set_attribute"):
            self.attributes[key] = AttributeValue.of(value)
        return self

    def set_attributes(self, attrs: dict[str, AttributePrimitive | AttributeValue]) -> Self:
        for k, v in attrs.items():
            self.set_attribute(k, v)
        return self

    def add_event(self, name: str, attributes: dict[str, AttributePrimitive | AttributeValue] | None = None) -> Self:
        """Add timestamped event to span."""
        if self.recording and self._mutable("add_event"):
            attrs = {k: AttributeValue.of(v) for k, v in (attributes or {}).items()}
            self.events.append(SpanEvent(name=name, attributes=attrs))
        return self

    def set_kind(self, kind: SpanKind) -> Self:
        if self._mutable("set_kind"):
            self.kind = kind
        return self

    def set_status(self, status: Status) -> Self:
        """Record the outcome. Last write wins."""
        if self._mutable("set_status"):
            self.status = status
        return self

    def end(self, end_time: float | None = None) -> bool:
        """Close the span. Returns False (and changes nothing) if already ended."""
        if self.end_time is not None:
            logger.debug("Span %r already ended", self.name)
            return False
        self.end_time = end_time if end_time is not None else time.time()
        return True

    def to_dict(self) -> JsonDict:
        """Serialize span for export."""
        return {
            "name": self.name,
            "trace_id": self.context.trace_id,
            "span_id": self.context.span_id,
            "parent_id": self.context.parent_id,
            "kind": self.kind.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_ms": self.duration_ms,
            "status": self.status.code.value if self.status else None,
            "status_description": self.status.description if self.status else None,
            "attributes": {k: v.value for k, v in self.attributes.items()},
            "events": [
                {"name": e.name, "timestamp": e.timestamp, "attributes": {k: v.value for k, v in e.attributes.items()}}
                for e in self.events
            ],
        }
