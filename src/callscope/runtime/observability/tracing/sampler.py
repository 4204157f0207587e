"""Samplers decide, once per span at start, whether the span is recorded.

The tracer treats a sampler as a black box returning a boolean decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .context import SpanContext


@runtime_checkable
class Sampler(Protocol):
    """Protocol for sampling decisions."""

    def should_sample(self, parent: SpanContext | None, trace_id: str, name: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class AlwaysSample:
    def should_sample(self, parent: SpanContext | None, trace_id: str, name: str) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class NeverSample:
    def should_sample(self, parent: SpanContext | None, trace_id: str, name: str) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class ProbabilitySampler:
    """Sample a fixed fraction of traces.

    Children follow their parent's decision so a trace is never partially
    recorded. Root decisions are derived from the trace id, making them
    deterministic per trace.
    """

    rate: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.rate <= 1.0:
            raise ValueError(f"Sampling rate must be in [0, 1], got {self.rate}")

    def should_sample(self, parent: SpanContext | None, trace_id: str, name: str) -> bool:
        if parent is not None:
            return parent.sampled
        # Lower 64 bits of the trace id against the rate bound
        return int(trace_id[-16:], 16) < int(self.rate * (1 << 64))


def sampler_from_rate(rate: float) -> Sampler:
    """Pick the cheapest sampler for a configured rate."""
    if rate >= 1.0:
        return AlwaysSample()
    if rate <= 0.0:
        return NeverSample()
    return ProbabilitySampler(rate)
