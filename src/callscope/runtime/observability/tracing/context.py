"""Trace identity and ambient span context.

The active span travels in an explicit, immutable `TraceContext` value. The
value itself is stored in a `ContextVar`, so it is task-local under asyncio and
thread-local for threads: concurrent calls never observe each other's span.

Nesting is a linked chain of contexts. Attaching a span creates a new context
pointing at the previous one, and detaching restores that previous context via
the `ContextVar` token:

    >>> token = TraceContext.attach(outer)
    >>> inner_token = TraceContext.attach(inner)
    >>> current_span() is inner
    True
    >>> TraceContext.detach(inner_token)
    >>> current_span() is outer
    True
"""

from __future__ import annotations

import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .span import Span


@dataclass(frozen=True, slots=True)
class SpanContext:
    """Identity of a span within a trace (W3C-sized hex ids)."""

    trace_id: str
    span_id: str
    parent_id: str | None = None
    sampled: bool = True

    @classmethod
    def new(cls, *, sampled: bool = True) -> SpanContext:
        """Root context for a brand new trace."""
        return cls(trace_id=secrets.token_hex(16), span_id=secrets.token_hex(8), sampled=sampled)

    def child(self, *, sampled: bool | None = None) -> SpanContext:
        """Context for a span nested under this one (same trace, new span id)."""
        return SpanContext(
            trace_id=self.trace_id,
            span_id=secrets.token_hex(8),
            parent_id=self.span_id,
            sampled=self.sampled if sampled is None else sampled,
        )


@dataclass(frozen=True, slots=True)
class TraceContext:
    """Immutable carrier of the active span and the context it shadows."""

    span: Span | None = None
    previous: TraceContext | None = None

    @classmethod
    def current(cls) -> TraceContext:
        """Context of the calling task/thread (empty outside any scope)."""
        return _current.get()

    @classmethod
    def attach(cls, span: Span) -> Token[TraceContext]:
        """Make `span` the ambient span; returns the token restoring the prior context."""
        return _current.set(cls(span=span, previous=_current.get()))

    @staticmethod
    def detach(token: Token[TraceContext]) -> None:
        _current.reset(token)

    @property
    def span_context(self) -> SpanContext | None:
        return self.span.context if self.span is not None else None

    @property
    def depth(self) -> int:
        n, ctx = 0, self
        while ctx is not None and ctx.span is not None:
            n, ctx = n + 1, ctx.previous
        return n


_EMPTY = TraceContext()
_current: ContextVar[TraceContext] = ContextVar("callscope_trace_context", default=_EMPTY)


def current_span() -> Span | None:
    """Span active in the current logical call, or None outside any scope."""
    return _current.get().span


@contextmanager
def use_span(span: Span) -> Iterator[Span]:
    """Attach an existing span for the block without ending it.

    Used to restore a span captured on one thread inside work running on
    another, so spans created there are parented correctly.
    """
    token = TraceContext.attach(span)
    try:
        yield span
    finally:
        TraceContext.detach(token)


@contextmanager
def trace_context(ctx: TraceContext) -> Iterator[TraceContext]:
    """Run the block with `ctx` as the ambient context (explicit context passing)."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)
