"""Sample instrumented client.

Shows the instrumented-call contract end to end:

1. open a client span scoped to the call (name follows ``component/operation``)
2. check whether the span is recorded; only then build and attach tags
3. perform the call
4. translate the response code, or the fault, into the span status
5. re-raise faults unchanged; the scope closes the span on every path

Example:
    >>> client = SampleClient("https://azure.microsoft.com")
    >>> body = await client.get("/product-categories/compute")
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Callable

from callscope.runtime.concurrency import run_in_context
from callscope.runtime.observability import (
    AttributeValue,
    Span,
    SpanKind,
    TraceContext,
    Tracer,
    status_from_code,
    status_from_exception,
)

from .transport import FetchResponse, HttpxTransport, Transport

logger = logging.getLogger("callscope.client")

ENDPOINT_ATTRIBUTE = "az.endpoint"
PATH_ATTRIBUTE = "path"


class SampleClient:
    """Client for a remote service with traced `get` operations.

    Args:
        endpoint: Service endpoint (account or tenant specific URI). Cached as
            an attribute value once and reused for every span.
        transport: Fetch capability; defaults to `HttpxTransport(endpoint)`
        tracer: Tracer to use; defaults to the global tracer at call time
        attribute_factory: Builds the per-call path attribute. Only invoked
            for recorded spans.
    """

    span_name = "sample.client/get"

    def __init__(
        self,
        endpoint: str,
        transport: Transport | None = None,
        tracer: Tracer | None = None,
        *,
        attribute_factory: Callable[[str], AttributeValue] = AttributeValue.string,
        executor: Executor | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._endpoint_attribute = AttributeValue.string(endpoint)
        self._transport = transport or HttpxTransport(endpoint)
        self._tracer = tracer
        self._attribute_factory = attribute_factory
        self._executor = executor

    @property
    def endpoint_attribute(self) -> AttributeValue:
        return self._endpoint_attribute

    @property
    def tracer(self) -> Tracer:
        return self._tracer or Tracer.current()

    # ─────────────────────────────────────────────────────────────────
    # Span helpers
    # ─────────────────────────────────────────────────────────────────

    def _tag(self, span: Span, path: str) -> None:
        span.set_attribute(ENDPOINT_ATTRIBUTE, self._endpoint_attribute)
        span.set_attribute(PATH_ATTRIBUTE, self._attribute_factory(path))

    @staticmethod
    def _completed(span: Span, response: FetchResponse) -> str:
        if span.is_recording:
            # A returned response can still carry a failure code
            span.set_status(status_from_code(response.status_code))
        return response.body

    @staticmethod
    def _faulted(span: Span, exc: BaseException) -> None:
        logger.debug("%s failed with %s", span.name, type(exc).__name__)
        if span.is_recording:
            span.set_status(status_from_exception(exc))

    # ─────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────

    async def get(self, path: str, *, parent: TraceContext | None = None) -> str:
        """Fetch `path` and return the body. Faults propagate unchanged.

        `parent` overrides the ambient span as the parent of the call's span.
        """
        async with self.tracer.span(self.span_name, kind=SpanKind.CLIENT, parent=parent) as span:
            if span.is_recording:
                self._tag(span, path)
            try:
                response = await self._transport.fetch(path)
            except BaseException as exc:
                self._faulted(span, exc)
                raise
            return self._completed(span, response)

    def get_sync(self, path: str, *, parent: TraceContext | None = None) -> str:
        """Blocking variant of `get`."""
        with self.tracer.span(self.span_name, kind=SpanKind.CLIENT, parent=parent) as span:
            if span.is_recording:
                self._tag(span, path)
            try:
                response = self._transport.fetch_sync(path)
            except BaseException as exc:
                self._faulted(span, exc)
                raise
            return self._completed(span, response)

    async def get_in_pool(self, path: str) -> str:
        """Run `get_sync` on a worker thread, keeping the caller's span as parent."""
        return await run_in_context(self.get_sync, path, executor=self._executor)

    async def aclose(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> SampleClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
