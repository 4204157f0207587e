"""httpx transport wrapper tracing each HTTP exchange.

Sits between the httpx client and the network transport, so every request
that actually goes on the wire (redirect hops included) gets a client span
named by its path. Request attributes are only built for recorded spans.
"""

from __future__ import annotations

import httpx

from callscope.runtime.observability import (
    Span,
    SpanKind,
    Tracer,
    status_from_code,
    status_from_exception,
)

HTTP_HOST = "http.host"
HTTP_PATH = "http.path"
HTTP_METHOD = "http.method"
HTTP_URL = "http.url"
HTTP_STATUS_CODE = "http.status_code"


def span_name(request: httpx.Request) -> str:
    """Request path, always with a leading slash."""
    path = request.url.path
    return path if path.startswith("/") else f"/{path}"


def add_request_attributes(span: Span, request: httpx.Request) -> None:
    """Tag `span` with non-empty request details."""
    for key, value in (
        (HTTP_HOST, request.url.host),
        (HTTP_METHOD, request.method),
        (HTTP_PATH, request.url.path),
        (HTTP_URL, str(request.url)),
    ):
        if value:
            span.set_attribute(key, value)


class TracingTransport(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """Wrap a sync or async httpx transport with per-request client spans.

    Faults from the wrapped transport are recorded on the span and re-raised
    unchanged.
    """

    def __init__(
        self,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport,
        *,
        tracer: Tracer | None = None,
    ) -> None:
        self._transport = transport
        self._tracer = tracer

    @property
    def tracer(self) -> Tracer:
        return self._tracer or Tracer.current()

    def _start(self, span: Span, request: httpx.Request) -> None:
        if span.is_recording:
            add_request_attributes(span, request)

    def _end(self, span: Span, response: httpx.Response | None, error: BaseException | None) -> None:
        if not span.is_recording:
            return
        if response is not None:
            span.set_attribute(HTTP_STATUS_CODE, response.status_code)
            span.set_status(status_from_code(response.status_code))
        elif error is not None:
            span.set_status(status_from_exception(error))

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if not isinstance(self._transport, httpx.BaseTransport):
            raise TypeError(f"{type(self._transport).__name__} does not support sync requests")
        with self.tracer.span(span_name(request), kind=SpanKind.CLIENT) as span:
            self._start(span, request)
            try:
                response = self._transport.handle_request(request)
            except BaseException as exc:
                self._end(span, None, exc)
                raise
            self._end(span, response, None)
            return response

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not isinstance(self._transport, httpx.AsyncBaseTransport):
            raise TypeError(f"{type(self._transport).__name__} does not support async requests")
        async with self.tracer.span(span_name(request), kind=SpanKind.CLIENT) as span:
            self._start(span, request)
            try:
                response = await self._transport.handle_async_request(request)
            except BaseException as exc:
                self._end(span, None, exc)
                raise
            self._end(span, response, None)
            return response

    def close(self) -> None:
        if isinstance(self._transport, httpx.BaseTransport):
            self._transport.close()

    async def aclose(self) -> None:
        if isinstance(self._transport, httpx.AsyncBaseTransport):
            await self._transport.aclose()
