"""Transport capability: fetch a resource at a path.

A transport yields a response code (with the body) or raises a fault. Those
two outcomes are exactly the inputs of status translation. `HttpxTransport`
is the production implementation; tests substitute any object with the same
two methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from callscope.foundation.errors import TransportError

from .interceptor import TracingTransport

if TYPE_CHECKING:
    from callscope.foundation.config import HttpSettings
    from callscope.runtime.observability import Tracer

logger = logging.getLogger("callscope.transport")


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Response code plus decoded body."""

    status_code: int
    body: str = ""


@runtime_checkable
class Transport(Protocol):
    """Protocol for the outbound capability wrapped by instrumented clients."""

    async def fetch(self, path: str) -> FetchResponse: ...

    def fetch_sync(self, path: str) -> FetchResponse: ...


class HttpxTransport:
    """httpx-backed transport rooted at `base_url`.

    Clients are created lazily, one async and one sync, and reused across calls.
    With ``instrument=True`` every HTTP exchange (including redirect hops) gets
    its own client span nested under the caller's span.

    Args:
        base_url: Service endpoint; request paths are resolved against it
        timeout: Per-request timeout in seconds
        instrument: Wrap the network transport in `TracingTransport`
        transport / sync_transport: Override the underlying httpx transports
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        verify: bool = True,
        instrument: bool = False,
        tracer: Tracer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sync_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._timeout = httpx.Timeout(timeout)
        self._headers = headers or {}
        self._follow_redirects = follow_redirects
        self._verify = verify
        self._instrument = instrument
        self._tracer = tracer
        self._transport = transport
        self._sync_transport = sync_transport
        self._client: httpx.AsyncClient | None = None
        self._sync_client: httpx.Client | None = None
        self._closed = False

    @classmethod
    def from_settings(cls, settings: HttpSettings, **kwargs: object) -> HttpxTransport:
        return cls(
            settings.endpoint,
            timeout=settings.timeout,
            headers={"User-Agent": settings.user_agent},
            follow_redirects=settings.follow_redirects,
            verify=settings.verify_ssl,
            **kwargs,  # type: ignore[arg-type]
        )

    # ─────────────────────────────────────────────────────────────────
    # HTTP Clients
    # ─────────────────────────────────────────────────────────────────

    def _check_open(self) -> None:
        if self._closed:
            raise TransportError(f"Transport for {self.base_url} is closed")

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx async client."""
        self._check_open()
        if self._client is None:
            transport = self._transport
            if self._instrument:
                transport = TracingTransport(transport or httpx.AsyncHTTPTransport(verify=self._verify), tracer=self._tracer)
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
                verify=self._verify,
                transport=transport,
            )
        return self._client

    def _get_sync_client(self) -> httpx.Client:
        """Get or create httpx sync client."""
        self._check_open()
        if self._sync_client is None:
            transport = self._sync_transport
            if self._instrument:
                transport = TracingTransport(transport or httpx.HTTPTransport(verify=self._verify), tracer=self._tracer)
            self._sync_client = httpx.Client(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
                verify=self._verify,
                transport=transport,
            )
        return self._sync_client

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def fetch(self, path: str) -> FetchResponse:
        response = await self._get_client().get(path)
        logger.debug("GET %s -> %d", path, response.status_code)
        return FetchResponse(response.status_code, response.text)

    def fetch_sync(self, path: str) -> FetchResponse:
        response = self._get_sync_client().get(path)
        logger.debug("GET %s -> %d", path, response.status_code)
        return FetchResponse(response.status_code, response.text)

    async def aclose(self) -> None:
        """Close both httpx clients. The transport cannot be reused afterwards."""
        self._closed = True
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.close()

    def close(self) -> None:
        self._closed = True
        if self._sync_client is not None:
            self._sync_client.close()
            self._sync_client = None
