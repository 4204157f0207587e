"""Demo driver: simulated inbound requests that each make one outbound call.

Every request runs inside a server span named ``incoming request``; the client
call nests under it. After the loop the tracer is drained explicitly instead of
sleeping and hoping the exporter caught up.

Run with ``python -m callscope.demo`` (configure via ``CALLSCOPE_*`` env vars).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from callscope.clients import HttpxTransport, SampleClient
from callscope.foundation.config import CallscopeSettings, get_settings
from callscope.runtime.observability import (
    SpanKind,
    Tracer,
    configure_logging,
    status_from_exception,
    tracer_from_settings,
)

logger = logging.getLogger("callscope.demo")

PRODUCTS = (
    "analytics", "compute", "containers", "databases", "developer-tools",
    "devops", "identity", "integration", "iot", "management",
    "microsoft-azure-stack", "networking", "security", "storage", "web",
)


async def run(client: SampleClient, paths: Iterable[str], tracer: Tracer, *, flush_timeout: float = 30.0) -> dict[str, int]:
    """Issue one traced request per path, then drain the tracer.

    Returns counts of ``ok`` and ``failed`` calls. Failures are logged, recorded
    on the request span, and do not stop the loop.
    """
    counts = {"ok": 0, "failed": 0}
    for path in paths:
        with tracer.span("incoming request", kind=SpanKind.SERVER) as span:
            try:
                await client.get(path)
            except Exception as exc:
                counts["failed"] += 1
                logger.warning("Request for %s failed: %s", path, exc)
                if span.is_recording:
                    span.set_status(status_from_exception(exc))
            else:
                counts["ok"] += 1
    if not tracer.shutdown(flush_timeout):
        logger.warning("Some spans may not have been exported")
    return counts


async def _main(settings: CallscopeSettings) -> dict[str, int]:
    tracer = tracer_from_settings(settings.tracing)
    transport = HttpxTransport.from_settings(settings.http, instrument=True, tracer=tracer)
    async with SampleClient(settings.http.endpoint, transport, tracer) as client:
        paths = [f"/product-categories/{p}" for p in PRODUCTS]
        return await run(client, paths, tracer, flush_timeout=settings.tracing.flush_timeout)


def main() -> None:
    settings = get_settings()
    configure_logging(settings.logging)
    logger.info("Starting...")
    counts = asyncio.run(_main(settings))
    logger.info("Done: %d ok, %d failed. Check out traces on the backend", counts["ok"], counts["failed"])


if __name__ == "__main__":
    main()
