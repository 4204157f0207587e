"""Context-propagating thread pool.

The ambient span lives in a `ContextVar`, and pool threads do not inherit the
submitter's context. Without help, a span opened on a worker starts a brand new
trace. `TraceContextExecutor` captures `contextvars.copy_context()` at submit
time and runs the callable inside it, so work keeps its parent span.

Example:
    >>> with TraceContextExecutor(max_workers=4) as pool:
    ...     with tracer.span("incoming request", kind=SpanKind.SERVER):
    ...         body = pool.submit(client.get_sync, "/compute").result()
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, ParamSpec, TypeVar

T = TypeVar("T")
P = ParamSpec("P")


class TraceContextExecutor(Executor):
    """Executor wrapper that runs every task in the submitter's context."""

    def __init__(self, delegate: Executor | None = None, *, max_workers: int | None = None) -> None:
        self._owns_delegate = delegate is None
        self._delegate = delegate or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="callscope-")

    def submit(self, fn: Callable[P, T], /, *args: P.args, **kwargs: P.kwargs) -> Future[T]:
        ctx = contextvars.copy_context()
        return self._delegate.submit(ctx.run, functools.partial(fn, *args, **kwargs))

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        if self._owns_delegate:
            self._delegate.shutdown(wait=wait, cancel_futures=cancel_futures)


# Default pool for run_in_context
_default_executor: TraceContextExecutor | None = None
_executor_lock = threading.Lock()


def _get_default_executor() -> TraceContextExecutor:
    """Get or create the shared executor."""
    global _default_executor
    if _default_executor is None:
        with _executor_lock:
            if _default_executor is None:
                _default_executor = TraceContextExecutor()
    return _default_executor


async def run_in_context(
    func: Callable[..., T],
    *args: object,
    executor: Executor | None = None,
    **kwargs: object,
) -> T:
    """Run a sync function on a pool thread, keeping the caller's trace context."""
    loop = asyncio.get_running_loop()
    pool = executor or _get_default_executor()
    if kwargs:
        func = functools.partial(func, **kwargs)
    if not isinstance(pool, TraceContextExecutor):
        func = functools.partial(contextvars.copy_context().run, func)
    return await loop.run_in_executor(pool, func, *args)
