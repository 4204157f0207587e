"""Concurrency helpers that carry trace context across threads."""

from .executor import TraceContextExecutor, run_in_context

__all__ = ["TraceContextExecutor", "run_in_context"]
