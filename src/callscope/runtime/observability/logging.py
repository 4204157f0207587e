"""Logging setup with trace correlation.

Modules log through standard `logging` under the ``callscope.*`` namespace.
`configure_logging` installs one handler whose records carry the trace and
span id of the ambient span, rendered either as text or as JSON lines.

    >>> configure_logging(LoggingSettings(format="json"))
    >>> logging.getLogger("callscope.demo").info("request done")
    {"timestamp": "...", "level": "info", "logger": "callscope.demo", "event": "request done",
     "trace_id": "4bf9...", "span_id": "00f0..."}
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TextIO

import orjson

from .tracing.context import current_span

if TYPE_CHECKING:
    from callscope.foundation.config import LoggingSettings

_ROOT = "callscope"
_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_TEXT_FORMAT_TRACED = "%(asctime)s [%(levelname)s] %(name)s: %(message)s trace_id=%(trace_id)s span_id=%(span_id)s"

# Attributes every LogRecord has; anything else was passed via `extra=`
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class TraceContextFilter(logging.Filter):
    """Stamp each record with the ambient span's ids ("-" outside a span)."""

    def filter(self, record: logging.LogRecord) -> bool:
        span = current_span()
        record.trace_id = span.context.trace_id if span else "-"
        record.span_id = span.context.span_id if span else "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update({k: v for k, v in vars(record).items() if k not in _RESERVED})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


def configure_logging(settings: LoggingSettings | None = None, *, stream: TextIO | None = None) -> logging.Logger:
    """Configure the ``callscope`` logger tree. Safe to call repeatedly.

    Returns the package root logger.
    """
    if settings is None:
        from callscope.foundation.config import get_settings
        settings = get_settings().logging

    root = logging.getLogger(_ROOT)
    for handler in [h for h in root.handlers if getattr(h, "_callscope", False)]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._callscope = True  # type: ignore[attr-defined]
    if settings.include_trace_ids:
        handler.addFilter(TraceContextFilter())
    if settings.format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT_TRACED if settings.include_trace_ids else _TEXT_FORMAT))

    root.addHandler(handler)
    root.setLevel(settings.level)
    root.propagate = False
    return root
