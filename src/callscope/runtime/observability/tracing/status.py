"""Normalized span status and translation from transport outcomes.

Two unrelated input shapes, a numeric response code and a caught fault, both
collapse into one small status enumeration so backends only need to
understand one taxonomy:

    >>> to_status(Completed(404)).code
    <StatusCode.NOT_FOUND: 'NotFound'>
    >>> to_status(Faulted.from_exception(TimeoutError("read"))).code
    <StatusCode.DEADLINE_EXCEEDED: 'DeadlineExceeded'>

The outcome is a tagged variant (`Completed | Faulted`) consumed by the single
total function `to_status`. Classification of exceptions happens once, at the
boundary, in `Faulted.from_exception`.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import traceback
from dataclasses import dataclass
from enum import StrEnum
from http import HTTPStatus
from typing import ClassVar, Self, TypeAlias

import httpx
from pydantic import BaseModel, ConfigDict


class StatusCode(StrEnum):
    """Canonical status codes understood by tracing backends."""

    OK = "Ok"
    INVALID_ARGUMENT = "InvalidArgument"
    UNAUTHENTICATED = "Unauthenticated"
    PERMISSION_DENIED = "PermissionDenied"
    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    RESOURCE_EXHAUSTED = "ResourceExhausted"
    CANCELLED = "Cancelled"
    UNIMPLEMENTED = "Unimplemented"
    UNAVAILABLE = "Unavailable"
    DEADLINE_EXCEEDED = "DeadlineExceeded"
    UNKNOWN = "Unknown"


class Status(BaseModel):
    """Immutable status value: a code plus optional description.

    Constants for every code are available as class attributes
    (`Status.OK`, `Status.NOT_FOUND`, ...) and carry no description.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", revalidate_instances="never")

    code: StatusCode
    description: str | None = None

    OK: ClassVar[Status]
    INVALID_ARGUMENT: ClassVar[Status]
    UNAUTHENTICATED: ClassVar[Status]
    PERMISSION_DENIED: ClassVar[Status]
    NOT_FOUND: ClassVar[Status]
    ALREADY_EXISTS: ClassVar[Status]
    RESOURCE_EXHAUSTED: ClassVar[Status]
    CANCELLED: ClassVar[Status]
    UNIMPLEMENTED: ClassVar[Status]
    UNAVAILABLE: ClassVar[Status]
    DEADLINE_EXCEEDED: ClassVar[Status]
    UNKNOWN: ClassVar[Status]

    @property
    def is_ok(self) -> bool:
        return self.code is StatusCode.OK

    def with_description(self, description: str | None) -> Self:
        """Return a copy carrying `description` (the original is unchanged)."""
        if description == self.description:
            return self
        return self.model_copy(update={"description": description})

    def __str__(self) -> str:
        return f"{self.code.value}: {self.description}" if self.description else self.code.value


for _code in StatusCode:
    setattr(Status, _code.name, Status(code=_code))


# ─────────────────────────────────────────────────────────────────────────────
# Outcome Variants
# ─────────────────────────────────────────────────────────────────────────────


class FaultCategory(StrEnum):
    """Coarse fault classification relevant to status translation."""

    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Completed:
    """The call returned a response code."""

    code: int


@dataclass(frozen=True, slots=True)
class Faulted:
    """The call raised instead of returning a code."""

    category: FaultCategory
    detail: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> Faulted:
        """Classify an exception and capture its detail text."""
        return cls(classify_fault(exc), fault_detail(exc))


Outcome: TypeAlias = Completed | Faulted


_TIMEOUT_TYPES: tuple[type[BaseException], ...] = (
    TimeoutError, asyncio.TimeoutError, concurrent.futures.TimeoutError, httpx.TimeoutException,
)
_CANCELLED_TYPES: tuple[type[BaseException], ...] = (asyncio.CancelledError, concurrent.futures.CancelledError)


def classify_fault(exc: BaseException) -> FaultCategory:
    """Map an exception onto its fault category."""
    if isinstance(exc, _TIMEOUT_TYPES):
        return FaultCategory.TIMEOUT
    if isinstance(exc, _CANCELLED_TYPES):
        return FaultCategory.CANCELLED
    return FaultCategory.OTHER


def fault_detail(exc: BaseException) -> str:
    """Single-line `Type: message` rendering of an exception."""
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


# ─────────────────────────────────────────────────────────────────────────────
# Translation
# ─────────────────────────────────────────────────────────────────────────────

# Exact code -> status table; 2xx/3xx is the only range
_CODE_STATUS: dict[int, StatusCode] = {
    400: StatusCode.INVALID_ARGUMENT,
    401: StatusCode.UNAUTHENTICATED,
    403: StatusCode.PERMISSION_DENIED,
    404: StatusCode.NOT_FOUND,
    409: StatusCode.ALREADY_EXISTS,
    429: StatusCode.RESOURCE_EXHAUSTED,
    499: StatusCode.CANCELLED,
    501: StatusCode.UNIMPLEMENTED,
    503: StatusCode.UNAVAILABLE,
    504: StatusCode.DEADLINE_EXCEEDED,
}

_FAULT_STATUS: dict[FaultCategory, StatusCode] = {
    FaultCategory.TIMEOUT: StatusCode.DEADLINE_EXCEEDED,
    FaultCategory.CANCELLED: StatusCode.CANCELLED,
    FaultCategory.OTHER: StatusCode.UNKNOWN,
}


def code_name(code: int) -> str:
    """Textual name of a response code, e.g. ``"404 Not Found"``; bare number if unregistered."""
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return str(code)


def to_status(outcome: Outcome) -> Status:
    """Translate a call outcome into exactly one normalized status.

    Response codes 200-399 are Ok; the codes in the fixed table map to their
    status; any other code is Unknown. Code-derived statuses describe the
    original code by name. Faults map by category and carry the fault detail.
    """
    match outcome:
        case Completed(code=code):
            if 200 <= code < 400:
                status_code = StatusCode.OK
            else:
                status_code = _CODE_STATUS.get(code, StatusCode.UNKNOWN)
            return Status(code=status_code, description=code_name(code))
        case Faulted(category=category, detail=detail):
            return Status(code=_FAULT_STATUS[category], description=detail)
    raise TypeError(f"Unsupported outcome: {outcome!r}")


def status_from_code(code: int) -> Status:
    """Shortcut for ``to_status(Completed(code))``."""
    return to_status(Completed(code))


def status_from_exception(exc: BaseException) -> Status:
    """Shortcut for ``to_status(Faulted.from_exception(exc))``."""
    return to_status(Faulted.from_exception(exc))
