# Overview: Result values returned by every guarded domain operation.

"""
Domain results.

Guard violations are values, not exceptions: every operation returns a
Result holding either the new entity or a Failure. A Failure carries a
stable kind (one of the constants below), a human-readable message, and
the names of the fields involved. Callers branch on ``result.ok``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar


# Input problems (client must fix the request)
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_INTERVAL = "INVALID_INTERVAL"
EMPTY_AGENT_ID = "EMPTY_AGENT_ID"

# Lifecycle problems (client should re-fetch and decide)
INVALID_TRANSITION = "INVALID_TRANSITION"
FINALIZED = "FINALIZED"
ALREADY_FINALIZED = "ALREADY_FINALIZED"
CLOSED = "CLOSED"
ALREADY_CLOSED = "ALREADY_CLOSED"
SESSION_ENDED = "SESSION_ENDED"
ALREADY_ENDED = "ALREADY_ENDED"
CANCELLED = "CANCELLED"

BOOKING_CONFLICT = "BOOKING_CONFLICT"

# Raised by the integration layer only
NOT_FOUND = "NOT_FOUND"
STORAGE_ERROR = "STORAGE_ERROR"

INPUT_KINDS = frozenset({VALIDATION_ERROR, INVALID_INTERVAL, EMPTY_AGENT_ID})
LIFECYCLE_KINDS = frozenset({
    INVALID_TRANSITION,
    FINALIZED,
    ALREADY_FINALIZED,
    CLOSED,
    ALREADY_CLOSED,
    SESSION_ENDED,
    ALREADY_ENDED,
    CANCELLED,
})

T = TypeVar("T")


@dataclass(frozen=True)
class Failure:
    kind: str
    message: str
    fields: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind, "fields": list(self.fields)}


class WorkflowError(ValueError):
    """Raised by Result.unwrap() for callers that prefer exceptions."""

    def __init__(self, failure: Failure):
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> str:
        return self.failure.kind


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise WorkflowError(self.error)
        return self.value  # type: ignore[return-value]


def success(value: T) -> Result[T]:
    return Result(value=value)


def failure(kind: str, message: str, *fields: str) -> Result:
    return Result(error=Failure(kind=kind, message=message, fields=tuple(fields)))
