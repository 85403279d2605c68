from __future__ import annotations

import uuid

from .result import Result, VALIDATION_ERROR, failure, success


def new_id() -> str:
    """Opaque, globally-unique identifier assigned at creation time."""
    return uuid.uuid4().hex


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def clean_optional(value: str | None) -> str | None:
    """Blank strings collapse to None; anything else is trimmed."""
    if is_blank(value):
        return None
    return str(value).strip()


def require_text(value: str | None, field: str, label: str | None = None) -> Result[str]:
    if is_blank(value):
        return failure(VALIDATION_ERROR, f"{label or field} is required", field)
    return success(str(value).strip())


def require_choice(value: str | None, choices: frozenset[str], field: str) -> Result[str]:
    if value not in choices:
        return failure(
            VALIDATION_ERROR,
            f"{field} must be one of: {', '.join(sorted(choices))}",
            field,
        )
    return success(value)


def optional_choice(value: str | None, choices: frozenset[str], field: str) -> Result[str | None]:
    if value is None:
        return success(None)
    return require_choice(value, choices, field)


def validate_score(value, low: int, high: int, field: str) -> Result[int]:
    """
    Closed-range integer guard shared by feedback scores.

    Booleans and floats are rejected even when they compare in range.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return failure(VALIDATION_ERROR, f"{field} must be an integer", field)
    if value < low or value > high:
        return failure(VALIDATION_ERROR, f"{field} must be between {low} and {high}", field)
    return success(value)
