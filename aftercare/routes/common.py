# Overview: JSON serialization of domain snapshots and failure -> HTTP status mapping.

from __future__ import annotations

import dataclasses
from datetime import datetime

from flask import jsonify

from ..domain.result import (
    BOOKING_CONFLICT,
    INPUT_KINDS,
    LIFECYCLE_KINDS,
    NOT_FOUND,
    STORAGE_ERROR,
    Failure,
    Result,
)
from ..time_utils import to_utc_z


def status_for(failure: Failure) -> int:
    if failure.kind in INPUT_KINDS:
        return 400
    if failure.kind == NOT_FOUND:
        return 404
    if failure.kind in LIFECYCLE_KINDS or failure.kind == BOOKING_CONFLICT:
        return 409
    if failure.kind == STORAGE_ERROR:
        return 503
    return 400


def to_json(value):
    """Snapshots become dicts; datetimes become ISO-8601 with trailing Z."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


def failure_response(failure: Failure):
    return jsonify(failure.to_dict()), status_for(failure)


def respond(result: Result, key: str, status: int = 200):
    """``{key: value}`` on success, the failure body and mapped status otherwise."""
    if not result.ok:
        return failure_response(result.error)
    return jsonify({key: to_json(result.value)}), status


def respond_list(values: list, key: str):
    return jsonify({key: to_json(values), "count": len(values)}), 200
