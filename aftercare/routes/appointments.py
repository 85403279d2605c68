# Overview: Flask API routes for appointment booking, availability, reschedule and cancel.

"""
Appointment API Routes

Booking is conflict-checked per user on half-open intervals:
[10:00, 11:00) and [11:00, 12:00) do not clash. A clash is 409 with kind
BOOKING_CONFLICT; an end at or before the start is 400 INVALID_INTERVAL.
Timestamps are ISO-8601; naive values are taken as UTC.
"""

from flask import Blueprint, request

from ..decorators import handle_errors
from ..domain.booking import APPOINTMENT_TYPES, APPOINTMENT_WINDOWS
from ..models import AppointmentRecord
from ..services import appointment_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    parse_datetime_arg,
    parse_limit,
    require_json,
    validate_payload,
)
from .common import failure_response, respond, respond_list


appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


BOOK_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "type", "start_at", "end_at", "location_id", "notes"},
    required_on_create={"user_id", "type", "start_at", "end_at"},
)
WINDOW_POLICY = ModelValidationPolicy(
    writable_fields={"start_at", "end_at"},
    required_on_create={"start_at", "end_at"},
)
UPDATE_POLICY = ModelValidationPolicy(writable_fields={"notes", "location_id"})


@appointments_bp.post("/")
@handle_errors("book appointment")
def book_appointment_route():
    """
    Book an appointment.

    Request body:
    {
        "user_id": "cust-1",
        "type": "consultation" | "fitting" | "styling" | "product_demo" | "personal_shopping",
        "start_at": "2026-11-02T10:00:00Z",
        "end_at": "2026-11-02T11:00:00Z",
        "location_id": "store-3",  (optional)
        "notes": "..."             (optional)
    }

    Returns:
        201: Booked
        400: Invalid input, start in the past, or INVALID_INTERVAL
        409: BOOKING_CONFLICT
    """
    data = validate_payload(
        model=AppointmentRecord,
        payload=require_json(request),
        policy=BOOK_POLICY,
        partial=False,
    )
    return respond(appointment_service.book_appointment(**data), "appointment", 201)


@appointments_bp.get("/")
@handle_errors("list appointments")
def list_appointments_route():
    """
    Query: user_id, location_id, status, type, from, to, limit and
    when=upcoming|ongoing|past (relative to the current UTC time).
    """
    appointment_type = request.args.get("type") or None
    if appointment_type is not None and appointment_type not in APPOINTMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(sorted(APPOINTMENT_TYPES))}")
    when = request.args.get("when") or None
    if when is not None and when not in APPOINTMENT_WINDOWS:
        raise ValidationError(f"when must be one of: {', '.join(sorted(APPOINTMENT_WINDOWS))}")

    appointments = appointment_service.list_appointments(
        user_id=request.args.get("user_id"),
        location_id=request.args.get("location_id"),
        status=request.args.get("status"),
        appointment_type=appointment_type,
        when=when,
        start_from=parse_datetime_arg(request.args, "from"),
        start_to=parse_datetime_arg(request.args, "to"),
        limit=parse_limit(request.args, default=200),
    )
    return respond_list(appointments, "appointments")


@appointments_bp.get("/availability")
@handle_errors("check availability")
def availability_route():
    """
    Advisory check: ?user_id=...&start_at=...&end_at=...[&exclude_id=...]

    Returns 200 {"available": true} or the failure body with its status.
    """
    user_id = request.args.get("user_id")
    if not user_id:
        raise ValidationError("user_id is required")
    result = appointment_service.check_availability(
        user_id,
        parse_datetime_arg(request.args, "start_at"),
        parse_datetime_arg(request.args, "end_at"),
        exclude_id=request.args.get("exclude_id"),
    )
    if not result.ok:
        return failure_response(result.error)
    return {"available": True}, 200


@appointments_bp.get("/<appointment_id>")
@handle_errors("get appointment")
def get_appointment_route(appointment_id: str):
    return respond(appointment_service.get_appointment(appointment_id), "appointment")


@appointments_bp.post("/<appointment_id>/reschedule")
@handle_errors("reschedule appointment")
def reschedule_route(appointment_id: str):
    """Request body: {"start_at": "...", "end_at": "..."}"""
    data = validate_payload(
        model=AppointmentRecord,
        payload=require_json(request),
        policy=WINDOW_POLICY,
        partial=False,
    )
    result = appointment_service.reschedule_appointment(appointment_id, data["start_at"], data["end_at"])
    return respond(result, "appointment")


@appointments_bp.post("/<appointment_id>/cancel")
@handle_errors("cancel appointment")
def cancel_route(appointment_id: str):
    return respond(appointment_service.cancel_appointment(appointment_id), "appointment")


@appointments_bp.patch("/<appointment_id>")
@handle_errors("update appointment")
def update_appointment_route(appointment_id: str):
    data = validate_payload(
        model=AppointmentRecord,
        payload=require_json(request),
        policy=UPDATE_POLICY,
        partial=True,
    )
    result = appointment_service.update_appointment(appointment_id, **data)
    return respond(result, "appointment")
