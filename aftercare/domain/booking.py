# Overview: Appointment values and the booking-conflict checker.

"""
Appointment Booking

WHY: A customer (the booking subject) must never hold two live appointments
whose time ranges overlap. The checker decides that question; it does not
fetch anything. Callers supply the candidate appointments for the subject,
usually pre-filtered to a date window.

INTERVALS ARE HALF-OPEN:
    [start, end) overlaps [s2, e2)  <=>  start < e2 and s2 < end

    10:00-11:00 vs 10:30-11:30  -> conflict
    10:00-11:00 vs 11:00-12:00  -> no conflict (touching)

Cancelled appointments never conflict. When rescheduling, the appointment
being moved is excluded from its own scan.

CONCURRENCY: check-then-insert is only safe inside the subject-locked
transaction run by appointment_service.book_appointment.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable

from .common import clean_optional, new_id, require_choice, require_text
from .result import (
    Result,
    BOOKING_CONFLICT,
    CANCELLED,
    INVALID_INTERVAL,
    VALIDATION_ERROR,
    failure,
    success,
)
from ..time_utils import to_naive_utc, utcnow


APPOINTMENT_SCHEDULED = "scheduled"
APPOINTMENT_CANCELLED = "cancelled"

APPOINTMENT_TYPES = frozenset({
    "consultation",
    "fitting",
    "styling",
    "product_demo",
    "personal_shopping",
})

# Listing windows relative to "now": upcoming is start > now, ongoing is
# start <= now < end, past is end <= now. Each appointment is in exactly one.
WINDOW_UPCOMING = "upcoming"
WINDOW_ONGOING = "ongoing"
WINDOW_PAST = "past"
APPOINTMENT_WINDOWS = frozenset({WINDOW_UPCOMING, WINDOW_ONGOING, WINDOW_PAST})


@dataclass(frozen=True)
class Appointment:
    id: str
    user_id: str
    type: str
    start_at: datetime
    end_at: datetime
    location_id: str | None = None
    notes: str | None = None
    status: str = APPOINTMENT_SCHEDULED

    @property
    def is_cancelled(self) -> bool:
        return self.status == APPOINTMENT_CANCELLED

    @property
    def duration(self) -> timedelta:
        return self.end_at - self.start_at


# =============================================================================
# CONFLICT CHECKER
# =============================================================================

def check_interval(start: datetime | None, end: datetime | None) -> Result[tuple[datetime, datetime]]:
    """Normalize both ends to naive UTC and require start < end."""
    if start is None or end is None:
        return failure(INVALID_INTERVAL, "Start and end time are required", "start_at", "end_at")
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start >= end:
        return failure(INVALID_INTERVAL, "End time must be after start time", "start_at", "end_at")
    return success((start, end))


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    return start < other_end and other_start < end


def find_conflicts(
    subject_id: str,
    start: datetime,
    end: datetime,
    candidates: Iterable[Appointment],
    *,
    exclude_id: str | None = None,
) -> list[Appointment]:
    """
    Live appointments of ``subject_id`` overlapping [start, end).

    Candidates belonging to other subjects are ignored, so a caller may
    pass a coarse date-window query without filtering by subject first.
    """
    return [
        appt for appt in candidates
        if appt.user_id == subject_id
        and not appt.is_cancelled
        and appt.id != exclude_id
        and overlaps(start, end, appt.start_at, appt.end_at)
    ]


def has_conflict(
    subject_id: str,
    start: datetime,
    end: datetime,
    candidates: Iterable[Appointment],
    *,
    exclude_id: str | None = None,
) -> bool:
    return bool(find_conflicts(subject_id, start, end, candidates, exclude_id=exclude_id))


def check_booking(
    subject_id: str,
    start: datetime | None,
    end: datetime | None,
    candidates: Iterable[Appointment],
    *,
    exclude_id: str | None = None,
) -> Result[tuple[datetime, datetime]]:
    """
    Approve a time window for ``subject_id``.

    Returns:
        success((start, end)) normalized, or
        INVALID_INTERVAL when start >= end, or
        BOOKING_CONFLICT naming the clashing appointment ids
    """
    window = check_interval(start, end)
    if not window.ok:
        return window
    start, end = window.value

    clashes = find_conflicts(subject_id, start, end, candidates, exclude_id=exclude_id)
    if clashes:
        ids = ", ".join(appt.id for appt in clashes)
        return failure(
            BOOKING_CONFLICT,
            f"Appointment conflicts with an existing appointment for this user ({ids})",
            "start_at",
            "end_at",
        )
    return window


# =============================================================================
# APPOINTMENT LIFECYCLE
# =============================================================================

def _ensure_not_past(start: datetime, now: datetime | None) -> Result[datetime]:
    if start < (now or utcnow()):
        return failure(VALIDATION_ERROR, "Start time cannot be in the past", "start_at")
    return success(start)


def create_appointment(
    *,
    user_id: str | None,
    type: str | None,
    start_at: datetime | None,
    end_at: datetime | None,
    location_id: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Result[Appointment]:
    """
    Build a scheduled appointment. Does NOT check conflicts; that needs the
    subject's candidate set and is done by check_booking.
    """
    subject = require_text(user_id, "user_id", "User ID")
    if not subject.ok:
        return subject
    kind = require_choice(type, APPOINTMENT_TYPES, "type")
    if not kind.ok:
        return kind
    window = check_interval(start_at, end_at)
    if not window.ok:
        return window
    start, end = window.value
    upcoming = _ensure_not_past(start, now)
    if not upcoming.ok:
        return upcoming

    return success(Appointment(
        id=new_id(),
        user_id=subject.value,
        type=type,
        start_at=start,
        end_at=end,
        location_id=location_id or None,
        notes=clean_optional(notes),
    ))


def _ensure_live(appt: Appointment) -> Result[Appointment]:
    if appt.is_cancelled:
        return failure(CANCELLED, "Appointment is cancelled", "status")
    return success(appt)


def reschedule(
    appt: Appointment,
    start_at: datetime | None,
    end_at: datetime | None,
    candidates: Iterable[Appointment] = (),
    *,
    now: datetime | None = None,
) -> Result[Appointment]:
    """Move to a new window; the appointment itself never blocks its own move."""
    live = _ensure_live(appt)
    if not live.ok:
        return live
    window = check_interval(start_at, end_at)
    if not window.ok:
        return window
    upcoming = _ensure_not_past(window.value[0], now)
    if not upcoming.ok:
        return failure(VALIDATION_ERROR, "Cannot reschedule to a past time", "start_at")

    approved = check_booking(appt.user_id, *window.value, candidates, exclude_id=appt.id)
    if not approved.ok:
        return approved
    start, end = approved.value
    return success(replace(appt, start_at=start, end_at=end))


def cancel_appointment(appt: Appointment) -> Result[Appointment]:
    live = _ensure_live(appt)
    if not live.ok:
        return live
    return success(replace(appt, status=APPOINTMENT_CANCELLED))


def update_appointment_notes(appt: Appointment, notes: str | None) -> Result[Appointment]:
    live = _ensure_live(appt)
    if not live.ok:
        return live
    return success(replace(appt, notes=clean_optional(notes)))


def update_appointment_location(appt: Appointment, location_id: str | None) -> Result[Appointment]:
    live = _ensure_live(appt)
    if not live.ok:
        return live
    return success(replace(appt, location_id=location_id or None))


def update_details(appt: Appointment, **changes) -> Result[Appointment]:
    edits = (("notes", update_appointment_notes), ("location_id", update_appointment_location))
    live = _ensure_live(appt)
    if not live.ok:
        return live
    for name, edit in edits:
        if name in changes:
            result = edit(appt, changes[name])
            if not result.ok:
                return result
            appt = result.value
    return success(appt)
