# Overview: Appointment booking with race-free conflict checks, plus reschedule/cancel.

"""
Appointment Service

WHY: The conflict checker in domain.booking only answers "does this window
overlap what I was shown?". Two concurrent bookings for the same customer
would both be shown an empty calendar and both pass. This module closes
that race at the storage boundary.

DESIGN (per booking subject = user_id):
1. Bump the subject's BookingSubject row (created on first booking).
   The row carries a version_id, and is read FOR UPDATE where supported.
2. Read the subject's live appointments in a coarse day window.
3. Run check_booking / reschedule against them.
4. Insert or update the appointment and commit.

A concurrent booking for the same subject either waits on the row lock
or loses the version check (StaleDataError) / hits "database is locked"
(OperationalError on SQLite). The whole unit is then retried with backoff
and the second attempt sees the committed appointment, so exactly one of
the racing bookings succeeds and the other gets BOOKING_CONFLICT.

BACKSTOP: on PostgreSQL an exclusion constraint rejects overlapping live
rows for one user. An IntegrityError at commit is reported as
BOOKING_CONFLICT rather than a storage failure.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..domain import booking as checker
from ..domain.result import BOOKING_CONFLICT, Result, failure, success
from ..extensions import db
from ..models import AppointmentRecord, BookingSubject
from ..time_utils import day_window, utcnow
from .commands import not_found, run_command, run_unit
from .snapshots import SnapshotRepository


appointments = SnapshotRepository(AppointmentRecord)

LABEL = "Appointment"


def _retry_settings() -> dict:
    return {
        "attempts": current_app.config.get("BOOKING_RETRY_ATTEMPTS", 5),
        "backoff_base": current_app.config.get("BOOKING_RETRY_BACKOFF", 0.05),
    }


# =============================================================================
# SUBJECT LOCK
# =============================================================================

def _lock_subject(subject_id: str) -> BookingSubject:
    """
    Claim the booking subject for the current transaction.

    Raises StaleDataError when another transaction created the subject row
    first, so run_with_retry restarts the unit against fresh state.
    """
    stamp = utcnow()
    subject = db.session.get(BookingSubject, subject_id, with_for_update=True)
    if subject is None:
        subject = BookingSubject(subject_id=subject_id, last_booked_at=stamp, booking_count=1)
        db.session.add(subject)
        try:
            db.session.flush()
        except IntegrityError as exc:
            db.session.rollback()
            raise StaleDataError(f"booking subject {subject_id} was created concurrently") from exc
        return subject

    subject.last_booked_at = stamp
    subject.booking_count = (subject.booking_count or 0) + 1
    # UPDATE ... WHERE version_id = :seen; a concurrent winner makes this stale
    db.session.flush()
    return subject


def _candidates(subject_id: str, start: datetime, end: datetime) -> list:
    """Live appointments of the subject touching the days of [start, end)."""
    window_start, window_end = day_window(start, end)
    return appointments.list(
        AppointmentRecord.status != checker.APPOINTMENT_CANCELLED,
        AppointmentRecord.start_at < window_end,
        AppointmentRecord.end_at > window_start,
        user_id=subject_id,
        order_by=AppointmentRecord.start_at,
    )


def _commit_booking(result: Result, subject_id: str) -> Result:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning("Booking backstop rejected overlapping appointment for %s", subject_id)
        return failure(
            BOOKING_CONFLICT,
            "Appointment conflicts with an existing appointment for this user",
            "start_at",
            "end_at",
        )
    return result


# =============================================================================
# COMMANDS
# =============================================================================

def book_appointment(
    *,
    user_id: str | None,
    type: str | None,
    start_at: datetime | None,
    end_at: datetime | None,
    location_id: str | None = None,
    notes: str | None = None,
) -> Result:
    """
    Create a scheduled appointment if the subject has no overlapping live one.

    Returns:
        success(Appointment), or VALIDATION_ERROR / INVALID_INTERVAL from the
        factory, or BOOKING_CONFLICT
    """
    built = checker.create_appointment(
        user_id=user_id,
        type=type,
        start_at=start_at,
        end_at=end_at,
        location_id=location_id,
        notes=notes,
    )
    if not built.ok:
        return built
    appt = built.value

    def _unit() -> Result:
        _lock_subject(appt.user_id)
        approved = checker.check_booking(
            appt.user_id,
            appt.start_at,
            appt.end_at,
            _candidates(appt.user_id, appt.start_at, appt.end_at),
        )
        if not approved.ok:
            db.session.rollback()
            return approved

        appointments.save(appt)
        return _commit_booking(success(appt), appt.user_id)

    return run_unit(_unit, action="book appointment", key=appt.user_id, **_retry_settings())


def reschedule_appointment(appointment_id: str, start_at: datetime | None, end_at: datetime | None) -> Result:
    """Move an appointment; it is never counted as a conflict with itself."""
    def _unit() -> Result:
        row = appointments.find_row(appointment_id)
        if row is None:
            db.session.rollback()
            return not_found(LABEL, appointment_id)
        current = row.to_entity()

        window = checker.check_interval(start_at, end_at)
        if current.is_cancelled or not window.ok:
            # CANCELLED / INVALID_INTERVAL need no lock
            db.session.rollback()
            return checker.reschedule(current, start_at, end_at)

        _lock_subject(current.user_id)
        candidates = _candidates(current.user_id, *window.value)
        result = checker.reschedule(current, start_at, end_at, candidates)
        if not result.ok:
            db.session.rollback()
            return result

        row.update_from(result.value)
        return _commit_booking(result, current.user_id)

    return run_unit(_unit, action="reschedule appointment", key=appointment_id, **_retry_settings())


def _run(appointment_id: str, operation, *args, action: str) -> Result:
    return run_command(appointments, appointment_id, operation, *args, label=LABEL, action=action)


def cancel_appointment(appointment_id: str) -> Result:
    return _run(appointment_id, checker.cancel_appointment, action="cancel appointment")


def update_appointment(appointment_id: str, **changes) -> Result:
    return run_command(
        appointments,
        appointment_id,
        checker.update_details,
        label=LABEL,
        action="update appointment",
        **changes,
    )


def update_appointment_notes(appointment_id: str, notes: str | None) -> Result:
    return _run(appointment_id, checker.update_appointment_notes, notes, action="update appointment notes")


def update_appointment_location(appointment_id: str, location_id: str | None) -> Result:
    return _run(appointment_id, checker.update_appointment_location, location_id, action="update appointment location")


# =============================================================================
# QUERIES
# =============================================================================

def get_appointment(appointment_id: str) -> Result:
    entity = appointments.find(appointment_id)
    if entity is None:
        return not_found(LABEL, appointment_id)
    return success(entity)


def _window_criteria(when: str, now: datetime) -> list:
    if when == checker.WINDOW_UPCOMING:
        return [AppointmentRecord.start_at > now]
    if when == checker.WINDOW_ONGOING:
        return [AppointmentRecord.start_at <= now, AppointmentRecord.end_at > now]
    if when == checker.WINDOW_PAST:
        return [AppointmentRecord.end_at <= now]
    raise ValueError(f"Unknown appointment window: {when}")


def list_appointments(
    *,
    user_id: str | None = None,
    location_id: str | None = None,
    status: str | None = None,
    appointment_type: str | None = None,
    when: str | None = None,
    start_from: datetime | None = None,
    start_to: datetime | None = None,
    limit: int = 200,
    now: datetime | None = None,
) -> list:
    """
    Appointments ordered by start time.

    ``when`` narrows to upcoming, ongoing or past relative to ``now``
    (default: the current UTC time). The three windows never overlap.
    """
    criteria = []
    if when:
        criteria.extend(_window_criteria(when, now or utcnow()))
    if start_from is not None:
        criteria.append(AppointmentRecord.start_at >= start_from)
    if start_to is not None:
        criteria.append(AppointmentRecord.start_at < start_to)
    filters = {
        key: value
        for key, value in (
            ("user_id", user_id),
            ("location_id", location_id),
            ("status", status),
            ("type", appointment_type),
        )
        if value
    }
    return appointments.list(*criteria, order_by=AppointmentRecord.start_at, limit=limit, **filters)


def check_availability(
    user_id: str,
    start_at: datetime | None,
    end_at: datetime | None,
    *,
    exclude_id: str | None = None,
) -> Result:
    """
    Advisory conflict check without booking anything.

    The answer can be stale by the time the caller books; book_appointment
    re-checks under the subject lock.
    """
    window = checker.check_interval(start_at, end_at)
    if not window.ok:
        return window
    return checker.check_booking(
        user_id,
        *window.value,
        _candidates(user_id, *window.value),
        exclude_id=exclude_id,
    )


def find_overlaps() -> list[tuple]:
    """
    Pairs of live appointments for the same user that overlap.

    Used by `flask bookings audit`; an empty list is the healthy state.
    """
    live = appointments.list(
        AppointmentRecord.status != checker.APPOINTMENT_CANCELLED,
        order_by=AppointmentRecord.start_at,
    )
    by_user: dict[str, list] = {}
    for appt in live:
        by_user.setdefault(appt.user_id, []).append(appt)

    clashes = []
    for user_appointments in by_user.values():
        for index, appt in enumerate(user_appointments):
            for later in user_appointments[index + 1:]:
                if later.start_at >= appt.end_at:
                    break
                clashes.append((appt, later))
    return clashes
