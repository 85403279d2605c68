from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from aftercare.domain import booking
from aftercare.domain.result import (
    BOOKING_CONFLICT,
    CANCELLED,
    INVALID_INTERVAL,
    VALIDATION_ERROR,
)


DAY = datetime(2030, 6, 10)
NOW = datetime(2030, 6, 1, 8, 0)


def t(hour, minute=0):
    return DAY.replace(hour=hour, minute=minute)


def _appointment(user_id="U1", start=None, end=None, **attrs):
    return booking.create_appointment(
        user_id=user_id,
        type="fitting",
        start_at=start or t(10),
        end_at=end or t(11),
        now=NOW,
        **attrs,
    ).unwrap()


@pytest.fixture
def existing():
    return [_appointment()]


@pytest.mark.parametrize("start, end, clash", [
    (t(10, 30), t(11, 30), True),
    (t(11), t(12), False),
    (t(9), t(10), False),
    (t(9, 30), t(10, 30), True),
    (t(10, 15), t(10, 45), True),
    (t(9), t(12), True),
])
def test_half_open_overlap_cases(existing, start, end, clash):
    assert booking.has_conflict("U1", start, end, existing) is clash


def test_other_subjects_never_conflict(existing):
    assert not booking.has_conflict("U2", t(10), t(11), existing)


def test_cancelled_appointments_never_conflict(existing):
    cancelled = [booking.cancel_appointment(existing[0]).unwrap()]
    assert not booking.has_conflict("U1", t(10), t(11), cancelled)


def test_excluded_id_is_skipped(existing):
    assert not booking.has_conflict("U1", t(10), t(11), existing, exclude_id=existing[0].id)


def test_check_booking_reports_conflicting_ids(existing):
    result = booking.check_booking("U1", t(10, 30), t(11, 30), existing)
    assert result.error.kind == BOOKING_CONFLICT
    assert existing[0].id in result.error.message


@pytest.mark.parametrize("start, end", [(t(11), t(10)), (t(10), t(10)), (None, t(10))])
def test_invalid_interval(start, end):
    assert booking.check_booking("U1", start, end, []).error.kind == INVALID_INTERVAL


def test_aware_datetimes_are_normalized_to_utc():
    plus_two = timezone(timedelta(hours=2))
    result = booking.check_interval(
        datetime(2030, 6, 10, 12, 0, tzinfo=plus_two),
        datetime(2030, 6, 10, 13, 0, tzinfo=plus_two),
    )
    assert result.value == (t(10), t(11))


def test_create_appointment_validation():
    base = dict(user_id="U1", type="fitting", start_at=t(10), end_at=t(11), now=NOW)
    assert booking.create_appointment(**{**base, "user_id": " "}).error.fields == ("user_id",)
    assert booking.create_appointment(**{**base, "type": "massage"}).error.fields == ("type",)
    assert booking.create_appointment(**{**base, "end_at": t(9)}).error.kind == INVALID_INTERVAL

    past = booking.create_appointment(**{**base, "now": t(12)})
    assert past.error.kind == VALIDATION_ERROR
    assert past.error.fields == ("start_at",)


def test_appointment_duration():
    appt = _appointment()
    assert appt.duration == timedelta(hours=1)


def test_reschedule_excludes_itself(existing):
    moved = booking.reschedule(existing[0], t(10, 30), t(11, 30), existing, now=NOW).unwrap()
    assert (moved.start_at, moved.end_at) == (t(10, 30), t(11, 30))
    assert moved.id == existing[0].id


def test_reschedule_into_another_appointment(existing):
    other = _appointment(start=t(14), end=t(15))
    result = booking.reschedule(other, t(10, 30), t(11, 30), existing + [other], now=NOW)
    assert result.error.kind == BOOKING_CONFLICT


def test_reschedule_to_the_past(existing):
    result = booking.reschedule(existing[0], t(8), t(9), existing, now=t(9, 30))
    assert result.error.kind == VALIDATION_ERROR


def test_cancelled_appointment_is_frozen(existing):
    cancelled = booking.cancel_appointment(existing[0]).unwrap()
    assert cancelled.is_cancelled
    assert booking.cancel_appointment(cancelled).error.kind == CANCELLED
    assert booking.reschedule(cancelled, t(12), t(13), now=NOW).error.kind == CANCELLED
    assert booking.update_appointment_notes(cancelled, "x").error.kind == CANCELLED
    assert booking.update_details(cancelled, location_id="store-2").error.kind == CANCELLED


def test_update_details(existing):
    appt = booking.update_details(existing[0], notes="  bring receipt ", location_id="store-2").unwrap()
    assert appt.notes == "bring receipt"
    assert appt.location_id == "store-2"
    assert replace(appt, notes=None, location_id=None) == existing[0]
