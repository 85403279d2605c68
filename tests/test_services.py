"""
Service-level tests: domain guards applied to stored snapshots.

Every command loads the row, applies one domain function and commits only
on success, so a failed guard must leave the stored state untouched.
"""

from datetime import timedelta

import pytest

from aftercare.domain.result import (
    ALREADY_ENDED,
    BOOKING_CONFLICT,
    CANCELLED,
    CLOSED,
    FINALIZED,
    INVALID_TRANSITION,
    NOT_FOUND,
    SESSION_ENDED,
    VALIDATION_ERROR,
)
from aftercare.services import (
    appointment_service,
    chat_service,
    feedback_service,
    repair_service,
    return_service,
    ticket_service,
)
from aftercare.time_utils import utcnow

from conftest import at


# =============================================================================
# RETURNS
# =============================================================================

class TestReturnService:
    def test_full_return_lifecycle(self, db_session):
        rma = return_service.create_return("ORD-1", "return", "too small").unwrap()
        assert rma.status == "eligibility"

        for step in (
            return_service.approve_return,
            return_service.mark_in_transit,
            return_service.mark_received,
            return_service.mark_refunded,
        ):
            assert step(rma.id).ok

        stored = return_service.get_return(rma.id).unwrap()
        assert stored.status == "refunded"
        assert stored.updated_at >= stored.created_at

    def test_failed_guard_leaves_row_untouched(self, db_session):
        rma = return_service.create_return("ORD-1", "exchange").unwrap()
        result = return_service.mark_refunded(rma.id)
        assert result.error.kind == INVALID_TRANSITION
        assert return_service.get_return(rma.id).unwrap().status == "eligibility"

    def test_unknown_return_is_not_found(self, db_session):
        assert return_service.approve_return("missing").error.kind == NOT_FOUND
        assert return_service.list_return_items("missing").error.kind == NOT_FOUND

    def test_reason_frozen_after_reject(self, db_session):
        rma = return_service.create_return("ORD-1", "return").unwrap()
        assert return_service.update_return_reason(rma.id, "wrong colour").unwrap().reason == "wrong colour"
        return_service.reject_return(rma.id).unwrap()
        assert return_service.update_return_reason(rma.id, "other").error.kind == FINALIZED

    def test_items_and_summary(self, db_session):
        rma = return_service.create_return("ORD-1", "return").unwrap()
        return_service.add_return_item(rma.id, "OI-1", 2, fees_cents=300).unwrap()
        return_service.add_return_item(rma.id, "OI-2", 1, condition="used").unwrap()

        duplicate = return_service.add_return_item(rma.id, "OI-1", 1)
        assert duplicate.error.kind == VALIDATION_ERROR
        assert duplicate.error.fields == ("order_item_id",)

        item = return_service.update_return_item(rma.id, "OI-2", quantity=3, disposition="restock").unwrap()
        assert (item.quantity, item.condition, item.disposition) == (3, "used", "restock")

        summary = return_service.return_summary(rma.id).unwrap()
        assert [i.order_item_id for i in summary["items"]] == ["OI-1", "OI-2"]
        assert summary["total_fees_cents"] == 300

        assert return_service.clear_item_fees(rma.id, "OI-1").unwrap().fees_cents is None
        assert return_service.remove_return_item(rma.id, "OI-2").ok
        assert len(return_service.list_return_items(rma.id).unwrap()) == 1

    def test_items_frozen_once_finalized(self, db_session):
        rma = return_service.create_return("ORD-1", "return").unwrap()
        return_service.add_return_item(rma.id, "OI-1", 1).unwrap()
        return_service.reject_return(rma.id).unwrap()

        assert return_service.add_return_item(rma.id, "OI-2", 1).error.kind == FINALIZED
        assert return_service.update_item_quantity(rma.id, "OI-1", 5).error.kind == FINALIZED
        assert return_service.remove_return_item(rma.id, "OI-1").error.kind == FINALIZED
        assert return_service.list_return_items(rma.id).unwrap()[0].quantity == 1

    def test_missing_item_is_not_found(self, db_session):
        rma = return_service.create_return("ORD-1", "return").unwrap()
        assert return_service.set_item_condition(rma.id, "nope", "new").error.kind == NOT_FOUND


# =============================================================================
# REPAIRS / TICKETS
# =============================================================================

def test_repair_notes_log(db_session):
    repair = repair_service.create_repair("OI-9").unwrap()
    repair_service.append_repair_notes(repair.id, "step1").unwrap()
    repair_service.append_repair_notes(repair.id, "done").unwrap()
    repair_service.start_repair(repair.id).unwrap()
    repair_service.complete_repair(repair.id).unwrap()

    stored = repair_service.get_repair(repair.id).unwrap()
    assert stored.notes == "step1\ndone"
    assert repair_service.append_repair_notes(repair.id, "late").error.kind == FINALIZED
    assert repair_service.fail_repair(repair.id).error.kind == INVALID_TRANSITION


def test_list_repairs_filters_by_status(db_session):
    first = repair_service.create_repair("OI-1").unwrap()
    repair_service.create_repair("OI-2").unwrap()
    repair_service.cancel_repair(first.id).unwrap()

    cancelled = repair_service.list_repairs(status="cancelled")
    assert [r.id for r in cancelled] == [first.id]


def test_ticket_conversation(db_session):
    ticket = ticket_service.create_ticket(source="email", subject="Broken zip").unwrap()
    ticket_service.add_ticket_message(ticket.id, "customer", "It broke").unwrap()
    ticket_service.add_ticket_message(ticket.id, "agent", "Sorry!").unwrap()

    assert [m.sender for m in ticket_service.list_ticket_messages(ticket.id).unwrap()] == ["customer", "agent"]
    assert len(ticket_service.list_ticket_messages(ticket.id, sender="agent").unwrap()) == 1

    ticket_service.close_ticket(ticket.id).unwrap()
    assert ticket_service.add_ticket_message(ticket.id, "agent", "Hello?").error.kind == CLOSED
    assert ticket_service.update_ticket(ticket.id, priority="high").error.kind == CLOSED

    ticket_service.reopen_ticket(ticket.id).unwrap()
    updated = ticket_service.update_ticket(ticket.id, subject="Zip broken again", priority="high").unwrap()
    assert (updated.subject, updated.priority, updated.status) == ("Zip broken again", "high", "open")


def test_ticket_message_for_unknown_ticket(db_session):
    assert ticket_service.add_ticket_message("nope", "agent", "hi").error.kind == NOT_FOUND


# =============================================================================
# CHAT
# =============================================================================

def test_chat_session_flow(db_session):
    session = chat_service.start_session(user_id="U1", topic="delivery").unwrap()
    assert session.status == "waiting"

    assigned = chat_service.assign_agent(session.id, "agent-7").unwrap()
    assert (assigned.agent_id, assigned.status) == ("agent-7", "active")
    chat_service.post_message(session.id, "customer", content="Where is my parcel?").unwrap()
    chat_service.post_message(session.id, "bot", content="Agent joined", is_automated=True).unwrap()

    assert len(chat_service.list_messages(session.id, automated=False).unwrap()) == 1
    assert chat_service.session_duration_seconds(session.id).unwrap() is None

    chat_service.end_session(session.id).unwrap()
    assert chat_service.end_session(session.id).error.kind == ALREADY_ENDED
    assert chat_service.post_message(session.id, "agent", content="bye").error.kind == SESSION_ENDED
    assert chat_service.session_duration_seconds(session.id).unwrap() >= 0


def test_end_stale_sessions(db_session):
    idle = chat_service.start_session(user_id="U1").unwrap()
    busy = chat_service.start_session(user_id="U2").unwrap()
    chat_service.post_message(busy.id, "customer", content="still here").unwrap()

    later = utcnow() + timedelta(minutes=30)
    assert chat_service.find_stale_sessions(idle_minutes=60, now=later) == []

    much_later = utcnow() + timedelta(hours=3)
    assert set(chat_service.find_stale_sessions(idle_minutes=60, now=much_later)) == {idle.id, busy.id}

    results = chat_service.end_stale_sessions(idle_minutes=60, now=much_later)
    assert all(r.ok for r in results)
    assert {s.id for s in chat_service.list_sessions(status="ended")} == {idle.id, busy.id}


# =============================================================================
# APPOINTMENTS
# =============================================================================

class TestAppointmentService:
    def _book(self, day, start, end, user_id="U1"):
        return appointment_service.book_appointment(
            user_id=user_id,
            type="consultation",
            start_at=at(day, *start),
            end_at=at(day, *end),
        )

    def test_conflicts_follow_half_open_intervals(self, db_session, tomorrow):
        assert self._book(tomorrow, (10,), (11,)).ok
        assert self._book(tomorrow, (10, 30), (11, 30)).error.kind == BOOKING_CONFLICT
        assert self._book(tomorrow, (9, 30), (10, 30)).error.kind == BOOKING_CONFLICT
        assert self._book(tomorrow, (11,), (12,)).ok
        assert self._book(tomorrow, (9,), (10,)).ok
        assert self._book(tomorrow, (10,), (11,), user_id="U2").ok
        assert len(appointment_service.list_appointments(user_id="U1")) == 3

    def test_cancelled_slot_can_be_rebooked(self, db_session, tomorrow):
        first = self._book(tomorrow, (10,), (11,)).unwrap()
        appointment_service.cancel_appointment(first.id).unwrap()
        assert appointment_service.cancel_appointment(first.id).error.kind == CANCELLED
        assert self._book(tomorrow, (10,), (11,)).ok

    def test_reschedule_ignores_itself(self, db_session, tomorrow):
        appt = self._book(tomorrow, (10,), (11,)).unwrap()
        other = self._book(tomorrow, (13,), (14,)).unwrap()

        moved = appointment_service.reschedule_appointment(appt.id, at(tomorrow, 10, 30), at(tomorrow, 11, 30))
        assert moved.unwrap().start_at == at(tomorrow, 10, 30)

        clash = appointment_service.reschedule_appointment(other.id, at(tomorrow, 11), at(tomorrow, 12))
        assert clash.error.kind == BOOKING_CONFLICT
        assert appointment_service.get_appointment(other.id).unwrap().start_at == at(tomorrow, 13)

    def test_availability_is_advisory(self, db_session, tomorrow):
        appt = self._book(tomorrow, (10,), (11,)).unwrap()
        assert appointment_service.check_availability("U1", at(tomorrow, 10), at(tomorrow, 11)).error.kind == BOOKING_CONFLICT
        assert appointment_service.check_availability("U1", at(tomorrow, 10), at(tomorrow, 11), exclude_id=appt.id).ok
        assert appointment_service.list_appointments(user_id="U1") == [appt]

    def test_list_by_window_and_type(self, db_session, tomorrow):
        early = self._book(tomorrow, (10,), (11,)).unwrap()
        current = self._book(tomorrow, (11,), (12,)).unwrap()
        later = appointment_service.book_appointment(
            user_id="U1",
            type="styling",
            start_at=at(tomorrow, 13),
            end_at=at(tomorrow, 14),
        ).unwrap()
        now = at(tomorrow, 11)

        def window(when, **filters):
            return [a.id for a in appointment_service.list_appointments(when=when, now=now, **filters)]

        assert window("past") == [early.id]
        assert window("ongoing") == [current.id]
        assert window("upcoming") == [later.id]
        assert window(None, appointment_type="styling") == [later.id]
        assert window("upcoming", appointment_type="consultation") == []

        with pytest.raises(ValueError):
            appointment_service.list_appointments(when="soon")

    def test_find_overlaps_is_empty_for_service_bookings(self, db_session, tomorrow):
        self._book(tomorrow, (10,), (11,)).unwrap()
        self._book(tomorrow, (11,), (12,)).unwrap()
        assert appointment_service.find_overlaps() == []

    def test_missing_appointment(self, db_session, tomorrow):
        result = appointment_service.reschedule_appointment("nope", at(tomorrow, 10), at(tomorrow, 11))
        assert result.error.kind == NOT_FOUND


# =============================================================================
# FEEDBACK / GOODWILL
# =============================================================================

def test_feedback_scores(db_session):
    for nps, csat in ((10, 5), (9, None), (3, 2), (None, 4)):
        feedback_service.submit_feedback(nps_score=nps, csat_score=csat, user_id="U1").unwrap()

    scores = feedback_service.feedback_scores()
    assert scores["responses"] == 4
    assert scores["nps_responses"] == 3
    assert scores["nps"] == pytest.approx(33.33)
    assert scores["csat"] == pytest.approx(66.67)


def test_feedback_update_keeps_row_on_failure(db_session):
    record = feedback_service.submit_feedback(nps_score=5).unwrap()
    assert feedback_service.update_feedback(record.id, nps_score=11, comment="x").error.kind == VALIDATION_ERROR
    stored = feedback_service.get_feedback(record.id).unwrap()
    assert (stored.nps_score, stored.comment) == (5, None)


def test_goodwill_totals(db_session):
    feedback_service.grant_goodwill(type="store_credit", value_cents=1000, user_id="U1").unwrap()
    feedback_service.grant_goodwill(type="points", value_cents=250, user_id="U1").unwrap()
    feedback_service.grant_goodwill(type="store_credit", value_cents=500, user_id="U2").unwrap()

    assert feedback_service.total_goodwill_cents(user_id="U1") == 1250
    assert feedback_service.total_goodwill_cents(type="store_credit") == 1500
    assert feedback_service.grant_goodwill(type="store_credit", value_cents=0).error.kind == VALIDATION_ERROR
