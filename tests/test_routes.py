# Aftercare API Tests - HTTP surface
#
# Tests for:
# - Failure kind -> status mapping (400 input, 404 missing, 409 lifecycle/conflict)
# - Return, repair, ticket and chat lifecycles over HTTP
# - Appointment booking, availability and reschedule
# - Feedback scores and goodwill
# - Health endpoint

import pytest

from conftest import at, iso


def _post(client, url, payload=None):
    return client.post(url, json=payload if payload is not None else {})


class TestStatusMapping:
    """Every failure kind has one HTTP status."""

    def test_validation_error_is_400(self, client):
        """
        SCENARIO: Return created with an unknown type
        EXPECTED: HTTP 400, kind VALIDATION_ERROR naming the field
        """
        response = _post(client, "/api/returns/", {"order_id": "ORD-1", "type": "swap"})
        assert response.status_code == 400
        body = response.get_json()
        assert body["kind"] == "VALIDATION_ERROR"
        assert body["fields"] == ["type"]

    def test_unknown_field_is_400(self, client):
        response = _post(client, "/api/repairs/", {"order_item_id": "OI-1", "status": "completed"})
        assert response.status_code == 400
        assert "status" in response.get_json()["error"]

    def test_missing_required_field_is_400(self, client):
        response = _post(client, "/api/tickets/", {"subject": "Hi"})
        assert response.status_code == 400
        assert "source" in response.get_json()["error"]

    def test_not_found_is_404(self, client):
        response = _post(client, "/api/repairs/nope/start")
        assert response.status_code == 404
        assert response.get_json()["kind"] == "NOT_FOUND"

    def test_lifecycle_violation_is_409(self, client):
        repair = _post(client, "/api/repairs/", {"order_item_id": "OI-1"}).get_json()["repair"]
        response = _post(client, f"/api/repairs/{repair['id']}/complete")
        assert response.status_code == 409
        assert response.get_json()["kind"] == "INVALID_TRANSITION"

    def test_integer_strings_with_decimals_are_rejected(self, client):
        response = _post(client, "/api/feedback/", {"nps_score": "7.5"})
        assert response.status_code == 400


# =============================================================================
# RETURNS
# =============================================================================

class TestReturnRoutes:
    def test_exchange_walkthrough(self, client):
        """
        SCENARIO: Customer exchanges one line; the request is refunded
        EXPECTED: Each step 200, items frozen once finalized
        """
        created = _post(client, "/api/returns/", {"order_id": "ORD-7", "type": "exchange", "reason": "too big"})
        assert created.status_code == 201
        rma = created.get_json()["return"]
        assert rma["status"] == "eligibility"
        assert rma["created_at"].endswith("Z")

        item = _post(client, f"/api/returns/{rma['id']}/items", {"order_item_id": "LINE-1", "quantity": 1, "fees_cents": 250})
        assert item.status_code == 201
        assert item.get_json()["item"]["quantity"] == 1

        for action in ("approve", "in-transit", "receive", "refund"):
            assert _post(client, f"/api/returns/{rma['id']}/{action}").status_code == 200

        summary = client.get(f"/api/returns/{rma['id']}").get_json()
        assert summary["return"]["status"] == "refunded"
        assert summary["total_fees_cents"] == 250

        frozen = client.patch(f"/api/returns/{rma['id']}/items/LINE-1", json={"quantity": 2})
        assert frozen.status_code == 409
        assert frozen.get_json()["kind"] == "FINALIZED"

        again = _post(client, f"/api/returns/{rma['id']}/reject")
        assert again.status_code == 409
        assert again.get_json()["kind"] == "ALREADY_FINALIZED"

    def test_item_patch_clears_fees(self, client):
        rma = _post(client, "/api/returns/", {"order_id": "ORD-8", "type": "return"}).get_json()["return"]
        _post(client, f"/api/returns/{rma['id']}/items", {"order_item_id": "L1", "quantity": "2", "fees_cents": 100})

        response = client.patch(f"/api/returns/{rma['id']}/items/L1", json={"fees_cents": None, "condition": "used"})
        assert response.status_code == 200
        item = response.get_json()["item"]
        assert (item["quantity"], item["fees_cents"], item["condition"]) == (2, None, "used")

        assert client.delete(f"/api/returns/{rma['id']}/items/L1").status_code == 200
        assert client.get(f"/api/returns/{rma['id']}/items").get_json()["count"] == 0

    def test_generic_transition(self, client):
        rma = _post(client, "/api/returns/", {"order_id": "ORD-9", "type": "gift_return"}).get_json()["return"]
        skipped = _post(client, f"/api/returns/{rma['id']}/transition", {"status": "received"})
        assert skipped.status_code == 409
        ok = _post(client, f"/api/returns/{rma['id']}/transition", {"status": "approved"})
        assert ok.get_json()["return"]["status"] == "approved"

    def test_transition_to_rejected_after_reject_keeps_kind(self, client):
        rma = _post(client, "/api/returns/", {"order_id": "ORD-10", "type": "return"}).get_json()["return"]
        assert _post(client, f"/api/returns/{rma['id']}/reject").status_code == 200

        again = _post(client, f"/api/returns/{rma['id']}/transition", {"status": "rejected"})
        assert again.status_code == 409
        assert again.get_json()["kind"] == "ALREADY_FINALIZED"

    def test_list_filters_by_status(self, client):
        first = _post(client, "/api/returns/", {"order_id": "A", "type": "return"}).get_json()["return"]
        _post(client, "/api/returns/", {"order_id": "B", "type": "return"})
        _post(client, f"/api/returns/{first['id']}/approve")

        listed = client.get("/api/returns/?status=approved").get_json()
        assert listed["count"] == 1
        assert listed["returns"][0]["id"] == first["id"]

        assert client.get("/api/returns/?limit=0").status_code == 400


# =============================================================================
# REPAIRS / TICKETS / CHAT
# =============================================================================

def test_repair_notes_routes(client):
    repair = _post(client, "/api/repairs/", {"order_item_id": "OI-3", "notes": "intake"}).get_json()["repair"]
    _post(client, f"/api/repairs/{repair['id']}/notes", {"notes": "replaced hinge"})
    appended = client.get(f"/api/repairs/{repair['id']}").get_json()["repair"]
    assert appended["notes"] == "intake\nreplaced hinge"

    replaced = client.put(f"/api/repairs/{repair['id']}/notes", json={"notes": "fresh"})
    assert replaced.get_json()["repair"]["notes"] == "fresh"

    _post(client, f"/api/repairs/{repair['id']}/cancel")
    late = client.put(f"/api/repairs/{repair['id']}/notes", json={"notes": "too late"})
    assert late.status_code == 409
    assert late.get_json()["kind"] == "FINALIZED"


def test_ticket_routes(client):
    ticket = _post(client, "/api/tickets/", {"source": "web", "subject": "Missing button"}).get_json()["ticket"]
    message = _post(client, f"/api/tickets/{ticket['id']}/messages", {"sender": "customer", "body": "Help"})
    assert message.status_code == 201

    assert _post(client, f"/api/tickets/{ticket['id']}/close").status_code == 200
    closed = client.patch(f"/api/tickets/{ticket['id']}", json={"subject": "New"})
    assert closed.status_code == 409
    assert closed.get_json()["kind"] == "CLOSED"

    reopened = _post(client, f"/api/tickets/{ticket['id']}/reopen")
    assert reopened.get_json()["ticket"]["status"] == "open"
    assert client.get(f"/api/tickets/{ticket['id']}/messages").get_json()["count"] == 1


@pytest.mark.parametrize("target, kind", [
    ("resolved", "ALREADY_CLOSED"),
    ("in_progress", "CLOSED"),
])
def test_ticket_transition_on_closed_ticket(client, target, kind):
    ticket = _post(client, "/api/tickets/", {"source": "phone", "subject": "Refund delay"}).get_json()["ticket"]
    assert _post(client, f"/api/tickets/{ticket['id']}/close").status_code == 200

    moved = _post(client, f"/api/tickets/{ticket['id']}/transition", {"status": target})
    assert moved.status_code == 409
    assert moved.get_json()["kind"] == kind

    reopened = _post(client, f"/api/tickets/{ticket['id']}/transition", {"status": "open"})
    assert reopened.get_json()["ticket"]["status"] == "open"


def test_chat_routes(client):
    session = _post(client, "/api/chat/sessions", {"user_id": "U1", "topic": "returns"}).get_json()["session"]
    sid = session["id"]

    blank_agent = _post(client, f"/api/chat/sessions/{sid}/assign", {"agent_id": "  "})
    assert blank_agent.status_code == 400
    assert blank_agent.get_json()["kind"] == "EMPTY_AGENT_ID"

    assert _post(client, f"/api/chat/sessions/{sid}/assign", {"agent_id": "A1"}).status_code == 200
    posted = _post(client, f"/api/chat/sessions/{sid}/messages", {
        "sender_type": "agent",
        "content": "Hi there",
        "metadata": {"channel": "web"},
    })
    assert posted.status_code == 201
    assert posted.get_json()["message"]["metadata"] == {"channel": "web"}

    back_to_waiting = _post(client, f"/api/chat/sessions/{sid}/status", {"status": "waiting"})
    assert back_to_waiting.status_code == 409

    assert _post(client, f"/api/chat/sessions/{sid}/status", {"status": "ended"}).status_code == 200
    detail = client.get(f"/api/chat/sessions/{sid}").get_json()
    assert detail["session"]["status"] == "ended"
    assert detail["duration_seconds"] is not None

    ended = _post(client, f"/api/chat/sessions/{sid}/messages", {"sender_type": "customer", "content": "?"})
    assert ended.status_code == 409
    assert ended.get_json()["kind"] == "SESSION_ENDED"


def test_chat_message_metadata_is_typed_by_its_column(client):
    """
    SCENARIO: "metadata" maps onto the renamed message_metadata attribute
    EXPECTED: objects are accepted, anything else is a 400 naming the payload key
    """
    sid = _post(client, "/api/chat/sessions", {"user_id": "U1"}).get_json()["session"]["id"]

    bad = _post(client, f"/api/chat/sessions/{sid}/messages", {
        "sender_type": "customer",
        "content": "Hello",
        "metadata": "web",
    })
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "metadata must be an object"

    listed = client.get(f"/api/chat/sessions/{sid}/messages").get_json()
    assert listed["count"] == 0


# =============================================================================
# APPOINTMENTS
# =============================================================================

class TestAppointmentRoutes:
    def _book(self, client, day, start, end, user_id="U1"):
        return _post(client, "/api/appointments/", {
            "user_id": user_id,
            "type": "fitting",
            "start_at": iso(at(day, *start)),
            "end_at": iso(at(day, *end)),
        })

    def test_double_booking_is_409(self, client, tomorrow):
        """
        SCENARIO: U1 holds [10:00, 11:00) and asks for [10:30, 11:30)
        EXPECTED: HTTP 409 BOOKING_CONFLICT; touching [11:00, 12:00) is fine
        """
        assert self._book(client, tomorrow, (10,), (11,)).status_code == 201

        clash = self._book(client, tomorrow, (10, 30), (11, 30))
        assert clash.status_code == 409
        assert clash.get_json()["kind"] == "BOOKING_CONFLICT"

        assert self._book(client, tomorrow, (11,), (12,)).status_code == 201

    def test_invalid_interval_is_400(self, client, tomorrow):
        response = self._book(client, tomorrow, (11,), (10,))
        assert response.status_code == 400
        assert response.get_json()["kind"] == "INVALID_INTERVAL"

    def test_bad_timestamp_is_400(self, client):
        response = _post(client, "/api/appointments/", {
            "user_id": "U1", "type": "fitting", "start_at": "tomorrow", "end_at": "later",
        })
        assert response.status_code == 400

    def test_availability_and_reschedule(self, client, tomorrow):
        appt = self._book(client, tomorrow, (10,), (11,)).get_json()["appointment"]

        busy = client.get("/api/appointments/availability", query_string={
            "user_id": "U1", "start_at": iso(at(tomorrow, 10, 30)), "end_at": iso(at(tomorrow, 11, 30)),
        })
        assert busy.status_code == 409

        free = client.get("/api/appointments/availability", query_string={
            "user_id": "U1", "start_at": iso(at(tomorrow, 11)), "end_at": iso(at(tomorrow, 12)),
        })
        assert free.get_json() == {"available": True}

        moved = _post(client, f"/api/appointments/{appt['id']}/reschedule", {
            "start_at": iso(at(tomorrow, 10, 30)), "end_at": iso(at(tomorrow, 11, 30)),
        })
        assert moved.status_code == 200
        assert moved.get_json()["appointment"]["start_at"] == iso(at(tomorrow, 10, 30))

    def test_cancel_then_patch_is_409(self, client, tomorrow):
        appt = self._book(client, tomorrow, (14,), (15,)).get_json()["appointment"]
        assert _post(client, f"/api/appointments/{appt['id']}/cancel").status_code == 200
        response = client.patch(f"/api/appointments/{appt['id']}", json={"notes": "x"})
        assert response.status_code == 409
        assert response.get_json()["kind"] == "CANCELLED"

    def test_list_by_when_and_type(self, client, tomorrow):
        booked = self._book(client, tomorrow, (9,), (10,)).get_json()["appointment"]

        upcoming = client.get("/api/appointments/?when=upcoming&type=fitting").get_json()
        assert [a["id"] for a in upcoming["appointments"]] == [booked["id"]]
        assert client.get("/api/appointments/?when=past").get_json()["count"] == 0
        assert client.get("/api/appointments/?type=styling").get_json()["count"] == 0

        bad_window = client.get("/api/appointments/?when=soon")
        assert bad_window.status_code == 400
        assert "when" in bad_window.get_json()["error"]
        assert client.get("/api/appointments/?type=massage").status_code == 400


# =============================================================================
# FEEDBACK / GOODWILL / HEALTH
# =============================================================================

@pytest.mark.parametrize("score, status", [(-1, 400), (0, 201), (10, 201), (11, 400)])
def test_nps_bounds(client, score, status):
    assert _post(client, "/api/feedback/", {"nps_score": score}).status_code == status


def test_feedback_scores_route(client):
    for score in (10, 9, 0):
        _post(client, "/api/feedback/", {"nps_score": score})
    scores = client.get("/api/feedback/scores").get_json()
    assert scores["nps"] == pytest.approx(33.33)
    assert scores["nps_responses"] == 3


def test_feedback_patch_clears_a_score(client):
    record = _post(client, "/api/feedback/", {"nps_score": 6, "comment": "slow courier"}).get_json()["feedback"]

    cleared = client.patch(f"/api/feedback/{record['id']}", json={"nps_score": None})
    assert cleared.status_code == 200
    assert cleared.get_json()["feedback"]["nps_score"] is None

    emptied = client.patch(f"/api/feedback/{record['id']}", json={"comment": None})
    assert emptied.status_code == 400
    assert emptied.get_json()["kind"] == "VALIDATION_ERROR"
    assert client.get(f"/api/feedback/{record['id']}").get_json()["feedback"]["comment"] == "slow courier"


def test_goodwill_routes(client):
    created = _post(client, "/api/goodwill/", {"type": "discount", "value_cents": 500, "user_id": "U1"})
    assert created.status_code == 201
    record = created.get_json()["goodwill"]

    updated = client.patch(f"/api/goodwill/{record['id']}", json={"reason": "late delivery"})
    assert updated.get_json()["goodwill"]["reason"] == "late delivery"
    assert client.get("/api/goodwill/?user_id=U1").get_json()["count"] == 1
    assert client.get("/api/goodwill/nope").status_code == 404


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.get_json()
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["lifecycle"]["details"]["open_tickets"] == 0
