from dataclasses import replace
from datetime import datetime

import pytest

from aftercare.domain import returns
from aftercare.domain.result import (
    ALREADY_FINALIZED,
    FINALIZED,
    INVALID_TRANSITION,
    VALIDATION_ERROR,
)


NOW = datetime(2026, 3, 1, 12, 0, 0)


def _request(status="eligibility", reason=None):
    created = returns.create_return_request("ORD-1", "return", reason, now=NOW).unwrap()
    return replace(created, status=status)


def _item(rma, quantity=1, **attrs):
    return returns.add_item(rma, "LINE-1", quantity, **attrs).unwrap()


# =============================================================================
# CREATION
# =============================================================================

def test_create_starts_in_eligibility():
    rma = returns.create_return_request("ORD-1", "exchange", now=NOW).unwrap()
    assert rma.status == returns.RMA_ELIGIBILITY
    assert rma.reason is None
    assert not rma.has_reason
    assert rma.created_at == rma.updated_at == NOW
    assert len(rma.id) == 32


@pytest.mark.parametrize("order_id, rma_type, field", [
    ("", "return", "order_id"),
    ("   ", "return", "order_id"),
    (None, "return", "order_id"),
    ("ORD-1", "refund", "type"),
    ("ORD-1", None, "type"),
])
def test_create_rejects_bad_input(order_id, rma_type, field):
    result = returns.create_return_request(order_id, rma_type)
    assert result.error.kind == VALIDATION_ERROR
    assert field in result.error.fields


def test_reason_is_trimmed_and_blank_is_none():
    assert returns.create_return_request("ORD-1", "return", "  too big  ").unwrap().reason == "too big"
    assert returns.create_return_request("ORD-1", "return", "   ").unwrap().reason is None


# =============================================================================
# TRANSITIONS
# =============================================================================

@pytest.mark.parametrize("current", sorted(returns.RETURN_GRAPH))
@pytest.mark.parametrize("target", sorted(returns.RETURN_GRAPH))
def test_transition_soundness(current, target):
    result = returns.transition(_request(current), target, now=NOW)
    if target in returns.RETURN_GRAPH[current]:
        assert result.ok
        assert result.value.status == target
    else:
        assert result.error.kind == INVALID_TRANSITION


def test_named_operations_follow_the_happy_path():
    rma = _request()
    for step, expected in [
        (returns.approve, "approved"),
        (returns.mark_in_transit, "in_transit"),
        (returns.mark_received, "received"),
        (returns.mark_refunded, "refunded"),
    ]:
        rma = step(rma).unwrap()
        assert rma.status == expected
    assert rma.is_finalized


def test_transition_bumps_updated_at():
    later = datetime(2026, 3, 2, 9, 0, 0)
    rma = returns.approve(_request(), now=later).unwrap()
    assert rma.updated_at == later
    assert rma.created_at == NOW


@pytest.mark.parametrize("status", ["eligibility", "approved", "in_transit", "received"])
def test_reject_from_any_open_status(status):
    assert returns.reject(_request(status)).unwrap().status == "rejected"


@pytest.mark.parametrize("status", ["refunded", "rejected"])
def test_reject_after_finalized(status):
    result = returns.reject(_request(status))
    assert result.error.kind == ALREADY_FINALIZED


@pytest.mark.parametrize("status", ["refunded", "rejected"])
def test_update_status_to_rejected_after_finalized(status):
    result = returns.update_status(_request(status), "rejected")
    assert result.error.kind == ALREADY_FINALIZED


def test_update_status_follows_named_operations():
    later = datetime(2026, 3, 2, 9, 0, 0)
    rma = returns.update_status(_request(), "approved", now=later).unwrap()
    assert (rma.status, rma.updated_at) == ("approved", later)
    assert returns.update_status(rma, "refunded").error.kind == INVALID_TRANSITION
    assert returns.update_status(rma, "eligibility").error.kind == INVALID_TRANSITION


@pytest.mark.parametrize("status", ["refunded", "rejected"])
def test_update_reason_refused_when_finalized(status):
    result = returns.update_reason(_request(status), "changed my mind")
    assert result.error.kind == FINALIZED
    assert result.error.fields == ("reason",)


def test_update_reason_clears_with_blank():
    rma = returns.update_reason(_request(reason="old"), "  ").unwrap()
    assert rma.reason is None


# =============================================================================
# ITEMS
# =============================================================================

def test_add_item_defaults():
    item = _item(_request(), quantity=2)
    assert item.key == (item.rma_id, "LINE-1")
    assert item.quantity == 2
    assert item.condition is None
    assert not item.has_fees


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
def test_item_quantity_must_be_positive_int(quantity):
    result = returns.add_item(_request(), "LINE-1", quantity)
    assert result.error.kind == VALIDATION_ERROR
    assert result.error.fields == ("quantity",)


def test_item_choices_are_checked():
    assert returns.add_item(_request(), "LINE-1", 1, condition="broken").error.fields == ("condition",)
    assert returns.add_item(_request(), "LINE-1", 1, disposition="resell").error.fields == ("disposition",)
    assert returns.add_item(_request(), "LINE-1", 1, fees_cents=-5).error.fields == ("fees_cents",)


@pytest.mark.parametrize("status", ["refunded", "rejected"])
def test_items_frozen_with_finalized_parent(status):
    open_parent = _request()
    item = _item(open_parent)
    closed = replace(open_parent, status=status)

    assert returns.add_item(closed, "LINE-2", 1).error.kind == FINALIZED
    assert returns.update_item_quantity(item, closed, 3).error.kind == FINALIZED
    assert returns.set_item_condition(item, closed, "used").error.kind == FINALIZED
    assert returns.set_item_disposition(item, closed, "restock").error.kind == FINALIZED
    assert returns.set_item_fees(item, closed, 100).error.kind == FINALIZED
    assert returns.clear_item_fees(item, closed).error.kind == FINALIZED
    assert returns.remove_item(item, closed).error.kind == FINALIZED


def test_item_edits_on_open_parent():
    parent = _request()
    item = _item(parent)
    item = returns.update_item_quantity(item, parent, 4).unwrap()
    item = returns.set_item_condition(item, parent, "damaged").unwrap()
    item = returns.set_item_disposition(item, parent, "discard").unwrap()
    item = returns.set_item_fees(item, parent, 250).unwrap()
    assert (item.quantity, item.condition, item.disposition, item.fees_cents) == (4, "damaged", "discard", 250)
    assert returns.clear_item_fees(item, parent).unwrap().fees_cents is None


def test_set_item_fees_requires_value():
    parent = _request()
    result = returns.set_item_fees(_item(parent), parent, None)
    assert result.error.kind == VALIDATION_ERROR


def test_update_item_applies_all_or_nothing():
    parent = _request()
    item = _item(parent)
    updated = returns.update_item(item, parent, quantity=2, condition="used", fees_cents=None).unwrap()
    assert (updated.quantity, updated.condition, updated.fees_cents) == (2, "used", None)

    failed = returns.update_item(item, parent, quantity=5, condition="bogus")
    assert failed.error.fields == ("condition",)

    unknown = returns.update_item(item, parent, colour="red")
    assert unknown.error.kind == VALIDATION_ERROR


def test_total_fees_ignores_missing_fees():
    parent = _request()
    items = [
        returns.add_item(parent, "A", 1, fees_cents=150).unwrap(),
        returns.add_item(parent, "B", 1).unwrap(),
        returns.add_item(parent, "C", 2, fees_cents=50).unwrap(),
    ]
    assert returns.total_fees(items) == 200
    assert returns.total_fees([]) == 0


# =============================================================================
# END TO END
# =============================================================================

def test_exchange_lifecycle_scenario():
    rma = returns.create_return_request("ORD-77", "exchange").unwrap()
    assert rma.status == "eligibility"

    rma = returns.approve(rma).unwrap()
    assert rma.status == "approved"

    skipped = returns.mark_received(rma)
    assert skipped.error.kind == INVALID_TRANSITION
    assert rma.status == "approved"

    rma = returns.mark_in_transit(rma).unwrap()
    rma = returns.mark_received(rma).unwrap()
    rma = returns.mark_refunded(rma).unwrap()
    assert rma.status == "refunded"

    assert returns.update_reason(rma, "test").error.kind == FINALIZED
