# Overview: Return/exchange (RMA) workflow and return item rules.

"""
Return Request Workflow (RMA)

LIFECYCLE:
    eligibility -> approved -> in_transit -> received -> refunded
         \\            \\           \\            \\
          +-----------+-----------+------------+--> rejected

    eligibility: Request created, eligibility under review
    approved:    Return authorised, customer may ship
    in_transit:  Parcel on its way back
    received:    Parcel checked in at the warehouse
    refunded:    TERMINAL, money returned
    rejected:    TERMINAL, request declined (legal from any open state)

RULES:
- Type (return / exchange / gift_return) is fixed at creation
- Reason may change until the request is finalized
- Every successful change bumps updated_at
- Return items can only be edited while the parent request is open
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from .common import clean_optional, new_id, optional_choice, require_choice, require_text
from .result import (
    Result,
    ALREADY_FINALIZED,
    FINALIZED,
    VALIDATION_ERROR,
    failure,
    success,
)
from .state_machine import check_transition, is_terminal, validate_graph
from ..time_utils import utcnow


# =============================================================================
# STATUS / TYPE CONSTANTS
# =============================================================================

RMA_ELIGIBILITY = "eligibility"
RMA_APPROVED = "approved"
RMA_IN_TRANSIT = "in_transit"
RMA_RECEIVED = "received"
RMA_REFUNDED = "refunded"
RMA_REJECTED = "rejected"

RETURN_GRAPH = {
    RMA_ELIGIBILITY: frozenset({RMA_APPROVED, RMA_REJECTED}),
    RMA_APPROVED: frozenset({RMA_IN_TRANSIT, RMA_REJECTED}),
    RMA_IN_TRANSIT: frozenset({RMA_RECEIVED, RMA_REJECTED}),
    RMA_RECEIVED: frozenset({RMA_REFUNDED, RMA_REJECTED}),
    RMA_REFUNDED: frozenset(),
    RMA_REJECTED: frozenset(),
}
validate_graph(RETURN_GRAPH)

RMA_TYPES = frozenset({"return", "exchange", "gift_return"})
ITEM_CONDITIONS = frozenset({"new", "used", "damaged"})
ITEM_DISPOSITIONS = frozenset({"restock", "repair", "discard"})


@dataclass(frozen=True)
class ReturnRequest:
    id: str
    order_id: str
    type: str
    reason: str | None
    status: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_finalized(self) -> bool:
        return is_terminal(RETURN_GRAPH, self.status)

    @property
    def has_reason(self) -> bool:
        return bool(self.reason and self.reason.strip())


@dataclass(frozen=True)
class ReturnItem:
    rma_id: str
    order_item_id: str
    quantity: int
    condition: str | None = None
    disposition: str | None = None
    fees_cents: int | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.rma_id, self.order_item_id)

    @property
    def has_fees(self) -> bool:
        return bool(self.fees_cents)


# =============================================================================
# RETURN REQUEST
# =============================================================================

def create_return_request(
    order_id: str | None,
    rma_type: str | None,
    reason: str | None = None,
    *,
    now: datetime | None = None,
) -> Result[ReturnRequest]:
    """
    Open a new return request in ``eligibility``.

    Fails with VALIDATION_ERROR when the order reference is blank or the
    type is not one of RMA_TYPES.
    """
    order = require_text(order_id, "order_id", "Order ID")
    if not order.ok:
        return order
    kind = require_choice(rma_type, RMA_TYPES, "type")
    if not kind.ok:
        return kind

    stamp = now or utcnow()
    return success(ReturnRequest(
        id=new_id(),
        order_id=order.value,
        type=kind.value,
        reason=clean_optional(reason),
        status=RMA_ELIGIBILITY,
        created_at=stamp,
        updated_at=stamp,
    ))


def transition(request: ReturnRequest, target: str, *, now: datetime | None = None) -> Result[ReturnRequest]:
    """Move to ``target`` if the graph allows it."""
    checked = check_transition(RETURN_GRAPH, request.status, target, entity="return request")
    if not checked.ok:
        return checked
    return success(replace(request, status=target, updated_at=now or utcnow()))


def approve(request: ReturnRequest, *, now: datetime | None = None) -> Result[ReturnRequest]:
    return transition(request, RMA_APPROVED, now=now)


def reject(request: ReturnRequest, *, now: datetime | None = None) -> Result[ReturnRequest]:
    if request.is_finalized:
        return failure(
            ALREADY_FINALIZED,
            f"Return request is already finalized ({request.status})",
            "status",
        )
    return transition(request, RMA_REJECTED, now=now)


def mark_in_transit(request: ReturnRequest, *, now: datetime | None = None) -> Result[ReturnRequest]:
    return transition(request, RMA_IN_TRANSIT, now=now)


def mark_received(request: ReturnRequest, *, now: datetime | None = None) -> Result[ReturnRequest]:
    return transition(request, RMA_RECEIVED, now=now)


def mark_refunded(request: ReturnRequest, *, now: datetime | None = None) -> Result[ReturnRequest]:
    return transition(request, RMA_REFUNDED, now=now)


_NAMED_MOVES = {
    RMA_APPROVED: approve,
    RMA_IN_TRANSIT: mark_in_transit,
    RMA_RECEIVED: mark_received,
    RMA_REFUNDED: mark_refunded,
    RMA_REJECTED: reject,
}


def update_status(request: ReturnRequest, status: str, *, now: datetime | None = None) -> Result[ReturnRequest]:
    """Generic move; a target with a named operation reports that operation's failure kind."""
    move = _NAMED_MOVES.get(status)
    if move is None:
        return transition(request, status, now=now)
    return move(request, now=now)


def update_reason(request: ReturnRequest, text: str | None, *, now: datetime | None = None) -> Result[ReturnRequest]:
    """Replace the reason; a blank reason clears it."""
    if request.is_finalized:
        return failure(FINALIZED, "Cannot update reason of finalized return request", "reason")
    return success(replace(request, reason=clean_optional(text), updated_at=now or utcnow()))


# =============================================================================
# RETURN ITEMS
# =============================================================================

def _validate_quantity(quantity) -> Result[int]:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return failure(VALIDATION_ERROR, "Quantity must be greater than 0", "quantity")
    return success(quantity)


def _validate_fees(fees_cents) -> Result[int | None]:
    if fees_cents is None:
        return success(None)
    if isinstance(fees_cents, bool) or not isinstance(fees_cents, int) or fees_cents < 0:
        return failure(VALIDATION_ERROR, "fees_cents must be a non-negative integer", "fees_cents")
    return success(fees_cents)


def _ensure_open(parent: ReturnRequest) -> Result[ReturnRequest]:
    if parent.is_finalized:
        return failure(FINALIZED, f"Return request {parent.id} is finalized ({parent.status})", "status")
    return success(parent)


def create_return_item(
    rma_id: str | None,
    order_item_id: str | None,
    quantity,
    *,
    condition: str | None = None,
    disposition: str | None = None,
    fees_cents: int | None = None,
) -> Result[ReturnItem]:
    checks = (
        require_text(rma_id, "rma_id", "RMA ID"),
        require_text(order_item_id, "order_item_id", "Order Item ID"),
        _validate_quantity(quantity),
        optional_choice(condition, ITEM_CONDITIONS, "condition"),
        optional_choice(disposition, ITEM_DISPOSITIONS, "disposition"),
        _validate_fees(fees_cents),
    )
    for check in checks:
        if not check.ok:
            return check

    return success(ReturnItem(
        rma_id=checks[0].value,
        order_item_id=checks[1].value,
        quantity=quantity,
        condition=condition,
        disposition=disposition,
        fees_cents=fees_cents,
    ))


def add_item(parent: ReturnRequest, order_item_id: str | None, quantity, **attrs) -> Result[ReturnItem]:
    """Create an item under ``parent``; only open requests accept items."""
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    return create_return_item(parent.id, order_item_id, quantity, **attrs)


def update_item_quantity(item: ReturnItem, parent: ReturnRequest, quantity) -> Result[ReturnItem]:
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    checked = _validate_quantity(quantity)
    if not checked.ok:
        return checked
    return success(replace(item, quantity=quantity))


def set_item_condition(item: ReturnItem, parent: ReturnRequest, condition: str | None) -> Result[ReturnItem]:
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    checked = require_choice(condition, ITEM_CONDITIONS, "condition")
    if not checked.ok:
        return checked
    return success(replace(item, condition=condition))


def set_item_disposition(item: ReturnItem, parent: ReturnRequest, disposition: str | None) -> Result[ReturnItem]:
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    checked = require_choice(disposition, ITEM_DISPOSITIONS, "disposition")
    if not checked.ok:
        return checked
    return success(replace(item, disposition=disposition))


def set_item_fees(item: ReturnItem, parent: ReturnRequest, fees_cents) -> Result[ReturnItem]:
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    if fees_cents is None:
        return failure(VALIDATION_ERROR, "fees_cents is required", "fees_cents")
    checked = _validate_fees(fees_cents)
    if not checked.ok:
        return checked
    return success(replace(item, fees_cents=fees_cents))


def clear_item_fees(item: ReturnItem, parent: ReturnRequest) -> Result[ReturnItem]:
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    return success(replace(item, fees_cents=None))


_ITEM_EDITS = {
    "quantity": update_item_quantity,
    "condition": set_item_condition,
    "disposition": set_item_disposition,
    "fees_cents": set_item_fees,
}


def update_item(item: ReturnItem, parent: ReturnRequest, **changes) -> Result[ReturnItem]:
    """
    Apply several item edits at once; the first failing edit wins and
    nothing is applied. ``fees_cents=None`` clears the fee.
    """
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    unknown = set(changes) - set(_ITEM_EDITS)
    if unknown:
        return failure(VALIDATION_ERROR, f"Cannot update item fields: {', '.join(sorted(unknown))}", *sorted(unknown))

    for name, edit in _ITEM_EDITS.items():
        if name not in changes:
            continue
        if name == "fees_cents" and changes[name] is None:
            result = clear_item_fees(item, parent)
        else:
            result = edit(item, parent, changes[name])
        if not result.ok:
            return result
        item = result.value
    return success(item)


def remove_item(item: ReturnItem, parent: ReturnRequest) -> Result[ReturnItem]:
    """Items can only be taken off a request that is still open."""
    opened = _ensure_open(parent)
    if not opened.ok:
        return opened
    return success(item)


def total_fees(items) -> int:
    """Sum of item fees in cents; items without fees count as zero."""
    return sum(item.fees_cents or 0 for item in items)
