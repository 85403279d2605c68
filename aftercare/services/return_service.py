# Overview: Return request (RMA) commands: lifecycle transitions and item edits.

"""
Return Service

Thin command layer over domain.returns. Every function loads the stored
snapshot, applies exactly one domain operation, and commits the outcome.

ITEMS:
- Items are keyed by (rma_id, order_item_id); an order line appears on a
  given RMA at most once.
- Item edits read the parent request FOR UPDATE so a concurrent
  transition to a terminal state cannot slip in between the FINALIZED
  guard and the item write.
"""

from __future__ import annotations

from ..domain import returns as workflow
from ..domain.result import Result, VALIDATION_ERROR, failure, success
from ..extensions import db
from ..models import ReturnItemRecord, ReturnRequestRecord
from .commands import create_entity, not_found, run_command, run_unit
from .snapshots import SnapshotRepository


requests = SnapshotRepository(ReturnRequestRecord)
items = SnapshotRepository(ReturnItemRecord)

LABEL = "Return request"


# =============================================================================
# RETURN REQUESTS
# =============================================================================

def create_return(order_id: str | None, rma_type: str | None, reason: str | None = None) -> Result:
    return create_entity(
        requests,
        workflow.create_return_request(order_id, rma_type, reason),
        action="create return request",
    )


def get_return(rma_id: str) -> Result:
    entity = requests.find(rma_id)
    if entity is None:
        return not_found(LABEL, rma_id)
    return success(entity)


def list_returns(*, order_id: str | None = None, status: str | None = None, limit: int = 100) -> list:
    filters = {}
    if order_id:
        filters["order_id"] = order_id
    if status:
        filters["status"] = status
    return requests.list(order_by=ReturnRequestRecord.created_at.desc(), limit=limit, **filters)


def _run(rma_id: str, operation, *args, action: str, **kwargs) -> Result:
    return run_command(requests, rma_id, operation, *args, label=LABEL, action=action, **kwargs)


def approve_return(rma_id: str) -> Result:
    return _run(rma_id, workflow.approve, action="approve return")


def reject_return(rma_id: str) -> Result:
    return _run(rma_id, workflow.reject, action="reject return")


def mark_in_transit(rma_id: str) -> Result:
    return _run(rma_id, workflow.mark_in_transit, action="mark return in transit")


def mark_received(rma_id: str) -> Result:
    return _run(rma_id, workflow.mark_received, action="mark return received")


def mark_refunded(rma_id: str) -> Result:
    return _run(rma_id, workflow.mark_refunded, action="mark return refunded")


def transition_return(rma_id: str, target: str) -> Result:
    """Generic move, used by the status endpoint."""
    return _run(rma_id, workflow.update_status, target, action="transition return")


def update_return_reason(rma_id: str, reason: str | None) -> Result:
    return _run(rma_id, workflow.update_reason, reason, action="update return reason")


# =============================================================================
# RETURN ITEMS
# =============================================================================

def list_return_items(rma_id: str) -> Result:
    if not requests.exists(rma_id):
        return not_found(LABEL, rma_id)
    return success(items.list(rma_id=rma_id, order_by=ReturnItemRecord.order_item_id))


def add_return_item(
    rma_id: str,
    order_item_id: str | None,
    quantity,
    *,
    condition: str | None = None,
    disposition: str | None = None,
    fees_cents: int | None = None,
) -> Result:
    def _unit() -> Result:
        parent_row = requests.find_row(rma_id, for_update=True)
        if parent_row is None:
            db.session.rollback()
            return not_found(LABEL, rma_id)

        result = workflow.add_item(
            parent_row.to_entity(),
            order_item_id,
            quantity,
            condition=condition,
            disposition=disposition,
            fees_cents=fees_cents,
        )
        if not result.ok:
            db.session.rollback()
            return result
        if items.exists(result.value.key):
            db.session.rollback()
            return failure(
                VALIDATION_ERROR,
                f"Order item {result.value.order_item_id} is already on this return",
                "order_item_id",
            )

        items.save(result.value)
        db.session.commit()
        return result

    return run_unit(_unit, action="add return item", key=rma_id)


def _run_item(rma_id: str, order_item_id: str, operation, *args, action: str, **kwargs) -> Result:
    """Apply ``operation(item, parent, *args)`` and persist the item."""
    def _unit() -> Result:
        parent_row = requests.find_row(rma_id, for_update=True)
        if parent_row is None:
            db.session.rollback()
            return not_found(LABEL, rma_id)
        item_row = items.find_row((rma_id, order_item_id))
        if item_row is None:
            db.session.rollback()
            return not_found("Return item", f"{rma_id}/{order_item_id}")

        result = operation(item_row.to_entity(), parent_row.to_entity(), *args, **kwargs)
        if not result.ok:
            db.session.rollback()
            return result

        item_row.update_from(result.value)
        db.session.commit()
        return result

    return run_unit(_unit, action=action, key=f"{rma_id}/{order_item_id}")


def update_item_quantity(rma_id: str, order_item_id: str, quantity) -> Result:
    return _run_item(rma_id, order_item_id, workflow.update_item_quantity, quantity, action="update item quantity")


def set_item_condition(rma_id: str, order_item_id: str, condition: str | None) -> Result:
    return _run_item(rma_id, order_item_id, workflow.set_item_condition, condition, action="set item condition")


def set_item_disposition(rma_id: str, order_item_id: str, disposition: str | None) -> Result:
    return _run_item(rma_id, order_item_id, workflow.set_item_disposition, disposition, action="set item disposition")


def set_item_fees(rma_id: str, order_item_id: str, fees_cents) -> Result:
    return _run_item(rma_id, order_item_id, workflow.set_item_fees, fees_cents, action="set item fees")


def clear_item_fees(rma_id: str, order_item_id: str) -> Result:
    return _run_item(rma_id, order_item_id, workflow.clear_item_fees, action="clear item fees")


def update_return_item(rma_id: str, order_item_id: str, **changes) -> Result:
    """Apply quantity/condition/disposition/fees edits in one commit."""
    return _run_item(rma_id, order_item_id, workflow.update_item, action="update return item", **changes)


def remove_return_item(rma_id: str, order_item_id: str) -> Result:
    def _unit() -> Result:
        parent_row = requests.find_row(rma_id, for_update=True)
        if parent_row is None:
            db.session.rollback()
            return not_found(LABEL, rma_id)
        item_row = items.find_row((rma_id, order_item_id))
        if item_row is None:
            db.session.rollback()
            return not_found("Return item", f"{rma_id}/{order_item_id}")

        result = workflow.remove_item(item_row.to_entity(), parent_row.to_entity())
        if not result.ok:
            db.session.rollback()
            return result
        db.session.delete(item_row)
        db.session.commit()
        return result

    return run_unit(_unit, action="remove return item", key=f"{rma_id}/{order_item_id}")


def return_summary(rma_id: str) -> Result:
    """Request snapshot, its items and the fee total in cents."""
    request = requests.find(rma_id)
    if request is None:
        return not_found(LABEL, rma_id)
    lines = items.list(rma_id=rma_id, order_by=ReturnItemRecord.order_item_id)
    return success({
        "return": request,
        "items": lines,
        "total_fees_cents": workflow.total_fees(lines),
    })
