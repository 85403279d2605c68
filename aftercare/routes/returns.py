# Overview: Flask API routes for return requests (RMAs) and their items.

"""
Return Request API Routes

LIFECYCLE (POST actions, 409 when the current status forbids the move):
    /approve     eligibility -> approved
    /in-transit  approved -> in_transit
    /receive     in_transit -> received
    /refund      received -> refunded
    /reject      any open status -> rejected

Items are addressed by the order line they return:
    /api/returns/<rma_id>/items/<order_item_id>
and can only be edited while the request is open.
"""

from flask import Blueprint, request

from ..decorators import handle_errors
from ..models import ReturnItemRecord, ReturnRequestRecord
from ..services import return_service
from ..validation import ModelValidationPolicy, parse_limit, require_json, validate_payload
from .common import respond, respond_list, to_json


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


CREATE_RETURN_POLICY = ModelValidationPolicy(
    writable_fields={"order_id", "type", "reason"},
    required_on_create={"order_id", "type"},
)
UPDATE_RETURN_POLICY = ModelValidationPolicy(writable_fields={"reason"})
TRANSITION_POLICY = ModelValidationPolicy(writable_fields={"status"}, required_on_create={"status"})

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"order_item_id", "quantity", "condition", "disposition", "fees_cents"},
    required_on_create={"order_item_id", "quantity"},
    aliases={"quantity": "qty"},
)
UPDATE_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "condition", "disposition", "fees_cents"},
    aliases={"quantity": "qty"},
)


# =============================================================================
# RETURN REQUESTS
# =============================================================================

@returns_bp.post("/")
@handle_errors("create return")
def create_return_route():
    """
    Open a return request (status: eligibility).

    Request body:
    {
        "order_id": "ORD-1001",
        "type": "return" | "exchange" | "gift_return",
        "reason": "Wrong size"  (optional)
    }

    Returns:
        201: Return created
        400: Invalid input
    """
    data = validate_payload(
        model=ReturnRequestRecord,
        payload=require_json(request),
        policy=CREATE_RETURN_POLICY,
        partial=False,
    )
    result = return_service.create_return(data["order_id"], data["type"], data.get("reason"))
    return respond(result, "return", 201)


@returns_bp.get("/")
@handle_errors("list returns")
def list_returns_route():
    returns = return_service.list_returns(
        order_id=request.args.get("order_id"),
        status=request.args.get("status"),
        limit=parse_limit(request.args),
    )
    return respond_list(returns, "returns")


@returns_bp.get("/<rma_id>")
@handle_errors("get return")
def get_return_route(rma_id: str):
    """Return request with its items and total fees."""
    result = return_service.return_summary(rma_id)
    if not result.ok:
        return respond(result, "return")
    summary = result.value
    return {
        "return": to_json(summary["return"]),
        "items": to_json(summary["items"]),
        "total_fees_cents": summary["total_fees_cents"],
    }, 200


@returns_bp.patch("/<rma_id>")
@handle_errors("update return")
def update_return_route(rma_id: str):
    data = validate_payload(
        model=ReturnRequestRecord,
        payload=require_json(request),
        policy=UPDATE_RETURN_POLICY,
        partial=True,
    )
    if "reason" not in data:
        return respond(return_service.get_return(rma_id), "return")
    return respond(return_service.update_return_reason(rma_id, data["reason"]), "return")


@returns_bp.post("/<rma_id>/approve")
@handle_errors("approve return")
def approve_return_route(rma_id: str):
    return respond(return_service.approve_return(rma_id), "return")


@returns_bp.post("/<rma_id>/reject")
@handle_errors("reject return")
def reject_return_route(rma_id: str):
    """
    Reject a return from any open status.

    Returns:
        200: Rejected
        409: Already refunded or rejected (ALREADY_FINALIZED)
    """
    return respond(return_service.reject_return(rma_id), "return")


@returns_bp.post("/<rma_id>/in-transit")
@handle_errors("mark return in transit")
def mark_in_transit_route(rma_id: str):
    return respond(return_service.mark_in_transit(rma_id), "return")


@returns_bp.post("/<rma_id>/receive")
@handle_errors("mark return received")
def mark_received_route(rma_id: str):
    return respond(return_service.mark_received(rma_id), "return")


@returns_bp.post("/<rma_id>/refund")
@handle_errors("mark return refunded")
def mark_refunded_route(rma_id: str):
    return respond(return_service.mark_refunded(rma_id), "return")


@returns_bp.post("/<rma_id>/transition")
@handle_errors("transition return")
def transition_return_route(rma_id: str):
    """Generic move: {"status": "<target>"}. Illegal moves are 409."""
    data = validate_payload(
        model=ReturnRequestRecord,
        payload=require_json(request),
        policy=TRANSITION_POLICY,
        partial=False,
    )
    return respond(return_service.transition_return(rma_id, data["status"]), "return")


# =============================================================================
# RETURN ITEMS
# =============================================================================

@returns_bp.get("/<rma_id>/items")
@handle_errors("list return items")
def list_items_route(rma_id: str):
    result = return_service.list_return_items(rma_id)
    if not result.ok:
        return respond(result, "items")
    return respond_list(result.value, "items")


@returns_bp.post("/<rma_id>/items")
@handle_errors("add return item")
def add_item_route(rma_id: str):
    """
    Add an order line to an open return.

    Request body:
    {
        "order_item_id": "LINE-1",
        "quantity": 2,
        "condition": "new" | "used" | "damaged",        (optional)
        "disposition": "restock" | "repair" | "discard", (optional)
        "fees_cents": 500                                 (optional)
    }

    Returns:
        201: Item added
        400: Invalid input or line already on this return
        409: Return is finalized
    """
    data = validate_payload(
        model=ReturnItemRecord,
        payload=require_json(request),
        policy=ITEM_POLICY,
        partial=False,
    )
    result = return_service.add_return_item(
        rma_id,
        data["order_item_id"],
        data["quantity"],
        condition=data.get("condition"),
        disposition=data.get("disposition"),
        fees_cents=data.get("fees_cents"),
    )
    return respond(result, "item", 201)


@returns_bp.patch("/<rma_id>/items/<order_item_id>")
@handle_errors("update return item")
def update_item_route(rma_id: str, order_item_id: str):
    """Partial edit; "fees_cents": null clears the fee."""
    data = validate_payload(
        model=ReturnItemRecord,
        payload=require_json(request),
        policy=UPDATE_ITEM_POLICY,
        partial=True,
    )
    return respond(return_service.update_return_item(rma_id, order_item_id, **data), "item")


@returns_bp.delete("/<rma_id>/items/<order_item_id>")
@handle_errors("remove return item")
def remove_item_route(rma_id: str, order_item_id: str):
    return respond(return_service.remove_return_item(rma_id, order_item_id), "item")
