# Overview: Flask API routes for repairs; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import handle_errors
from ..models import RepairRecord
from ..services import repair_service
from ..validation import ModelValidationPolicy, parse_limit, require_json, validate_payload
from .common import respond, respond_list


repairs_bp = Blueprint("repairs", __name__, url_prefix="/api/repairs")


CREATE_REPAIR_POLICY = ModelValidationPolicy(
    writable_fields={"order_item_id", "notes"},
    required_on_create={"order_item_id"},
)
NOTES_POLICY = ModelValidationPolicy(writable_fields={"notes"}, required_on_create={"notes"})
TRANSITION_POLICY = ModelValidationPolicy(writable_fields={"status"}, required_on_create={"status"})


@repairs_bp.post("/")
@handle_errors("create repair")
def create_repair_route():
    """
    Open a repair for an order line (status: pending).

    Request body:
    {
        "order_item_id": "LINE-1",
        "notes": "Zip broken"  (optional)
    }
    """
    data = validate_payload(
        model=RepairRecord,
        payload=require_json(request),
        policy=CREATE_REPAIR_POLICY,
        partial=False,
    )
    result = repair_service.create_repair(data["order_item_id"], data.get("notes"))
    return respond(result, "repair", 201)


@repairs_bp.get("/")
@handle_errors("list repairs")
def list_repairs_route():
    repairs = repair_service.list_repairs(
        order_item_id=request.args.get("order_item_id"),
        status=request.args.get("status"),
        limit=parse_limit(request.args),
    )
    return respond_list(repairs, "repairs")


@repairs_bp.get("/<repair_id>")
@handle_errors("get repair")
def get_repair_route(repair_id: str):
    return respond(repair_service.get_repair(repair_id), "repair")


@repairs_bp.post("/<repair_id>/start")
@handle_errors("start repair")
def start_repair_route(repair_id: str):
    return respond(repair_service.start_repair(repair_id), "repair")


@repairs_bp.post("/<repair_id>/complete")
@handle_errors("complete repair")
def complete_repair_route(repair_id: str):
    return respond(repair_service.complete_repair(repair_id), "repair")


@repairs_bp.post("/<repair_id>/fail")
@handle_errors("mark repair failed")
def fail_repair_route(repair_id: str):
    return respond(repair_service.fail_repair(repair_id), "repair")


@repairs_bp.post("/<repair_id>/cancel")
@handle_errors("cancel repair")
def cancel_repair_route(repair_id: str):
    return respond(repair_service.cancel_repair(repair_id), "repair")


@repairs_bp.post("/<repair_id>/transition")
@handle_errors("transition repair")
def transition_repair_route(repair_id: str):
    data = validate_payload(
        model=RepairRecord,
        payload=require_json(request),
        policy=TRANSITION_POLICY,
        partial=False,
    )
    return respond(repair_service.transition_repair(repair_id, data["status"]), "repair")


@repairs_bp.put("/<repair_id>/notes")
@handle_errors("update repair notes")
def replace_notes_route(repair_id: str):
    """Replace notes wholesale; "notes": null or "" clears them."""
    data = validate_payload(
        model=RepairRecord,
        payload=require_json(request),
        policy=NOTES_POLICY,
        partial=False,
    )
    return respond(repair_service.update_repair_notes(repair_id, data["notes"]), "repair")


@repairs_bp.post("/<repair_id>/notes")
@handle_errors("append repair notes")
def append_notes_route(repair_id: str):
    """
    Append a line to the notes log.

    Returns:
        200: Notes appended (a blank line is a no-op)
        409: Repair is completed, failed or cancelled (FINALIZED)
    """
    data = validate_payload(
        model=RepairRecord,
        payload=require_json(request),
        policy=NOTES_POLICY,
        partial=False,
    )
    return respond(repair_service.append_repair_notes(repair_id, data["notes"]), "repair")
