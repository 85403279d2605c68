# Overview: Flask API routes for customer feedback (NPS/CSAT) and goodwill records.

from flask import Blueprint, request

from ..decorators import handle_errors
from ..models import FeedbackRecord, GoodwillEntry
from ..services import feedback_service
from ..validation import ModelValidationPolicy, parse_datetime_arg, parse_limit, require_json, validate_payload
from .common import respond, respond_list


feedback_bp = Blueprint("feedback", __name__, url_prefix="/api/feedback")
goodwill_bp = Blueprint("goodwill", __name__, url_prefix="/api/goodwill")


FEEDBACK_POLICY = ModelValidationPolicy(
    writable_fields={"nps_score", "csat_score", "comment", "user_id", "ticket_id", "order_id"},
)
UPDATE_FEEDBACK_POLICY = ModelValidationPolicy(writable_fields={"nps_score", "csat_score", "comment"})
GOODWILL_POLICY = ModelValidationPolicy(
    writable_fields={"type", "value_cents", "user_id", "order_id", "reason"},
    required_on_create={"type", "value_cents"},
)
GOODWILL_REASON_POLICY = ModelValidationPolicy(writable_fields={"reason"}, required_on_create={"reason"})


# =============================================================================
# FEEDBACK
# =============================================================================

@feedback_bp.post("/")
@handle_errors("submit feedback")
def submit_feedback_route():
    """
    Record feedback. At least one of nps_score (0-10), csat_score (1-5)
    or comment is required.
    """
    data = validate_payload(
        model=FeedbackRecord,
        payload=require_json(request),
        policy=FEEDBACK_POLICY,
        partial=False,
    )
    return respond(feedback_service.submit_feedback(**data), "feedback", 201)


@feedback_bp.get("/")
@handle_errors("list feedback")
def list_feedback_route():
    records = feedback_service.list_feedback(
        user_id=request.args.get("user_id"),
        ticket_id=request.args.get("ticket_id"),
        order_id=request.args.get("order_id"),
        created_from=parse_datetime_arg(request.args, "from"),
        created_to=parse_datetime_arg(request.args, "to"),
        limit=parse_limit(request.args),
    )
    return respond_list(records, "feedback")


@feedback_bp.get("/scores")
@handle_errors("compute feedback scores")
def feedback_scores_route():
    """NPS (-100..100) and CSAT (% positive) over an optional ?from/&to window."""
    return feedback_service.feedback_scores(
        created_from=parse_datetime_arg(request.args, "from"),
        created_to=parse_datetime_arg(request.args, "to"),
    ), 200


@feedback_bp.get("/<feedback_id>")
@handle_errors("get feedback")
def get_feedback_route(feedback_id: str):
    return respond(feedback_service.get_feedback(feedback_id), "feedback")


@feedback_bp.patch("/<feedback_id>")
@handle_errors("update feedback")
def update_feedback_route(feedback_id: str):
    data = validate_payload(
        model=FeedbackRecord,
        payload=require_json(request),
        policy=UPDATE_FEEDBACK_POLICY,
        partial=True,
    )
    return respond(feedback_service.update_feedback(feedback_id, **data), "feedback")


# =============================================================================
# GOODWILL
# =============================================================================

@goodwill_bp.post("/")
@handle_errors("grant goodwill")
def grant_goodwill_route():
    """
    Request body:
    {
        "type": "store_credit" | "discount" | "points",
        "value_cents": 1500,
        "user_id": "...",   (optional)
        "order_id": "...",  (optional)
        "reason": "..."     (optional)
    }
    """
    data = validate_payload(
        model=GoodwillEntry,
        payload=require_json(request),
        policy=GOODWILL_POLICY,
        partial=False,
    )
    return respond(feedback_service.grant_goodwill(**data), "goodwill", 201)


@goodwill_bp.get("/")
@handle_errors("list goodwill")
def list_goodwill_route():
    records = feedback_service.list_goodwill(
        user_id=request.args.get("user_id"),
        order_id=request.args.get("order_id"),
        type=request.args.get("type"),
        limit=parse_limit(request.args),
    )
    return respond_list(records, "goodwill")


@goodwill_bp.get("/<record_id>")
@handle_errors("get goodwill")
def get_goodwill_route(record_id: str):
    return respond(feedback_service.get_goodwill(record_id), "goodwill")


@goodwill_bp.patch("/<record_id>")
@handle_errors("update goodwill reason")
def update_goodwill_route(record_id: str):
    data = validate_payload(
        model=GoodwillEntry,
        payload=require_json(request),
        policy=GOODWILL_REASON_POLICY,
        partial=False,
    )
    return respond(feedback_service.update_goodwill_reason(record_id, data["reason"]), "goodwill")
