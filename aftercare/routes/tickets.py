# Overview: Flask API routes for support tickets and ticket messages.

"""
Support Ticket API Routes

Tickets are never final: closed and resolved tickets can be reopened.
Subject/priority edits and new messages are refused on closed tickets
(409, kind CLOSED).
"""

from flask import Blueprint, request

from ..decorators import handle_errors
from ..models import SupportTicketRecord, TicketMessageRecord
from ..services import ticket_service
from ..validation import ModelValidationPolicy, parse_limit, require_json, validate_payload
from .common import respond, respond_list


tickets_bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")


CREATE_TICKET_POLICY = ModelValidationPolicy(
    writable_fields={"source", "subject", "user_id", "order_id", "priority"},
    required_on_create={"source", "subject"},
)
UPDATE_TICKET_POLICY = ModelValidationPolicy(writable_fields={"subject", "priority"})
TRANSITION_POLICY = ModelValidationPolicy(writable_fields={"status"}, required_on_create={"status"})
MESSAGE_POLICY = ModelValidationPolicy(
    writable_fields={"sender", "body"},
    required_on_create={"sender", "body"},
)


# =============================================================================
# TICKETS
# =============================================================================

@tickets_bp.post("/")
@handle_errors("create ticket")
def create_ticket_route():
    """
    Open a ticket.

    Request body:
    {
        "source": "phone" | "email" | "chat" | "web",
        "subject": "Parcel arrived damaged",
        "user_id": "...",     (optional)
        "order_id": "...",    (optional)
        "priority": "low" | "medium" | "high" | "urgent"  (optional)
    }
    """
    data = validate_payload(
        model=SupportTicketRecord,
        payload=require_json(request),
        policy=CREATE_TICKET_POLICY,
        partial=False,
    )
    return respond(ticket_service.create_ticket(**data), "ticket", 201)


@tickets_bp.get("/")
@handle_errors("list tickets")
def list_tickets_route():
    tickets = ticket_service.list_tickets(
        status=request.args.get("status"),
        user_id=request.args.get("user_id"),
        order_id=request.args.get("order_id"),
        priority=request.args.get("priority"),
        limit=parse_limit(request.args),
    )
    return respond_list(tickets, "tickets")


@tickets_bp.get("/<ticket_id>")
@handle_errors("get ticket")
def get_ticket_route(ticket_id: str):
    return respond(ticket_service.get_ticket(ticket_id), "ticket")


@tickets_bp.patch("/<ticket_id>")
@handle_errors("update ticket")
def update_ticket_route(ticket_id: str):
    data = validate_payload(
        model=SupportTicketRecord,
        payload=require_json(request),
        policy=UPDATE_TICKET_POLICY,
        partial=True,
    )
    return respond(ticket_service.update_ticket(ticket_id, **data), "ticket")


@tickets_bp.post("/<ticket_id>/start")
@handle_errors("start ticket")
def start_ticket_route(ticket_id: str):
    return respond(ticket_service.start_ticket(ticket_id), "ticket")


@tickets_bp.post("/<ticket_id>/resolve")
@handle_errors("resolve ticket")
def resolve_ticket_route(ticket_id: str):
    return respond(ticket_service.resolve_ticket(ticket_id), "ticket")


@tickets_bp.post("/<ticket_id>/close")
@handle_errors("close ticket")
def close_ticket_route(ticket_id: str):
    return respond(ticket_service.close_ticket(ticket_id), "ticket")


@tickets_bp.post("/<ticket_id>/reopen")
@handle_errors("reopen ticket")
def reopen_ticket_route(ticket_id: str):
    """Only closed or resolved tickets can be reopened (409 otherwise)."""
    return respond(ticket_service.reopen_ticket(ticket_id), "ticket")


@tickets_bp.post("/<ticket_id>/transition")
@handle_errors("transition ticket")
def transition_ticket_route(ticket_id: str):
    data = validate_payload(
        model=SupportTicketRecord,
        payload=require_json(request),
        policy=TRANSITION_POLICY,
        partial=False,
    )
    return respond(ticket_service.transition_ticket(ticket_id, data["status"]), "ticket")


# =============================================================================
# MESSAGES
# =============================================================================

@tickets_bp.get("/<ticket_id>/messages")
@handle_errors("list ticket messages")
def list_messages_route(ticket_id: str):
    result = ticket_service.list_ticket_messages(ticket_id, sender=request.args.get("sender"))
    if not result.ok:
        return respond(result, "messages")
    return respond_list(result.value, "messages")


@tickets_bp.post("/<ticket_id>/messages")
@handle_errors("add ticket message")
def add_message_route(ticket_id: str):
    """
    Request body:
    {
        "sender": "agent" | "customer",
        "body": "..."
    }
    """
    data = validate_payload(
        model=TicketMessageRecord,
        payload=require_json(request),
        policy=MESSAGE_POLICY,
        partial=False,
    )
    result = ticket_service.add_ticket_message(ticket_id, data["sender"], data["body"])
    return respond(result, "message", 201)
