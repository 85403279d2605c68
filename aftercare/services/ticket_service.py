# Overview: Support ticket commands and the ticket conversation.

from __future__ import annotations

from ..domain import tickets as workflow
from ..domain.result import Result, success
from ..models import SupportTicketRecord, TicketMessageRecord
from .commands import create_child, create_entity, not_found, run_command
from .snapshots import SnapshotRepository


tickets = SnapshotRepository(SupportTicketRecord)
messages = SnapshotRepository(TicketMessageRecord)

LABEL = "Ticket"


# =============================================================================
# TICKETS
# =============================================================================

def create_ticket(
    *,
    source: str | None,
    subject: str | None,
    user_id: str | None = None,
    order_id: str | None = None,
    priority: str | None = None,
) -> Result:
    result = workflow.create_ticket(
        source=source,
        subject=subject,
        user_id=user_id,
        order_id=order_id,
        priority=priority,
    )
    return create_entity(tickets, result, action="create ticket")


def get_ticket(ticket_id: str) -> Result:
    entity = tickets.find(ticket_id)
    if entity is None:
        return not_found(LABEL, ticket_id)
    return success(entity)


def list_tickets(
    *,
    status: str | None = None,
    user_id: str | None = None,
    order_id: str | None = None,
    priority: str | None = None,
    limit: int = 100,
) -> list:
    filters = {
        key: value
        for key, value in (("status", status), ("user_id", user_id), ("order_id", order_id), ("priority", priority))
        if value
    }
    return tickets.list(order_by=SupportTicketRecord.created_at.desc(), limit=limit, **filters)


def _run(ticket_id: str, operation, *args, action: str, **kwargs) -> Result:
    return run_command(tickets, ticket_id, operation, *args, label=LABEL, action=action, **kwargs)


def start_ticket(ticket_id: str) -> Result:
    return _run(ticket_id, workflow.mark_in_progress, action="mark ticket in progress")


def resolve_ticket(ticket_id: str) -> Result:
    return _run(ticket_id, workflow.mark_resolved, action="resolve ticket")


def close_ticket(ticket_id: str) -> Result:
    return _run(ticket_id, workflow.close, action="close ticket")


def reopen_ticket(ticket_id: str) -> Result:
    return _run(ticket_id, workflow.reopen, action="reopen ticket")


def transition_ticket(ticket_id: str, target: str) -> Result:
    return _run(ticket_id, workflow.update_status, target, action="transition ticket")


def update_ticket(ticket_id: str, **changes) -> Result:
    return _run(ticket_id, workflow.update_details, action="update ticket", **changes)


def update_ticket_subject(ticket_id: str, subject: str | None) -> Result:
    return _run(ticket_id, workflow.update_subject, subject, action="update ticket subject")


def update_ticket_priority(ticket_id: str, priority: str | None) -> Result:
    return _run(ticket_id, workflow.update_priority, priority, action="update ticket priority")


# =============================================================================
# MESSAGES
# =============================================================================

def add_ticket_message(ticket_id: str, sender: str | None, body: str | None) -> Result:
    return create_child(
        tickets,
        ticket_id,
        messages,
        workflow.post_message,
        sender,
        body,
        label=LABEL,
        action="add ticket message",
    )


def list_ticket_messages(ticket_id: str, *, sender: str | None = None) -> Result:
    """Conversation in posting order, optionally only one side of it."""
    if not tickets.exists(ticket_id):
        return not_found(LABEL, ticket_id)
    filters = {"sender": sender} if sender else {}
    return success(messages.list(ticket_id=ticket_id, order_by=TicketMessageRecord.created_at, **filters))
