# Overview: Support ticket workflow (re-openable) and ticket messages.

"""
Support Ticket Workflow

Unlike returns and repairs, a ticket is not a one-way pipeline. A resolved
or closed ticket can be reopened, and close is legal from everywhere:

    open <-> in_progress
    open / in_progress -> resolved -> closed
    open / in_progress -> closed
    resolved / closed -> open

No state is terminal. "Closed" still freezes the subject and priority.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from .common import new_id, optional_choice, require_choice, require_text
from .result import (
    Result,
    ALREADY_CLOSED,
    CLOSED,
    INVALID_TRANSITION,
    failure,
    success,
)
from .state_machine import check_transition, validate_graph
from ..time_utils import utcnow


TICKET_OPEN = "open"
TICKET_IN_PROGRESS = "in_progress"
TICKET_RESOLVED = "resolved"
TICKET_CLOSED = "closed"

TICKET_GRAPH = {
    TICKET_OPEN: frozenset({TICKET_IN_PROGRESS, TICKET_RESOLVED, TICKET_CLOSED}),
    TICKET_IN_PROGRESS: frozenset({TICKET_OPEN, TICKET_RESOLVED, TICKET_CLOSED}),
    TICKET_RESOLVED: frozenset({TICKET_OPEN, TICKET_CLOSED}),
    TICKET_CLOSED: frozenset({TICKET_OPEN, TICKET_CLOSED}),
}
validate_graph(TICKET_GRAPH)

TICKET_SOURCES = frozenset({"phone", "email", "chat", "web"})
PRIORITIES = frozenset({"low", "medium", "high", "urgent"})
MESSAGE_SENDERS = frozenset({"agent", "customer"})


@dataclass(frozen=True)
class SupportTicket:
    id: str
    user_id: str | None
    order_id: str | None
    source: str
    subject: str
    status: str
    priority: str | None
    created_at: datetime

    @property
    def is_closed(self) -> bool:
        return self.status == TICKET_CLOSED


@dataclass(frozen=True)
class TicketMessage:
    id: str
    ticket_id: str
    sender: str
    body: str
    created_at: datetime


def create_ticket(
    *,
    source: str | None,
    subject: str | None,
    user_id: str | None = None,
    order_id: str | None = None,
    priority: str | None = None,
    now: datetime | None = None,
) -> Result[SupportTicket]:
    checks = (
        require_text(subject, "subject", "Ticket subject"),
        require_choice(source, TICKET_SOURCES, "source"),
        optional_choice(priority, PRIORITIES, "priority"),
    )
    for check in checks:
        if not check.ok:
            return check

    return success(SupportTicket(
        id=new_id(),
        user_id=user_id or None,
        order_id=order_id or None,
        source=source,
        subject=checks[0].value,
        status=TICKET_OPEN,
        priority=priority,
        created_at=now or utcnow(),
    ))


def transition(ticket: SupportTicket, target: str) -> Result[SupportTicket]:
    checked = check_transition(TICKET_GRAPH, ticket.status, target, entity="ticket")
    if not checked.ok:
        return checked
    return success(replace(ticket, status=target))


def mark_in_progress(ticket: SupportTicket) -> Result[SupportTicket]:
    if ticket.is_closed:
        return failure(CLOSED, "Cannot move a closed ticket to in_progress; reopen it first", "status")
    return transition(ticket, TICKET_IN_PROGRESS)


def mark_resolved(ticket: SupportTicket) -> Result[SupportTicket]:
    if ticket.is_closed:
        return failure(ALREADY_CLOSED, "Ticket is already closed", "status")
    return transition(ticket, TICKET_RESOLVED)


def close(ticket: SupportTicket) -> Result[SupportTicket]:
    return transition(ticket, TICKET_CLOSED)


def reopen(ticket: SupportTicket) -> Result[SupportTicket]:
    if ticket.status not in (TICKET_CLOSED, TICKET_RESOLVED):
        return failure(
            INVALID_TRANSITION,
            f"Can only reopen closed or resolved tickets (ticket is {ticket.status})",
            "status",
        )
    return transition(ticket, TICKET_OPEN)


_NAMED_MOVES = {
    TICKET_IN_PROGRESS: mark_in_progress,
    TICKET_RESOLVED: mark_resolved,
    TICKET_CLOSED: close,
}


def update_status(ticket: SupportTicket, status: str) -> Result[SupportTicket]:
    """Generic move; a target with a named operation reports that operation's failure kind."""
    if status == TICKET_OPEN and ticket.status in (TICKET_CLOSED, TICKET_RESOLVED):
        return reopen(ticket)
    move = _NAMED_MOVES.get(status)
    if move is None:
        return transition(ticket, status)
    return move(ticket)


def update_subject(ticket: SupportTicket, subject: str | None) -> Result[SupportTicket]:
    if ticket.is_closed:
        return failure(CLOSED, "Cannot update subject of closed ticket", "subject")
    checked = require_text(subject, "subject", "Ticket subject")
    if not checked.ok:
        return checked
    return success(replace(ticket, subject=checked.value))


def update_priority(ticket: SupportTicket, priority: str | None) -> Result[SupportTicket]:
    if ticket.is_closed:
        return failure(CLOSED, "Cannot update priority of closed ticket", "priority")
    checked = require_choice(priority, PRIORITIES, "priority")
    if not checked.ok:
        return checked
    return success(replace(ticket, priority=priority))


def update_details(ticket: SupportTicket, **changes) -> Result[SupportTicket]:
    """Subject and/or priority in one step; nothing changes if either is rejected."""
    edits = (("subject", update_subject), ("priority", update_priority))
    for name, edit in edits:
        if name in changes:
            result = edit(ticket, changes[name])
            if not result.ok:
                return result
            ticket = result.value
    return success(ticket)


def create_ticket_message(
    ticket_id: str | None,
    sender: str | None,
    body: str | None,
    *,
    now: datetime | None = None,
) -> Result[TicketMessage]:
    checks = (
        require_text(ticket_id, "ticket_id", "Ticket ID"),
        require_choice(sender, MESSAGE_SENDERS, "sender"),
        require_text(body, "body", "Message body"),
    )
    for check in checks:
        if not check.ok:
            return check

    return success(TicketMessage(
        id=new_id(),
        ticket_id=checks[0].value,
        sender=sender,
        body=checks[2].value,
        created_at=now or utcnow(),
    ))


def post_message(
    ticket: SupportTicket,
    sender: str | None,
    body: str | None,
    *,
    now: datetime | None = None,
) -> Result[TicketMessage]:
    """Add to the conversation; closed tickets must be reopened first."""
    if ticket.is_closed:
        return failure(CLOSED, "Cannot add messages to a closed ticket", "ticket_id")
    return create_ticket_message(ticket.id, sender, body, now=now)
