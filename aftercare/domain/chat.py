# Overview: Live-chat session workflow and chat messages.

"""
Chat Session Workflow

LIFECYCLE:
    waiting -> active -> ended
       +-----------------^

    waiting: Customer queued, no agent yet
    active:  Agent assigned (assign_agent forces this state)
    ended:   TERMINAL, ended_at stamped exactly once
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any

from .common import clean_optional, is_blank, new_id, optional_choice, require_choice, require_text
from .result import (
    Result,
    ALREADY_ENDED,
    EMPTY_AGENT_ID,
    SESSION_ENDED,
    VALIDATION_ERROR,
    failure,
    success,
)
from .state_machine import check_transition, is_terminal, validate_graph
from .tickets import PRIORITIES
from ..time_utils import utcnow


CHAT_WAITING = "waiting"
CHAT_ACTIVE = "active"
CHAT_ENDED = "ended"

CHAT_GRAPH = {
    CHAT_WAITING: frozenset({CHAT_ACTIVE, CHAT_ENDED}),
    CHAT_ACTIVE: frozenset({CHAT_ENDED}),
    CHAT_ENDED: frozenset(),
}
validate_graph(CHAT_GRAPH)

CHAT_SENDER_TYPES = frozenset({"customer", "agent", "bot"})


@dataclass(frozen=True)
class ChatSession:
    id: str
    user_id: str | None
    agent_id: str | None
    topic: str | None
    priority: str | None
    status: str
    started_at: datetime
    ended_at: datetime | None = None

    @property
    def is_ended(self) -> bool:
        return is_terminal(CHAT_GRAPH, self.status) or self.ended_at is not None

    @property
    def has_agent(self) -> bool:
        return self.agent_id is not None


@dataclass(frozen=True)
class ChatMessage:
    id: str
    session_id: str
    sender_id: str | None
    sender_type: str
    message_type: str | None
    content: str | None
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    is_automated: bool = False


def create_session(
    *,
    user_id: str | None = None,
    topic: str | None = None,
    priority: str | None = None,
    now: datetime | None = None,
) -> Result[ChatSession]:
    checked = optional_choice(priority, PRIORITIES, "priority")
    if not checked.ok:
        return checked
    return success(ChatSession(
        id=new_id(),
        user_id=user_id or None,
        agent_id=None,
        topic=clean_optional(topic),
        priority=priority,
        status=CHAT_WAITING,
        started_at=now or utcnow(),
    ))


def _ensure_live(session: ChatSession, what: str) -> Result[ChatSession]:
    if session.is_ended:
        return failure(SESSION_ENDED, f"Cannot {what} of ended session", "status")
    return success(session)


def assign_agent(session: ChatSession, agent_id: str | None) -> Result[ChatSession]:
    """
    Attach an agent and force the session active.

    Reassigning an already active session is allowed; the status stays
    ``active``.
    """
    if is_blank(agent_id):
        return failure(EMPTY_AGENT_ID, "Agent ID cannot be empty", "agent_id")
    live = _ensure_live(session, "assign agent")
    if not live.ok:
        return live
    return success(replace(session, agent_id=agent_id.strip(), status=CHAT_ACTIVE))


def end(session: ChatSession, *, now: datetime | None = None) -> Result[ChatSession]:
    if session.is_ended:
        return failure(ALREADY_ENDED, "Session is already ended", "status")
    return success(replace(session, status=CHAT_ENDED, ended_at=now or utcnow()))


def update_status(session: ChatSession, status: str, *, now: datetime | None = None) -> Result[ChatSession]:
    live = _ensure_live(session, "update status")
    if not live.ok:
        return live
    if status == CHAT_ENDED:
        return end(session, now=now)
    checked = check_transition(CHAT_GRAPH, session.status, status, entity="chat session")
    if not checked.ok:
        return checked
    return success(replace(session, status=status))


def update_topic(session: ChatSession, topic: str | None) -> Result[ChatSession]:
    live = _ensure_live(session, "update topic")
    if not live.ok:
        return live
    return success(replace(session, topic=clean_optional(topic)))


def update_priority(session: ChatSession, priority: str | None) -> Result[ChatSession]:
    live = _ensure_live(session, "update priority")
    if not live.ok:
        return live
    checked = require_choice(priority, PRIORITIES, "priority")
    if not checked.ok:
        return checked
    return success(replace(session, priority=priority))


def update_details(session: ChatSession, **changes) -> Result[ChatSession]:
    edits = (("topic", update_topic), ("priority", update_priority))
    for name, edit in edits:
        if name in changes:
            result = edit(session, changes[name])
            if not result.ok:
                return result
            session = result.value
    return success(session)


def get_duration(session: ChatSession) -> timedelta | None:
    """Elapsed time between start and end; None while the session is open."""
    if session.ended_at is None:
        return None
    return session.ended_at - session.started_at


def create_chat_message(
    session_id: str | None,
    sender_type: str | None,
    *,
    content: str | None = None,
    sender_id: str | None = None,
    message_type: str | None = None,
    metadata: dict[str, Any] | None = None,
    is_automated: bool = False,
    now: datetime | None = None,
) -> Result[ChatMessage]:
    session = require_text(session_id, "session_id", "Session ID")
    if not session.ok:
        return session
    sender = require_choice(sender_type, CHAT_SENDER_TYPES, "sender_type")
    if not sender.ok:
        return sender
    if is_blank(content) and is_blank(message_type):
        return failure(VALIDATION_ERROR, "Message needs content or a message_type", "content", "message_type")

    return success(ChatMessage(
        id=new_id(),
        session_id=session.value,
        sender_id=sender_id or None,
        sender_type=sender_type,
        message_type=clean_optional(message_type),
        content=content,
        created_at=now or utcnow(),
        metadata=dict(metadata or {}),
        is_automated=bool(is_automated),
    ))


def post_message(session: ChatSession, sender_type: str | None, **attrs) -> Result[ChatMessage]:
    if session.is_ended:
        return failure(SESSION_ENDED, "Cannot post messages to an ended session", "session_id")
    return create_chat_message(session.id, sender_type, **attrs)
