# Overview: Live-chat session commands, chat messages, and stale-session cleanup.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func

from ..domain import chat as workflow
from ..domain.result import Result, success
from ..extensions import db
from ..models import ChatMessageRecord, ChatSessionRecord
from ..time_utils import utcnow
from .commands import create_child, create_entity, not_found, run_command
from .snapshots import SnapshotRepository


sessions = SnapshotRepository(ChatSessionRecord)
messages = SnapshotRepository(ChatMessageRecord)

LABEL = "Chat session"


# =============================================================================
# SESSIONS
# =============================================================================

def start_session(*, user_id: str | None = None, topic: str | None = None, priority: str | None = None) -> Result:
    result = workflow.create_session(user_id=user_id, topic=topic, priority=priority)
    return create_entity(sessions, result, action="start chat session")


def get_session(session_id: str) -> Result:
    entity = sessions.find(session_id)
    if entity is None:
        return not_found(LABEL, session_id)
    return success(entity)


def list_sessions(
    *,
    status: str | None = None,
    agent_id: str | None = None,
    user_id: str | None = None,
    limit: int = 100,
) -> list:
    filters = {
        key: value
        for key, value in (("status", status), ("agent_id", agent_id), ("user_id", user_id))
        if value
    }
    return sessions.list(order_by=ChatSessionRecord.started_at.desc(), limit=limit, **filters)


def _run(session_id: str, operation, *args, action: str, **kwargs) -> Result:
    return run_command(sessions, session_id, operation, *args, label=LABEL, action=action, **kwargs)


def assign_agent(session_id: str, agent_id: str | None) -> Result:
    return _run(session_id, workflow.assign_agent, agent_id, action="assign chat agent")


def end_session(session_id: str) -> Result:
    return _run(session_id, workflow.end, action="end chat session")


def update_session_status(session_id: str, status: str) -> Result:
    return _run(session_id, workflow.update_status, status, action="update chat status")


def update_session(session_id: str, **changes) -> Result:
    return _run(session_id, workflow.update_details, action="update chat session", **changes)


def update_session_topic(session_id: str, topic: str | None) -> Result:
    return _run(session_id, workflow.update_topic, topic, action="update chat topic")


def update_session_priority(session_id: str, priority: str | None) -> Result:
    return _run(session_id, workflow.update_priority, priority, action="update chat priority")


def session_duration_seconds(session_id: str) -> Result:
    """Seconds between start and end; None while the session is still open."""
    found = get_session(session_id)
    if not found.ok:
        return found
    duration = workflow.get_duration(found.value)
    return success(int(duration.total_seconds()) if duration is not None else None)


# =============================================================================
# MESSAGES
# =============================================================================

def post_message(
    session_id: str,
    sender_type: str | None,
    *,
    content: str | None = None,
    sender_id: str | None = None,
    message_type: str | None = None,
    metadata: dict | None = None,
    is_automated: bool = False,
) -> Result:
    return create_child(
        sessions,
        session_id,
        messages,
        workflow.post_message,
        sender_type,
        content=content,
        sender_id=sender_id,
        message_type=message_type,
        metadata=metadata,
        is_automated=is_automated,
        label=LABEL,
        action="post chat message",
    )


def list_messages(
    session_id: str,
    *,
    sender_type: str | None = None,
    automated: bool | None = None,
) -> Result:
    if not sessions.exists(session_id):
        return not_found(LABEL, session_id)
    filters = {}
    if sender_type:
        filters["sender_type"] = sender_type
    if automated is not None:
        filters["is_automated"] = automated
    return success(messages.list(session_id=session_id, order_by=ChatMessageRecord.created_at, **filters))


# =============================================================================
# MAINTENANCE
# =============================================================================

def find_stale_sessions(*, idle_minutes: int, now=None) -> list[str]:
    """
    Ids of open sessions with no activity for ``idle_minutes``.

    Activity is the newest message, or the session start when no message
    was ever posted.
    """
    cutoff = (now or utcnow()) - timedelta(minutes=idle_minutes)
    last_message = (
        db.session.query(
            ChatMessageRecord.session_id.label("session_id"),
            func.max(ChatMessageRecord.created_at).label("last_at"),
        )
        .group_by(ChatMessageRecord.session_id)
        .subquery()
    )
    rows = (
        db.session.query(ChatSessionRecord.id, ChatSessionRecord.started_at, last_message.c.last_at)
        .outerjoin(last_message, last_message.c.session_id == ChatSessionRecord.id)
        .filter(ChatSessionRecord.status != workflow.CHAT_ENDED)
        .filter(ChatSessionRecord.started_at < cutoff)
        .order_by(ChatSessionRecord.started_at)
        .all()
    )
    return [session_id for session_id, started_at, last_at in rows if (last_at or started_at) < cutoff]


def end_stale_sessions(*, idle_minutes: int, now=None) -> list[Result]:
    """End every stale session; one Result per session attempted."""
    return [end_session(session_id) for session_id in find_stale_sessions(idle_minutes=idle_minutes, now=now)]
