# Overview: Flask API routes for live-chat sessions and chat messages.

from flask import Blueprint, request

from ..decorators import handle_errors
from ..models import ChatMessageRecord, ChatSessionRecord
from ..services import chat_service
from ..validation import ModelValidationPolicy, parse_bool_arg, parse_limit, require_json, validate_payload
from .common import respond, respond_list, to_json


chat_bp = Blueprint("chat", __name__, url_prefix="/api/chat")


START_SESSION_POLICY = ModelValidationPolicy(writable_fields={"user_id", "topic", "priority"})
UPDATE_SESSION_POLICY = ModelValidationPolicy(writable_fields={"topic", "priority"})
ASSIGN_POLICY = ModelValidationPolicy(writable_fields={"agent_id"}, required_on_create={"agent_id"})
STATUS_POLICY = ModelValidationPolicy(writable_fields={"status"}, required_on_create={"status"})
MESSAGE_POLICY = ModelValidationPolicy(
    writable_fields={"sender_type", "sender_id", "content", "message_type", "metadata", "is_automated"},
    required_on_create={"sender_type"},
    aliases={"metadata": "message_metadata"},
)


# =============================================================================
# SESSIONS
# =============================================================================

@chat_bp.post("/sessions")
@handle_errors("start chat session")
def start_session_route():
    """Queue a new session (status: waiting)."""
    data = validate_payload(
        model=ChatSessionRecord,
        payload=require_json(request),
        policy=START_SESSION_POLICY,
        partial=False,
    )
    return respond(chat_service.start_session(**data), "session", 201)


@chat_bp.get("/sessions")
@handle_errors("list chat sessions")
def list_sessions_route():
    sessions = chat_service.list_sessions(
        status=request.args.get("status"),
        agent_id=request.args.get("agent_id"),
        user_id=request.args.get("user_id"),
        limit=parse_limit(request.args),
    )
    return respond_list(sessions, "sessions")


@chat_bp.get("/sessions/<session_id>")
@handle_errors("get chat session")
def get_session_route(session_id: str):
    result = chat_service.get_session(session_id)
    if not result.ok:
        return respond(result, "session")
    duration = chat_service.session_duration_seconds(session_id)
    return {
        "session": to_json(result.value),
        "duration_seconds": duration.value if duration.ok else None,
    }, 200


@chat_bp.patch("/sessions/<session_id>")
@handle_errors("update chat session")
def update_session_route(session_id: str):
    data = validate_payload(
        model=ChatSessionRecord,
        payload=require_json(request),
        policy=UPDATE_SESSION_POLICY,
        partial=True,
    )
    return respond(chat_service.update_session(session_id, **data), "session")


@chat_bp.post("/sessions/<session_id>/assign")
@handle_errors("assign chat agent")
def assign_agent_route(session_id: str):
    """
    Request body: {"agent_id": "agent-7"}

    Returns:
        200: Agent assigned, session active
        400: Blank agent id (EMPTY_AGENT_ID)
        409: Session already ended
    """
    data = validate_payload(
        model=ChatSessionRecord,
        payload=require_json(request),
        policy=ASSIGN_POLICY,
        partial=False,
    )
    return respond(chat_service.assign_agent(session_id, data["agent_id"]), "session")


@chat_bp.post("/sessions/<session_id>/end")
@handle_errors("end chat session")
def end_session_route(session_id: str):
    return respond(chat_service.end_session(session_id), "session")


@chat_bp.post("/sessions/<session_id>/status")
@handle_errors("update chat status")
def update_status_route(session_id: str):
    data = validate_payload(
        model=ChatSessionRecord,
        payload=require_json(request),
        policy=STATUS_POLICY,
        partial=False,
    )
    return respond(chat_service.update_session_status(session_id, data["status"]), "session")


# =============================================================================
# MESSAGES
# =============================================================================

@chat_bp.get("/sessions/<session_id>/messages")
@handle_errors("list chat messages")
def list_messages_route(session_id: str):
    result = chat_service.list_messages(
        session_id,
        sender_type=request.args.get("sender_type"),
        automated=parse_bool_arg(request.args, "automated"),
    )
    if not result.ok:
        return respond(result, "messages")
    return respond_list(result.value, "messages")


@chat_bp.post("/sessions/<session_id>/messages")
@handle_errors("post chat message")
def post_message_route(session_id: str):
    """
    Request body:
    {
        "sender_type": "customer" | "agent" | "bot",
        "sender_id": "...",          (optional)
        "content": "Hello",          (content or message_type required)
        "message_type": "text",      (optional)
        "metadata": {...},           (optional)
        "is_automated": false        (optional)
    }
    """
    data = validate_payload(
        model=ChatMessageRecord,
        payload=require_json(request),
        policy=MESSAGE_POLICY,
        partial=False,
    )
    sender_type = data.pop("sender_type")
    data["is_automated"] = bool(data.get("is_automated"))
    return respond(chat_service.post_message(session_id, sender_type, **data), "message", 201)
