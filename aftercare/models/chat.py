from __future__ import annotations

from ..extensions import db
from ..domain.chat import ChatMessage, ChatSession
from .base import SnapshotMixin


class ChatSessionRecord(SnapshotMixin, db.Model):
    """
    Persisted live-chat session.

    LIFECYCLE: waiting -> active -> ended. ended_at is written once, by the
    end transition.
    """
    __tablename__ = "chat_sessions"
    __table_args__ = (
        db.Index("ix_chat_sessions_agent_status", "agent_id", "status"),
    )
    __entity__ = ChatSession

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    agent_id = db.Column(db.String(64), nullable=True)
    topic = db.Column(db.String(255), nullable=True)
    priority = db.Column(db.String(16), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="waiting", index=True)
    started_at = db.Column(db.DateTime, nullable=False)
    ended_at = db.Column(db.DateTime, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    messages = db.relationship(
        "ChatMessageRecord",
        backref="chat_session",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ChatMessageRecord.created_at",
    )

    __mapper_args__ = {"version_id_col": version_id}


class ChatMessageRecord(SnapshotMixin, db.Model):
    __tablename__ = "chat_messages"
    __entity__ = ChatMessage
    # "metadata" is reserved on declarative classes
    __column_names__ = {"metadata": "message_metadata"}

    id = db.Column(db.String(32), primary_key=True)
    session_id = db.Column(db.String(32), db.ForeignKey("chat_sessions.id"), nullable=False, index=True)
    sender_id = db.Column(db.String(64), nullable=True)
    sender_type = db.Column(db.String(16), nullable=False)
    message_type = db.Column(db.String(32), nullable=True)
    content = db.Column(db.Text, nullable=True)
    message_metadata = db.Column("metadata", db.JSON, nullable=False, default=dict)
    is_automated = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False)
