from __future__ import annotations

from ..extensions import db
from ..domain.tickets import SupportTicket, TicketMessage
from .base import SnapshotMixin


class SupportTicketRecord(SnapshotMixin, db.Model):
    """
    Persisted support ticket.

    Tickets re-open: closed/resolved -> open is a normal transition, so
    status is never treated as final here.
    """
    __tablename__ = "support_tickets"
    __table_args__ = (
        db.Index("ix_support_tickets_status_created", "status", "created_at"),
    )
    __entity__ = SupportTicket

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    order_id = db.Column(db.String(64), nullable=True, index=True)
    source = db.Column(db.String(16), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="open")
    priority = db.Column(db.String(16), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    messages = db.relationship(
        "TicketMessageRecord",
        backref="ticket",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="TicketMessageRecord.created_at",
    )

    __mapper_args__ = {"version_id_col": version_id}


class TicketMessageRecord(SnapshotMixin, db.Model):
    """Immutable message on a ticket (agent or customer)."""
    __tablename__ = "ticket_messages"
    __entity__ = TicketMessage

    id = db.Column(db.String(32), primary_key=True)
    ticket_id = db.Column(db.String(32), db.ForeignKey("support_tickets.id"), nullable=False, index=True)
    sender = db.Column(db.String(16), nullable=False)
    body = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False)
