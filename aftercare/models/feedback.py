from __future__ import annotations

from ..extensions import db
from ..domain.feedback import CustomerFeedback, GoodwillRecord
from .base import SnapshotMixin


class FeedbackRecord(SnapshotMixin, db.Model):
    __tablename__ = "customer_feedback"
    __table_args__ = (
        db.CheckConstraint("nps_score IS NULL OR (nps_score >= 0 AND nps_score <= 10)", name="nps_range"),
        db.CheckConstraint("csat_score IS NULL OR (csat_score >= 1 AND csat_score <= 5)", name="csat_range"),
    )
    __entity__ = CustomerFeedback

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    ticket_id = db.Column(db.String(32), nullable=True, index=True)
    order_id = db.Column(db.String(64), nullable=True, index=True)
    nps_score = db.Column(db.Integer, nullable=True)
    csat_score = db.Column(db.Integer, nullable=True)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, index=True)


class GoodwillEntry(SnapshotMixin, db.Model):
    """Compensation granted to a customer (store credit, discount, points)."""
    __tablename__ = "goodwill_records"
    __table_args__ = (
        db.CheckConstraint("value_cents > 0", name="value_positive"),
    )
    __entity__ = GoodwillRecord

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    order_id = db.Column(db.String(64), nullable=True, index=True)
    type = db.Column(db.String(16), nullable=False, index=True)
    value_cents = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False)
