from __future__ import annotations

from ..extensions import db
from ..domain.returns import ReturnItem, ReturnRequest
from .base import SnapshotMixin


class ReturnRequestRecord(SnapshotMixin, db.Model):
    """
    Persisted RMA snapshot.

    LIFECYCLE: eligibility -> approved -> in_transit -> received -> refunded,
    with rejected reachable from every open state. Transitions are decided
    by domain.returns; this row only stores the outcome.
    """
    __tablename__ = "return_requests"
    __table_args__ = (
        db.Index("ix_return_requests_order_status", "order_id", "status"),
    )
    __entity__ = ReturnRequest

    id = db.Column(db.String(32), primary_key=True)
    order_id = db.Column(db.String(64), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)
    reason = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="eligibility", index=True)

    created_at = db.Column(db.DateTime, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, nullable=False)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "ReturnItemRecord",
        backref="return_request",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ReturnItemRecord.order_item_id",
    )

    __mapper_args__ = {"version_id_col": version_id}


class ReturnItemRecord(SnapshotMixin, db.Model):
    """One returned order line. Composite key: (rma_id, order_item_id)."""
    __tablename__ = "return_items"
    __table_args__ = (
        db.CheckConstraint("qty > 0", name="qty_positive"),
        db.CheckConstraint("fees_cents IS NULL OR fees_cents >= 0", name="fees_non_negative"),
    )
    __entity__ = ReturnItem
    __column_names__ = {"quantity": "qty"}

    rma_id = db.Column(db.String(32), db.ForeignKey("return_requests.id"), primary_key=True)
    order_item_id = db.Column(db.String(64), primary_key=True)
    qty = db.Column(db.Integer, nullable=False)
    condition = db.Column(db.String(16), nullable=True)
    disposition = db.Column(db.String(16), nullable=True)
    fees_cents = db.Column(db.Integer, nullable=True)
