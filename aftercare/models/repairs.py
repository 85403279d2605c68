from __future__ import annotations

from ..extensions import db
from ..domain.repairs import Repair
from .base import SnapshotMixin


class RepairRecord(SnapshotMixin, db.Model):
    """
    Persisted repair snapshot.

    Notes are an append-only log while the repair is open and frozen once
    it is completed, failed or cancelled.
    """
    __tablename__ = "repairs"
    __entity__ = Repair

    id = db.Column(db.String(32), primary_key=True)
    order_item_id = db.Column(db.String(64), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}
