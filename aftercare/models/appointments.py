from __future__ import annotations

from ..extensions import db
from ..domain.booking import Appointment
from .base import SnapshotMixin


class AppointmentRecord(SnapshotMixin, db.Model):
    """
    Persisted appointment.

    INVARIANT: for one user_id, no two non-cancelled rows overlap on
    [start_at, end_at). Enforced by appointment_service under the
    BookingSubject lock; on PostgreSQL an exclusion constraint (see
    migrations) backs it up.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        db.CheckConstraint("end_at > start_at", name="end_after_start"),
        db.Index("ix_appointments_user_window", "user_id", "start_at", "end_at"),
        db.Index("ix_appointments_location_start", "location_id", "start_at"),
    )
    __entity__ = Appointment

    id = db.Column(db.String(32), primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    type = db.Column(db.String(32), nullable=False)
    location_id = db.Column(db.String(64), nullable=True)
    start_at = db.Column(db.DateTime, nullable=False)
    end_at = db.Column(db.DateTime, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="scheduled", index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}


class BookingSubject(db.Model):
    """
    One lock row per booking subject.

    WHY: check-then-insert for appointments is only safe if two bookings
    for the same subject cannot interleave. Every booking bumps this row
    inside its transaction; a concurrent booking either blocks on the row
    lock (databases honoring FOR UPDATE) or fails the version check
    (StaleDataError) and is retried against fresh data.
    """
    __tablename__ = "booking_subjects"

    subject_id = db.Column(db.String(64), primary_key=True)
    last_booked_at = db.Column(db.DateTime, nullable=False)
    booking_count = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}
