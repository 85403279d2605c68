# aftercare/routes/system.py
"""
System health endpoint.

Reports database connectivity plus a few lifecycle gauges that on-call
staff look at first (open tickets, waiting chats, upcoming bookings).
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import AppointmentRecord, ChatSessionRecord, SupportTicketRecord
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial round trip.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_lifecycle_health() -> dict:
    """Counts of work waiting on staff; never fails the overall check."""
    start_time = time.time()
    try:
        details = {
            "open_tickets": db.session.query(SupportTicketRecord).filter(
                SupportTicketRecord.status.in_(("open", "in_progress"))
            ).count(),
            "waiting_chats": db.session.query(ChatSessionRecord).filter_by(status="waiting").count(),
            "upcoming_appointments": db.session.query(AppointmentRecord).filter(
                AppointmentRecord.status == "scheduled",
                AppointmentRecord.start_at >= utcnow(),
            ).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Lifecycle health check failed")
        return {
            "status": "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Lifecycle query error",
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    lifecycle_health = check_lifecycle_health()

    all_checks = [database_health, lifecycle_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "lifecycle": lifecycle_health,
        }
    }

    return response, http_status
