# Overview: Customer feedback (NPS/CSAT) and goodwill records, with aggregate scores.

from __future__ import annotations

from datetime import datetime

from ..domain import feedback as rules
from ..domain.result import Result, success
from ..models import FeedbackRecord, GoodwillEntry
from .commands import create_entity, not_found, run_command
from .snapshots import SnapshotRepository


feedback = SnapshotRepository(FeedbackRecord)
goodwill = SnapshotRepository(GoodwillEntry)


# =============================================================================
# FEEDBACK
# =============================================================================

def submit_feedback(
    *,
    nps_score: int | None = None,
    csat_score: int | None = None,
    comment: str | None = None,
    user_id: str | None = None,
    ticket_id: str | None = None,
    order_id: str | None = None,
) -> Result:
    result = rules.create_feedback(
        nps_score=nps_score,
        csat_score=csat_score,
        comment=comment,
        user_id=user_id,
        ticket_id=ticket_id,
        order_id=order_id,
    )
    return create_entity(feedback, result, action="submit feedback")


def get_feedback(feedback_id: str) -> Result:
    entity = feedback.find(feedback_id)
    if entity is None:
        return not_found("Feedback", feedback_id)
    return success(entity)


def _feedback_criteria(created_from: datetime | None, created_to: datetime | None) -> list:
    criteria = []
    if created_from is not None:
        criteria.append(FeedbackRecord.created_at >= created_from)
    if created_to is not None:
        criteria.append(FeedbackRecord.created_at < created_to)
    return criteria


def list_feedback(
    *,
    user_id: str | None = None,
    ticket_id: str | None = None,
    order_id: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    limit: int | None = 100,
) -> list:
    filters = {
        key: value
        for key, value in (("user_id", user_id), ("ticket_id", ticket_id), ("order_id", order_id))
        if value
    }
    return feedback.list(
        *_feedback_criteria(created_from, created_to),
        order_by=FeedbackRecord.created_at.desc(),
        limit=limit,
        **filters,
    )


def update_feedback(feedback_id: str, **changes) -> Result:
    return run_command(feedback, feedback_id, rules.update_details, label="Feedback", action="update feedback", **changes)


def update_nps(feedback_id: str, score) -> Result:
    return run_command(feedback, feedback_id, rules.update_nps_score, score, label="Feedback", action="update NPS score")


def update_csat(feedback_id: str, score) -> Result:
    return run_command(feedback, feedback_id, rules.update_csat_score, score, label="Feedback", action="update CSAT score")


def update_comment(feedback_id: str, comment: str | None) -> Result:
    return run_command(feedback, feedback_id, rules.update_comment, comment, label="Feedback", action="update comment")


def feedback_scores(*, created_from: datetime | None = None, created_to: datetime | None = None) -> dict:
    """
    NPS and CSAT over a period.

    Returns:
        {"nps": float, "csat": float, "responses": int,
         "nps_responses": int, "csat_responses": int}
    """
    records = feedback.list(*_feedback_criteria(created_from, created_to))
    return {
        "nps": round(rules.nps_score(records), 2),
        "csat": round(rules.csat_score(records), 2),
        "responses": len(records),
        "nps_responses": sum(1 for r in records if r.nps_score is not None),
        "csat_responses": sum(1 for r in records if r.csat_score is not None),
    }


# =============================================================================
# GOODWILL
# =============================================================================

def grant_goodwill(
    *,
    type: str | None,
    value_cents,
    user_id: str | None = None,
    order_id: str | None = None,
    reason: str | None = None,
) -> Result:
    result = rules.create_goodwill(
        type=type,
        value_cents=value_cents,
        user_id=user_id,
        order_id=order_id,
        reason=reason,
    )
    return create_entity(goodwill, result, action="grant goodwill")


def get_goodwill(record_id: str) -> Result:
    entity = goodwill.find(record_id)
    if entity is None:
        return not_found("Goodwill record", record_id)
    return success(entity)


def list_goodwill(
    *,
    user_id: str | None = None,
    order_id: str | None = None,
    type: str | None = None,
    limit: int | None = 100,
) -> list:
    filters = {
        key: value
        for key, value in (("user_id", user_id), ("order_id", order_id), ("type", type))
        if value
    }
    return goodwill.list(order_by=GoodwillEntry.created_at.desc(), limit=limit, **filters)


def update_goodwill_reason(record_id: str, reason: str | None) -> Result:
    return run_command(
        goodwill,
        record_id,
        rules.update_goodwill_reason,
        reason,
        label="Goodwill record",
        action="update goodwill reason",
    )


def total_goodwill_cents(*, user_id: str | None = None, type: str | None = None) -> int:
    return sum(record.value_cents for record in list_goodwill(user_id=user_id, type=type, limit=None))
