# Overview: Customer feedback (NPS / CSAT) and goodwill gestures.

"""
Feedback & Goodwill

NPS (0-10):  0-6 detractor, 7-8 passive, 9-10 promoter
CSAT (1-5):  1-2 negative, 3 neutral, 4-5 positive

A feedback record must carry at least one of: NPS score, CSAT score,
comment. Goodwill records compensate a customer with store credit, a
discount, or loyalty points and always carry a positive value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable

from .common import clean_optional, is_blank, new_id, require_choice, validate_score
from .result import Result, VALIDATION_ERROR, failure, success
from ..time_utils import utcnow


NPS_MIN, NPS_MAX = 0, 10
CSAT_MIN, CSAT_MAX = 1, 5

GOODWILL_TYPES = frozenset({"store_credit", "discount", "points"})


@dataclass(frozen=True)
class CustomerFeedback:
    id: str
    user_id: str | None
    ticket_id: str | None
    order_id: str | None
    nps_score: int | None
    csat_score: int | None
    comment: str | None
    created_at: datetime


@dataclass(frozen=True)
class GoodwillRecord:
    id: str
    user_id: str | None
    order_id: str | None
    type: str
    value_cents: int
    reason: str | None
    created_at: datetime


# =============================================================================
# FEEDBACK
# =============================================================================

def _optional_score(value, low: int, high: int, field: str) -> Result[int | None]:
    if value is None:
        return success(None)
    return validate_score(value, low, high, field)


def create_feedback(
    *,
    nps_score: int | None = None,
    csat_score: int | None = None,
    comment: str | None = None,
    user_id: str | None = None,
    ticket_id: str | None = None,
    order_id: str | None = None,
    now: datetime | None = None,
) -> Result[CustomerFeedback]:
    nps = _optional_score(nps_score, NPS_MIN, NPS_MAX, "nps_score")
    if not nps.ok:
        return nps
    csat = _optional_score(csat_score, CSAT_MIN, CSAT_MAX, "csat_score")
    if not csat.ok:
        return csat
    if nps_score is None and csat_score is None and is_blank(comment):
        return failure(
            VALIDATION_ERROR,
            "At least one of NPS score, CSAT score, or comment must be provided",
            "nps_score",
            "csat_score",
            "comment",
        )

    return success(CustomerFeedback(
        id=new_id(),
        user_id=user_id or None,
        ticket_id=ticket_id or None,
        order_id=order_id or None,
        nps_score=nps_score,
        csat_score=csat_score,
        comment=clean_optional(comment),
        created_at=now or utcnow(),
    ))


def _set_nps(feedback: CustomerFeedback, score) -> Result[CustomerFeedback]:
    checked = _optional_score(score, NPS_MIN, NPS_MAX, "nps_score")
    if not checked.ok:
        return checked
    return success(replace(feedback, nps_score=score))


def _set_csat(feedback: CustomerFeedback, score) -> Result[CustomerFeedback]:
    checked = _optional_score(score, CSAT_MIN, CSAT_MAX, "csat_score")
    if not checked.ok:
        return checked
    return success(replace(feedback, csat_score=score))


def _set_comment(feedback: CustomerFeedback, comment: str | None) -> Result[CustomerFeedback]:
    return success(replace(feedback, comment=clean_optional(comment)))


_FEEDBACK_EDITS = (("nps_score", _set_nps), ("csat_score", _set_csat), ("comment", _set_comment))


def update_details(feedback: CustomerFeedback, **changes) -> Result[CustomerFeedback]:
    """
    Apply score and comment edits in one step.

    None clears a field. The at-least-one rule is checked on the result, so
    one request may clear a score while setting the comment.
    """
    touched = []
    for name, edit in _FEEDBACK_EDITS:
        if name in changes:
            result = edit(feedback, changes[name])
            if not result.ok:
                return result
            feedback = result.value
            touched.append(name)
    if feedback.nps_score is None and feedback.csat_score is None and feedback.comment is None:
        return failure(VALIDATION_ERROR, "Cannot clear the only piece of feedback", *touched)
    return success(feedback)


def update_nps_score(feedback: CustomerFeedback, score) -> Result[CustomerFeedback]:
    return update_details(feedback, nps_score=score)


def update_csat_score(feedback: CustomerFeedback, score) -> Result[CustomerFeedback]:
    return update_details(feedback, csat_score=score)


def update_comment(feedback: CustomerFeedback, comment: str | None) -> Result[CustomerFeedback]:
    return update_details(feedback, comment=comment)


def nps_category(feedback: CustomerFeedback) -> str | None:
    if feedback.nps_score is None:
        return None
    if feedback.nps_score >= 9:
        return "promoter"
    if feedback.nps_score >= 7:
        return "passive"
    return "detractor"


def csat_category(feedback: CustomerFeedback) -> str | None:
    if feedback.csat_score is None:
        return None
    if feedback.csat_score >= 4:
        return "positive"
    if feedback.csat_score == 3:
        return "neutral"
    return "negative"


def nps_score(feedback: Iterable[CustomerFeedback]) -> float:
    """Net Promoter Score: % promoters minus % detractors over rated records."""
    categories = [nps_category(f) for f in feedback if f.nps_score is not None]
    if not categories:
        return 0.0
    promoters = categories.count("promoter")
    detractors = categories.count("detractor")
    return (promoters - detractors) / len(categories) * 100


def csat_score(feedback: Iterable[CustomerFeedback]) -> float:
    """Share of CSAT-rated records that are positive, as a percentage."""
    categories = [csat_category(f) for f in feedback if f.csat_score is not None]
    if not categories:
        return 0.0
    return categories.count("positive") / len(categories) * 100


# =============================================================================
# GOODWILL
# =============================================================================

def create_goodwill(
    *,
    type: str | None,
    value_cents,
    user_id: str | None = None,
    order_id: str | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> Result[GoodwillRecord]:
    kind = require_choice(type, GOODWILL_TYPES, "type")
    if not kind.ok:
        return kind
    if isinstance(value_cents, bool) or not isinstance(value_cents, int) or value_cents <= 0:
        return failure(VALIDATION_ERROR, "Goodwill value must be greater than zero", "value_cents")

    return success(GoodwillRecord(
        id=new_id(),
        user_id=user_id or None,
        order_id=order_id or None,
        type=type,
        value_cents=value_cents,
        reason=clean_optional(reason),
        created_at=now or utcnow(),
    ))


def update_goodwill_reason(record: GoodwillRecord, reason: str | None) -> Result[GoodwillRecord]:
    return success(replace(record, reason=clean_optional(reason)))
