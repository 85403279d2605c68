# Overview: Retry loop for units of work that can lose a race to a concurrent writer.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


# Deadlocks / "database is locked", and a lost version_id check
RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, label: str | None = None):
    """
    Run ``func`` until it completes or ``attempts`` are used up.

    The session is rolled back before every retry so ``func`` re-reads the
    state that won the race. The last error is re-raised unchanged.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.info(
                "Retrying %s after %s (attempt %d of %d)",
                label or getattr(func, "__name__", "unit"),
                type(exc).__name__,
                attempt + 1,
                attempts,
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
