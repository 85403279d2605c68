# Overview: Load -> apply -> save pipeline shared by every lifecycle command.

"""
Service Commands

Every guarded operation exposed by the services follows one shape:

    1. Load the row for the entity id (NOT_FOUND when missing)
    2. Reconstitute the immutable snapshot and call ONE domain function
    3. On failure: roll back, return the failure untouched
    4. On success: write the new snapshot onto the row and commit

CONCURRENCY:
- Rows carry a version_id column; a writer that loaded a stale snapshot
  gets StaleDataError at flush and the whole command is re-run, so the
  domain guard is re-evaluated against the state that actually won.
- Any other SQLAlchemyError is rolled back, logged, and surfaced as
  STORAGE_ERROR. Callers never see a raw database exception.
"""

from __future__ import annotations

from typing import Callable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..domain.result import NOT_FOUND, STORAGE_ERROR, Result, failure
from ..extensions import db
from .concurrency import run_with_retry
from .snapshots import SnapshotRepository


COMMAND_RETRY_ATTEMPTS = 3


def not_found(label: str, key) -> Result:
    return failure(NOT_FOUND, f"{label} {key} not found", "id")


def storage_failure(action: str) -> Result:
    return failure(STORAGE_ERROR, f"Storage failure while trying to {action}")


def commit_result(result: Result, action: str) -> Result:
    """Commit whatever ``result`` staged in the session, or roll it back."""
    if not result.ok:
        db.session.rollback()
        return result
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to %s", action)
        return storage_failure(action)
    return result


def run_command(
    repo: SnapshotRepository,
    key,
    operation: Callable[..., Result],
    *args,
    label: str,
    action: str,
    attempts: int = COMMAND_RETRY_ATTEMPTS,
    **kwargs,
) -> Result:
    """
    Apply ``operation(entity, *args, **kwargs)`` to the stored entity ``key``.

    Returns the operation's Result; on success its value is the entity as
    committed.
    """
    def _unit() -> Result:
        row = repo.find_row(key)
        if row is None:
            db.session.rollback()
            return not_found(label, key)

        result = operation(row.to_entity(), *args, **kwargs)
        if not result.ok:
            db.session.rollback()
            return result

        row.update_from(result.value)
        db.session.commit()
        return result

    return run_unit(_unit, action=action, key=key, attempts=attempts)


def run_unit(
    unit: Callable[[], Result],
    *,
    action: str,
    key=None,
    attempts: int = COMMAND_RETRY_ATTEMPTS,
    backoff_base: float = 0.1,
) -> Result:
    """
    Run a self-committing unit of work with stale-write retries.

    Storage errors that survive the retries come back as STORAGE_ERROR.
    """
    try:
        return run_with_retry(unit, attempts=attempts, backoff_base=backoff_base, label=action)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to %s %s", action, key)
        return storage_failure(action)


def create_entity(repo: SnapshotRepository, result: Result, *, action: str) -> Result:
    """Persist a freshly built entity when the factory succeeded."""
    if not result.ok:
        return result
    repo.save(result.value)
    return commit_result(result, action)


def create_child(
    parent_repo: SnapshotRepository,
    parent_key,
    child_repo: SnapshotRepository,
    factory: Callable[..., Result],
    *args,
    label: str,
    action: str,
    **kwargs,
) -> Result:
    """
    Build a child entity from its stored parent (``factory(parent, ...)``)
    and insert it. The parent guard decides whether children are accepted.
    """
    def _unit() -> Result:
        parent_row = parent_repo.find_row(parent_key)
        if parent_row is None:
            db.session.rollback()
            return not_found(label, parent_key)

        result = factory(parent_row.to_entity(), *args, **kwargs)
        if not result.ok:
            db.session.rollback()
            return result

        child_repo.save(result.value)
        db.session.commit()
        return result

    return run_unit(_unit, action=action, key=parent_key)
