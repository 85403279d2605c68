# Overview: Repair commands: start/complete/fail/cancel and notes.

from __future__ import annotations

from ..domain import repairs as workflow
from ..domain.result import Result, success
from ..models import RepairRecord
from .commands import create_entity, not_found, run_command
from .snapshots import SnapshotRepository


repairs = SnapshotRepository(RepairRecord)

LABEL = "Repair"


def create_repair(order_item_id: str | None, notes: str | None = None) -> Result:
    return create_entity(repairs, workflow.create_repair(order_item_id, notes), action="create repair")


def get_repair(repair_id: str) -> Result:
    entity = repairs.find(repair_id)
    if entity is None:
        return not_found(LABEL, repair_id)
    return success(entity)


def list_repairs(*, order_item_id: str | None = None, status: str | None = None, limit: int = 100) -> list:
    filters = {}
    if order_item_id:
        filters["order_item_id"] = order_item_id
    if status:
        filters["status"] = status
    return repairs.list(order_by=RepairRecord.id, limit=limit, **filters)


def _run(repair_id: str, operation, *args, action: str) -> Result:
    return run_command(repairs, repair_id, operation, *args, label=LABEL, action=action)


def start_repair(repair_id: str) -> Result:
    return _run(repair_id, workflow.start, action="start repair")


def complete_repair(repair_id: str) -> Result:
    return _run(repair_id, workflow.complete, action="complete repair")


def fail_repair(repair_id: str) -> Result:
    return _run(repair_id, workflow.mark_failed, action="mark repair failed")


def cancel_repair(repair_id: str) -> Result:
    return _run(repair_id, workflow.cancel, action="cancel repair")


def transition_repair(repair_id: str, target: str) -> Result:
    return _run(repair_id, workflow.update_status, target, action="transition repair")


def update_repair_notes(repair_id: str, notes: str | None) -> Result:
    return _run(repair_id, workflow.update_notes, notes, action="update repair notes")


def append_repair_notes(repair_id: str, text: str | None) -> Result:
    return _run(repair_id, workflow.append_notes, text, action="append repair notes")
