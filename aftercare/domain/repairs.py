# Overview: Repair workflow and note-keeping rules.

"""
Repair Workflow

LIFECYCLE:
    pending -> in_progress -> completed
       |            |------> failed
       +------------+------> cancelled

completed, failed and cancelled are TERMINAL. Notes are a running log
that may be replaced or appended to until the repair is finalized.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .common import clean_optional, is_blank, new_id, require_text
from .result import Result, FINALIZED, failure, success
from .state_machine import check_transition, is_terminal, validate_graph


REPAIR_PENDING = "pending"
REPAIR_IN_PROGRESS = "in_progress"
REPAIR_COMPLETED = "completed"
REPAIR_FAILED = "failed"
REPAIR_CANCELLED = "cancelled"

REPAIR_GRAPH = {
    REPAIR_PENDING: frozenset({REPAIR_IN_PROGRESS, REPAIR_CANCELLED}),
    REPAIR_IN_PROGRESS: frozenset({REPAIR_COMPLETED, REPAIR_FAILED, REPAIR_CANCELLED}),
    REPAIR_COMPLETED: frozenset(),
    REPAIR_FAILED: frozenset(),
    REPAIR_CANCELLED: frozenset(),
}
validate_graph(REPAIR_GRAPH)

NOTES_SEPARATOR = "\n"


@dataclass(frozen=True)
class Repair:
    id: str
    order_item_id: str
    notes: str | None
    status: str

    @property
    def is_finalized(self) -> bool:
        return is_terminal(REPAIR_GRAPH, self.status)

    @property
    def has_notes(self) -> bool:
        return not is_blank(self.notes)


def create_repair(order_item_id: str | None, notes: str | None = None) -> Result[Repair]:
    item = require_text(order_item_id, "order_item_id", "Order Item ID")
    if not item.ok:
        return item
    return success(Repair(
        id=new_id(),
        order_item_id=item.value,
        notes=clean_optional(notes),
        status=REPAIR_PENDING,
    ))


def transition(repair: Repair, target: str) -> Result[Repair]:
    checked = check_transition(REPAIR_GRAPH, repair.status, target, entity="repair")
    if not checked.ok:
        return checked
    return success(replace(repair, status=target))


def start(repair: Repair) -> Result[Repair]:
    return transition(repair, REPAIR_IN_PROGRESS)


def complete(repair: Repair) -> Result[Repair]:
    return transition(repair, REPAIR_COMPLETED)


def mark_failed(repair: Repair) -> Result[Repair]:
    return transition(repair, REPAIR_FAILED)


def cancel(repair: Repair) -> Result[Repair]:
    return transition(repair, REPAIR_CANCELLED)


_NAMED_MOVES = {
    REPAIR_IN_PROGRESS: start,
    REPAIR_COMPLETED: complete,
    REPAIR_FAILED: mark_failed,
    REPAIR_CANCELLED: cancel,
}


def update_status(repair: Repair, status: str) -> Result[Repair]:
    move = _NAMED_MOVES.get(status)
    if move is None:
        return transition(repair, status)
    return move(repair)


def _ensure_editable(repair: Repair) -> Result[Repair]:
    if repair.is_finalized:
        return failure(FINALIZED, f"Cannot update notes of finalized repair ({repair.status})", "notes")
    return success(repair)


def update_notes(repair: Repair, text: str | None) -> Result[Repair]:
    """Replace the notes wholesale; blank text clears them."""
    editable = _ensure_editable(repair)
    if not editable.ok:
        return editable
    return success(replace(repair, notes=clean_optional(text)))


def append_notes(repair: Repair, text: str | None) -> Result[Repair]:
    """
    Append a line to the notes.

    Blank input leaves the repair unchanged. The terminal guard still
    applies, so appending to a finalized repair always fails.
    """
    editable = _ensure_editable(repair)
    if not editable.ok:
        return editable
    if is_blank(text):
        return success(repair)

    line = text.strip()
    notes = f"{repair.notes}{NOTES_SEPARATOR}{line}" if repair.notes else line
    return success(replace(repair, notes=notes))
