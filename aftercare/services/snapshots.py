# Overview: Load/save of immutable domain snapshots through SQLAlchemy rows.

from __future__ import annotations

from ..extensions import db


class SnapshotRepository:
    """
    Find/save/delete for one snapshot model.

    ``key`` is the primary key value, or a tuple for composite keys
    (return items are keyed by (rma_id, order_item_id)).

    Nothing here commits; the calling command owns the transaction.
    """

    def __init__(self, model):
        self.model = model

    def find_row(self, key, *, for_update: bool = False):
        return db.session.get(self.model, key, with_for_update=for_update or None)

    def find(self, key):
        row = self.find_row(key)
        return row.to_entity() if row is not None else None

    def exists(self, key) -> bool:
        return self.find_row(key) is not None

    def save(self, entity):
        """Write ``entity`` onto its row, inserting the row if it is new."""
        row = self.find_row(self.model.entity_key(entity))
        if row is None:
            row = self.model.from_entity(entity)
            db.session.add(row)
        else:
            row.update_from(entity)
        return row

    def delete(self, key) -> bool:
        row = self.find_row(key)
        if row is None:
            return False
        db.session.delete(row)
        return True

    def list(self, *criteria, order_by=None, limit: int | None = None, **filters) -> list:
        query = db.session.query(self.model).filter_by(**filters)
        if criteria:
            query = query.filter(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        if limit is not None:
            query = query.limit(limit)
        return [row.to_entity() for row in query.all()]
