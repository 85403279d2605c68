# Overview: Snapshot mapping between SQLAlchemy rows and immutable domain entities.

from __future__ import annotations

import dataclasses


class SnapshotMixin:
    """
    Row <-> entity mapping for models that persist one domain dataclass.

    WHY: The domain never holds a live row. Services load a row, hand an
    immutable snapshot to the workflow, then write the returned snapshot
    back onto the same row so SQLAlchemy's version counter can detect a
    concurrent writer.

    Subclasses set ``__entity__`` to the dataclass they persist. Entity
    fields map to columns of the same name unless listed in
    ``__column_names__`` (entity field -> mapped attribute).
    """
    __entity__ = None
    __column_names__: dict[str, str] = {}

    @classmethod
    def _snapshot_fields(cls) -> list[str]:
        return [f.name for f in dataclasses.fields(cls.__entity__)]

    @classmethod
    def _attr(cls, field: str) -> str:
        return cls.__column_names__.get(field, field)

    @classmethod
    def entity_key(cls, entity) -> tuple:
        """Primary-key tuple for ``entity`` in mapper column order."""
        return tuple(getattr(entity, col.key) for col in cls.__mapper__.primary_key)

    def to_entity(self):
        return self.__entity__(**{
            field: getattr(self, self._attr(field)) for field in self._snapshot_fields()
        })

    def update_from(self, entity) -> None:
        for field in self._snapshot_fields():
            setattr(self, self._attr(field), getattr(entity, field))

    @classmethod
    def from_entity(cls, entity):
        row = cls()
        row.update_from(entity)
        return row
