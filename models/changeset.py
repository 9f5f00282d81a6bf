"""
models/changeset.py
-------------------
Result types of the structural diff engine.

Entities are keyed by id; relationships by the ordered pair
``(source id, target id)``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from models.schema import Attribute, Entity, Relationship


@dataclass(frozen=True)
class EntityModification:
    """An entity present in both snapshots whose content changed."""
    entity_id: str
    before_name: str
    after_name: str
    before_attributes: tuple[Attribute, ...]
    after_attributes: tuple[Attribute, ...]

    @property
    def removed_attributes(self) -> list[Attribute]:
        after = set(self.after_attributes)
        return [a for a in self.before_attributes if a not in after]

    @property
    def added_attributes(self) -> list[Attribute]:
        before = set(self.before_attributes)
        return [a for a in self.after_attributes if a not in before]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.entity_id,
            "beforeName": self.before_name,
            "afterName": self.after_name,
            "before": [a.to_dict() for a in self.before_attributes],
            "after": [a.to_dict() for a in self.after_attributes],
        }


@dataclass(frozen=True)
class RelationshipModification:
    """A (source, target) pair present in both snapshots with a changed edge."""
    before: Relationship
    after: Relationship

    @property
    def key(self) -> tuple[str, str]:
        return self.after.key

    def to_dict(self) -> dict[str, Any]:
        return {"before": self.before.to_dict(), "after": self.after.to_dict()}


@dataclass(frozen=True)
class EntityChanges:
    added: tuple[Entity, ...] = ()
    removed: tuple[Entity, ...] = ()
    modified: tuple[EntityModification, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": [e.to_dict() for e in self.added],
            "removed": [e.to_dict() for e in self.removed],
            "modified": [m.to_dict() for m in self.modified],
        }


@dataclass(frozen=True)
class RelationshipChanges:
    added: tuple[Relationship, ...] = ()
    removed: tuple[Relationship, ...] = ()
    modified: tuple[RelationshipModification, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": [r.to_dict() for r in self.added],
            "removed": [r.to_dict() for r in self.removed],
            "modified": [m.to_dict() for m in self.modified],
        }


@dataclass(frozen=True)
class ChangeSet:
    """Categorised differences between a ``before`` and an ``after`` model."""
    entities: EntityChanges = EntityChanges()
    relationships: RelationshipChanges = RelationshipChanges()

    @property
    def is_empty(self) -> bool:
        return not any((
            self.entities.added, self.entities.removed, self.entities.modified,
            self.relationships.added, self.relationships.removed,
            self.relationships.modified,
        ))

    def summary(self) -> dict[str, dict[str, int]]:
        return {
            "entities": {
                "added": len(self.entities.added),
                "removed": len(self.entities.removed),
                "modified": len(self.entities.modified),
            },
            "relationships": {
                "added": len(self.relationships.added),
                "removed": len(self.relationships.removed),
                "modified": len(self.relationships.modified),
            },
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": self.entities.to_dict(),
            "relationships": self.relationships.to_dict(),
        }
