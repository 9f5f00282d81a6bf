"""
core/differ.py
--------------
Structural diff between two canonical-model snapshots.

Matching rules::

    entities        by id; modified when the attribute set (compared by
                    value, order ignored) or the display name differs
    relationships   by the ordered pair (source id, target id); modified
                    when the attribute references or cardinality differ

Design Decision:
    Relationships are keyed by their endpoint pair, not by relationship id,
    so editors that regenerate edge ids do not produce spurious changes.
    Several edges between the same two entities collapse onto one key. The
    edge kept is the smallest by (source attribute, target attribute,
    cardinality, id), so the result does not depend on edge order.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from core.validator import load_model
from logger import get_logger
from models.changeset import (
    ChangeSet,
    EntityChanges,
    EntityModification,
    RelationshipChanges,
    RelationshipModification,
)
from models.schema import CanonicalModel, Entity, Relationship

log = get_logger(__name__)


def _edge_rank(rel: Relationship) -> tuple[str, str, str, str]:
    return (rel.source_attribute, rel.target_attribute, rel.cardinality, rel.id or "")


def _relationships_by_pair(model: CanonicalModel) -> dict[tuple[str, str], Relationship]:
    pairs: dict[tuple[str, str], Relationship] = {}
    for rel in model.relationships:
        kept = pairs.get(rel.key)
        if kept is None:
            pairs[rel.key] = rel
            continue
        log.debug("Relationships %s -> %s collapse onto one diff key", *rel.key)
        if _edge_rank(rel) < _edge_rank(kept):
            pairs[rel.key] = rel
    return pairs


def _same_edge(before: Relationship, after: Relationship) -> bool:
    return (
        before.source_attribute == after.source_attribute
        and before.target_attribute == after.target_attribute
        and before.cardinality == after.cardinality
    )


def _diff_entities(before: CanonicalModel, after: CanonicalModel) -> EntityChanges:
    old: dict[str, Entity] = {e.id: e for e in before.entities}
    new: dict[str, Entity] = {e.id: e for e in after.entities}

    modified: list[EntityModification] = []
    for entity_id in sorted(old.keys() & new.keys()):
        a, b = old[entity_id], new[entity_id]
        if a.attribute_set != b.attribute_set or a.name != b.name:
            modified.append(EntityModification(
                entity_id=entity_id,
                before_name=a.name,
                after_name=b.name,
                before_attributes=a.attributes,
                after_attributes=b.attributes,
            ))

    return EntityChanges(
        added=tuple(new[i] for i in sorted(new.keys() - old.keys())),
        removed=tuple(old[i] for i in sorted(old.keys() - new.keys())),
        modified=tuple(modified),
    )


def _diff_relationships(before: CanonicalModel, after: CanonicalModel) -> RelationshipChanges:
    old = _relationships_by_pair(before)
    new = _relationships_by_pair(after)
    return RelationshipChanges(
        added=tuple(new[k] for k in sorted(new.keys() - old.keys())),
        removed=tuple(old[k] for k in sorted(old.keys() - new.keys())),
        modified=tuple(
            RelationshipModification(before=old[k], after=new[k])
            for k in sorted(old.keys() & new.keys())
            if not _same_edge(old[k], new[k])
        ),
    )


def diff(
    before: CanonicalModel | Mapping[str, Any],
    after: CanonicalModel | Mapping[str, Any],
) -> ChangeSet:
    """
    Compare two snapshots and return the categorised changes.

    Both inputs are validated first; a JSON payload is accepted in place of
    a model.

    Example::

        changes = diff(v1, v2)
        for mod in changes.entities.modified:
            print(mod.entity_id, mod.removed_attributes, mod.added_attributes)

    Raises:
        InvalidRequest:  A payload is malformed (missing collections).
        ValidationError: A snapshot breaks a structural invariant.
    """
    old = load_model(before)
    new = load_model(after)
    changes = ChangeSet(
        entities=_diff_entities(old, new),
        relationships=_diff_relationships(old, new),
    )
    summary = changes.summary()
    log.info(
        "Diff: entities +%d -%d ~%d, relationships +%d -%d ~%d",
        summary["entities"]["added"], summary["entities"]["removed"],
        summary["entities"]["modified"], summary["relationships"]["added"],
        summary["relationships"]["removed"], summary["relationships"]["modified"],
    )
    return changes
