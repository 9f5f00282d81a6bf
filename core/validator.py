"""
core/validator.py
-----------------
Structural-integrity checks for canonical models.

Checks run in a fixed order. The first check that finds any violation
stops the run, but every violation of that check is collected so the
caller can fix them together:

    1. entities     – non-empty id and at least one attribute, unique ids
    2. attributes   – non-empty name and a recognised logical type
    3. duplicates   – no repeated attribute name within one entity
    4. endpoints    – relationship source/target ids exist
    5. references   – relationship attribute references (when given) exist
    6. primary keys – no primary-key attribute is nullable

Design Decision:
    Validation is pure: it never repairs or drops anything. Ingestion,
    conversion and diffing each call it at their own boundary because
    they have independent callers.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping
from typing import Any

from core.errors import InvalidRequest, ValidationError, ValidationIssue
from models.schema import LOGICAL_TYPES, CanonicalModel, SchemaFormatError


def _check_entities(model: CanonicalModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    id_counts = Counter(e.id for e in model.entities)
    reported: set[str] = set()
    for index, entity in enumerate(model.entities):
        if not entity.id or not entity.id.strip():
            issues.append(ValidationIssue(
                check="entities",
                message=f"Entity #{index} ('{entity.name}') has an empty id",
            ))
            continue
        if id_counts[entity.id] > 1 and entity.id not in reported:
            reported.add(entity.id)
            issues.append(ValidationIssue(
                check="entities",
                message=f"Entity id '{entity.id}' is used by {id_counts[entity.id]} entities",
                entity_id=entity.id,
            ))
        if not entity.attributes:
            issues.append(ValidationIssue(
                check="entities",
                message=f"Entity '{entity.id}' has no attributes",
                entity_id=entity.id,
            ))
    return issues


def _check_attributes(model: CanonicalModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for entity in model.entities:
        for index, attr in enumerate(entity.attributes):
            if not attr.name or not attr.name.strip():
                issues.append(ValidationIssue(
                    check="attributes",
                    message=f"Attribute #{index} of entity '{entity.id}' has an empty name",
                    entity_id=entity.id,
                ))
            if attr.logical_type not in LOGICAL_TYPES:
                issues.append(ValidationIssue(
                    check="attributes",
                    message=(
                        f"Attribute '{entity.id}.{attr.name}' has unrecognised "
                        f"type '{attr.logical_type}'"
                    ),
                    entity_id=entity.id,
                    attribute=attr.name,
                ))
    return issues


def _check_duplicate_attributes(model: CanonicalModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for entity in model.entities:
        counts = Counter(a.name for a in entity.attributes)
        for name, count in counts.items():
            if count > 1:
                issues.append(ValidationIssue(
                    check="duplicates",
                    message=f"Entity '{entity.id}' declares attribute '{name}' {count} times",
                    entity_id=entity.id,
                    attribute=name,
                ))
    return issues


def _relationship_label(index: int, rel_id: str | None) -> str:
    return rel_id if rel_id else f"#{index}"


def _check_endpoints(model: CanonicalModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    entity_ids = {e.id for e in model.entities}
    for index, rel in enumerate(model.relationships):
        label = _relationship_label(index, rel.id)
        for role, entity_id in (("source", rel.source), ("target", rel.target)):
            if entity_id not in entity_ids:
                issues.append(ValidationIssue(
                    check="endpoints",
                    message=(
                        f"Relationship {label} ({rel.source} -> {rel.target}) "
                        f"references missing {role} entity '{entity_id}'"
                    ),
                    entity_id=entity_id,
                    relationship_id=rel.id or label,
                ))
    return issues


def _check_references(model: CanonicalModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for index, rel in enumerate(model.relationships):
        label = _relationship_label(index, rel.id)
        for entity_id, attr_name in (
            (rel.source, rel.source_attribute),
            (rel.target, rel.target_attribute),
        ):
            if not attr_name:
                continue
            entity = model.entity(entity_id)
            if entity is not None and entity.get_attribute(attr_name) is None:
                issues.append(ValidationIssue(
                    check="references",
                    message=(
                        f"Relationship {label} references missing attribute "
                        f"'{entity_id}.{attr_name}'"
                    ),
                    entity_id=entity_id,
                    attribute=attr_name,
                    relationship_id=rel.id or label,
                ))
    return issues


def _check_primary_keys(model: CanonicalModel) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            check="primary_keys",
            message=f"Primary-key attribute '{entity.id}.{attr.name}' is nullable",
            entity_id=entity.id,
            attribute=attr.name,
        )
        for entity in model.entities
        for attr in entity.attributes
        if attr.primary_key and attr.nullable
    ]


_CHECKS: tuple[Callable[[CanonicalModel], list[ValidationIssue]], ...] = (
    _check_entities,
    _check_attributes,
    _check_duplicate_attributes,
    _check_endpoints,
    _check_references,
    _check_primary_keys,
)


def find_issues(model: CanonicalModel) -> list[ValidationIssue]:
    """
    Return every violation of the first failing check, or an empty list.

    Example::

        issues = find_issues(model)
        if issues:
            print(issues[0].message)
    """
    for check in _CHECKS:
        issues = check(model)
        if issues:
            return issues
    return []


def validate(model: CanonicalModel) -> None:
    """
    Check *model* against the canonical-model invariants.

    Raises:
        ValidationError: Carrying all violations of the first failing check.
    """
    issues = find_issues(model)
    if issues:
        raise ValidationError(issues)


def load_model(payload: CanonicalModel | Mapping[str, Any]) -> CanonicalModel:
    """
    Accept a model object or a JSON-style payload and return a validated model.

    Raises:
        InvalidRequest:  If the payload is malformed (not an object, missing
                         or non-list entity/relationship collections).
        ValidationError: If the model violates a structural invariant.
    """
    if isinstance(payload, CanonicalModel):
        model = payload
    else:
        try:
            model = CanonicalModel.from_dict(payload)
        except SchemaFormatError as exc:
            raise InvalidRequest(str(exc)) from exc
    validate(model)
    return model
