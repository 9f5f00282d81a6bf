"""
core/converter.py
-----------------
Renders a canonical model as data-definition text for a target dialect.

Strategy selection::

    deterministic   a lookup table exists for (source, target) and no
                    AI-assistance trigger holds
    ai_assisted     either dialect is the document store, or the model has
                    more than ``max_relationships`` relationships or more
                    than ``max_entities`` entities

The AI-assisted path makes exactly one collaborator call. If it fails for
any reason the deterministic renderer runs instead and the result is marked
``fallback_used``.

Design Decisions:
    * An unmapped logical type never fails a conversion: it renders as the
      target's generic string type and the explanation records why.
    * A single-column primary key takes the target's identity idiom
      (``SERIAL``, ``INT AUTO_INCREMENT``, ...). Composite keys keep their
      mapped types because the relational targets allow at most one identity
      column per table.
    * Relational output quotes every identifier in the target's style; table
      names are derived from display names (lower-case, underscores).
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from config import CONFIG, ConversionConfig
from core.ai_client import Collaborator, GeminiCollaborator
from core.errors import CollaboratorFailure, InvalidRequest
from core.type_mappings import (
    GENERIC_TYPES,
    IDENTITY_IDIOMS,
    TargetDialect,
    mapping_for,
    native_type,
    normalize_dialect,
)
from core.validator import load_model
from logger import get_logger
from models.conversion import ConversionResult, MappingExplanation
from models.schema import CanonicalModel, Entity, Relationship
from shared.utils import quote_identifier, sanitize_identifier

log = get_logger(__name__)


class Strategy(str, Enum):
    DETERMINISTIC = "deterministic"
    AI_ASSISTED = "ai_assisted"


# Target type name → $jsonSchema bsonType. Anything else is left unconstrained.
_BSON_TYPES: dict[str, str] = {
    "String": "string",
    "Int32": "int",
    "Double": "double",
    "Boolean": "bool",
    "Date": "date",
    "ObjectId": "objectId",
    "UUID": "binData",
    "Array": "array",
    "Object": "object",
    "BinData": "binData",
}


def needs_ai_assistance(
    model: CanonicalModel,
    source: TargetDialect,
    target: TargetDialect,
    config: ConversionConfig,
) -> bool:
    """True when table-driven mapping is not trusted for this conversion."""
    if source.is_document or target.is_document:
        return True
    return (
        len(model.relationships) > config.max_relationships
        or len(model.entities) > config.max_entities
    )


def choose_strategy(
    model: CanonicalModel,
    source: TargetDialect,
    target: TargetDialect,
    config: ConversionConfig | None = None,
) -> Strategy:
    """
    Pick the conversion path for an already-validated model.

    An empty model, or AI assistance switched off in configuration, always
    selects the deterministic path.
    """
    config = config or CONFIG.conversion
    if not model.entities or not config.ai_enabled:
        return Strategy.DETERMINISTIC
    if mapping_for(source, target) is None:
        return Strategy.AI_ASSISTED
    if needs_ai_assistance(model, source, target, config):
        return Strategy.AI_ASSISTED
    return Strategy.DETERMINISTIC


# ---------------------------------------------------------------------------
# Deterministic rendering
# ---------------------------------------------------------------------------

def _column_types(
    entity: Entity,
    source: TargetDialect,
    target: TargetDialect,
    table: Mapping[str, str],
) -> list[tuple[str, MappingExplanation]]:
    """Resolve the rendered type of every attribute, with its explanation."""
    single_pk = len(entity.primary_key_names) == 1
    resolved: list[tuple[str, MappingExplanation]] = []
    for attr in entity.attributes:
        source_type = native_type(source, attr.logical_type)
        if attr.primary_key and single_pk:
            target_type = IDENTITY_IDIOMS[target]
            reason = f"Primary key uses the {target.value} identity idiom"
        elif attr.logical_type in table:
            target_type = table[attr.logical_type]
            reason = "Direct type mapping"
        else:
            target_type = GENERIC_TYPES[target]
            reason = (
                f"No {source.value} -> {target.value} mapping for "
                f"'{attr.logical_type}'; generic type used"
            )
            log.debug("Unmapped type %s.%s: %s", entity.name, attr.name, reason)
        resolved.append((target_type, MappingExplanation(
            entity=entity.name,
            attribute=attr.name,
            source_type=source_type,
            target_type=target_type,
            reason=reason,
        )))
    return resolved


def _foreign_keys(
    model: CanonicalModel, entity: Entity
) -> list[tuple[str, Entity, str]]:
    """``(fk attribute, target entity, target attribute)`` for edges owned by *entity*."""
    keys: list[tuple[str, Entity, str]] = []
    for rel in model.relationships:
        if rel.source != entity.id:
            continue
        target = model.entity(rel.target)
        if target is None:
            continue
        target_attr = rel.target_attribute or _single_pk(target)
        if not rel.source_attribute or not target_attr:
            log.debug("Relationship %s -> %s has no column pair; no constraint", rel.source, rel.target)
            continue
        keys.append((rel.source_attribute, target, target_attr))
    return keys


def _single_pk(entity: Entity) -> str:
    names = entity.primary_key_names
    return names[0] if len(names) == 1 else ""


def _render_table(
    model: CanonicalModel,
    entity: Entity,
    target: TargetDialect,
    resolved: list[tuple[str, MappingExplanation]],
) -> str:
    def q(name: str) -> str:
        return quote_identifier(name, target.value)

    pk_names = entity.primary_key_names
    lines: list[str] = []
    for attr, (target_type, _) in zip(entity.attributes, resolved):
        column = f"  {q(attr.name)} {target_type}"
        # Identity columns are implicitly NOT NULL.
        if not attr.nullable and not (attr.primary_key and len(pk_names) == 1):
            column += " NOT NULL"
        lines.append(column)

    if pk_names:
        lines.append(f"  PRIMARY KEY ({', '.join(q(n) for n in pk_names)})")
    for attr in entity.attributes:
        if attr.unique and not attr.primary_key:
            lines.append(f"  UNIQUE ({q(attr.name)})")
    for fk_attr, target_entity, target_attr in _foreign_keys(model, entity):
        lines.append(
            f"  FOREIGN KEY ({q(fk_attr)}) REFERENCES "
            f"{q(sanitize_identifier(target_entity.name))} ({q(target_attr)})"
        )

    table_name = q(sanitize_identifier(entity.name))
    return f"CREATE TABLE {table_name} (\n" + ",\n".join(lines) + "\n);"


def _render_collection(
    model: CanonicalModel,
    entity: Entity,
    resolved: list[tuple[str, MappingExplanation]],
) -> str:
    collection = sanitize_identifier(entity.name)
    properties: dict[str, Any] = {}
    required: list[str] = []
    for attr, (target_type, _) in zip(entity.attributes, resolved):
        bson = _BSON_TYPES.get(target_type)
        properties[attr.name] = {"bsonType": bson} if bson else {}
        if not attr.nullable:
            required.append(attr.name)

    schema: dict[str, Any] = {"bsonType": "object"}
    if required:
        schema["required"] = required
    schema["properties"] = properties
    options = json.dumps({"validator": {"$jsonSchema": schema}}, indent=2)
    lines = [f"db.createCollection({json.dumps(collection)}, {options});"]

    for attr in entity.attributes:
        if attr.unique and not attr.primary_key:
            lines.append(
                f"db.getCollection({json.dumps(collection)}).createIndex("
                f"{json.dumps({attr.name: 1})}, {json.dumps({'unique': True})});"
            )
    for fk_attr, target_entity, target_attr in _foreign_keys(model, entity):
        lines.append(
            f"// reference: {collection}.{fk_attr} -> "
            f"{sanitize_identifier(target_entity.name)}.{target_attr}"
        )
    return "\n".join(lines)


def render_deterministic(
    model: CanonicalModel, source: TargetDialect, target: TargetDialect
) -> tuple[str, list[MappingExplanation]]:
    """
    Table-driven rendering of every entity.

    Returns:
        ``(ddl_text, explanations)``; ``("", [])`` for an empty model.

    Raises:
        InvalidRequest: If no lookup table exists for the pair.
    """
    table = mapping_for(source, target)
    if table is None:
        raise InvalidRequest(f"No type mapping exists for {source.value} -> {target.value}")

    statements: list[str] = []
    explanations: list[MappingExplanation] = []
    for entity in model.entities:
        resolved = _column_types(entity, source, target, table)
        if target.is_document:
            statements.append(_render_collection(model, entity, resolved))
        else:
            statements.append(_render_table(model, entity, target, resolved))
        explanations.extend(explanation for _, explanation in resolved)
    return "\n\n".join(statements), explanations


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def convert(
    model: CanonicalModel | Mapping[str, Any],
    source_dialect: str,
    target_dialect: str,
    collaborator: Collaborator | None = None,
    config: ConversionConfig | None = None,
) -> ConversionResult:
    """
    Convert *model* from *source_dialect* to *target_dialect*.

    Args:
        model:          Canonical model or its JSON payload; validated here.
        source_dialect: Dialect name, case-insensitive, aliases accepted.
        target_dialect: Dialect name, must differ from the source.
        collaborator:   Generative collaborator for the AI-assisted path;
                        defaults to :class:`GeminiCollaborator`.
        config:         Overrides ``CONFIG.conversion``.

    Returns:
        :class:`ConversionResult`.

    Raises:
        InvalidRequest:      Unknown dialect, identical dialects or a
                             malformed payload.
        ValidationError:     The model breaks a structural invariant.
        CollaboratorFailure: The AI path failed and no lookup table exists
                             for the pair to fall back on.
    """
    config = config or CONFIG.conversion
    source = normalize_dialect(source_dialect)
    target = normalize_dialect(target_dialect)
    if source is target:
        raise InvalidRequest(
            f"Source and target dialect are both '{source.value}'; nothing to convert"
        )
    canonical = load_model(model)

    strategy = choose_strategy(canonical, source, target, config)
    if strategy is Strategy.AI_ASSISTED:
        active = collaborator or GeminiCollaborator(config)
        try:
            ddl_text, explanations = active.generate(canonical, source, target)
        except CollaboratorFailure as exc:
            if mapping_for(source, target) is None:
                raise
            log.warning(
                "AI-assisted conversion %s -> %s failed (%s); using table mapping",
                source.value, target.value, exc,
            )
        else:
            log.info(
                "AI-assisted conversion %s -> %s: %d explanation(s)",
                source.value, target.value, len(explanations),
            )
            return ConversionResult(
                ddl_text=ddl_text,
                explanations=tuple(explanations),
                strategy=Strategy.AI_ASSISTED.value,
            )

    ddl_text, explanations = render_deterministic(canonical, source, target)
    log.info(
        "Rendered %d statement(s) for %s -> %s",
        len(canonical.entities), source.value, target.value,
    )
    return ConversionResult(
        ddl_text=ddl_text,
        explanations=tuple(explanations),
        strategy=Strategy.DETERMINISTIC.value,
        fallback_used=strategy is Strategy.AI_ASSISTED,
    )
