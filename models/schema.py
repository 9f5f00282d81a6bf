"""
models/schema.py
----------------
Typed, immutable data model for the canonical schema graph.

Design Decision:
    Frozen dataclasses with tuple collections make a model value-comparable
    and hashable, so a model built for one request can never be mutated in
    place; transformations build a new ``CanonicalModel``. Explicit
    ``to_dict`` / ``from_dict`` methods define the JSON wire format, and
    ``from_dict`` also accepts the graph-editor payload (``nodes`` /
    ``edges``) older clients still send.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class SchemaFormatError(ValueError):
    """Raised when a schema payload does not have the expected shape."""


class LogicalType(str, Enum):
    """Dialect-neutral attribute types."""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    IDENTIFIER = "identifier"
    ARRAY = "array"
    OBJECT = "object"
    BINARY = "binary"
    UNSTRUCTURED = "unstructured"

    @classmethod
    def parse(cls, value: Any) -> "LogicalType | None":
        """Return the member named by *value* (case-insensitive), or None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        if key in ("date/time", "date_time"):
            return cls.DATETIME
        try:
            return cls(key)
        except ValueError:
            return None


LOGICAL_TYPES = frozenset(t.value for t in LogicalType)

# Native type names seen in editor payloads → logical type.
_NATIVE_TYPE_ALIASES: dict[str, LogicalType] = {
    "varchar": LogicalType.STRING,
    "nvarchar": LogicalType.STRING,
    "char": LogicalType.STRING,
    "text": LogicalType.STRING,
    "citext": LogicalType.STRING,
    "int": LogicalType.INTEGER,
    "bigint": LogicalType.INTEGER,
    "smallint": LogicalType.INTEGER,
    "serial": LogicalType.INTEGER,
    "float": LogicalType.FLOAT,
    "double": LogicalType.FLOAT,
    "double precision": LogicalType.FLOAT,
    "real": LogicalType.FLOAT,
    "decimal": LogicalType.FLOAT,
    "numeric": LogicalType.FLOAT,
    "number": LogicalType.FLOAT,
    "bool": LogicalType.BOOLEAN,
    "bit": LogicalType.BOOLEAN,
    "tinyint(1)": LogicalType.BOOLEAN,
    "date": LogicalType.DATETIME,
    "time": LogicalType.DATETIME,
    "timestamp": LogicalType.DATETIME,
    "timestamptz": LogicalType.DATETIME,
    "datetime2": LogicalType.DATETIME,
    "uuid": LogicalType.IDENTIFIER,
    "objectid": LogicalType.IDENTIFIER,
    "uniqueidentifier": LogicalType.IDENTIFIER,
    "json": LogicalType.OBJECT,
    "jsonb": LogicalType.OBJECT,
    "map": LogicalType.OBJECT,
    "blob": LogicalType.BINARY,
    "bytea": LogicalType.BINARY,
    "bytes": LogicalType.BINARY,
    "buffer": LogicalType.BINARY,
    "varbinary": LogicalType.BINARY,
    "mixed": LogicalType.UNSTRUCTURED,
    "any": LogicalType.UNSTRUCTURED,
}

_HANDLE_SUFFIX_RE = re.compile(r"-(left|right)$")
_SIZE_RE = re.compile(r"\([^)]*\)")


def coerce_logical_type(raw: Any) -> str:
    """
    Normalise a type tag from a payload into a logical type value.

    Unrecognised tags are returned verbatim so the validator can report
    them instead of having them silently replaced.

    Examples::

        coerce_logical_type("Integer")       →  "integer"
        coerce_logical_type("VARCHAR(100)")  →  "string"
        coerce_logical_type("geometry")      →  "geometry"
    """
    parsed = LogicalType.parse(raw)
    if parsed is not None:
        return parsed.value
    if not isinstance(raw, str):
        return "" if raw is None else str(raw)
    lowered = raw.strip().lower()
    if lowered in _NATIVE_TYPE_ALIASES:
        return _NATIVE_TYPE_ALIASES[lowered].value
    base = _SIZE_RE.sub("", lowered).strip()
    if base in _NATIVE_TYPE_ALIASES:
        return _NATIVE_TYPE_ALIASES[base].value
    if base.endswith("[]"):
        return LogicalType.ARRAY.value
    return raw.strip()


def _flag(data: Mapping[str, Any], *keys: str, default: bool) -> bool:
    for key in keys:
        if key in data and data[key] is not None:
            return bool(data[key])
    return default


def _require_list(data: Mapping[str, Any], key: str) -> list[Any]:
    if key not in data:
        raise SchemaFormatError(f"Schema payload is missing the '{key}' collection")
    value = data[key]
    if not isinstance(value, list):
        raise SchemaFormatError(f"Schema '{key}' must be a list, got {type(value).__name__}")
    return value


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaFormatError(f"Each {what} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Attribute:
    """
    A single field of an entity.

    Attributes:
        name:          Unique within its entity.
        logical_type:  One of :class:`LogicalType` values in validated input.
        primary_key:   Part of the entity identity.
        nullable:      May hold no value. Never true for a primary key.
        unique:        Carries a uniqueness constraint.
    """
    name: str
    logical_type: str
    primary_key: bool = False
    nullable: bool = True
    unique: bool = False

    def __post_init__(self) -> None:
        # Store the plain value so enum and string tags hash alike.
        if isinstance(self.logical_type, LogicalType):
            object.__setattr__(self, "logical_type", self.logical_type.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.logical_type,
            "primaryKey": self.primary_key,
            "nullable": self.nullable,
            "unique": self.unique,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Attribute":
        data = _require_mapping(data, "attribute")
        primary_key = _flag(data, "primaryKey", "primary_key", "isPK", default=False)
        return Attribute(
            name=str(data.get("name") or ""),
            logical_type=coerce_logical_type(
                data.get("type", data.get("logicalType", data.get("logical_type")))
            ),
            primary_key=primary_key,
            nullable=_flag(
                data, "nullable", "isNullable", "is_nullable", default=not primary_key
            ),
            unique=_flag(data, "unique", "isUnique", "is_unique", default=False),
        )


@dataclass(frozen=True)
class Entity:
    """
    A table or collection.

    ``position`` is an opaque layout hint carried for clients; nothing in
    this package reads it.
    """
    id: str
    name: str
    attributes: tuple[Attribute, ...] = ()
    position: tuple[float, float] | None = None

    def get_attribute(self, name: str) -> Attribute | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    @property
    def primary_key_names(self) -> list[str]:
        return [a.name for a in self.attributes if a.primary_key]

    @property
    def attribute_set(self) -> frozenset[Attribute]:
        return frozenset(self.attributes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "attributes": [a.to_dict() for a in self.attributes],
            "position": (
                {"x": self.position[0], "y": self.position[1]} if self.position else None
            ),
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Entity":
        data = _require_mapping(data, "entity")
        attributes = data.get("attributes", [])
        if not isinstance(attributes, list):
            raise SchemaFormatError("Entity 'attributes' must be a list")
        return Entity(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or data.get("id") or ""),
            attributes=tuple(Attribute.from_dict(a) for a in attributes),
            position=_position_from(data.get("position")),
        )

    @staticmethod
    def from_node(node: Mapping[str, Any]) -> "Entity":
        """Build an entity from a graph-editor node (``data.label`` / ``data.columns``)."""
        node = _require_mapping(node, "node")
        payload = _require_mapping(node.get("data", {}), "node 'data'")
        columns = payload.get("columns", [])
        if not isinstance(columns, list):
            raise SchemaFormatError("Node 'data.columns' must be a list")
        return Entity(
            id=str(node.get("id") or ""),
            name=str(payload.get("label") or node.get("id") or ""),
            attributes=tuple(Attribute.from_dict(c) for c in columns),
            position=_position_from(node.get("position")),
        )


def _position_from(value: Any) -> tuple[float, float] | None:
    if isinstance(value, Mapping) and "x" in value and "y" in value:
        try:
            return (float(value["x"]), float(value["y"]))
        except (TypeError, ValueError):
            return None
    return None


@dataclass(frozen=True)
class Relationship:
    """
    A directed edge; the source entity owns the foreign-key attribute.

    Attributes:
        source:            Source entity id.
        target:            Target entity id.
        source_attribute:  Foreign-key attribute on the source entity.
        target_attribute:  Referenced attribute on the target entity.
        cardinality:       Free-form label such as ``many-to-one``.
        id:                Optional caller-assigned id; the differ ignores it.
    """
    source: str
    target: str
    source_attribute: str = ""
    target_attribute: str = ""
    cardinality: str = "many-to-one"
    id: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceAttribute": self.source_attribute,
            "targetAttribute": self.target_attribute,
            "cardinality": self.cardinality,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Relationship":
        data = _require_mapping(data, "relationship")
        return Relationship(
            source=str(data.get("source") or ""),
            target=str(data.get("target") or ""),
            source_attribute=str(
                data.get("sourceAttribute") or data.get("source_attribute") or ""
            ),
            target_attribute=str(
                data.get("targetAttribute") or data.get("target_attribute") or ""
            ),
            cardinality=str(data.get("cardinality") or "many-to-one"),
            id=data.get("id"),
        )

    @staticmethod
    def from_edge(edge: Mapping[str, Any]) -> "Relationship":
        """Build a relationship from a graph-editor edge with column handles."""
        edge = _require_mapping(edge, "edge")
        payload = edge.get("data") if isinstance(edge.get("data"), Mapping) else {}
        return Relationship(
            source=str(edge.get("source") or ""),
            target=str(edge.get("target") or ""),
            source_attribute=_HANDLE_SUFFIX_RE.sub("", str(edge.get("sourceHandle") or "")),
            target_attribute=_HANDLE_SUFFIX_RE.sub("", str(edge.get("targetHandle") or "")),
            cardinality=str(
                edge.get("cardinality") or payload.get("cardinality") or "many-to-one"
            ),
            id=edge.get("id"),
        )


@dataclass(frozen=True)
class CanonicalModel:
    """The dialect-neutral entity/relationship graph."""
    entities: tuple[Entity, ...] = ()
    relationships: tuple[Relationship, ...] = ()

    def entity(self, entity_id: str) -> Entity | None:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def entity_by_name(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    @property
    def is_empty(self) -> bool:
        return not self.entities and not self.relationships

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
        }

    @staticmethod
    def from_dict(data: Any) -> "CanonicalModel":
        """
        Deserialise a schema payload.

        Accepts the canonical form (``entities`` / ``relationships``) or the
        graph-editor form (``nodes`` / ``edges``). Both collections must be
        present.

        Raises:
            SchemaFormatError: If the payload is not an object or a
                               collection is missing or not a list.
        """
        if not isinstance(data, Mapping):
            raise SchemaFormatError(
                f"Schema payload must be an object, got {type(data).__name__}"
            )
        if "nodes" in data or "edges" in data:
            nodes = _require_list(data, "nodes")
            edges = _require_list(data, "edges")
            return CanonicalModel(
                entities=tuple(Entity.from_node(n) for n in nodes),
                relationships=tuple(Relationship.from_edge(e) for e in edges),
            )
        entities = _require_list(data, "entities")
        relationships = _require_list(data, "relationships")
        return CanonicalModel(
            entities=tuple(Entity.from_dict(e) for e in entities),
            relationships=tuple(Relationship.from_dict(r) for r in relationships),
        )
