"""
core/type_mappings.py
---------------------
Conversion dialects and the static logical-type → native-type tables.

Supported conversion dialects::

    mongodb     document store   identity: ObjectId
    postgresql  relational       identity: SERIAL
    mysql       relational       identity: INT AUTO_INCREMENT
    sqlserver   relational       identity: INT IDENTITY(1,1)

Design Decision:
    Tables are module-level ``MappingProxyType`` objects built once at import
    and never mutated. ``TYPE_MAPPINGS`` is keyed by the ordered
    ``(source, target)`` pair because some renderings depend on where the
    data comes from (a MongoDB ObjectId is 24 hex characters, a relational
    UUID 36). Tables for relational sources carry no ``unstructured`` entry:
    such values have no faithful column type, so they degrade to the
    generic type and the explanation says so.
"""
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from core.errors import InvalidRequest
from models.schema import LogicalType

_T = LogicalType


class TargetDialect(str, Enum):
    MONGODB = "mongodb"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLSERVER = "sqlserver"

    @property
    def is_document(self) -> bool:
        return self is TargetDialect.MONGODB


_ALIASES: dict[str, TargetDialect] = {
    "mongo": TargetDialect.MONGODB,
    "mongodb": TargetDialect.MONGODB,
    "document": TargetDialect.MONGODB,
    "postgres": TargetDialect.POSTGRESQL,
    "postgresql": TargetDialect.POSTGRESQL,
    "pg": TargetDialect.POSTGRESQL,
    "mysql": TargetDialect.MYSQL,
    "mariadb": TargetDialect.MYSQL,
    "sql": TargetDialect.SQLSERVER,
    "mssql": TargetDialect.SQLSERVER,
    "sqlserver": TargetDialect.SQLSERVER,
    "sql server": TargetDialect.SQLSERVER,
    "sql-server": TargetDialect.SQLSERVER,
    "tsql": TargetDialect.SQLSERVER,
}

# Engines whose names contain "sql" but are not SQL Server.
_OTHER_SQL_ENGINES = ("sqlite", "nosql", "cockroach", "oracle")


def normalize_dialect(raw: object) -> TargetDialect:
    """
    Map a user-supplied dialect name onto a :class:`TargetDialect`.

    Exact aliases are tried first, then substring rules in the order
    ``mongo``, ``postgres``, ``mysql``, ``sql``. The last one skips other
    engines such as SQLite.

    Examples::

        normalize_dialect("PostgreSQL")       →  TargetDialect.POSTGRESQL
        normalize_dialect("Microsoft SQL")    →  TargetDialect.SQLSERVER
        normalize_dialect("oracle")           →  raises InvalidRequest
        normalize_dialect("sqlite3")          →  raises InvalidRequest

    Raises:
        InvalidRequest: If the name is empty or names no supported dialect.
    """
    if isinstance(raw, TargetDialect):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidRequest(f"Dialect must be a non-empty string, got {raw!r}")
    key = " ".join(raw.strip().lower().split())
    if key in _ALIASES:
        return _ALIASES[key]
    if "mongo" in key:
        return TargetDialect.MONGODB
    if "postgres" in key:
        return TargetDialect.POSTGRESQL
    if "mysql" in key or "maria" in key:
        return TargetDialect.MYSQL
    if "sql" in key and not any(other in key for other in _OTHER_SQL_ENGINES):
        return TargetDialect.SQLSERVER
    supported = ", ".join(d.value for d in TargetDialect)
    raise InvalidRequest(f"Unsupported dialect '{raw}' (supported: {supported})")


# How each dialect names a logical type when it is the *source* of a
# conversion. Used for the ``sourceType`` of mapping explanations.
NATIVE_TYPES: Mapping[TargetDialect, Mapping[str, str]] = MappingProxyType({
    TargetDialect.MONGODB: MappingProxyType({
        _T.STRING.value: "String",
        _T.INTEGER.value: "Number",
        _T.FLOAT.value: "Number",
        _T.BOOLEAN.value: "Boolean",
        _T.DATETIME.value: "Date",
        _T.IDENTIFIER.value: "ObjectId",
        _T.ARRAY.value: "Array",
        _T.OBJECT.value: "Object",
        _T.BINARY.value: "Buffer",
        _T.UNSTRUCTURED.value: "Mixed",
    }),
    TargetDialect.POSTGRESQL: MappingProxyType({
        _T.STRING.value: "VARCHAR(255)",
        _T.INTEGER.value: "INTEGER",
        _T.FLOAT.value: "DOUBLE PRECISION",
        _T.BOOLEAN.value: "BOOLEAN",
        _T.DATETIME.value: "TIMESTAMP",
        _T.IDENTIFIER.value: "UUID",
        _T.ARRAY.value: "JSONB",
        _T.OBJECT.value: "JSONB",
        _T.BINARY.value: "BYTEA",
        _T.UNSTRUCTURED.value: "TEXT",
    }),
    TargetDialect.MYSQL: MappingProxyType({
        _T.STRING.value: "VARCHAR(255)",
        _T.INTEGER.value: "INT",
        _T.FLOAT.value: "DOUBLE",
        _T.BOOLEAN.value: "TINYINT(1)",
        _T.DATETIME.value: "DATETIME",
        _T.IDENTIFIER.value: "CHAR(36)",
        _T.ARRAY.value: "JSON",
        _T.OBJECT.value: "JSON",
        _T.BINARY.value: "BLOB",
        _T.UNSTRUCTURED.value: "TEXT",
    }),
    TargetDialect.SQLSERVER: MappingProxyType({
        _T.STRING.value: "NVARCHAR(255)",
        _T.INTEGER.value: "INT",
        _T.FLOAT.value: "FLOAT",
        _T.BOOLEAN.value: "BIT",
        _T.DATETIME.value: "DATETIME2",
        _T.IDENTIFIER.value: "UNIQUEIDENTIFIER",
        _T.ARRAY.value: "NVARCHAR(MAX)",
        _T.OBJECT.value: "NVARCHAR(MAX)",
        _T.BINARY.value: "VARBINARY(MAX)",
        _T.UNSTRUCTURED.value: "NVARCHAR(MAX)",
    }),
})

# Type names rendered into a MongoDB collection definition.
_DOCUMENT_TARGET: dict[str, str] = {
    _T.STRING.value: "String",
    _T.INTEGER.value: "Int32",
    _T.FLOAT.value: "Double",
    _T.BOOLEAN.value: "Boolean",
    _T.DATETIME.value: "Date",
    _T.IDENTIFIER.value: "ObjectId",
    _T.ARRAY.value: "Array",
    _T.OBJECT.value: "Object",
    _T.BINARY.value: "BinData",
    _T.UNSTRUCTURED.value: "Mixed",
}

# Per-pair deviations from the target's own rendering.
_PAIR_OVERRIDES: dict[tuple[TargetDialect, TargetDialect], dict[str, str]] = {
    (TargetDialect.MONGODB, TargetDialect.POSTGRESQL): {_T.IDENTIFIER.value: "CHAR(24)"},
    (TargetDialect.MONGODB, TargetDialect.MYSQL): {_T.IDENTIFIER.value: "CHAR(24)"},
    (TargetDialect.MONGODB, TargetDialect.SQLSERVER): {_T.IDENTIFIER.value: "CHAR(24)"},
    (TargetDialect.POSTGRESQL, TargetDialect.MONGODB): {_T.IDENTIFIER.value: "UUID"},
    (TargetDialect.MYSQL, TargetDialect.MONGODB): {_T.IDENTIFIER.value: "String"},
    (TargetDialect.SQLSERVER, TargetDialect.MONGODB): {_T.IDENTIFIER.value: "UUID"},
}


def _build_type_mappings() -> Mapping[tuple[TargetDialect, TargetDialect], Mapping[str, str]]:
    tables: dict[tuple[TargetDialect, TargetDialect], Mapping[str, str]] = {}
    for source in TargetDialect:
        for target in TargetDialect:
            if source is target:
                continue
            base = _DOCUMENT_TARGET if target.is_document else NATIVE_TYPES[target]
            table = dict(base)
            table.update(_PAIR_OVERRIDES.get((source, target), {}))
            if not source.is_document:
                table.pop(_T.UNSTRUCTURED.value, None)
            tables[(source, target)] = MappingProxyType(table)
    return MappingProxyType(tables)


TYPE_MAPPINGS = _build_type_mappings()

IDENTITY_IDIOMS: Mapping[TargetDialect, str] = MappingProxyType({
    TargetDialect.MONGODB: "ObjectId",
    TargetDialect.POSTGRESQL: "SERIAL",
    TargetDialect.MYSQL: "INT AUTO_INCREMENT",
    TargetDialect.SQLSERVER: "INT IDENTITY(1,1)",
})

GENERIC_TYPES: Mapping[TargetDialect, str] = MappingProxyType({
    TargetDialect.MONGODB: "String",
    TargetDialect.POSTGRESQL: "VARCHAR(255)",
    TargetDialect.MYSQL: "VARCHAR(255)",
    TargetDialect.SQLSERVER: "NVARCHAR(255)",
})


def mapping_for(
    source: TargetDialect, target: TargetDialect
) -> Mapping[str, str] | None:
    """Return the lookup table for the ordered pair, or None if there is none."""
    return TYPE_MAPPINGS.get((source, target))


def native_type(dialect: TargetDialect, logical_type: str) -> str:
    """The dialect's own name for *logical_type*; the tag itself if unknown."""
    return NATIVE_TYPES[dialect].get(logical_type, logical_type)
