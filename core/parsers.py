"""
core/parsers.py
---------------
Best-effort scanners that turn model-definition source text into canonical
entities and name-addressed relationships.

Supported source dialects::

    prisma     model User { id Int @id ... }
    mongoose   const userSchema = new mongoose.Schema({ ... })
    sequelize  sequelize.define('User', { ... })  /  User.init({ ... })

Design Decisions:
    * Declaration blocks are located with a regex and cut out by balanced
      bracket matching; fields are then read with simple per-dialect rules.
      This is a scanner, not a compiler front end: anything that cannot be
      read confidently is skipped rather than guessed.
    * A relationship is only emitted when the dialect states both ends of
      the foreign key (Prisma ``@relation(fields, references)``, Mongoose
      ``ref``, Sequelize ``references`` / associations with ``foreignKey``).
      Otherwise the field stays a plain attribute.
    * Relationship endpoints are *display names* here. Entity ids are only
      provisional; ingestion allocates the final ids during merge.
    * The dialect set is closed: ``SourceDialect`` plus the ``_PARSERS``
      dispatch table. A new dialect means a new member and a new entry.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum
from types import MappingProxyType
from typing import NamedTuple

from core.errors import ParseError
from logger import get_logger
from models.schema import Attribute, Entity, LogicalType, Relationship

log = get_logger(__name__)


class SourceDialect(str, Enum):
    PRISMA = "prisma"
    MONGOOSE = "mongoose"
    SEQUELIZE = "sequelize"


class ParsedSource(NamedTuple):
    """Entities and relationships extracted from one source text."""
    entities: list[Entity]
    relationships: list[Relationship]
    warnings: list[str]


# ---------------------------------------------------------------------------
# Dialect detection
# ---------------------------------------------------------------------------

# (pattern, weight); a dialect needs a score of at least _MIN_SCORE.
_DETECTION_RULES: dict[SourceDialect, tuple[tuple[re.Pattern[str], int], ...]] = {
    SourceDialect.PRISMA: (
        (re.compile(r"^[ \t]*model\s+\w+\s*\{", re.MULTILINE), 2),
        (re.compile(r"^[ \t]*(?:datasource|generator)\s+\w+\s*\{", re.MULTILINE), 2),
        (re.compile(r"@id\b|@relation\(|@unique\b|@default\("), 1),
    ),
    SourceDialect.MONGOOSE: (
        (re.compile(r"new\s+(?:mongoose\.)?Schema\s*(?:<[^>]*>)?\s*\("), 2),
        (re.compile(r"\bmongoose\b"), 1),
        (re.compile(r"\bSchema\.Types\.\w+"), 1),
    ),
    SourceDialect.SEQUELIZE: (
        (re.compile(r"\.define\s*\(\s*['\"][\w$]+['\"]\s*,\s*\{"), 2),
        (re.compile(r"\b[A-Z]\w*\.init\s*\(\s*\{"), 1),
        (re.compile(r"\bDataTypes\.\w+|\bSequelize\.[A-Z]+\b"), 1),
        (re.compile(r"\bsequelize\b", re.IGNORECASE), 1),
    ),
}
_MIN_SCORE = 2


def detect_dialect(text: str) -> SourceDialect | None:
    """
    Guess the source dialect of *text* from dialect-specific tokens.

    Returns:
        The best-scoring :class:`SourceDialect`, or ``None`` when no dialect
        reaches the minimum score. Ties go to the earlier dialect in
        declaration order.

    Example::

        detect_dialect("model User {\\n  id Int @id\\n}")   →  SourceDialect.PRISMA
        detect_dialect("just some prose")                    →  None
    """
    if not text:
        return None
    best: SourceDialect | None = None
    best_score = 0
    for dialect in SourceDialect:
        score = sum(
            weight for pattern, weight in _DETECTION_RULES[dialect] if pattern.search(text)
        )
        if score > best_score:
            best, best_score = dialect, score
    return best if best_score >= _MIN_SCORE else None


# ---------------------------------------------------------------------------
# Text scanning helpers
# ---------------------------------------------------------------------------

_OPENERS = {"{": "}", "[": "]", "(": ")"}
_CLOSERS = {close: open_ for open_, close in _OPENERS.items()}
_QUOTES = ("'", '"', "`")
_ENTRY_RE = re.compile(r"^\s*['\"]?([\w$]+)['\"]?\s*:\s*(.*)$", re.DOTALL)
_STRING_LITERAL_RE = re.compile(r"^\s*(['\"`])(.*?)\1\s*$", re.DOTALL)


def _strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside string literals, keeping line breaks."""
    out: list[str] = []
    i, n = 0, len(text)
    quote: str | None = None
    while i < n:
        ch = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote or ch == "\n" and quote != "`":
                quote = None
            i += 1
            continue
        if ch in _QUOTES:
            quote = ch
            out.append(ch)
            i += 1
            continue
        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            stop = n if end == -1 else end + 2
            out.append("\n" * text.count("\n", i, stop))
            i = stop
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _extract_block(text: str, open_index: int) -> tuple[str, int]:
    """
    Cut out a bracketed block.

    Args:
        text:       Source text.
        open_index: Index of the opening ``{``, ``[`` or ``(``.

    Returns:
        ``(inner_text, index_after_closing_bracket)``.

    Raises:
        ParseError: If the brackets are mismatched or never closed.
    """
    opener = text[open_index] if open_index < len(text) else ""
    if opener not in _OPENERS:
        raise ParseError(f"expected an opening bracket at offset {open_index}")
    stack = [opener]
    quote: str | None = None
    i = open_index + 1
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            stack.append(ch)
        elif ch in _CLOSERS:
            if stack[-1] != _CLOSERS[ch]:
                raise ParseError(f"mismatched '{ch}' at offset {i}")
            stack.pop()
            if not stack:
                return text[open_index + 1:i], i + 1
        i += 1
    raise ParseError(f"unbalanced '{opener}' opened at offset {open_index}")


def _split_top_level(body: str, sep: str = ",") -> list[str]:
    """Split *body* on *sep* where it is not nested in brackets or strings."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    start = 0
    i = 0
    while i < len(body):
        ch = body[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(body[start:i])
            start = i + 1
        i += 1
    parts.append(body[start:])
    return [p.strip() for p in parts if p.strip()]


def _object_entries(body: str) -> dict[str, str]:
    """Read ``key: value`` pairs of an object literal body (first key wins)."""
    entries: dict[str, str] = {}
    for part in _split_top_level(body):
        match = _ENTRY_RE.match(part)
        if match and match.group(1) not in entries:
            entries[match.group(1)] = match.group(2).strip()
    return entries


def _object_literal(value: str) -> dict[str, str]:
    body, _ = _extract_block(value, 0)
    return _object_entries(body)


def _unquote(value: str | None) -> str | None:
    if not value:
        return None
    match = _STRING_LITERAL_RE.match(value)
    return match.group(2) if match else None


def _is_true(value: str | None) -> bool:
    """``true`` or ``[true, 'message']`` (Mongoose validator shorthand)."""
    if not value:
        return False
    value = value.strip()
    return value == "true" or bool(re.match(r"^\[\s*true\b", value))


def _build_entity(
    index: int,
    name: str,
    attributes: list[Attribute],
    warnings: list[str],
) -> Entity | None:
    """Drop repeated attribute names (first wins) and skip empty declarations."""
    seen: set[str] = set()
    unique_attrs: list[Attribute] = []
    for attr in attributes:
        if attr.name in seen:
            log.debug("Duplicate field '%s.%s' ignored", name, attr.name)
            continue
        seen.add(attr.name)
        unique_attrs.append(attr)
    if not unique_attrs:
        warnings.append(f"declaration '{name}' has no extractable fields; skipped")
        return None
    return Entity(id=f"table_{index}", name=name, attributes=tuple(unique_attrs))


# ---------------------------------------------------------------------------
# Prisma
# ---------------------------------------------------------------------------

_PRISMA_DECL_RE = re.compile(r"^[ \t]*(model|enum|type|view)\s+(\w+)\s*\{", re.MULTILINE)
_PRISMA_FIELD_RE = re.compile(r"^(\w+)\s+(\w+)(\[\])?(\?)?(?:\s+(.*))?$")
_PRISMA_BLOCK_ATTR_RE = re.compile(r"^@@(id|unique)\s*\(\s*(?:fields\s*:\s*)?\[([^\]]*)\]")
_PRISMA_RELATION_RE = re.compile(r"@relation\(([^)]*)\)")
_PRISMA_FIELDS_ARG_RE = re.compile(r"\bfields\s*:\s*\[([^\]]*)\]")
_PRISMA_REFERENCES_ARG_RE = re.compile(r"\breferences\s*:\s*\[([^\]]*)\]")

_PRISMA_TYPES: dict[str, LogicalType] = {
    "String": LogicalType.STRING,
    "Int": LogicalType.INTEGER,
    "BigInt": LogicalType.INTEGER,
    "Float": LogicalType.FLOAT,
    "Decimal": LogicalType.FLOAT,
    "Boolean": LogicalType.BOOLEAN,
    "DateTime": LogicalType.DATETIME,
    "Json": LogicalType.OBJECT,
    "Bytes": LogicalType.BINARY,
    "Unsupported": LogicalType.UNSTRUCTURED,
}


def _name_list(raw: str) -> list[str]:
    return [n.strip() for n in raw.split(",") if n.strip()]


def _parse_prisma(text: str) -> ParsedSource:
    source = _strip_comments(text)
    warnings: list[str] = []
    declarations: list[tuple[str, str, str]] = []
    for match in _PRISMA_DECL_RE.finditer(source):
        kind, name = match.group(1), match.group(2)
        try:
            body, _ = _extract_block(source, match.end() - 1)
        except ParseError as exc:
            warnings.append(f"{kind} '{name}': {exc}")
            continue
        declarations.append((kind, name, body))

    enum_names = {name for kind, name, _ in declarations if kind == "enum"}
    composite_names = {name for kind, name, _ in declarations if kind == "type"}

    entities: list[Entity] = []
    relationships: list[Relationship] = []
    for kind, name, body in declarations:
        if kind not in ("model", "view"):
            continue
        attributes: list[Attribute] = []
        composite_pk: list[str] = []
        unique_fields: set[str] = set()
        foreign_keys: list[tuple[str, str, str]] = []  # (fk field, target model, target field)

        for raw_line in body.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if line.startswith("@@"):
                block_attr = _PRISMA_BLOCK_ATTR_RE.match(line)
                if block_attr:
                    fields = _name_list(block_attr.group(2))
                    if block_attr.group(1) == "id":
                        composite_pk = fields
                    elif len(fields) == 1:
                        unique_fields.add(fields[0])
                continue
            field_match = _PRISMA_FIELD_RE.match(line)
            if not field_match:
                log.debug("Prisma model '%s': unreadable line skipped: %r", name, line)
                continue
            field_name, field_type, is_list, is_optional, modifiers = field_match.groups()
            modifiers = modifiers or ""

            if field_type in _PRISMA_TYPES:
                logical = LogicalType.ARRAY if is_list else _PRISMA_TYPES[field_type]
            elif field_type in enum_names:
                logical = LogicalType.ARRAY if is_list else LogicalType.STRING
            elif field_type in composite_names:
                logical = LogicalType.ARRAY if is_list else LogicalType.OBJECT
            else:
                relation = _PRISMA_RELATION_RE.search(modifiers)
                fields_arg = _PRISMA_FIELDS_ARG_RE.search(relation.group(1)) if relation else None
                refs_arg = _PRISMA_REFERENCES_ARG_RE.search(relation.group(1)) if relation else None
                if fields_arg and refs_arg:
                    fk_fields = _name_list(fields_arg.group(1))
                    ref_fields = _name_list(refs_arg.group(1))
                    if fk_fields and ref_fields:
                        # Navigation field: it becomes the edge, not a column.
                        foreign_keys.append((fk_fields[0], field_type, ref_fields[0]))
                        continue
                logical = LogicalType.ARRAY if is_list else LogicalType.OBJECT

            is_pk = "@id" in re.findall(r"@\w+", modifiers)
            attributes.append(Attribute(
                name=field_name,
                logical_type=logical,
                primary_key=is_pk,
                nullable=bool(is_optional) and not is_pk and not is_list,
                unique="@unique" in re.findall(r"@\w+", modifiers),
            ))

        if composite_pk or unique_fields:
            attributes = [
                Attribute(
                    name=a.name,
                    logical_type=a.logical_type,
                    primary_key=a.primary_key or a.name in composite_pk,
                    nullable=a.nullable and a.name not in composite_pk,
                    unique=a.unique or a.name in unique_fields,
                )
                for a in attributes
            ]

        entity = _build_entity(len(entities) + 1, name, attributes, warnings)
        if entity is None:
            continue
        entities.append(entity)
        for fk_field, target, target_field in foreign_keys:
            fk_attr = entity.get_attribute(fk_field)
            one_to_one = fk_attr is not None and (fk_attr.unique or fk_attr.primary_key)
            relationships.append(Relationship(
                source=name,
                target=target,
                source_attribute=fk_field,
                target_attribute=target_field,
                cardinality="one-to-one" if one_to_one else "many-to-one",
            ))

    return ParsedSource(entities, relationships, warnings)


# ---------------------------------------------------------------------------
# Mongoose
# ---------------------------------------------------------------------------

_MONGOOSE_SCHEMA_RE = re.compile(
    r"\b(?:const|let|var)\s+(\w+)\s*(?::\s*[\w<>.\s]+)?=\s*new\s+(?:mongoose\.)?Schema\s*(?:<[^>]*>)?\s*\("
)
_MONGOOSE_MODEL_RE = re.compile(r"\bmodel\s*(?:<[^>]*>)?\s*\(\s*['\"]([\w$]+)['\"]\s*,\s*(\w+)")

_MONGOOSE_TYPES: dict[str, LogicalType] = {
    "string": LogicalType.STRING,
    "number": LogicalType.FLOAT,
    "double": LogicalType.FLOAT,
    "decimal128": LogicalType.FLOAT,
    "int32": LogicalType.INTEGER,
    "bigint": LogicalType.INTEGER,
    "date": LogicalType.DATETIME,
    "boolean": LogicalType.BOOLEAN,
    "buffer": LogicalType.BINARY,
    "objectid": LogicalType.IDENTIFIER,
    "uuid": LogicalType.IDENTIFIER,
    "mixed": LogicalType.UNSTRUCTURED,
    "array": LogicalType.ARRAY,
    "map": LogicalType.OBJECT,
    "object": LogicalType.OBJECT,
}


def _mongoose_display_name(var_name: str) -> str:
    base = re.sub(r"schema$", "", var_name, flags=re.IGNORECASE) or var_name
    return base[0].upper() + base[1:]


def _mongoose_type(expr: str, schema_vars: set[str]) -> LogicalType:
    expr = expr.strip()
    if expr.startswith("["):
        return LogicalType.ARRAY
    if expr.startswith("{"):
        return LogicalType.OBJECT
    quoted = _unquote(expr)
    token = quoted if quoted is not None else expr
    last = re.findall(r"[\w$]+", token)
    if not last:
        return LogicalType.UNSTRUCTURED
    name = last[-1]
    if name in schema_vars:
        return LogicalType.OBJECT
    return _MONGOOSE_TYPES.get(name.lower(), LogicalType.UNSTRUCTURED)


def _mongoose_field(
    name: str, value: str, schema_vars: set[str]
) -> tuple[Attribute, str | None]:
    """Return the attribute for one schema path and its ``ref`` target, if any."""
    value = value.strip()
    options: dict[str, str] = {}
    if value.startswith("{"):
        options = _object_literal(value)
        if "type" not in options:
            nested = LogicalType.OBJECT if options else LogicalType.UNSTRUCTURED
            return Attribute(name=name, logical_type=nested, nullable=True), None
        type_expr = options["type"]
    else:
        type_expr = value

    logical = _mongoose_type(type_expr, schema_vars)
    is_pk = name == "_id"
    required = _is_true(options.get("required"))
    ref = _unquote(options.get("ref"))
    attr = Attribute(
        name=name,
        logical_type=LogicalType.IDENTIFIER if is_pk and logical is LogicalType.UNSTRUCTURED else logical,
        primary_key=is_pk,
        nullable=not (required or is_pk),
        unique=_is_true(options.get("unique")),
    )
    # Arrays of refs are left as plain attributes.
    return attr, (ref if logical is not LogicalType.ARRAY else None)


def _parse_mongoose(text: str) -> ParsedSource:
    source = _strip_comments(text)
    warnings: list[str] = []
    registrations = {var: model for model, var in _MONGOOSE_MODEL_RE.findall(source)}

    schemas: list[tuple[str, str, dict[str, str], dict[str, str]]] = []
    for match in _MONGOOSE_SCHEMA_RE.finditer(source):
        var_name = match.group(1)
        try:
            pos = match.end()
            while pos < len(source) and source[pos].isspace():
                pos += 1
            if pos >= len(source) or source[pos] != "{":
                raise ParseError("schema definition is not an object literal")
            body, pos = _extract_block(source, pos)
            options: dict[str, str] = {}
            rest = source[pos:].lstrip()
            if rest.startswith(","):
                rest = rest[1:].lstrip()
                if rest.startswith("{"):
                    options = _object_literal(rest)
            fields = _object_entries(body)
        except ParseError as exc:
            warnings.append(f"schema '{var_name}': {exc}")
            continue
        schemas.append((var_name, registrations.get(var_name, ""), fields, options))

    schema_vars = {var for var, _, _, _ in schemas}
    embedded = {
        var for var in schema_vars
        if var not in registrations
        and any(
            re.search(rf"(?<![\w$]){re.escape(var)}(?![\w$])", value)
            for _, _, fields, _ in schemas
            for value in fields.values()
        )
    }

    entities: list[Entity] = []
    relationships: list[Relationship] = []
    for var_name, registered, fields, options in schemas:
        if var_name in embedded:
            continue
        display = registered or _mongoose_display_name(var_name)
        attributes: list[Attribute] = []
        refs: list[tuple[str, str]] = []
        if "_id" not in fields and options.get("_id", "").strip() != "false":
            attributes.append(Attribute(
                name="_id", logical_type=LogicalType.IDENTIFIER,
                primary_key=True, nullable=False,
            ))
        for field_name, value in fields.items():
            try:
                attr, ref = _mongoose_field(field_name, value, schema_vars)
            except ParseError as exc:
                log.debug("Mongoose schema '%s': field '%s' skipped: %s", display, field_name, exc)
                continue
            attributes.append(attr)
            if ref:
                refs.append((field_name, ref))
        if _is_true(options.get("timestamps")):
            for stamp in ("createdAt", "updatedAt"):
                attributes.append(Attribute(
                    name=stamp, logical_type=LogicalType.DATETIME, nullable=False,
                ))

        entity = _build_entity(len(entities) + 1, display, attributes, warnings)
        if entity is None:
            continue
        entities.append(entity)
        for field_name, ref in refs:
            fk_attr = entity.get_attribute(field_name)
            relationships.append(Relationship(
                source=display,
                target=ref,
                source_attribute=field_name,
                target_attribute="_id",
                cardinality="one-to-one" if fk_attr and fk_attr.unique else "many-to-one",
            ))

    return ParsedSource(entities, relationships, warnings)


# ---------------------------------------------------------------------------
# Sequelize
# ---------------------------------------------------------------------------

_SEQUELIZE_DEFINE_RE = re.compile(r"\.define\s*\(\s*['\"]([\w$]+)['\"]\s*,\s*\{")
_SEQUELIZE_INIT_RE = re.compile(r"\b([A-Z]\w*)\.init\s*\(\s*\{")
_SEQUELIZE_TYPE_RE = re.compile(r"\b(?:DataTypes|Sequelize)\.(?:DataTypes\.)?([A-Z][A-Z0-9_]*)")
_SEQUELIZE_ASSOC_RE = re.compile(
    r"\b(\w+)\.(belongsTo|hasMany|hasOne)\s*\(\s*(?:\w+\.)*(\w+)\s*(?:,\s*(\{[^{}]*\}))?\s*\)"
)

_SEQUELIZE_TYPES: dict[str, LogicalType] = {
    "STRING": LogicalType.STRING,
    "CHAR": LogicalType.STRING,
    "TEXT": LogicalType.STRING,
    "CITEXT": LogicalType.STRING,
    "ENUM": LogicalType.STRING,
    "INTEGER": LogicalType.INTEGER,
    "BIGINT": LogicalType.INTEGER,
    "SMALLINT": LogicalType.INTEGER,
    "MEDIUMINT": LogicalType.INTEGER,
    "TINYINT": LogicalType.INTEGER,
    "FLOAT": LogicalType.FLOAT,
    "DOUBLE": LogicalType.FLOAT,
    "REAL": LogicalType.FLOAT,
    "DECIMAL": LogicalType.FLOAT,
    "NUMBER": LogicalType.FLOAT,
    "BOOLEAN": LogicalType.BOOLEAN,
    "DATE": LogicalType.DATETIME,
    "DATEONLY": LogicalType.DATETIME,
    "TIME": LogicalType.DATETIME,
    "NOW": LogicalType.DATETIME,
    "UUID": LogicalType.IDENTIFIER,
    "UUIDV1": LogicalType.IDENTIFIER,
    "UUIDV4": LogicalType.IDENTIFIER,
    "ARRAY": LogicalType.ARRAY,
    "JSON": LogicalType.OBJECT,
    "JSONB": LogicalType.OBJECT,
    "HSTORE": LogicalType.OBJECT,
    "BLOB": LogicalType.BINARY,
}


def _sequelize_type(expr: str) -> LogicalType:
    match = _SEQUELIZE_TYPE_RE.search(expr)
    if match:
        name = match.group(1)
    else:
        bare = re.match(r"\s*([A-Z][A-Z0-9_]*)", expr)
        if not bare:
            return LogicalType.UNSTRUCTURED
        name = bare.group(1)
    return _SEQUELIZE_TYPES.get(name, LogicalType.UNSTRUCTURED)


def _sequelize_reference(value: str | None) -> tuple[str, str] | None:
    """Read ``references: { model: 'users', key: 'id' }``."""
    if not value or not value.strip().startswith("{"):
        return None
    entries = _object_literal(value.strip())
    model_expr = entries.get("model", "")
    target = _unquote(model_expr) or (model_expr.strip() if re.fullmatch(r"\w+", model_expr.strip()) else "")
    if not target:
        return None
    return target, _unquote(entries.get("key")) or "id"


def _parse_sequelize(text: str) -> ParsedSource:
    source = _strip_comments(text)
    warnings: list[str] = []
    declarations: list[tuple[str, int]] = [
        (m.group(1), m.end() - 1) for m in _SEQUELIZE_DEFINE_RE.finditer(source)
    ]
    declarations += [(m.group(1), m.end() - 1) for m in _SEQUELIZE_INIT_RE.finditer(source)]
    declarations.sort(key=lambda item: item[1])

    entities: list[Entity] = []
    relationships: list[Relationship] = []
    for model_name, open_index in declarations:
        try:
            body, pos = _extract_block(source, open_index)
            options: dict[str, str] = {}
            rest = source[pos:].lstrip()
            if rest.startswith(","):
                rest = rest[1:].lstrip()
                if rest.startswith("{"):
                    options = _object_literal(rest)
            fields = _object_entries(body)
        except ParseError as exc:
            warnings.append(f"model '{model_name}': {exc}")
            continue

        attributes: list[Attribute] = []
        for field_name, value in fields.items():
            field_options: dict[str, str] = {}
            if value.startswith("{"):
                try:
                    field_options = _object_literal(value)
                except ParseError as exc:
                    log.debug("Sequelize model '%s': field '%s' skipped: %s", model_name, field_name, exc)
                    continue
                type_expr = field_options.get("type", "")
            else:
                type_expr = value
            is_pk = _is_true(field_options.get("primaryKey"))
            allow_null = field_options.get("allowNull", "true").strip() != "false"
            unique_expr = field_options.get("unique", "").strip()
            attributes.append(Attribute(
                name=field_name,
                logical_type=_sequelize_type(type_expr),
                primary_key=is_pk,
                nullable=allow_null and not is_pk,
                unique=bool(unique_expr) and unique_expr != "false",
            ))
            reference = _sequelize_reference(field_options.get("references"))
            if reference:
                relationships.append(Relationship(
                    source=model_name,
                    target=reference[0],
                    source_attribute=field_name,
                    target_attribute=reference[1],
                    cardinality="many-to-one",
                ))

        if attributes and not any(a.primary_key for a in attributes) and "id" not in fields:
            # Sequelize adds an auto-increment ``id`` unless a key is declared.
            attributes.insert(0, Attribute(
                name="id", logical_type=LogicalType.INTEGER, primary_key=True, nullable=False,
            ))
        if _is_true(options.get("timestamps")):
            for stamp in ("createdAt", "updatedAt"):
                if stamp not in fields:
                    attributes.append(Attribute(
                        name=stamp, logical_type=LogicalType.DATETIME, nullable=False,
                    ))

        entity = _build_entity(len(entities) + 1, model_name, attributes, warnings)
        if entity is not None:
            entities.append(entity)

    for owner, kind, other, raw_options in _SEQUELIZE_ASSOC_RE.findall(source):
        if not raw_options:
            continue
        try:
            assoc = _object_literal(raw_options)
        except ParseError:
            continue
        foreign_key = _unquote(assoc.get("foreignKey"))
        if not foreign_key:
            continue
        if kind == "belongsTo":
            relationships.append(Relationship(
                source=owner, target=other, source_attribute=foreign_key,
                target_attribute=_unquote(assoc.get("targetKey")) or "id",
                cardinality="many-to-one",
            ))
        else:
            relationships.append(Relationship(
                source=other, target=owner, source_attribute=foreign_key,
                target_attribute=_unquote(assoc.get("sourceKey")) or "id",
                cardinality="one-to-one" if kind == "hasOne" else "many-to-one",
            ))

    return ParsedSource(entities, relationships, warnings)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_PARSERS: MappingProxyType[SourceDialect, Callable[[str], ParsedSource]] = MappingProxyType({
    SourceDialect.PRISMA: _parse_prisma,
    SourceDialect.MONGOOSE: _parse_mongoose,
    SourceDialect.SEQUELIZE: _parse_sequelize,
})


def parse(dialect: SourceDialect, text: str) -> ParsedSource:
    """
    Extract entities and relationships from *text* written in *dialect*.

    Block-level failures are reported in ``ParsedSource.warnings`` and the
    block is left out.

    Raises:
        ParseError: If the text as a whole cannot be scanned.
    """
    parser = _PARSERS[SourceDialect(dialect)]
    result = parser(text)
    log.debug(
        "Parsed %s source: %d entit(ies), %d relationship(s), %d warning(s)",
        SourceDialect(dialect).value, len(result.entities),
        len(result.relationships), len(result.warnings),
    )
    return result
