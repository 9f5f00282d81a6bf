"""
core/ingestion.py
-----------------
Turns a batch of ``(path, content)`` source files into one canonical model.

Pipeline per file::

    detect_dialect(content) → parse(dialect, content) → fragment

Fragments are then merged:

    * Entities are de-duplicated by display name; the first occurrence wins.
    * Entity ids (``table_1``, ``table_2``, …) and grid position hints are
      allocated during the merge, never by the individual parsers.
    * Relationship endpoints, which parsers express as display names, are
      re-resolved to the allocated ids. Edges whose entity or attribute
      cannot be resolved are dropped.

Design Decisions:
    * Files are processed in path order, so the same file set yields the
      same model whatever order the caller supplies it in.
    * One bad file never aborts the batch: unrecognised or unparsable files
      become ``ParseWarning`` records in the result.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from core.errors import ParseError, ParseWarning
from core.parsers import ParsedSource, detect_dialect, parse
from core.validator import validate
from logger import get_logger
from models.schema import CanonicalModel, Entity, Relationship

log = get_logger(__name__)

_MODEL_FILE_EXTENSIONS = frozenset({".prisma", ".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs"})
_MODEL_NAME_HINTS = ("model", "schema", "entity")
_GRID_COLUMNS = 3
_GRID_DX = 400
_GRID_DY = 300


@dataclass(frozen=True)
class IngestionResult:
    """Merged model plus the bookkeeping callers report back to users."""
    model: CanonicalModel
    files_processed: int
    warnings: tuple[ParseWarning, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model.to_dict(),
            "filesProcessed": self.files_processed,
            "warnings": [w.to_dict() for w in self.warnings],
        }


def is_model_file(path: str) -> bool:
    """
    Heuristic filter for files worth scanning when walking a repository.

    Examples::

        is_model_file("prisma/schema.prisma")   →  True
        is_model_file("src/models/user.ts")      →  True
        is_model_file("docs/entity-notes.md")    →  True
        is_model_file("README.md")               →  False
    """
    name = PurePosixPath(path.replace("\\", "/"))
    if name.suffix.lower() in _MODEL_FILE_EXTENSIONS:
        return True
    lowered = name.name.lower()
    return any(hint in lowered for hint in _MODEL_NAME_HINTS)


def _grid_position(index: int) -> tuple[float, float]:
    return (float((index % _GRID_COLUMNS) * _GRID_DX), float((index // _GRID_COLUMNS) * _GRID_DY))


def _resolve_name(name: str, by_name: dict[str, Entity], by_folded: dict[str, Entity]) -> Entity | None:
    if name in by_name:
        return by_name[name]
    return by_folded.get(name.casefold())


def merge(fragments: Iterable[ParsedSource]) -> CanonicalModel:
    """
    Merge parsed fragments into one canonical model.

    Entities keep their first-seen definition per display name and receive
    fresh ids. Relationships are re-pointed at those ids; duplicates and
    unresolvable edges are dropped.
    """
    entities: list[Entity] = []
    by_name: dict[str, Entity] = {}
    pending: list[Relationship] = []

    for fragment in fragments:
        for parsed in fragment.entities:
            if parsed.name in by_name:
                log.debug("Duplicate entity '%s' dropped (first definition kept)", parsed.name)
                continue
            index = len(entities)
            entity = Entity(
                id=f"table_{index + 1}",
                name=parsed.name,
                attributes=parsed.attributes,
                position=_grid_position(index),
            )
            entities.append(entity)
            by_name[entity.name] = entity
        pending.extend(fragment.relationships)

    by_folded: dict[str, Entity] = {}
    for entity in entities:
        by_folded.setdefault(entity.name.casefold(), entity)

    relationships: list[Relationship] = []
    seen: set[tuple[str, str, str, str, str]] = set()
    for rel in pending:
        source = _resolve_name(rel.source, by_name, by_folded)
        target = _resolve_name(rel.target, by_name, by_folded)
        if source is None or target is None:
            log.debug("Relationship %s -> %s dropped: unknown entity", rel.source, rel.target)
            continue
        if source.get_attribute(rel.source_attribute) is None or (
            target.get_attribute(rel.target_attribute) is None
        ):
            log.debug(
                "Relationship %s.%s -> %s.%s dropped: unknown attribute",
                rel.source, rel.source_attribute, rel.target, rel.target_attribute,
            )
            continue
        signature = (source.id, target.id, rel.source_attribute, rel.target_attribute, rel.cardinality)
        if signature in seen:
            continue
        seen.add(signature)
        relationships.append(Relationship(
            source=source.id,
            target=target.id,
            source_attribute=rel.source_attribute,
            target_attribute=rel.target_attribute,
            cardinality=rel.cardinality,
            id=f"rel_{len(relationships) + 1}",
        ))

    return CanonicalModel(entities=tuple(entities), relationships=tuple(relationships))


def ingest(files: Iterable[tuple[str, str]]) -> IngestionResult:
    """
    Ingest a batch of source files into one validated canonical model.

    Args:
        files: ``(path, content)`` pairs. Order does not matter.

    Returns:
        :class:`IngestionResult` with the merged model, the number of files
        that contributed at least one entity or relationship, and a warning
        per skipped file or block.

    Raises:
        ValidationError: If the merged model breaks a structural invariant.
    """
    warnings: list[ParseWarning] = []
    fragments: list[ParsedSource] = []
    contributing = 0

    for path, content in sorted(files, key=lambda item: (item[0], item[1])):
        dialect = detect_dialect(content or "")
        if dialect is None:
            log.warning("Skipping '%s': no recognised model dialect", path)
            warnings.append(ParseWarning(path, "no recognised model dialect; file skipped"))
            continue
        try:
            fragment = parse(dialect, content)
        except (ParseError, ValueError, IndexError) as exc:
            log.warning("Skipping '%s': %s", path, exc)
            warnings.append(ParseWarning(path, f"{dialect.value} parse failed: {exc}"))
            continue
        for message in fragment.warnings:
            log.warning("'%s': %s", path, message)
            warnings.append(ParseWarning(path, message))
        if not fragment.entities and not fragment.relationships:
            warnings.append(ParseWarning(path, f"no {dialect.value} declarations extracted"))
            continue
        contributing += 1
        fragments.append(fragment)

    model = merge(fragments)
    validate(model)
    log.info(
        "Ingested %d file(s): %d entit(ies), %d relationship(s), %d warning(s)",
        contributing, len(model.entities), len(model.relationships), len(warnings),
    )
    return IngestionResult(model=model, files_processed=contributing, warnings=tuple(warnings))
