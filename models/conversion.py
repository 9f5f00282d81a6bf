"""
models/conversion.py
--------------------
Result types of dialect conversion.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from models.schema import SchemaFormatError


@dataclass(frozen=True)
class MappingExplanation:
    """How one attribute was rendered in the target dialect."""
    entity: str
    attribute: str
    source_type: str
    target_type: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {
            "entity": self.entity,
            "attribute": self.attribute,
            "sourceType": self.source_type,
            "targetType": self.target_type,
            "reason": self.reason,
        }

    @staticmethod
    def from_dict(data: Any) -> "MappingExplanation":
        """
        Read an explanation entry, accepting ``table`` / ``column`` as
        aliases of ``entity`` / ``attribute``.

        Raises:
            SchemaFormatError: If the entry is not an object or a field is
                               missing or not a string.
        """
        if not isinstance(data, Mapping):
            raise SchemaFormatError(
                f"Mapping explanation must be an object, got {type(data).__name__}"
            )
        values: dict[str, str] = {}
        for key, aliases in (
            ("entity", ("entity", "table")),
            ("attribute", ("attribute", "column")),
            ("source_type", ("sourceType", "source_type")),
            ("target_type", ("targetType", "target_type")),
            ("reason", ("reason",)),
        ):
            value = next((data[a] for a in aliases if a in data), None)
            if not isinstance(value, str):
                raise SchemaFormatError(f"Mapping explanation field '{aliases[0]}' must be a string")
            values[key] = value
        return MappingExplanation(**values)


@dataclass(frozen=True)
class ConversionResult:
    """
    DDL text plus per-attribute explanations.

    Attributes:
        strategy:      ``deterministic`` or ``ai_assisted``; the path that
                       actually produced the output.
        fallback_used: True when the AI-assisted path was chosen but failed
                       and the deterministic path produced the output.
    """
    ddl_text: str
    explanations: tuple[MappingExplanation, ...] = ()
    strategy: str = "deterministic"
    fallback_used: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "ddlText": self.ddl_text,
            "mappingExplanations": [e.to_dict() for e in self.explanations],
            "strategy": self.strategy,
            "fallbackUsed": self.fallback_used,
        }
