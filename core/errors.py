"""
core/errors.py
--------------
Exception taxonomy shared by the validator, parsers, converter and differ.

Terminal errors (``ValidationError``, ``InvalidRequest``) propagate to the
caller. ``ParseError`` and ``CollaboratorFailure`` are raised internally and
absorbed at the component boundary, degrading output instead of failing.
"""
from __future__ import annotations

from dataclasses import dataclass


class SchemaGraphError(Exception):
    """Base class for all errors raised by this package."""


@dataclass(frozen=True)
class ValidationIssue:
    """One structural violation found in a canonical model."""
    check: str
    message: str
    entity_id: str | None = None
    attribute: str | None = None
    relationship_id: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "check": self.check,
            "message": self.message,
            "entityId": self.entity_id,
            "attribute": self.attribute,
            "relationshipId": self.relationship_id,
        }


class ValidationError(SchemaGraphError):
    """
    Raised when a canonical model violates its structural invariants.

    Attributes:
        issues: Every violation of the first failing check class, in model
                order. ``str(error)`` reports the first one.
    """

    def __init__(self, issues: list[ValidationIssue]) -> None:
        if not issues:
            raise ValueError("ValidationError requires at least one issue")
        self.issues = list(issues)
        first = self.issues[0]
        extra = f" (+{len(self.issues) - 1} more)" if len(self.issues) > 1 else ""
        super().__init__(f"{first.message}{extra}")

    @property
    def first(self) -> ValidationIssue:
        return self.issues[0]


class InvalidRequest(SchemaGraphError):
    """Raised for requests that can never succeed as submitted."""


class ParseError(SchemaGraphError):
    """Raised by a source scanner when a file or block cannot be extracted."""


class CollaboratorFailure(SchemaGraphError):
    """Raised when the generative collaborator fails or answers off-shape."""


@dataclass(frozen=True)
class ParseWarning:
    """Non-fatal record of a source file (or block) excluded from ingestion."""
    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}
