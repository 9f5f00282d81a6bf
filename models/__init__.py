"""models/__init__.py"""
from models.changeset import (
    ChangeSet,
    EntityChanges,
    EntityModification,
    RelationshipChanges,
    RelationshipModification,
)
from models.conversion import ConversionResult, MappingExplanation
from models.schema import (
    Attribute,
    CanonicalModel,
    Entity,
    LogicalType,
    Relationship,
    SchemaFormatError,
)

__all__ = [
    "ChangeSet",
    "EntityChanges",
    "EntityModification",
    "RelationshipChanges",
    "RelationshipModification",
    "ConversionResult",
    "MappingExplanation",
    "Attribute",
    "CanonicalModel",
    "Entity",
    "LogicalType",
    "Relationship",
    "SchemaFormatError",
]
