"""core/__init__.py"""
from core.converter import Strategy, choose_strategy, convert
from core.differ import diff
from core.errors import (
    CollaboratorFailure,
    InvalidRequest,
    ParseError,
    ParseWarning,
    SchemaGraphError,
    ValidationError,
    ValidationIssue,
)
from core.ingestion import IngestionResult, ingest, is_model_file
from core.parsers import SourceDialect, detect_dialect, parse
from core.type_mappings import TargetDialect, normalize_dialect
from core.validator import find_issues, load_model, validate

__all__ = [
    "Strategy",
    "choose_strategy",
    "convert",
    "diff",
    "CollaboratorFailure",
    "InvalidRequest",
    "ParseError",
    "ParseWarning",
    "SchemaGraphError",
    "ValidationError",
    "ValidationIssue",
    "IngestionResult",
    "ingest",
    "is_model_file",
    "SourceDialect",
    "detect_dialect",
    "parse",
    "TargetDialect",
    "normalize_dialect",
    "find_issues",
    "load_model",
    "validate",
]
