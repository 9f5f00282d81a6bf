"""
Shared request/response models for the schema graph HTTP and CLI surfaces.

Schema payloads stay plain dictionaries here; they are turned into canonical
models (and validated) by the core, which owns their format.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Accepts both camelCase aliases and field names."""
    model_config = ConfigDict(populate_by_name=True)


# ===== Request Models =====

class SourceFile(BaseModel):
    """One model-definition file submitted for ingestion."""
    path: str = Field(min_length=1)
    content: str


class IngestRequest(BaseModel):
    """Request model for ingesting source files."""
    files: List[SourceFile]


class ConvertRequest(_CamelModel):
    """Request model for converting a schema to another dialect."""
    schema_payload: Dict[str, Any] = Field(alias="schema")
    source_dialect: str = Field(alias="sourceDialect")
    target_dialect: str = Field(alias="targetDialect")


class DiffRequest(BaseModel):
    """Request model for diffing two schema snapshots."""
    before: Dict[str, Any]
    after: Dict[str, Any]


class ValidateRequest(_CamelModel):
    """Request model for standalone schema validation."""
    schema_payload: Dict[str, Any] = Field(alias="schema")


# ===== Response Models =====

class ParseWarningModel(BaseModel):
    path: str
    message: str


class IngestResponse(_CamelModel):
    """Merged canonical model and ingestion bookkeeping."""
    model: Dict[str, Any]
    files_processed: int = Field(alias="filesProcessed")
    warnings: List[ParseWarningModel] = Field(default_factory=list)


class MappingExplanationModel(_CamelModel):
    entity: str
    attribute: str
    source_type: str = Field(alias="sourceType")
    target_type: str = Field(alias="targetType")
    reason: str


class ConvertResponse(_CamelModel):
    """Rendered DDL text with per-attribute explanations."""
    ddl_text: str = Field(alias="ddlText")
    mapping_explanations: List[MappingExplanationModel] = Field(alias="mappingExplanations")
    strategy: str
    fallback_used: bool = Field(alias="fallbackUsed")


class ValidationIssueModel(_CamelModel):
    check: str
    message: str
    entity_id: Optional[str] = Field(default=None, alias="entityId")
    attribute: Optional[str] = None
    relationship_id: Optional[str] = Field(default=None, alias="relationshipId")


class ValidateResponse(BaseModel):
    """Outcome of standalone validation."""
    valid: bool
    issues: List[ValidationIssueModel] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    ai_enabled: bool
    timestamp: datetime
