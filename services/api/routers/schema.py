"""
Schema graph API routes.
REST endpoints for ingestion, dialect conversion, diffing and validation.
"""
from fastapi import APIRouter, HTTPException

from core.converter import convert
from core.differ import diff
from core.errors import CollaboratorFailure, InvalidRequest, ValidationError
from core.ingestion import ingest
from core.validator import find_issues
from logger import get_logger
from models.schema import CanonicalModel, SchemaFormatError
from shared.models import (
    ConvertRequest,
    ConvertResponse,
    DiffRequest,
    IngestRequest,
    IngestResponse,
    ValidateRequest,
    ValidateResponse,
)

log = get_logger(__name__)

router = APIRouter(prefix="/schema", tags=["Schema"])


def _validation_detail(exc: ValidationError) -> dict:
    return {
        "message": str(exc),
        "issues": [issue.to_dict() for issue in exc.issues],
    }


@router.post("/ingest", response_model=IngestResponse)
def ingest_files(request: IngestRequest):
    """Merge the submitted model-definition files into one canonical model."""
    try:
        result = ingest((f.path, f.content) for f in request.files)
    except ValidationError as e:
        log.error(f"Ingested model failed validation: {e}")
        raise HTTPException(status_code=422, detail=_validation_detail(e))
    return result.to_dict()


@router.post("/convert", response_model=ConvertResponse)
def convert_schema(request: ConvertRequest):
    """Render a schema as DDL for the target dialect."""
    try:
        result = convert(request.schema_payload, request.source_dialect, request.target_dialect)
    except InvalidRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))
    except CollaboratorFailure as e:
        log.error(f"Conversion failed with no fallback: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return result.to_dict()


@router.post("/diff")
def diff_schemas(request: DiffRequest):
    """Compare two schema snapshots."""
    try:
        changes = diff(request.before, request.after)
    except InvalidRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))
    return {**changes.to_dict(), "summary": changes.summary()}


@router.post("/validate", response_model=ValidateResponse)
def validate_schema(request: ValidateRequest):
    """Check a hand-authored or external schema without converting it."""
    try:
        model = CanonicalModel.from_dict(request.schema_payload)
    except SchemaFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    issues = find_issues(model)
    return {"valid": not issues, "issues": [issue.to_dict() for issue in issues]}
