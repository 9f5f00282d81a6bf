"""
core/ai_client.py
-----------------
Generative collaborator for AI-assisted dialect conversion (Google Gemini).

The collaborator receives the canonical model with the source and target
dialects and must answer with a JSON object::

    {
      "ddlText": "CREATE TABLE ...",
      "mappingExplanations": [
        {"entity": "...", "attribute": "...", "sourceType": "...",
         "targetType": "...", "reason": "..."}
      ]
    }

``targetDDL`` / ``mappingSummary`` (with ``table`` / ``column``) are
accepted as aliases.

Design Decisions:
    * Every failure (missing key, transport error, blocked or unparsable
      response, wrong shape) surfaces as ``CollaboratorFailure``. The
      converter owns the fallback; this module never retries.
    * The collaborator is a plain object with a ``generate`` method so tests
      and alternative back ends can be swapped in without touching the
      converter.
"""
from __future__ import annotations

import json
from typing import Protocol

import google.generativeai as genai

from config import CONFIG, ConversionConfig
from core.errors import CollaboratorFailure
from core.type_mappings import TargetDialect
from logger import get_logger
from models.conversion import MappingExplanation
from models.schema import CanonicalModel, SchemaFormatError
from shared.utils import extract_json

log = get_logger(__name__)

_PROMPT_TEMPLATE = """\
You are a database migration expert. Convert the following database schema
from {source} to {target}.

SOURCE SCHEMA ({source}):
{schema}

Each entity lists its attributes with a dialect-neutral logical type and
primaryKey / nullable / unique flags. Each relationship points from the
entity owning the foreign key (source) to the referenced entity (target).

TARGET DATABASE: {target}

Your task:
1. Convert the schema to {target} data-definition statements
2. Map data types appropriately
3. Preserve relationships as foreign keys (or references for document stores)
4. Preserve primary key, unique and nullable constraints

Return a JSON object with exactly this structure:
{{
  "ddlText": "<all statements, newline separated>",
  "mappingExplanations": [
    {{
      "entity": "<entity name>",
      "attribute": "<attribute name>",
      "sourceType": "<type in {source}>",
      "targetType": "<type in {target}>",
      "reason": "<why this mapping was chosen>"
    }}
  ]
}}
Include one mappingExplanations entry per attribute of every entity.
"""


class Collaborator(Protocol):
    def generate(
        self, model: CanonicalModel, source: TargetDialect, target: TargetDialect
    ) -> tuple[str, list[MappingExplanation]]:
        ...


def build_prompt(model: CanonicalModel, source: TargetDialect, target: TargetDialect) -> str:
    return _PROMPT_TEMPLATE.format(
        source=source.value,
        target=target.value,
        schema=json.dumps(model.to_dict(), indent=2),
    )


def parse_response(text: str) -> tuple[str, list[MappingExplanation]]:
    """
    Validate a collaborator answer and return ``(ddl_text, explanations)``.

    Raises:
        CollaboratorFailure: If the text is not JSON or lacks the required
                             fields with the required shapes.
    """
    try:
        payload = extract_json(text)
    except ValueError as exc:
        raise CollaboratorFailure(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise CollaboratorFailure("Response is not a JSON object")

    ddl_text = payload.get("ddlText", payload.get("targetDDL"))
    if not isinstance(ddl_text, str) or not ddl_text.strip():
        raise CollaboratorFailure("Response has no 'ddlText' string")

    entries = payload.get("mappingExplanations", payload.get("mappingSummary"))
    if not isinstance(entries, list):
        raise CollaboratorFailure("Response has no 'mappingExplanations' array")
    try:
        explanations = [MappingExplanation.from_dict(e) for e in entries]
    except SchemaFormatError as exc:
        raise CollaboratorFailure(f"Malformed mapping explanation: {exc}") from exc
    return ddl_text, explanations


class GeminiCollaborator:
    """Calls a Gemini model once per conversion."""

    def __init__(self, config: ConversionConfig | None = None) -> None:
        self._config = config or CONFIG.conversion

    def generate(
        self, model: CanonicalModel, source: TargetDialect, target: TargetDialect
    ) -> tuple[str, list[MappingExplanation]]:
        if not self._config.gemini_api_key:
            raise CollaboratorFailure("GEMINI_API_KEY is not configured")

        prompt = build_prompt(model, source, target)
        log.info(
            "Requesting AI-assisted conversion %s -> %s from %s",
            source.value, target.value, self._config.gemini_model,
        )
        try:
            genai.configure(api_key=self._config.gemini_api_key)
            client = genai.GenerativeModel(self._config.gemini_model)
            response = client.generate_content(
                prompt,
                generation_config={"response_mime_type": "application/json"},
                request_options={"timeout": self._config.ai_timeout_seconds},
            )
            text = response.text
        except Exception as exc:
            raise CollaboratorFailure(f"Gemini request failed: {exc}") from exc

        return parse_response(text)
