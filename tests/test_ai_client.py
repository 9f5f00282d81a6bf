"""
tests/test_ai_client.py
-----------------------
Unit tests for core/ai_client.py. The Gemini SDK is replaced by a fake;
nothing here touches the network.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from config import ConversionConfig
from core import ai_client
from core.ai_client import GeminiCollaborator, build_prompt, parse_response
from core.errors import CollaboratorFailure
from core.type_mappings import TargetDialect
from models.schema import CanonicalModel

_GOOD = {
    "ddlText": "CREATE TABLE users (id SERIAL PRIMARY KEY);",
    "mappingExplanations": [{
        "entity": "User",
        "attribute": "id",
        "sourceType": "ObjectId",
        "targetType": "SERIAL",
        "reason": "surrogate key",
    }],
}


class _FakeGenAI:
    """Mimics the parts of google.generativeai the collaborator uses."""

    def __init__(self, text: str | None = None, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.configured_key: str | None = None
        self.calls: list[dict] = []

    def configure(self, api_key: str) -> None:
        self.configured_key = api_key

    def GenerativeModel(self, name: str) -> SimpleNamespace:
        def generate_content(prompt, **kwargs):
            self.calls.append({"model": name, "prompt": prompt, **kwargs})
            if self.error is not None:
                raise self.error
            return SimpleNamespace(text=self.text)
        return SimpleNamespace(generate_content=generate_content)


class TestParseResponse:
    def test_valid(self) -> None:
        ddl, explanations = parse_response(json.dumps(_GOOD))
        assert ddl == _GOOD["ddlText"]
        assert explanations[0].target_type == "SERIAL"

    def test_fenced_json(self) -> None:
        ddl, _ = parse_response("```json\n" + json.dumps(_GOOD) + "\n```")
        assert ddl.startswith("CREATE TABLE")

    def test_legacy_key_names(self) -> None:
        legacy = {
            "targetDDL": "CREATE TABLE t (id INT);",
            "mappingSummary": [{
                "table": "T", "column": "id", "sourceType": "Number",
                "targetType": "INT", "reason": "numeric",
            }],
        }
        ddl, explanations = parse_response(json.dumps(legacy))
        assert ddl == "CREATE TABLE t (id INT);"
        assert (explanations[0].entity, explanations[0].attribute) == ("T", "id")

    @pytest.mark.parametrize("text", [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"mappingExplanations": []}),
        json.dumps({"ddlText": "", "mappingExplanations": []}),
        json.dumps({"ddlText": "CREATE TABLE t (id INT);"}),
        json.dumps({"ddlText": "CREATE TABLE t (id INT);", "mappingExplanations": {}}),
        json.dumps({"ddlText": "CREATE TABLE t (id INT);", "mappingExplanations": ["x"]}),
        json.dumps({"ddlText": "CREATE TABLE t (id INT);",
                    "mappingExplanations": [{"entity": "T"}]}),
    ])
    def test_bad_shapes_raise(self, text: str) -> None:
        with pytest.raises(CollaboratorFailure):
            parse_response(text)


class TestGeminiCollaborator:
    def test_missing_key(self, user_order_model: CanonicalModel) -> None:
        collaborator = GeminiCollaborator(ConversionConfig(gemini_api_key=None))
        with pytest.raises(CollaboratorFailure, match="GEMINI_API_KEY"):
            collaborator.generate(user_order_model, TargetDialect.MONGODB, TargetDialect.MYSQL)

    def test_success(
        self, user_order_model: CanonicalModel, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = _FakeGenAI(text=json.dumps(_GOOD))
        monkeypatch.setattr(ai_client, "genai", fake)
        config = ConversionConfig(gemini_api_key="k-123", gemini_model="gemini-test")
        ddl, explanations = GeminiCollaborator(config).generate(
            user_order_model, TargetDialect.MONGODB, TargetDialect.POSTGRESQL
        )
        assert ddl == _GOOD["ddlText"]
        assert len(explanations) == 1
        assert fake.configured_key == "k-123"
        (call,) = fake.calls
        assert call["model"] == "gemini-test"
        assert call["generation_config"] == {"response_mime_type": "application/json"}
        assert "postgresql" in call["prompt"]

    def test_transport_error_becomes_failure(
        self, user_order_model: CanonicalModel, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(ai_client, "genai", _FakeGenAI(error=TimeoutError("deadline")))
        collaborator = GeminiCollaborator(ConversionConfig(gemini_api_key="k"))
        with pytest.raises(CollaboratorFailure, match="deadline"):
            collaborator.generate(user_order_model, TargetDialect.MONGODB, TargetDialect.MYSQL)


class TestPrompt:
    def test_prompt_embeds_model(self, user_order_model: CanonicalModel) -> None:
        prompt = build_prompt(user_order_model, TargetDialect.MONGODB, TargetDialect.SQLSERVER)
        assert '"user_id"' in prompt
        assert "mongodb to sqlserver" in prompt
