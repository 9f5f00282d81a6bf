"""
tests/conftest.py
-----------------
Shared fixtures: a two-entity User/Order model and fake collaborators.
"""
from __future__ import annotations

import pytest

from config import ConversionConfig
from core.errors import CollaboratorFailure
from models.conversion import MappingExplanation
from models.schema import Attribute, CanonicalModel, Entity, Relationship


def make_user_order_model() -> CanonicalModel:
    user = Entity(
        id="table_1",
        name="User",
        attributes=(
            Attribute("id", "integer", primary_key=True, nullable=False),
            Attribute("email", "string", nullable=False, unique=True),
        ),
    )
    order = Entity(
        id="table_2",
        name="Order",
        attributes=(
            Attribute("id", "integer", primary_key=True, nullable=False),
            Attribute("user_id", "integer", nullable=False),
        ),
    )
    return CanonicalModel(
        entities=(user, order),
        relationships=(
            Relationship("table_2", "table_1", "user_id", "id", "many-to-one", id="rel_1"),
        ),
    )


class FailingCollaborator:
    """Stands in for an unreachable generative service."""

    def __init__(self) -> None:
        self.calls = 0

    def generate(self, model, source, target):
        self.calls += 1
        raise CollaboratorFailure("service unreachable")


class CannedCollaborator:
    """Returns a fixed answer and records the request."""

    def __init__(self, ddl_text: str = "CREATE TABLE from_ai (id SERIAL);") -> None:
        self.ddl_text = ddl_text
        self.requests: list[tuple] = []

    def generate(self, model, source, target):
        self.requests.append((model, source, target))
        return self.ddl_text, [
            MappingExplanation("User", "id", "ObjectId", "SERIAL", "identity column"),
        ]


@pytest.fixture
def user_order_model() -> CanonicalModel:
    return make_user_order_model()


@pytest.fixture
def ai_config() -> ConversionConfig:
    """AI assistance on, no real key, default thresholds."""
    return ConversionConfig(ai_enabled=True, gemini_api_key=None)
