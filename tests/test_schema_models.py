"""
tests/test_schema_models.py
---------------------------
Unit tests for models/schema.py and models/changeset.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from models.changeset import ChangeSet
from models.schema import (
    Attribute,
    CanonicalModel,
    Entity,
    LogicalType,
    SchemaFormatError,
    coerce_logical_type,
)


class TestLogicalType:
    @pytest.mark.parametrize("raw,expected", [
        ("string", LogicalType.STRING),
        ("Integer", LogicalType.INTEGER),
        ("date/time", LogicalType.DATETIME),
        ("DATETIME", LogicalType.DATETIME),
    ])
    def test_parse(self, raw: str, expected: LogicalType) -> None:
        assert LogicalType.parse(raw) is expected

    def test_parse_unknown_is_none(self) -> None:
        assert LogicalType.parse("geometry") is None

    @pytest.mark.parametrize("raw,expected", [
        ("VARCHAR(100)", "string"),
        ("INT", "integer"),
        ("TIMESTAMP", "datetime"),
        ("JSONB", "object"),
        ("ObjectId", "identifier"),
        ("text[]", "array"),
    ])
    def test_coerce_native_names(self, raw: str, expected: str) -> None:
        assert coerce_logical_type(raw) == expected

    def test_coerce_keeps_unknown_verbatim(self) -> None:
        assert coerce_logical_type("geometry") == "geometry"

    def test_attribute_normalises_enum_member(self) -> None:
        assert Attribute("a", LogicalType.FLOAT) == Attribute("a", "float")


class TestCanonicalPayload:
    def test_canonical_form(self) -> None:
        model = CanonicalModel.from_dict({
            "entities": [{
                "id": "e1",
                "name": "User",
                "attributes": [
                    {"name": "id", "type": "integer", "primaryKey": True},
                    {"name": "email", "type": "string", "unique": True, "nullable": False},
                ],
            }],
            "relationships": [],
        })
        user = model.entity("e1")
        assert user is not None
        assert user.get_attribute("id") == Attribute("id", "integer", True, False, False)
        assert user.get_attribute("email").unique

    def test_primary_key_defaults_to_not_nullable(self) -> None:
        attr = Attribute.from_dict({"name": "id", "type": "integer", "primaryKey": True})
        assert attr.nullable is False

    def test_to_dict_round_trip(self, user_order_model: CanonicalModel) -> None:
        assert CanonicalModel.from_dict(user_order_model.to_dict()) == user_order_model

    def test_graph_editor_form(self) -> None:
        model = CanonicalModel.from_dict({
            "nodes": [
                {
                    "id": "table_1",
                    "position": {"x": 0, "y": 0},
                    "data": {"label": "Users", "columns": [
                        {"name": "id", "type": "INT", "isPK": True, "isNullable": False},
                    ]},
                },
                {
                    "id": "table_2",
                    "data": {"label": "Orders", "columns": [
                        {"name": "id", "type": "SERIAL", "isPK": True, "isNullable": False},
                        {"name": "user_id", "type": "INT", "isNullable": False},
                    ]},
                },
            ],
            "edges": [{
                "id": "e1",
                "source": "table_2",
                "target": "table_1",
                "sourceHandle": "user_id-right",
                "targetHandle": "id-left",
            }],
        })
        users = model.entity("table_1")
        assert users.name == "Users"
        assert users.position == (0.0, 0.0)
        rel = model.relationships[0]
        assert (rel.source_attribute, rel.target_attribute) == ("user_id", "id")
        assert rel.cardinality == "many-to-one"

    @pytest.mark.parametrize("payload", [
        [],
        {"entities": []},
        {"relationships": []},
        {"entities": {}, "relationships": []},
        {"nodes": []},
    ])
    def test_malformed_payload_raises(self, payload: object) -> None:
        with pytest.raises(SchemaFormatError):
            CanonicalModel.from_dict(payload)

    def test_non_object_entity_raises(self) -> None:
        with pytest.raises(SchemaFormatError):
            CanonicalModel.from_dict({"entities": ["User"], "relationships": []})


class TestChangeSet:
    def test_default_is_empty(self) -> None:
        changes = ChangeSet()
        assert changes.is_empty
        assert changes.summary()["entities"] == {"added": 0, "removed": 0, "modified": 0}

    def test_to_dict_shape(self) -> None:
        changes = ChangeSet()
        assert set(changes.to_dict()) == {"entities", "relationships"}
        assert set(changes.to_dict()["relationships"]) == {"added", "removed", "modified"}

    def test_entity_is_hashable(self) -> None:
        entity = Entity("e", "E", (Attribute("a", "string"),))
        assert entity.attribute_set == frozenset({Attribute("a", "string")})
