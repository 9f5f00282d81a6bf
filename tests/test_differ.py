"""
tests/test_differ.py
--------------------
Unit tests for core/differ.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import itertools
from dataclasses import replace

import pytest

from core.differ import diff
from core.errors import InvalidRequest, ValidationError
from models.changeset import ChangeSet
from models.schema import Attribute, CanonicalModel, Entity, Relationship
from tests.conftest import make_user_order_model

_PK = Attribute("id", "integer", primary_key=True, nullable=False)


def _with_entity(model: CanonicalModel, entity: Entity) -> CanonicalModel:
    return replace(model, entities=model.entities + (entity,))


def _snapshots() -> list[CanonicalModel]:
    base = make_user_order_model()
    product = Entity("table_3", "Product", (_PK, Attribute("sku", "string", unique=True)))
    with_product = _with_entity(base, product)
    line = Entity("table_4", "Line", (_PK, Attribute("product_id", "integer")))
    with_line = replace(
        _with_entity(with_product, line),
        relationships=with_product.relationships + (
            Relationship("table_4", "table_3", "product_id", "id"),
        ),
    )
    return [CanonicalModel(), base, with_product, with_line]


def _ids(entities) -> set[str]:
    return {e.id for e in entities}


def _keys(relationships) -> set[tuple[str, str]]:
    return {r.key for r in relationships}


class TestEntityChanges:
    def test_attribute_swap_is_one_modification(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        edited = replace(user, attributes=(user.attributes[0], Attribute("phone", "string")))
        after = replace(user_order_model, entities=(edited, order))

        changes = diff(user_order_model, after)

        assert changes.entities.added == () and changes.entities.removed == ()
        (mod,) = changes.entities.modified
        assert mod.entity_id == "table_1"
        assert [a.name for a in mod.removed_attributes] == ["email"]
        assert [a.name for a in mod.added_attributes] == ["phone"]
        assert changes.relationships.modified == ()

    def test_flag_change_is_a_modification(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        loosened = replace(user, attributes=(
            user.attributes[0], replace(user.attributes[1], unique=False),
        ))
        changes = diff(user_order_model, replace(user_order_model, entities=(loosened, order)))
        assert len(changes.entities.modified) == 1

    def test_attribute_order_is_ignored(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        reordered = replace(user, attributes=tuple(reversed(user.attributes)))
        changes = diff(user_order_model, replace(user_order_model, entities=(reordered, order)))
        assert changes.is_empty

    def test_rename_is_a_modification(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        changes = diff(
            user_order_model,
            replace(user_order_model, entities=(replace(user, name="Account"), order)),
        )
        (mod,) = changes.entities.modified
        assert (mod.before_name, mod.after_name) == ("User", "Account")

    def test_position_is_ignored(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        moved = replace(user, position=(120.0, 40.0))
        assert diff(user_order_model, replace(user_order_model, entities=(moved, order))).is_empty

    def test_added_and_removed(self) -> None:
        empty, base, with_product, _ = _snapshots()
        assert _ids(diff(base, with_product).entities.added) == {"table_3"}
        assert _ids(diff(with_product, base).entities.removed) == {"table_3"}
        assert _ids(diff(empty, base).entities.added) == {"table_1", "table_2"}


class TestRelationshipChanges:
    def test_keyed_by_pair_not_id(self, user_order_model: CanonicalModel) -> None:
        (rel,) = user_order_model.relationships
        renumbered = replace(user_order_model, relationships=(replace(rel, id="edge-77"),))
        assert diff(user_order_model, renumbered).is_empty

    def test_cardinality_change_is_modification(self, user_order_model: CanonicalModel) -> None:
        (rel,) = user_order_model.relationships
        after = replace(user_order_model, relationships=(replace(rel, cardinality="one-to-one"),))
        (mod,) = diff(user_order_model, after).relationships.modified
        assert mod.key == ("table_2", "table_1")
        assert (mod.before.cardinality, mod.after.cardinality) == ("many-to-one", "one-to-one")

    def test_parallel_edges_ignore_edge_order(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        order2 = replace(order, attributes=order.attributes + (Attribute("buyer_id", "integer"),))
        before = CanonicalModel(
            entities=(user, order2),
            relationships=(
                Relationship("table_2", "table_1", "user_id", "id"),
                Relationship("table_2", "table_1", "buyer_id", "id"),
            ),
        )
        reordered = replace(before, relationships=tuple(reversed(before.relationships)))
        assert diff(before, reordered).is_empty
        assert diff(reordered, before).is_empty

    def test_parallel_edges_compare_smallest(self, user_order_model: CanonicalModel) -> None:
        user, order = user_order_model.entities
        order2 = replace(order, attributes=order.attributes + (Attribute("buyer_id", "integer"),))
        buyer = Relationship("table_2", "table_1", "buyer_id", "id")
        before = CanonicalModel(
            entities=(user, order2),
            relationships=(Relationship("table_2", "table_1", "user_id", "id"), buyer),
        )
        assert diff(before, replace(before, relationships=(buyer,))).is_empty


class TestProperties:
    @pytest.mark.parametrize("model", _snapshots())
    def test_self_diff_is_empty(self, model: CanonicalModel) -> None:
        assert diff(model, model) == ChangeSet()

    @pytest.mark.parametrize("a,b", list(itertools.permutations(_snapshots(), 2)))
    def test_swap_symmetry(self, a: CanonicalModel, b: CanonicalModel) -> None:
        forward, backward = diff(a, b), diff(b, a)
        assert _ids(forward.entities.added) == _ids(backward.entities.removed)
        assert _ids(forward.entities.removed) == _ids(backward.entities.added)
        assert _keys(forward.relationships.added) == _keys(backward.relationships.removed)
        assert _keys(forward.relationships.removed) == _keys(backward.relationships.added)
        assert {m.entity_id for m in forward.entities.modified} == {
            m.entity_id for m in backward.entities.modified
        }


class TestInputValidation:
    def test_accepts_payloads(self, user_order_model: CanonicalModel) -> None:
        payload = user_order_model.to_dict()
        assert diff(payload, payload).is_empty

    def test_missing_collections(self, user_order_model: CanonicalModel) -> None:
        with pytest.raises(InvalidRequest):
            diff({"entities": []}, user_order_model)

    def test_invalid_snapshot(self, user_order_model: CanonicalModel) -> None:
        broken = replace(user_order_model, relationships=(Relationship("table_2", "ghost"),))
        with pytest.raises(ValidationError):
            diff(user_order_model, broken)
