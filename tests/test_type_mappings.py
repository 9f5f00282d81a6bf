"""
tests/test_type_mappings.py
---------------------------
Unit tests for core/type_mappings.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import itertools

import pytest

from core.errors import InvalidRequest
from core.type_mappings import (
    GENERIC_TYPES,
    IDENTITY_IDIOMS,
    TYPE_MAPPINGS,
    TargetDialect,
    mapping_for,
    native_type,
    normalize_dialect,
)
from models.schema import LOGICAL_TYPES


class TestNormalizeDialect:
    @pytest.mark.parametrize("raw,expected", [
        ("mongo", TargetDialect.MONGODB),
        ("MongoDB", TargetDialect.MONGODB),
        ("document", TargetDialect.MONGODB),
        ("postgres", TargetDialect.POSTGRESQL),
        ("PostgreSQL", TargetDialect.POSTGRESQL),
        ("pg", TargetDialect.POSTGRESQL),
        ("MySQL", TargetDialect.MYSQL),
        ("mariadb", TargetDialect.MYSQL),
        ("sql", TargetDialect.SQLSERVER),
        ("SQL Server", TargetDialect.SQLSERVER),
        ("  mssql ", TargetDialect.SQLSERVER),
        ("Microsoft SQL", TargetDialect.SQLSERVER),
        ("amazon aurora mysql", TargetDialect.MYSQL),
    ])
    def test_aliases(self, raw: str, expected: TargetDialect) -> None:
        assert normalize_dialect(raw) is expected

    @pytest.mark.parametrize("raw", [
        "oracle", "sqlite", "SQLite3", "nosql", "Oracle PL/SQL", "", "   ", None, 42,
    ])
    def test_unsupported(self, raw: object) -> None:
        with pytest.raises(InvalidRequest):
            normalize_dialect(raw)


class TestTables:
    def test_every_ordered_pair_has_a_table(self) -> None:
        pairs = set(itertools.permutations(TargetDialect, 2))
        assert set(TYPE_MAPPINGS) == pairs
        assert len(pairs) == 12

    def test_no_same_dialect_table(self) -> None:
        assert mapping_for(TargetDialect.MYSQL, TargetDialect.MYSQL) is None

    def test_relational_sources_leave_unstructured_unmapped(self) -> None:
        for (source, _), table in TYPE_MAPPINGS.items():
            if source.is_document:
                assert "unstructured" in table
            else:
                assert "unstructured" not in table
                assert set(table) == LOGICAL_TYPES - {"unstructured"}

    def test_pair_dependent_identifier(self) -> None:
        assert mapping_for(TargetDialect.MONGODB, TargetDialect.MYSQL)["identifier"] == "CHAR(24)"
        assert mapping_for(TargetDialect.POSTGRESQL, TargetDialect.MYSQL)["identifier"] == "CHAR(36)"

    def test_tables_are_read_only(self) -> None:
        table = mapping_for(TargetDialect.POSTGRESQL, TargetDialect.MYSQL)
        with pytest.raises(TypeError):
            table["string"] = "TEXT"  # type: ignore[index]
        with pytest.raises(TypeError):
            TYPE_MAPPINGS[(TargetDialect.MYSQL, TargetDialect.MYSQL)] = {}  # type: ignore[index]

    def test_identity_idioms(self) -> None:
        assert IDENTITY_IDIOMS[TargetDialect.POSTGRESQL] == "SERIAL"
        assert IDENTITY_IDIOMS[TargetDialect.MYSQL] == "INT AUTO_INCREMENT"
        assert IDENTITY_IDIOMS[TargetDialect.SQLSERVER] == "INT IDENTITY(1,1)"

    def test_generic_types(self) -> None:
        assert GENERIC_TYPES[TargetDialect.SQLSERVER] == "NVARCHAR(255)"
        assert GENERIC_TYPES[TargetDialect.MONGODB] == "String"

    def test_native_type(self) -> None:
        assert native_type(TargetDialect.MONGODB, "identifier") == "ObjectId"
        assert native_type(TargetDialect.POSTGRESQL, "geometry") == "geometry"
