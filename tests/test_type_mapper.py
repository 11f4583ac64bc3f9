"""Tests for the SQL type mapper."""

from datetime import datetime
from decimal import Decimal

import pytest

from lightorm import CURRENT_TIMESTAMP, CURRENT_TIMESTAMP_ON_UPDATE, FieldDescriptor
from lightorm.errors import ConfigurationError, UnsupportedTypeError
from lightorm.sql.dialect import PostgreSQLDialect, SQLiteDialect
from lightorm.sql.type_mapper import base_type, map_type, render_literal

SQLITE = SQLiteDialect()
POSTGRES = PostgreSQLDialect()


def make_field(semantic_type: str = "string", **kwargs) -> FieldDescriptor:
    """Helper to create a FieldDescriptor for testing."""
    return FieldDescriptor(attribute="value", name="value", semantic_type=semantic_type, **kwargs)


class TestBaseType:
    @pytest.mark.parametrize(
        "semantic_type, sqlite_expected, postgres_expected",
        [
            ("integer", "INTEGER", "INTEGER"),
            ("bigint", "BIGINT", "BIGINT"),
            ("string", "VARCHAR(255)", "VARCHAR(255)"),
            ("boolean", "BOOLEAN", "BOOLEAN"),
            ("timestamp", "TIMESTAMP", "TIMESTAMP"),
            ("decimal", "TEXT", "NUMERIC(18,2)"),
            ("float", "REAL", "DOUBLE PRECISION"),
            ("double", "DOUBLE PRECISION", "DOUBLE PRECISION"),
        ],
    )
    def test_defaults(self, semantic_type, sqlite_expected, postgres_expected):
        assert base_type(make_field(semantic_type), SQLITE) == sqlite_expected
        assert base_type(make_field(semantic_type), POSTGRES) == postgres_expected

    def test_string_length(self):
        assert base_type(make_field("string", max_length=20), SQLITE) == "VARCHAR(20)"

    def test_decimal_precision_and_scale(self):
        field = make_field("decimal", precision=10, scale=4)
        assert base_type(field, POSTGRES) == "NUMERIC(10,4)"

    def test_decimal_zero_scale(self):
        field = make_field("decimal", precision=6, scale=0)
        assert base_type(field, POSTGRES) == "NUMERIC(6,0)"

    def test_decimal_is_text_on_sqlite(self):
        """Numeric affinity would round wide decimals through a double."""
        field = make_field("decimal", precision=18, scale=2)
        assert base_type(field, SQLITE) == "TEXT"

    def test_float_is_double_width_on_postgresql(self):
        assert base_type(make_field("float"), POSTGRES) == "DOUBLE PRECISION"

    def test_unsigned_integer_widens_on_postgresql(self):
        field = make_field("integer", unsigned=True)
        assert base_type(field, POSTGRES) == "BIGINT"
        assert base_type(field, SQLITE) == "INTEGER"

    def test_unknown_type_raises(self):
        with pytest.raises(UnsupportedTypeError) as exc_info:
            base_type(make_field("uuid"), SQLITE)
        assert exc_info.value.type_name == "uuid"
        assert "uuid" in str(exc_info.value)

    def test_unsupported_type_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            map_type(make_field("geometry"), POSTGRES)


class TestNullability:
    def test_not_null_by_default(self):
        assert map_type(make_field("integer"), SQLITE) == "INTEGER NOT NULL"

    def test_nullable(self):
        assert map_type(make_field("string", nullable=True), SQLITE) == "VARCHAR(255) NULL"

    def test_primary_key_never_has_default(self):
        field = make_field("integer", is_primary_key=True, default_value=5)
        assert map_type(field, SQLITE) == "INTEGER NOT NULL"


class TestDefaults:
    def test_string_default_is_quoted_and_escaped(self):
        field = make_field("string", max_length=20, default_value="it's")
        assert map_type(field, SQLITE) == "VARCHAR(20) NOT NULL DEFAULT 'it''s'"

    def test_boolean_default_per_dialect(self):
        field = make_field("boolean", default_value=True)
        assert map_type(field, SQLITE) == "BOOLEAN NOT NULL DEFAULT 1"
        assert map_type(field, POSTGRES) == "BOOLEAN NOT NULL DEFAULT TRUE"

    def test_false_default_is_rendered(self):
        field = make_field("boolean", default_value=False)
        assert map_type(field, POSTGRES) == "BOOLEAN NOT NULL DEFAULT FALSE"

    def test_timestamp_literal(self):
        field = make_field("timestamp", default_value=datetime(2024, 1, 2, 3, 4, 5))
        assert map_type(field, SQLITE) == "TIMESTAMP NOT NULL DEFAULT '2024-01-02 03:04:05'"

    @pytest.mark.parametrize("sentinel", [CURRENT_TIMESTAMP, CURRENT_TIMESTAMP_ON_UPDATE])
    def test_timestamp_sentinels(self, sentinel):
        field = make_field("timestamp", nullable=True, default_value=sentinel)
        assert map_type(field, POSTGRES) == "TIMESTAMP NULL DEFAULT CURRENT_TIMESTAMP"

    def test_numeric_defaults(self):
        assert render_literal(0, SQLITE) == "0"
        assert render_literal(Decimal("12.50"), SQLITE) == "12.50"
        assert render_literal(1.5, SQLITE) == "1.5"

    def test_unrenderable_default(self):
        with pytest.raises(ConfigurationError):
            render_literal(object(), SQLITE)
