"""Tests for CREATE TABLE / CREATE INDEX synthesis."""

import pytest

from lightorm import ForeignKey, Record, column, record_type
from lightorm.errors import ConfigurationError, InvalidIdentifierError, UnsupportedTypeError
from lightorm.metadata.registry import MetadataRegistry
from lightorm.sql.dialect import PostgreSQLDialect, SQLiteDialect, validate_identifier
from lightorm.sql.schema import create_table_statement, index_statements, schema_statements
from sample_models import Employee, Widget, registry

SQLITE = SQLiteDialect()
POSTGRES = PostgreSQLDialect()


class TestCreateTable:
    def test_sqlite_widgets(self):
        sql = create_table_statement(Widget, SQLITE, registry)
        assert sql == (
            'CREATE TABLE IF NOT EXISTS "widgets" ('
            '"id" INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, '
            '"name" VARCHAR(40) NOT NULL, '
            "\"status\" VARCHAR(10) NOT NULL DEFAULT 'new', "
            '"quantity" INTEGER NOT NULL DEFAULT 0, '
            '"createdAt" TIMESTAMP NOT NULL, '
            '"updatedAt" TIMESTAMP NOT NULL, '
            '"contentHash" CHAR(44) NOT NULL, '
            'UNIQUE ("name"), '
            "CHECK (\"status\" IN ('new', 'used')), "
            'CHECK ("quantity" >= 0))'
        )

    def test_postgresql_identity_and_unsigned(self):
        sql = create_table_statement(Widget, POSTGRES, registry)
        assert '"id" INTEGER NOT NULL PRIMARY KEY GENERATED BY DEFAULT AS IDENTITY' in sql
        assert '"quantity" BIGINT NOT NULL DEFAULT 0' in sql
        assert 'CHECK ("quantity" >= 0)' in sql

    def test_foreign_keys_and_checks(self):
        sql = create_table_statement(Employee, SQLITE, registry)
        assert 'FOREIGN KEY ("department_id") REFERENCES "departments" ("id")' in sql
        assert 'FOREIGN KEY ("supervisor_id") REFERENCES "employees" ("id")' in sql
        assert 'CHECK ("salary" >= 0)' in sql
        assert "CHECK (\"status\" IN ('active', 'inactive'))" in sql
        assert '"salary" TEXT NULL' in sql
        assert '"hired_at" TIMESTAMP NULL DEFAULT CURRENT_TIMESTAMP' in sql
        assert '"active" BOOLEAN NOT NULL DEFAULT 1' in sql

    def test_relationship_slots_are_not_columns(self):
        sql = create_table_statement(Employee, SQLITE, registry)
        for slot in ("department", "supervisor", "subordinates", "projects"):
            assert f'"{slot}"' not in sql

    def test_columns_in_declaration_order(self):
        sql = create_table_statement(Employee, SQLITE, registry)
        positions = [sql.index(f'"{name}" ') for name in ("id", "first_name", "last_name", "createdAt")]
        assert positions == sorted(positions)

    def test_unregistered_type(self):
        class Loose(Record):
            pass

        with pytest.raises(ConfigurationError):
            create_table_statement(Loose, SQLITE, registry)

    def test_unsupported_annotation(self):
        local = MetadataRegistry()

        @record_type("tags", registry=local)
        class Tagged(Record):
            labels: list[str] = column()

        with pytest.raises(UnsupportedTypeError) as exc_info:
            create_table_statement(Tagged, SQLITE, local)
        assert exc_info.value.type_name == "list"

    def test_invalid_foreign_key_table(self):
        local = MetadataRegistry()

        @record_type("orders", registry=local)
        class Order(Record):
            customer_id: int = column(foreign_key=ForeignKey("customers--"))

        with pytest.raises(InvalidIdentifierError):
            create_table_statement(Order, POSTGRES, local)


class TestIndexes:
    def test_indexed_column(self):
        assert index_statements(Employee, SQLITE, registry) == [
            'CREATE INDEX IF NOT EXISTS "ix_employees_last_name" ON "employees" ("last_name")'
        ]

    def test_no_indexes(self):
        assert index_statements(Widget, SQLITE, registry) == []

    def test_schema_statements_table_first(self):
        statements = schema_statements(Employee, POSTGRES, registry)
        assert statements[0].startswith('CREATE TABLE IF NOT EXISTS "employees"')
        assert statements[1].startswith("CREATE INDEX")


class TestIdentifierGrammar:
    @pytest.mark.parametrize("name", ["users", "createdAt", "t_1", "_private", "order"])
    def test_valid(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize(
        "name",
        ["", "123", "users; DROP TABLE users", 'x"y', "a-b", "a b", "naïve", None, 42],
    )
    def test_invalid(self, name):
        with pytest.raises(InvalidIdentifierError):
            validate_identifier(name)

    def test_quoting(self):
        assert SQLITE.quote_identifier("order") == '"order"'
        assert POSTGRES.quote_identifier("createdAt") == '"createdAt"'
