"""Tests for CRUD statement synthesis."""

from datetime import datetime
from decimal import Decimal

from lightorm.sql.dialect import PostgreSQLDialect, SQLiteDialect
from lightorm.sql.statements import (
    OWNER_KEY_ALIAS,
    delete_statement,
    insert_statement,
    select_all_hashes_statement,
    select_all_statement,
    select_by_column_statement,
    select_by_id_statement,
    select_by_ids_statement,
    select_hash_statement,
    select_through_association_statement,
    update_statement,
)
from sample_models import Employee, Widget, registry

SQLITE = SQLiteDialect()
POSTGRES = PostgreSQLDialect()

WIDGETS = registry.record_type(Widget)
EMPLOYEES = registry.record_type(Employee)
STAMP = datetime(2024, 5, 6, 7, 8, 9, 123456)


def saved_widget(**overrides) -> Widget:
    values = {
        "id": 3,
        "name": "gear",
        "status": "new",
        "quantity": 2,
        "created_at": STAMP,
        "updated_at": STAMP,
        "content_hash": "h" * 44,
    }
    values.update(overrides)
    return Widget(**values)


class TestInsert:
    def test_sqlite(self):
        statement = insert_statement(WIDGETS, saved_widget(), SQLITE)
        assert statement.sql == (
            'INSERT INTO "widgets" ("name", "status", "quantity", "createdAt", '
            '"updatedAt", "contentHash") VALUES (?, ?, ?, ?, ?, ?) RETURNING "id"'
        )
        assert statement.params == (
            "gear",
            "new",
            2,
            "2024-05-06 07:08:09.123456",
            "2024-05-06 07:08:09.123456",
            "h" * 44,
        )

    def test_postgresql_binds_native_values(self):
        statement = insert_statement(WIDGETS, saved_widget(), POSTGRES)
        assert "VALUES (%s, %s, %s, %s, %s, %s)" in statement.sql
        assert statement.params[3] == STAMP

    def test_primary_key_never_written(self):
        statement = insert_statement(WIDGETS, saved_widget(id=99), SQLITE)
        assert 99 not in statement.params
        assert '("id"' not in statement.sql

    def test_values_are_never_inlined(self):
        hostile = "x'); DROP TABLE widgets; --"
        statement = insert_statement(WIDGETS, saved_widget(name=hostile), SQLITE)
        assert hostile not in statement.sql
        assert hostile in statement.params

    def test_sqlite_adapts_decimal_and_bool(self):
        employee = Employee(
            first_name="Ada",
            last_name="Lovelace",
            salary=Decimal("10.50"),
            active=False,
        )
        statement = insert_statement(EMPLOYEES, employee, SQLITE)
        assert "10.50" in statement.params
        assert 0 in statement.params
        assert False not in [p for p in statement.params if isinstance(p, bool)]


class TestUpdate:
    def test_sqlite(self):
        statement = update_statement(WIDGETS, saved_widget(), SQLITE)
        assert statement.sql == (
            'UPDATE "widgets" SET "name" = ?, "status" = ?, "quantity" = ?, '
            '"updatedAt" = ?, "contentHash" = ? WHERE "id" = ?'
        )
        assert statement.params[-1] == 3

    def test_created_at_not_rewritten(self):
        statement = update_statement(WIDGETS, saved_widget(), POSTGRES)
        assert '"createdAt"' not in statement.sql


class TestSelects:
    def test_delete(self):
        statement = delete_statement(WIDGETS, 3, POSTGRES)
        assert statement.sql == 'DELETE FROM "widgets" WHERE "id" = %s'
        assert statement.params == (3,)

    def test_select_by_id(self):
        statement = select_by_id_statement(WIDGETS, 3, SQLITE)
        assert statement.sql == (
            'SELECT "id", "name", "status", "quantity", "createdAt", "updatedAt", '
            '"contentHash" FROM "widgets" WHERE "id" = ?'
        )

    def test_select_all_ordered(self):
        statement = select_all_statement(WIDGETS, SQLITE)
        assert statement.sql.endswith('FROM "widgets" ORDER BY "id"')
        assert statement.params == ()

    def test_select_by_ids(self):
        statement = select_by_ids_statement(WIDGETS, [1, 4, 9], POSTGRES)
        assert 'WHERE "id" IN (%s, %s, %s) ORDER BY "id"' in statement.sql
        assert statement.params == (1, 4, 9)

    def test_hash_queries(self):
        assert select_hash_statement(WIDGETS, 3, SQLITE).sql == (
            'SELECT "contentHash" FROM "widgets" WHERE "id" = ?'
        )
        assert select_all_hashes_statement(WIDGETS, SQLITE).sql == (
            'SELECT "id", "contentHash" FROM "widgets" ORDER BY "id"'
        )


class TestRelationshipQueries:
    def test_select_by_column(self):
        statement = select_by_column_statement(EMPLOYEES, "supervisor_id", [1, 2], SQLITE)
        assert 'WHERE "supervisor_id" IN (?, ?) ORDER BY "id"' in statement.sql
        assert statement.params == (1, 2)

    def test_through_association(self):
        statement = select_through_association_statement(
            EMPLOYEES, "employee_projects", "project_id", "employee_id", [5], SQLITE
        )
        assert statement.sql.startswith(
            f'SELECT DISTINCT a."project_id" AS "{OWNER_KEY_ALIAS}", r."id" AS "id"'
        )
        assert 'FROM "employee_projects" a JOIN "employees" r ON r."id" = a."employee_id"' in (
            statement.sql
        )
        assert statement.sql.endswith('ORDER BY a."project_id", r."id"')
        assert statement.params == (5,)
