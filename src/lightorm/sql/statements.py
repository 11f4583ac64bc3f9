"""Statement synthesis: parameterized CRUD SQL from record metadata.

Identifiers are validated and quoted by the dialect; values are always
bound as parameters, never inlined. Writable columns exclude the primary
key, auto-generated and engine-managed columns; the managed timestamps and
the content hash are bound explicitly by the caller-facing operations.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from lightorm.metadata.descriptors import (
    CREATED_AT_COLUMN,
    HASH_COLUMN,
    UPDATED_AT_COLUMN,
    FieldDescriptor,
    RecordType,
)
from lightorm.sql.dialect import Dialect


@dataclass(frozen=True)
class Statement:
    """SQL text plus its bound parameters."""

    sql: str
    params: tuple[Any, ...] = field(default_factory=tuple)


def _select_list(record_type: RecordType, dialect: Dialect, alias: str | None = None) -> str:
    q = dialect.quote_identifier
    if alias is None:
        return ", ".join(q(f.name) for f in record_type.fields)
    # Alias back to the bare column name so row keys match the unjoined form
    return ", ".join(f"{alias}.{q(f.name)} AS {q(f.name)}" for f in record_type.fields)


def insert_columns(record_type: RecordType) -> list[FieldDescriptor]:
    """Writable columns plus the managed columns set on insert."""
    managed = [
        record_type.field_by_column(name)
        for name in (CREATED_AT_COLUMN, UPDATED_AT_COLUMN, HASH_COLUMN)
    ]
    return record_type.writable_fields + managed


def update_columns(record_type: RecordType) -> list[FieldDescriptor]:
    """Writable columns plus the managed columns refreshed on update.

    ``createdAt`` is never rewritten.
    """
    managed = [
        record_type.field_by_column(name) for name in (UPDATED_AT_COLUMN, HASH_COLUMN)
    ]
    return record_type.writable_fields + managed


def _bind(record: Any, fields: Sequence[FieldDescriptor], dialect: Dialect) -> list[Any]:
    return [dialect.to_db(f, getattr(record, f.attribute)) for f in fields]


def insert_statement(record_type: RecordType, record: Any, dialect: Dialect) -> Statement:
    """INSERT returning the server-assigned key."""
    q = dialect.quote_identifier
    fields = insert_columns(record_type)
    cols = ", ".join(q(f.name) for f in fields)
    sql = (
        f"INSERT INTO {q(record_type.table_name)} ({cols}) "
        f"VALUES ({dialect.placeholders(len(fields))}) "
        f"RETURNING {q(record_type.primary_key.name)}"
    )
    return Statement(sql, tuple(_bind(record, fields, dialect)))


def update_statement(record_type: RecordType, record: Any, dialect: Dialect) -> Statement:
    """UPDATE of exactly one row by primary key equality."""
    q = dialect.quote_identifier
    fields = update_columns(record_type)
    set_clause = ", ".join(f"{q(f.name)} = {dialect.placeholder}" for f in fields)
    pk = record_type.primary_key
    sql = (
        f"UPDATE {q(record_type.table_name)} SET {set_clause} "
        f"WHERE {q(pk.name)} = {dialect.placeholder}"
    )
    params = _bind(record, fields, dialect)
    params.append(getattr(record, pk.attribute))
    return Statement(sql, tuple(params))


def delete_statement(record_type: RecordType, id: int, dialect: Dialect) -> Statement:
    q = dialect.quote_identifier
    sql = (
        f"DELETE FROM {q(record_type.table_name)} "
        f"WHERE {q(record_type.primary_key.name)} = {dialect.placeholder}"
    )
    return Statement(sql, (id,))


def select_by_id_statement(record_type: RecordType, id: int, dialect: Dialect) -> Statement:
    q = dialect.quote_identifier
    sql = (
        f"SELECT {_select_list(record_type, dialect)} FROM {q(record_type.table_name)} "
        f"WHERE {q(record_type.primary_key.name)} = {dialect.placeholder}"
    )
    return Statement(sql, (id,))


def select_all_statement(record_type: RecordType, dialect: Dialect) -> Statement:
    """All rows in key order."""
    q = dialect.quote_identifier
    pk = q(record_type.primary_key.name)
    sql = (
        f"SELECT {_select_list(record_type, dialect)} FROM {q(record_type.table_name)} "
        f"ORDER BY {pk}"
    )
    return Statement(sql)


def select_by_ids_statement(
    record_type: RecordType, ids: Sequence[int], dialect: Dialect
) -> Statement:
    """Rows whose key is in ``ids``, in key order."""
    q = dialect.quote_identifier
    pk = q(record_type.primary_key.name)
    sql = (
        f"SELECT {_select_list(record_type, dialect)} FROM {q(record_type.table_name)} "
        f"WHERE {pk} IN ({dialect.placeholders(len(ids))}) ORDER BY {pk}"
    )
    return Statement(sql, tuple(ids))


def select_hash_statement(record_type: RecordType, id: int, dialect: Dialect) -> Statement:
    """Narrow read of the stored content hash for one key."""
    q = dialect.quote_identifier
    sql = (
        f"SELECT {q(HASH_COLUMN)} FROM {q(record_type.table_name)} "
        f"WHERE {q(record_type.primary_key.name)} = {dialect.placeholder}"
    )
    return Statement(sql, (id,))


def select_all_hashes_statement(record_type: RecordType, dialect: Dialect) -> Statement:
    """(key, hash) pairs for the whole table, in key order."""
    q = dialect.quote_identifier
    pk = q(record_type.primary_key.name)
    sql = (
        f"SELECT {pk}, {q(HASH_COLUMN)} FROM {q(record_type.table_name)} ORDER BY {pk}"
    )
    return Statement(sql)


# ---------------------------------------------------------------------------
# Relationship fetches
# ---------------------------------------------------------------------------

OWNER_KEY_ALIAS = "lightorm_owner_key"


def select_by_column_statement(
    record_type: RecordType,
    column: str,
    values: Sequence[Any],
    dialect: Dialect,
) -> Statement:
    """Rows whose ``column`` is in ``values``, ordered by key.

    Used for one-to-one (column = key) and one-to-many (column = remote FK).
    """
    q = dialect.quote_identifier
    sql = (
        f"SELECT {_select_list(record_type, dialect)} FROM {q(record_type.table_name)} "
        f"WHERE {q(column)} IN ({dialect.placeholders(len(values))}) "
        f"ORDER BY {q(record_type.primary_key.name)}"
    )
    return Statement(sql, tuple(values))


def select_through_association_statement(
    record_type: RecordType,
    association_table: str,
    source_foreign_key: str,
    target_foreign_key: str,
    owner_ids: Sequence[int],
    dialect: Dialect,
) -> Statement:
    """Related rows joined through an association table.

    Each row carries the owner's key under ``OWNER_KEY_ALIAS``. DISTINCT
    drops repeated association pairs.
    """
    q = dialect.quote_identifier
    pk = q(record_type.primary_key.name)
    sql = (
        f"SELECT DISTINCT a.{q(source_foreign_key)} AS {q(OWNER_KEY_ALIAS)}, "
        f"{_select_list(record_type, dialect, alias='r')} "
        f"FROM {q(association_table)} a "
        f"JOIN {q(record_type.table_name)} r ON r.{pk} = a.{q(target_foreign_key)} "
        f"WHERE a.{q(source_foreign_key)} IN ({dialect.placeholders(len(owner_ids))}) "
        f"ORDER BY a.{q(source_foreign_key)}, r.{pk}"
    )
    return Statement(sql, tuple(owner_ids))
