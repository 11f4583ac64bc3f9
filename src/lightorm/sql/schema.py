"""Schema synthesis: CREATE TABLE / CREATE INDEX DDL from record metadata."""

from lightorm.metadata.descriptors import RecordType
from lightorm.metadata.registry import MetadataRegistry, default_registry
from lightorm.sql.dialect import Dialect
from lightorm.sql.type_mapper import map_type, render_literal


def _record_type(cls_or_type: type | RecordType, registry: MetadataRegistry) -> RecordType:
    if isinstance(cls_or_type, RecordType):
        return cls_or_type
    return registry.record_type(cls_or_type)


def create_table_statement(
    cls: type | RecordType,
    dialect: Dialect,
    registry: MetadataRegistry | None = None,
) -> str:
    """Build ``CREATE TABLE IF NOT EXISTS`` for a record type.

    Column clauses come first, then table constraints: unique, check
    (explicit, enum-derived, unsigned), and foreign keys.

    Raises:
        InvalidIdentifierError: If the table or any column name is unsafe
        UnsupportedTypeError: If a field has no SQL mapping
    """
    record_type = _record_type(cls, registry or default_registry)
    q = dialect.quote_identifier
    table = q(record_type.table_name)

    columns: list[str] = []
    constraints: list[str] = []

    for field in record_type.fields:
        col = q(field.name)
        col_def = f"{col} {map_type(field, dialect)}"
        if field.is_primary_key:
            col_def += " PRIMARY KEY"
        if field.auto_generated:
            col_def += f" {dialect.auto_increment}"
        columns.append(col_def)

        if field.unique:
            constraints.append(f"UNIQUE ({col})")
        if field.check_expression:
            # Opaque, passed through verbatim
            constraints.append(f"CHECK ({field.check_expression})")
        if field.enumerated_values:
            allowed = ", ".join(render_literal(v, dialect) for v in field.enumerated_values)
            constraints.append(f"CHECK ({col} IN ({allowed}))")
        if field.unsigned:
            constraints.append(f"CHECK ({col} >= 0)")
        if field.foreign_key is not None:
            constraints.append(
                f"FOREIGN KEY ({col}) REFERENCES "
                f"{q(field.foreign_key.table)} ({q(field.foreign_key.column)})"
            )

    body = ", ".join(columns + constraints)
    return f"CREATE TABLE IF NOT EXISTS {table} ({body})"


def index_statements(
    cls: type | RecordType,
    dialect: Dialect,
    registry: MetadataRegistry | None = None,
) -> list[str]:
    """``CREATE INDEX IF NOT EXISTS`` for every indexed column."""
    record_type = _record_type(cls, registry or default_registry)
    q = dialect.quote_identifier
    statements = []
    for field in record_type.fields:
        if not field.indexed:
            continue
        index_name = q(f"ix_{record_type.table_name}_{field.name}")
        statements.append(
            f"CREATE INDEX IF NOT EXISTS {index_name} "
            f"ON {q(record_type.table_name)} ({q(field.name)})"
        )
    return statements


def schema_statements(
    cls: type | RecordType,
    dialect: Dialect,
    registry: MetadataRegistry | None = None,
) -> list[str]:
    """All DDL needed for a record type, table first."""
    return [
        create_table_statement(cls, dialect, registry),
        *index_statements(cls, dialect, registry),
    ]
