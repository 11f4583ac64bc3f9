"""SQL type mapper: field descriptor -> column type clause.

Applied in order: base type, nullability, default clause. Pure and
deterministic; the same descriptor always yields the same text.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from lightorm.core.types import (
    DEFAULT_PRECISION,
    DEFAULT_SCALE,
    DEFAULT_STRING_LENGTH,
    get_field_type,
)
from lightorm.errors import ConfigurationError, UnsupportedTypeError
from lightorm.metadata.descriptors import FieldDescriptor, TimestampDefault
from lightorm.sql.dialect import Dialect


def base_type(field: FieldDescriptor, dialect: Dialect) -> str:
    """Dialect storage type for a field's semantic type.

    Raises:
        UnsupportedTypeError: If the semantic type has no mapping
    """
    field_type = get_field_type(field.semantic_type)
    if field_type is None:
        raise UnsupportedTypeError(field.semantic_type, field.name)

    template = field_type.storage.for_dialect(dialect.name, unsigned=field.unsigned)
    if not field_type.parameterized:
        return template
    return template.format(
        length=field.max_length or DEFAULT_STRING_LENGTH,
        precision=field.precision or DEFAULT_PRECISION,
        scale=field.scale if field.scale is not None else DEFAULT_SCALE,
    )


def render_literal(value: Any, dialect: Dialect) -> str:
    """Render a default value as a SQL literal (culture-invariant)."""
    if isinstance(value, TimestampDefault):
        # Neither dialect has ON UPDATE; the engine refreshes updatedAt itself
        return dialect.current_timestamp
    if isinstance(value, bool):
        return dialect.render_boolean(value)
    if isinstance(value, datetime):
        return f"'{value.strftime('%Y-%m-%d %H:%M:%S')}'"
    if isinstance(value, date):
        return f"'{value.strftime('%Y-%m-%d')}'"
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    raise ConfigurationError(f"Cannot render default value {value!r} as a SQL literal")


def map_type(field: FieldDescriptor, dialect: Dialect) -> str:
    """Column type clause, e.g. ``VARCHAR(20) NOT NULL DEFAULT 'active'``."""
    parts = [base_type(field, dialect)]
    parts.append("NULL" if field.nullable else "NOT NULL")
    if field.has_default and not field.is_primary_key:
        parts.append(f"DEFAULT {render_literal(field.default_value, dialect)}")
    return " ".join(parts)
