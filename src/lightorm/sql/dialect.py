"""SQL dialects: identifier quoting, placeholders and value adaptation.

Identifier safety
-----------------
Every table and column name that reaches emitted SQL passes through
``Dialect.quote_identifier``. It first validates the name against the
identifier grammar (letters, digits and underscores; not empty; not purely
numeric) and raises ``InvalidIdentifierError`` otherwise, then wraps it in
double quotes so mixed-case names such as ``createdAt`` and reserved words
such as ``order`` survive in both dialects. Data values are never
interpolated; they are always bound through ``placeholder``.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any

from lightorm.core.types import DEFAULT_SCALE
from lightorm.errors import InvalidIdentifierError
from lightorm.metadata.descriptors import FieldDescriptor

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def validate_identifier(name: Any) -> str:
    """Return ``name`` unchanged if it is a safe identifier.

    Raises:
        InvalidIdentifierError: For empty, purely numeric, or non-word names
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name) or name.isdigit():
        raise InvalidIdentifierError(name)
    return name


class Dialect:
    """Base dialect; subclasses fill in the differences."""

    name: str = ""
    placeholder: str = "?"
    auto_increment: str = ""
    current_timestamp: str = "CURRENT_TIMESTAMP"

    def quote_identifier(self, name: Any) -> str:
        return f'"{validate_identifier(name)}"'

    def placeholders(self, count: int) -> str:
        return ", ".join([self.placeholder] * count)

    def render_boolean(self, value: bool) -> str:
        return "1" if value else "0"

    # ------------------------------------------------------------------
    # Value adaptation
    # ------------------------------------------------------------------

    def to_db(self, field: FieldDescriptor, value: Any) -> Any:
        """Convert a Python value to its bound parameter form."""
        return value

    def from_db(self, field: FieldDescriptor, value: Any) -> Any:
        """Convert a fetched column value back to the field's Python type."""
        if value is None:
            return None
        kind = field.semantic_type
        if kind == "boolean":
            return bool(value)
        if kind in ("integer", "bigint"):
            return int(value)
        if kind in ("float", "double"):
            return float(value)
        if kind == "decimal":
            return quantize(field, value)
        if kind == "timestamp" and isinstance(value, str):
            return datetime.fromisoformat(value)
        if kind == "char" and isinstance(value, str):
            return value.rstrip()
        return value


def quantize(field: FieldDescriptor, value: Any) -> Decimal:
    """Decimal with the field's scale applied."""
    scale = field.scale if field.scale is not None else DEFAULT_SCALE
    return Decimal(str(value)).quantize(Decimal(1).scaleb(-scale))


class SQLiteDialect(Dialect):
    """SQLite: ``?`` placeholders, ISO text timestamps, decimals as text."""

    name = "sqlite"
    placeholder = "?"
    auto_increment = "AUTOINCREMENT"

    def to_db(self, field: FieldDescriptor, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, bool):
            return int(value)
        return value


class PostgreSQLDialect(Dialect):
    """PostgreSQL: ``%s`` placeholders, native types, identity columns."""

    name = "postgresql"
    placeholder = "%s"
    auto_increment = "GENERATED BY DEFAULT AS IDENTITY"

    def render_boolean(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"


DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name.

    Raises:
        ValueError: For unsupported dialects
    """
    try:
        return DIALECTS[name]
    except KeyError:
        raise ValueError(
            f"Unsupported dialect '{name}'. Supported: {', '.join(sorted(DIALECTS))}"
        ) from None
