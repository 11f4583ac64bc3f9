"""Semantic field type registry with per-dialect storage types."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class StorageTypes:
    sqlite: str
    postgresql: str
    # Used instead of the plain type when the column is declared unsigned
    sqlite_unsigned: str | None = None
    postgresql_unsigned: str | None = None

    def for_dialect(self, dialect: str, unsigned: bool = False) -> str:
        if unsigned:
            override = getattr(self, f"{dialect}_unsigned", None)
            if override:
                return override
        return getattr(self, dialect)


@dataclass
class FieldType:
    name: str
    storage: StorageTypes
    python_types: tuple[type, ...] = field(default_factory=tuple)
    numeric: bool = False
    # Storage template takes {length}, {precision}, {scale}
    parameterized: bool = False


# Built-in semantic types
FIELD_TYPES: dict[str, FieldType] = {
    "integer": FieldType(
        name="integer",
        storage=StorageTypes(
            sqlite="INTEGER",
            postgresql="INTEGER",
            postgresql_unsigned="BIGINT",  # room for the full unsigned range
        ),
        python_types=(int,),
        numeric=True,
    ),
    "bigint": FieldType(
        name="bigint",
        storage=StorageTypes(sqlite="BIGINT", postgresql="BIGINT"),
        numeric=True,
    ),
    "string": FieldType(
        name="string",
        storage=StorageTypes(sqlite="VARCHAR({length})", postgresql="VARCHAR({length})"),
        python_types=(str,),
        parameterized=True,
    ),
    "boolean": FieldType(
        name="boolean",
        storage=StorageTypes(sqlite="BOOLEAN", postgresql="BOOLEAN"),  # 0/1 in SQLite
        python_types=(bool,),
    ),
    "timestamp": FieldType(
        name="timestamp",
        storage=StorageTypes(sqlite="TIMESTAMP", postgresql="TIMESTAMP"),  # ISO text in SQLite
        python_types=(datetime,),
    ),
    "decimal": FieldType(
        name="decimal",
        storage=StorageTypes(
            # TEXT affinity; NUMERIC would coerce to an 8-byte REAL
            sqlite="TEXT",
            postgresql="NUMERIC({precision},{scale})",
        ),
        python_types=(Decimal,),
        numeric=True,
        parameterized=True,
    ),
    "char": FieldType(
        name="char",
        storage=StorageTypes(sqlite="CHAR({length})", postgresql="CHAR({length})"),
        parameterized=True,
    ),
    "float": FieldType(
        name="float",
        # Python floats are doubles; REAL is 8 bytes in SQLite, 4 in PostgreSQL
        storage=StorageTypes(sqlite="REAL", postgresql="DOUBLE PRECISION"),
        python_types=(float,),
        numeric=True,
    ),
    "double": FieldType(
        name="double",
        storage=StorageTypes(sqlite="DOUBLE PRECISION", postgresql="DOUBLE PRECISION"),
        numeric=True,
    ),
}

DEFAULT_STRING_LENGTH = 255
DEFAULT_PRECISION = 18
DEFAULT_SCALE = 2


def get_field_type(type_name: str) -> FieldType | None:
    """Get field type definition, or None if the type is unknown."""
    return FIELD_TYPES.get(type_name)


def semantic_type_for(python_type: type) -> str | None:
    """Map a Python annotation type to its semantic type name."""
    # bool is a subclass of int; exact matches only
    for field_type in FIELD_TYPES.values():
        if python_type in field_type.python_types:
            return field_type.name
    return None
