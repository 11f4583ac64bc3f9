"""Declarative metadata describing how a record type maps onto a table."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TimestampDefault(Enum):
    """Sentinel defaults resolved to the current time."""

    CURRENT = "CURRENT_TIMESTAMP"
    CURRENT_ON_UPDATE = "CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP"


CURRENT_TIMESTAMP = TimestampDefault.CURRENT
CURRENT_TIMESTAMP_ON_UPDATE = TimestampDefault.CURRENT_ON_UPDATE

PRIMARY_KEY_COLUMN = "id"
CREATED_AT_COLUMN = "createdAt"
UPDATED_AT_COLUMN = "updatedAt"
HASH_COLUMN = "contentHash"
HASH_LENGTH = 44  # base64 of a 32-byte digest


@dataclass(frozen=True)
class ForeignKey:
    """Reference from a column to another table's key."""

    table: str
    column: str = PRIMARY_KEY_COLUMN


@dataclass(frozen=True)
class FieldDescriptor:
    """One mapped column of a record type.

    Attributes:
        attribute: Python attribute name on the record class
        name: Column identifier in the table
        semantic_type: integer, bigint, string, boolean, timestamp, decimal,
            float or double. Unknown names are kept and rejected by the type
            mapper.
        nullable: Column accepts NULL
        managed: Value is assigned by the engine (timestamps, content hash)
    """

    attribute: str
    name: str
    semantic_type: str
    nullable: bool = False
    is_primary_key: bool = False
    auto_generated: bool = False
    max_length: int | None = None
    precision: int | None = None
    scale: int | None = None
    unsigned: bool = False
    unique: bool = False
    indexed: bool = False
    check_expression: str | None = None
    enumerated_values: tuple[str, ...] | None = None
    default_value: Any = None
    foreign_key: ForeignKey | None = None
    managed: bool = False

    @property
    def has_default(self) -> bool:
        return self.default_value is not None

    @property
    def is_writable(self) -> bool:
        """Caller-supplied columns bound on insert and update."""
        return not (self.is_primary_key or self.auto_generated or self.managed)


@dataclass(frozen=True)
class RelationshipDescriptor:
    """Base for the navigation slots filled by the relationship resolver.

    ``related`` is either a record class or a table name; it is resolved
    through the registry when the relationship is loaded, so types that
    reference each other can be declared in any order.
    """

    attribute: str
    related: Any

    @property
    def is_collection(self) -> bool:
        return True


@dataclass(frozen=True)
class OneToOne(RelationshipDescriptor):
    """Related row fetched by primary key equality with a local FK column."""

    foreign_key: str = ""  # attribute name of the local FK field

    @property
    def is_collection(self) -> bool:
        return False


@dataclass(frozen=True)
class OneToMany(RelationshipDescriptor):
    """Related rows whose remote FK column equals the owner's key."""

    remote_foreign_key: str = ""  # column name on the related table


@dataclass(frozen=True)
class ManyToMany(RelationshipDescriptor):
    """Related rows joined through an association table."""

    association_table: str = ""
    source_foreign_key: str = ""
    target_foreign_key: str = ""


@dataclass(frozen=True)
class NavigationNaming:
    """Maps foreign-key attributes to navigation slots and back.

    With the default suffix, ``supervisor_id`` pairs with ``supervisor``.
    """

    suffix: str = "_id"

    def navigation_for(self, foreign_key: str) -> str | None:
        """Navigation slot name for an FK attribute, or None if it doesn't follow the rule."""
        if not foreign_key.endswith(self.suffix) or foreign_key == self.suffix:
            return None
        return foreign_key[: -len(self.suffix)]

    def foreign_key_for(self, navigation: str) -> str:
        return f"{navigation}{self.suffix}"


@dataclass
class RecordType:
    """Resolved descriptor table for one registered record class."""

    cls: type
    table_name: str
    fields: list[FieldDescriptor]
    relationships: list[RelationshipDescriptor] = field(default_factory=list)
    factory: Callable[[], Any] | None = None

    @property
    def primary_key(self) -> FieldDescriptor:
        return next(f for f in self.fields if f.is_primary_key)

    @property
    def hash_field(self) -> FieldDescriptor:
        return self.field_by_column(HASH_COLUMN)

    @property
    def hashed_fields(self) -> list[FieldDescriptor]:
        """Fields covered by the content hash, in declaration order."""
        return [
            f for f in self.fields
            if not f.is_primary_key and f.name != HASH_COLUMN
        ]

    @property
    def writable_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.is_writable]

    def field_by_column(self, name: str) -> FieldDescriptor:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def field_by_attribute(self, attribute: str) -> FieldDescriptor | None:
        for f in self.fields:
            if f.attribute == attribute:
                return f
        return None

    def create(self) -> Any:
        """Construct a blank instance for row population."""
        if self.factory is not None:
            return self.factory()
        return self.cls()
