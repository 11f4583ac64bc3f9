"""Record base class and the declaration helpers used by record types.

Usage:
    from lightorm import Record, column, one_to_one, one_to_many, record_type

    @record_type("employees")
    class Employee(Record):
        first_name: str = column(max_length=50)
        supervisor_id: int | None = column(foreign_key=ForeignKey("employees"))
        supervisor: "Employee | None" = one_to_one()
        subordinates: "list[Employee] | None" = one_to_many("employees", "supervisor_id")

Field metadata is read once, when the class is registered; nothing is
discovered at query time.
"""

import dataclasses
import types
import typing
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from lightorm.core.types import semantic_type_for
from lightorm.errors import ConfigurationError
from lightorm.metadata.descriptors import (
    CREATED_AT_COLUMN,
    HASH_COLUMN,
    HASH_LENGTH,
    PRIMARY_KEY_COLUMN,
    UPDATED_AT_COLUMN,
    FieldDescriptor,
    ForeignKey,
    ManyToMany,
    OneToMany,
    OneToOne,
    RelationshipDescriptor,
    TimestampDefault,
)

COLUMN_KEY = "lightorm.column"
RELATIONSHIP_KEY = "lightorm.relationship"

# Annotation spellings seen when annotations are postponed (PEP 563)
_ANNOTATION_NAMES = {
    "int": "integer",
    "str": "string",
    "bool": "boolean",
    "float": "float",
    "datetime": "timestamp",
    "datetime.datetime": "timestamp",
    "Decimal": "decimal",
    "decimal.Decimal": "decimal",
}


class RecordState(Enum):
    """Lifecycle of a record instance."""

    TRANSIENT = "transient"
    PERSISTED = "persisted"
    DELETED = "deleted"


def column(
    *,
    name: str | None = None,
    type: str | None = None,
    nullable: bool = False,
    max_length: int | None = None,
    precision: int | None = None,
    scale: int | None = None,
    unsigned: bool = False,
    unique: bool = False,
    indexed: bool = False,
    check: str | None = None,
    enum: typing.Sequence[str] | None = None,
    default: Any = None,
    foreign_key: ForeignKey | None = None,
) -> Any:
    """Declare a mapped column.

    ``default`` is both the in-memory default and the DDL default; the
    timestamp sentinels leave the attribute None until the record is saved.
    """
    options = {
        "name": name,
        "type": type,
        "nullable": nullable,
        "max_length": max_length,
        "precision": precision,
        "scale": scale,
        "unsigned": unsigned,
        "unique": unique,
        "indexed": indexed,
        "check": check,
        "enum": tuple(enum) if enum is not None else None,
        "default": default,
        "foreign_key": foreign_key,
    }
    initial = None if isinstance(default, TimestampDefault) else default
    return field(default=initial, metadata={COLUMN_KEY: options})


def _managed_column(name: str, type: str, **options: Any) -> Any:
    return field(
        default=None,
        metadata={COLUMN_KEY: {"name": name, "type": type, "managed": True, **options}},
    )


def one_to_one(related: Any = None, foreign_key: str | None = None) -> Any:
    """Single related record fetched through a local foreign-key column.

    Both arguments may be omitted: the FK attribute follows the registry's
    navigation naming rule and the related type comes from the FK column's
    referenced table.
    """
    return field(
        default=None,
        compare=False,
        repr=False,
        metadata={RELATIONSHIP_KEY: ("one_to_one", related, foreign_key)},
    )


def one_to_many(related: Any, remote_foreign_key: str) -> Any:
    """Ordered collection of related records whose FK column points here."""
    return field(
        default=None,
        compare=False,
        repr=False,
        metadata={RELATIONSHIP_KEY: ("one_to_many", related, remote_foreign_key)},
    )


def many_to_many(
    related: Any,
    association_table: str,
    source_foreign_key: str,
    target_foreign_key: str,
) -> Any:
    """Ordered collection joined through an association table."""
    return field(
        default=None,
        compare=False,
        repr=False,
        metadata={
            RELATIONSHIP_KEY: (
                "many_to_many",
                related,
                (association_table, source_foreign_key, target_foreign_key),
            )
        },
    )


@dataclass(kw_only=True)
class Record:
    """Base class for mapped record types.

    Every table gets the surrogate integer key, creation and modification
    timestamps, and the content hash used by the identity cache.
    ``id == 0`` means the record has not been inserted yet.
    """

    id: int = field(
        default=0,
        metadata={
            COLUMN_KEY: {
                "name": PRIMARY_KEY_COLUMN,
                "type": "integer",
                "primary_key": True,
                "auto_generated": True,
            }
        },
    )
    created_at: datetime | None = _managed_column(CREATED_AT_COLUMN, "timestamp")
    updated_at: datetime | None = _managed_column(UPDATED_AT_COLUMN, "timestamp")
    content_hash: str | None = _managed_column(HASH_COLUMN, "char", max_length=HASH_LENGTH)
    _state: RecordState = field(
        default=RecordState.TRANSIENT, init=False, repr=False, compare=False
    )

    @property
    def state(self) -> RecordState:
        return self._state

    @property
    def is_new(self) -> bool:
        return not self.id


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def _semantic_type_from_string(annotation: str) -> tuple[str, bool]:
    text = annotation.strip().strip("'\"")
    if text.startswith("Optional[") and text.endswith("]"):
        name, _ = _semantic_type_from_string(text[len("Optional["):-1])
        return name, True
    parts = [p.strip() for p in text.split("|")]
    nullable = "None" in parts
    parts = [p for p in parts if p != "None"]
    if len(parts) != 1:
        return " | ".join(parts), nullable
    return _ANNOTATION_NAMES.get(parts[0], parts[0]), nullable


def _semantic_type(annotation: Any) -> tuple[str, bool]:
    """Return (semantic type name, optional) for a column annotation.

    Unknown annotations keep their own name so the type mapper can report
    them with UnsupportedTypeError.
    """
    if isinstance(annotation, str):
        return _semantic_type_from_string(annotation)

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        present = [a for a in args if a is not type(None)]
        nullable = len(present) < len(args)
        if len(present) == 1:
            name, _ = _semantic_type(present[0])
            return name, nullable
        return " | ".join(getattr(a, "__name__", str(a)) for a in present), nullable

    name = semantic_type_for(annotation)
    if name is None:
        name = getattr(annotation, "__name__", str(annotation))
    return name, False


def build_field_descriptors(cls: type) -> list[FieldDescriptor]:
    """Build the ordered column list: key first, declared fields, managed last."""
    descriptors: list[FieldDescriptor] = []
    for f in dataclasses.fields(cls):
        options = f.metadata.get(COLUMN_KEY)
        if options is None:
            continue

        inferred_type, optional = _semantic_type(f.type)
        semantic_type = options.get("type") or inferred_type
        primary_key = options.get("primary_key", False)
        managed = options.get("managed", False)
        enum_values = options.get("enum")

        descriptors.append(
            FieldDescriptor(
                attribute=f.name,
                name=options.get("name") or f.name,
                semantic_type=semantic_type,
                nullable=(optional or options.get("nullable", False))
                and not (primary_key or managed),
                is_primary_key=primary_key,
                auto_generated=options.get("auto_generated", False),
                max_length=options.get("max_length"),
                precision=options.get("precision"),
                scale=options.get("scale"),
                unsigned=options.get("unsigned", False),
                unique=options.get("unique", False),
                indexed=options.get("indexed", False),
                check_expression=options.get("check"),
                enumerated_values=tuple(enum_values) if enum_values is not None else None,
                default_value=options.get("default"),
                foreign_key=options.get("foreign_key"),
                managed=managed,
            )
        )

    keys = [d for d in descriptors if d.is_primary_key]
    managed_fields = [d for d in descriptors if d.managed]
    declared = [d for d in descriptors if not d.is_primary_key and not d.managed]
    return keys + declared + managed_fields


def build_relationship_descriptors(cls: type) -> list[RelationshipDescriptor]:
    """Collect relationship slots; FK names may still be blank here."""
    relationships: list[RelationshipDescriptor] = []
    for f in dataclasses.fields(cls):
        spec = f.metadata.get(RELATIONSHIP_KEY)
        if spec is None:
            continue
        kind, related, extra = spec
        if kind == "one_to_one":
            relationships.append(
                OneToOne(attribute=f.name, related=related, foreign_key=extra or "")
            )
        elif kind == "one_to_many":
            relationships.append(
                OneToMany(attribute=f.name, related=related, remote_foreign_key=extra)
            )
        else:
            association_table, source_fk, target_fk = extra
            relationships.append(
                ManyToMany(
                    attribute=f.name,
                    related=related,
                    association_table=association_table,
                    source_foreign_key=source_fk,
                    target_foreign_key=target_fk,
                )
            )
    return relationships


def record_type(
    table_name: str,
    *,
    registry: Any = None,
    factory: Callable[[], Any] | None = None,
) -> Callable[[type], type]:
    """Class decorator registering a record type under a table name.

    Applies ``@dataclass`` when the class isn't one already.
    """

    def decorator(cls: type) -> type:
        if not issubclass(cls, Record):
            raise ConfigurationError(
                f"Record type '{cls.__name__}' must subclass lightorm.Record"
            )
        if "__dataclass_fields__" not in cls.__dict__:
            cls = dataclass(cls)

        from lightorm.metadata.registry import default_registry

        target = registry if registry is not None else default_registry
        target.register(
            cls,
            table_name,
            fields=build_field_descriptors(cls),
            relationships=build_relationship_descriptors(cls),
            factory=factory,
        )
        return cls

    return decorator
