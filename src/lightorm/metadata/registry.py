"""Metadata registry for record types.

Record types are registered once, at import time, through the
``@record_type`` decorator (or explicitly via ``register``). The registry
memoizes the descriptor table per type for the process lifetime and
provides the reverse lookup from table name to type used to resolve
foreign-key targets.
"""

import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from lightorm.errors import ConfigurationError
from lightorm.metadata.descriptors import (
    FieldDescriptor,
    ManyToMany,
    NavigationNaming,
    OneToMany,
    OneToOne,
    RecordType,
    RelationshipDescriptor,
)

logger = logging.getLogger(__name__)


class MetadataRegistry:
    """Registry of record types keyed by class and by table name.

    Example:
        registry = MetadataRegistry(naming=NavigationNaming(suffix="_id"))
        registry.register(Employee, "employees", fields, relationships)
        registry.describe(Employee)
        registry.type_for_table_name("employees")  # -> Employee
    """

    def __init__(self, naming: NavigationNaming | None = None):
        self.naming = naming or NavigationNaming()
        self._types: dict[type, RecordType] = {}
        self._tables: dict[str, type] = {}

    def register(
        self,
        cls: type,
        table_name: str,
        fields: list[FieldDescriptor],
        relationships: list[RelationshipDescriptor] | None = None,
        factory: Callable[[], Any] | None = None,
    ) -> RecordType:
        """Register a record type.

        Idempotent - re-registering the same class returns the existing entry.

        Raises:
            ConfigurationError: If the metadata is inconsistent (no or several
                primary keys, duplicate columns, a table name claimed by another
                class, a relationship whose foreign key can't be paired).
        """
        if cls in self._types:
            return self._types[cls]

        existing = self._tables.get(table_name)
        if existing is not None and existing.__qualname__ != cls.__qualname__:
            raise ConfigurationError(
                f"Table '{table_name}' is already mapped by '{existing.__name__}'"
            )

        self._check_fields(cls, fields)
        resolved = [
            self._complete_relationship(cls, fields, r) for r in relationships or []
        ]

        entry = RecordType(
            cls=cls,
            table_name=table_name,
            fields=list(fields),
            relationships=resolved,
            factory=factory,
        )
        self._types[cls] = entry
        self._tables[table_name] = cls
        logger.debug("Registered record type %s -> %s", cls.__name__, table_name)
        return entry

    def _check_fields(self, cls: type, fields: list[FieldDescriptor]) -> None:
        keys = [f for f in fields if f.is_primary_key]
        if len(keys) != 1:
            raise ConfigurationError(
                f"Record type '{cls.__name__}' must declare exactly one primary key, "
                f"found {len(keys)}"
            )
        if keys[0].semantic_type != "integer":
            raise ConfigurationError(
                f"Primary key of '{cls.__name__}' must be the surrogate integer id"
            )

        seen: set[str] = set()
        for f in fields:
            if f.name in seen:
                raise ConfigurationError(
                    f"Column '{f.name}' is declared twice on '{cls.__name__}'"
                )
            seen.add(f.name)
            if f.enumerated_values is not None and len(f.enumerated_values) == 0:
                raise ConfigurationError(
                    f"Column '{f.name}' on '{cls.__name__}' declares an empty enum"
                )

    def _complete_relationship(
        self,
        cls: type,
        fields: list[FieldDescriptor],
        relationship: RelationshipDescriptor,
    ) -> RelationshipDescriptor:
        """Fill in and check the FK of a one-to-one using the naming rule."""
        if isinstance(relationship, OneToMany):
            if not relationship.remote_foreign_key:
                raise ConfigurationError(
                    f"One-to-many '{cls.__name__}.{relationship.attribute}' "
                    "needs a remote foreign-key column"
                )
            return relationship

        if isinstance(relationship, ManyToMany):
            if not (
                relationship.association_table
                and relationship.source_foreign_key
                and relationship.target_foreign_key
            ):
                raise ConfigurationError(
                    f"Many-to-many '{cls.__name__}.{relationship.attribute}' needs an "
                    "association table and both foreign-key columns"
                )
            return relationship

        if not isinstance(relationship, OneToOne):
            raise ConfigurationError(
                f"Relationship '{cls.__name__}.{relationship.attribute}' has unsupported "
                f"kind {type(relationship).__name__}"
            )
        attribute = relationship.attribute
        foreign_key = relationship.foreign_key
        if not foreign_key:
            foreign_key = self.naming.foreign_key_for(attribute)
        elif self.naming.navigation_for(foreign_key) != attribute:
            raise ConfigurationError(
                f"Navigation '{cls.__name__}.{attribute}' does not match foreign key "
                f"'{foreign_key}': expected navigation "
                f"'{self.naming.navigation_for(foreign_key)}' "
                f"(naming suffix '{self.naming.suffix}')"
            )

        fk_field = next((f for f in fields if f.attribute == foreign_key), None)
        if fk_field is None:
            raise ConfigurationError(
                f"Navigation '{cls.__name__}.{attribute}' refers to foreign key "
                f"'{foreign_key}', which is not a column of '{cls.__name__}'"
            )
        if relationship.related is None and fk_field.foreign_key is None:
            raise ConfigurationError(
                f"Navigation '{cls.__name__}.{attribute}' names no related type and "
                f"'{foreign_key}' declares no referenced table"
            )
        related = relationship.related
        if related is None:
            related = fk_field.foreign_key.table
        return dataclasses.replace(relationship, related=related, foreign_key=foreign_key)

    def record_type(self, cls: type) -> RecordType:
        """Get the descriptor table for a registered class.

        Raises:
            ConfigurationError: If the class is not registered
        """
        try:
            return self._types[cls]
        except KeyError:
            raise ConfigurationError(
                f"Record type '{getattr(cls, '__name__', cls)}' is not registered. "
                "Decorate it with @record_type."
            ) from None

    def describe(self, cls: type) -> list[FieldDescriptor]:
        """Ordered field descriptors for a registered class."""
        return self.record_type(cls).fields

    def relationships_of(self, cls: type) -> list[RelationshipDescriptor]:
        return self.record_type(cls).relationships

    def table_name(self, cls: type) -> str:
        return self.record_type(cls).table_name

    def type_for_table_name(self, table_name: str) -> type:
        """Reverse lookup from table name to record class.

        Raises:
            ConfigurationError: If no registered type maps that table
        """
        try:
            return self._tables[table_name]
        except KeyError:
            raise ConfigurationError(
                f"No record type is registered for table '{table_name}'"
            ) from None

    def resolve_related(self, relationship: RelationshipDescriptor) -> RecordType:
        """Descriptor table of a relationship's target (class or table name)."""
        related = relationship.related
        if isinstance(related, str):
            related = self.type_for_table_name(related)
        return self.record_type(related)

    def factory_for(self, cls: type) -> Callable[[], Any]:
        return self.record_type(cls).create

    def is_registered(self, cls: type) -> bool:
        return cls in self._types

    def list_tables(self) -> list[str]:
        """List registered table names in registration order."""
        return list(self._tables.keys())

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._types.clear()
        self._tables.clear()


default_registry = MetadataRegistry()
