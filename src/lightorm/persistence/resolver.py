"""Relationship resolution.

Given records that were already loaded, fills their navigation slots with
one batch of queries:

- every relationship contributes statements covering *all* supplied
  records at once (``IN`` lists), never one query per record;
- one-to-one relationships that target the same table share a statement;
- the whole batch is sent through ``Executor.query_batch``, a single round
  trip on PostgreSQL (pipeline mode).

Resolution is one level deep: related records come back with their own
relationship slots empty, which also keeps self-references finite.
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from lightorm.errors import ConfigurationError
from lightorm.metadata.descriptors import (
    ManyToMany,
    OneToMany,
    OneToOne,
    RecordType,
)
from lightorm.metadata.record import RecordState
from lightorm.metadata.registry import MetadataRegistry
from lightorm.persistence.executor import Executor, Row
from lightorm.sql.dialect import Dialect
from lightorm.sql.statements import (
    OWNER_KEY_ALIAS,
    Statement,
    select_by_column_statement,
    select_through_association_statement,
)

logger = logging.getLogger(__name__)

# Upper bound on bound parameters per IN list
IN_LIST_CHUNK_SIZE = 500


def populate(record_type: RecordType, row: Row, dialect: Dialect) -> Any:
    """Materialize one row as a persisted record instance.

    Used for primary loads and related loads alike.
    """
    record = record_type.create()
    for f in record_type.fields:
        setattr(record, f.attribute, dialect.from_db(f, row[f.name]))
    record._state = RecordState.PERSISTED
    return record


def chunked(values: Sequence[Any], size: int = IN_LIST_CHUNK_SIZE) -> Iterable[Sequence[Any]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]


class _Fetch:
    """Statements for one batch entry plus the callback that consumes their rows."""

    def __init__(self, statements: list[Statement], assign: Callable[[list[Row]], None]):
        self.statements = statements
        self.assign = assign


class RelationshipResolver:
    """Loads the relationships of already-materialized records."""

    def __init__(self, executor: Executor, registry: MetadataRegistry):
        self.executor = executor
        self.registry = registry

    @property
    def dialect(self) -> Dialect:
        return self.executor.dialect

    async def resolve(self, records: Any) -> Any:
        """Fill the relationship slots of one record or a list of records.

        Returns its argument, with slots assigned in place.
        """
        items = records if isinstance(records, list) else [records]
        items = [r for r in items if r is not None]
        if not items:
            return records

        by_type: dict[type, list[Any]] = defaultdict(list)
        for record in items:
            by_type[type(record)].append(record)

        fetches: list[_Fetch] = []
        for cls, group in by_type.items():
            record_type = self.registry.record_type(cls)
            fetches.extend(self._plan(record_type, group))

        statements = [s for fetch in fetches for s in fetch.statements]
        if statements:
            logger.debug("Resolving relationships with %d batched queries", len(statements))
            results = await self.executor.query_batch(statements)
        else:
            results = []

        position = 0
        for fetch in fetches:
            rows: list[Row] = []
            for _ in fetch.statements:
                rows.extend(results[position])
                position += 1
            fetch.assign(rows)
        return records

    # -----------------------------------------------------------------
    # Planning
    # -----------------------------------------------------------------

    def _plan(self, record_type: RecordType, group: list[Any]) -> list[_Fetch]:
        fetches: list[_Fetch] = []

        one_to_one: dict[str, list[OneToOne]] = defaultdict(list)
        for relationship in record_type.relationships:
            if isinstance(relationship, OneToOne):
                related = self.registry.resolve_related(relationship)
                one_to_one[related.table_name].append(relationship)
            elif isinstance(relationship, OneToMany):
                fetches.append(self._plan_one_to_many(relationship, group))
            elif isinstance(relationship, ManyToMany):
                fetches.append(self._plan_many_to_many(relationship, group))

        for relationships in one_to_one.values():
            fetches.append(self._plan_one_to_one(relationships, group))
        return fetches

    def _owner_ids(self, group: list[Any]) -> list[int]:
        return sorted({r.id for r in group if r.id})

    def _plan_one_to_one(self, relationships: list[OneToOne], group: list[Any]) -> _Fetch:
        related = self.registry.resolve_related(relationships[0])
        keys = sorted({
            value
            for rel in relationships
            for record in group
            if (value := getattr(record, rel.foreign_key)) is not None
        })
        statements = [
            select_by_column_statement(related, related.primary_key.name, chunk, self.dialect)
            for chunk in chunked(keys)
        ]

        def assign(rows: list[Row]) -> None:
            by_key = {}
            for row in rows:
                loaded = populate(related, row, self.dialect)
                by_key[loaded.id] = loaded
            for rel in relationships:
                for record in group:
                    setattr(record, rel.attribute, by_key.get(getattr(record, rel.foreign_key)))

        return _Fetch(statements, assign)

    def _plan_one_to_many(self, relationship: OneToMany, group: list[Any]) -> _Fetch:
        related = self.registry.resolve_related(relationship)
        remote = relationship.remote_foreign_key
        try:
            related.field_by_column(remote)
        except KeyError:
            raise ConfigurationError(
                f"One-to-many '{relationship.attribute}' names remote foreign key "
                f"'{remote}', which is not a column of '{related.table_name}'"
            ) from None
        statements = [
            select_by_column_statement(related, remote, chunk, self.dialect)
            for chunk in chunked(self._owner_ids(group))
        ]

        def assign(rows: list[Row]) -> None:
            children: dict[int, list[Any]] = defaultdict(list)
            for row in rows:
                children[row[remote]].append(populate(related, row, self.dialect))
            for record in group:
                items = children.get(record.id, [])
                items.sort(key=lambda r: r.id)
                setattr(record, relationship.attribute, items)

        return _Fetch(statements, assign)

    def _plan_many_to_many(self, relationship: ManyToMany, group: list[Any]) -> _Fetch:
        related = self.registry.resolve_related(relationship)
        statements = [
            select_through_association_statement(
                related,
                relationship.association_table,
                relationship.source_foreign_key,
                relationship.target_foreign_key,
                chunk,
                self.dialect,
            )
            for chunk in chunked(self._owner_ids(group))
        ]

        def assign(rows: list[Row]) -> None:
            linked: dict[int, list[Any]] = defaultdict(list)
            for row in rows:
                linked[row[OWNER_KEY_ALIAS]].append(populate(related, row, self.dialect))
            for record in group:
                setattr(record, relationship.attribute, linked.get(record.id, []))

        return _Fetch(statements, assign)
