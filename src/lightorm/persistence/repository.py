"""Per-record-type persistence façade.

Orchestrates the registry, the statement synthesizers, the executor, the
identity cache and the relationship resolver:

    repo = Repository(Employee, executor, cache)
    await repo.ensure_schema()
    employee_id = await repo.save(Employee(first_name="Ada"))
    employee = await repo.find_by_id(employee_id, include_related=True)

Mutations (``ensure_schema``, ``save``, ``delete``) run inside
``transaction(executor)``; a failure rolls back and the original error
propagates. Reads consult the cache, but a cached record is only returned
after its hash has been compared with the hash stored in the table.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from lightorm.errors import ConcurrentModificationError, ConfigurationError, RecordStateError
from lightorm.metadata.descriptors import HASH_COLUMN, RecordType, TimestampDefault
from lightorm.metadata.record import RecordState
from lightorm.metadata.registry import MetadataRegistry, default_registry
from lightorm.persistence.cache import IdentityCache
from lightorm.persistence.executor import Executor, transaction
from lightorm.persistence.hashing import content_hash
from lightorm.persistence.resolver import RelationshipResolver, chunked, populate
from lightorm.sql.dialect import Dialect, quantize
from lightorm.sql.schema import schema_statements
from lightorm.sql.statements import (
    delete_statement,
    insert_statement,
    select_all_hashes_statement,
    select_by_id_statement,
    select_by_ids_statement,
    select_hash_statement,
    update_statement,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ONE_MICROSECOND = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (TIMESTAMP columns carry no zone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Repository(Generic[T]):
    """Public operations for one record type."""

    def __init__(
        self,
        record_cls: type[T],
        executor: Executor,
        cache: IdentityCache,
        registry: MetadataRegistry | None = None,
    ):
        self.registry = registry if registry is not None else default_registry
        self.record_type: RecordType = self.registry.record_type(record_cls)
        self.executor = executor
        self.cache = cache
        self.resolver = RelationshipResolver(executor, self.registry)

    @property
    def table(self) -> str:
        return self.record_type.table_name

    @property
    def dialect(self) -> Dialect:
        return self.executor.dialect

    # -----------------------------------------------------------------
    # Schema
    # -----------------------------------------------------------------

    async def ensure_schema(self) -> None:
        """Create the table and its indexes if they don't exist."""
        statements = schema_statements(self.record_type, self.dialect, self.registry)
        async with transaction(self.executor):
            for sql in statements:
                await self.executor.execute(sql)
        logger.info("Ensured schema for table %s", self.table)

    # -----------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------

    async def save(self, record: T) -> int:
        """Insert a new record or update a persisted one.

        Bound defaults, normalized decimals and the managed columns are
        written onto the instance; if the write fails, every column
        attribute is put back as the caller left it.

        Returns:
            The record's identifier

        Raises:
            RecordStateError: If the record was deleted
            ConcurrentModificationError: If the row to update no longer exists
            ConstraintViolationError: If the store rejects the values
        """
        self._check_instance(record)
        if record._state is RecordState.DELETED:
            raise RecordStateError(
                f"Cannot save deleted record {self.table} id={record.id}"
            )

        snapshot = self._column_values(record)
        try:
            if record.is_new:
                await self._insert(record)
            else:
                await self._update(record)
        except BaseException:
            self._restore_column_values(record, snapshot)
            raise

        record._state = RecordState.PERSISTED
        if record.created_at is None:
            # Row carries a createdAt this instance never saw
            self.cache.invalidate(self.table, record.id)
        else:
            self.cache.put(self.table, record.id, record.content_hash, record)
        return record.id

    async def _insert(self, record: Any) -> None:
        now = self._next_timestamp(record)
        self._apply_defaults(record, now)
        self._normalize(record)
        record.created_at = now
        record.updated_at = now
        record.content_hash = content_hash(self.record_type, record)

        statement = insert_statement(self.record_type, record, self.dialect)
        async with transaction(self.executor):
            new_id = await self.executor.execute_scalar(statement.sql, statement.params)
        record.id = int(new_id)
        logger.debug("Inserted %s id=%s", self.table, record.id)

    async def _update(self, record: Any) -> None:
        record.updated_at = self._next_timestamp(record)
        self._refresh_on_update(record, record.updated_at)
        self._normalize(record)
        record.content_hash = content_hash(self.record_type, record)

        statement = update_statement(self.record_type, record, self.dialect)
        async with transaction(self.executor):
            affected = await self.executor.execute(statement.sql, statement.params)
            if affected == 0:
                self.cache.invalidate(self.table, record.id)
                raise ConcurrentModificationError(self.table, record.id)
        logger.debug("Updated %s id=%s", self.table, record.id)

    async def delete(self, record: T) -> bool:
        """Delete a persisted record.

        Returns:
            True if a row was removed, False if it was already gone

        Raises:
            RecordStateError: If the record was never inserted or is already deleted
        """
        self._check_instance(record)
        if record.is_new:
            raise RecordStateError(f"Cannot delete unsaved {self.record_type.cls.__name__}")
        if record._state is RecordState.DELETED:
            raise RecordStateError(
                f"Record {self.table} id={record.id} is already deleted"
            )

        statement = delete_statement(self.record_type, record.id, self.dialect)
        async with transaction(self.executor):
            affected = await self.executor.execute(statement.sql, statement.params)
        self.cache.invalidate(self.table, record.id)
        record._state = RecordState.DELETED
        logger.debug("Deleted %s id=%s (%d rows)", self.table, record.id, affected)
        return affected > 0

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    async def find_by_id(self, id: int, include_related: bool = False) -> T | None:
        """Load one record, trusting the cache only if its hash is current."""
        record = await self._load_one(id)
        if record is not None and include_related:
            await self.resolver.resolve(record)
        return record

    async def _load_one(self, id: int) -> Any | None:
        entry = self.cache.get_entry(self.table, id)
        if entry is not None:
            statement = select_hash_statement(self.record_type, id, self.dialect)
            current = await self.executor.execute_scalar(statement.sql, statement.params)
            if current is not None and current == entry.content_hash:
                logger.debug("Cache hit for %s id=%s", self.table, id)
                return entry.record
            logger.debug("Stale cache entry for %s id=%s", self.table, id)

        statement = select_by_id_statement(self.record_type, id, self.dialect)
        rows = await self.executor.query(statement.sql, statement.params)
        if not rows:
            self.cache.invalidate(self.table, id)
            return None
        return self._materialize(rows[0])

    async def find_all(self, include_related: bool = False) -> list[T]:
        """Load every record in key order.

        Reads the (id, hash) pairs first and only reloads rows whose cached
        copy is missing or stale.
        """
        statement = select_all_hashes_statement(self.record_type, self.dialect)
        pairs = await self.executor.query(statement.sql, statement.params)
        pk = self.record_type.primary_key.name

        found: dict[int, Any] = {}
        stale: list[int] = []
        for row in pairs:
            id, stored = row[pk], row[HASH_COLUMN]
            entry = self.cache.get_entry(self.table, id)
            if entry is not None and stored is not None and entry.content_hash == stored:
                found[id] = entry.record
            else:
                stale.append(id)
        logger.debug(
            "find_all %s: %d cached, %d to load", self.table, len(found), len(stale)
        )

        for chunk in chunked(stale):
            statement = select_by_ids_statement(self.record_type, chunk, self.dialect)
            for row in await self.executor.query(statement.sql, statement.params):
                record = self._materialize(row)
                found[record.id] = record

        # Rows deleted between the two reads drop out here
        records = [found[row[pk]] for row in pairs if row[pk] in found]
        if include_related and records:
            await self.resolver.resolve(records)
        return records

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _materialize(self, row: Any) -> Any:
        record = populate(self.record_type, row, self.dialect)
        stored = row[HASH_COLUMN]
        if stored is not None:
            self.cache.put(self.table, record.id, stored, record)
        return record

    def _check_instance(self, record: Any) -> None:
        if not isinstance(record, self.record_type.cls):
            raise ConfigurationError(
                f"Repository for '{self.table}' cannot handle "
                f"{type(record).__name__} instances"
            )

    def _next_timestamp(self, record: Any) -> datetime:
        """Current time, strictly after the record's previous updatedAt."""
        now = utc_now()
        previous = record.updated_at
        if previous is not None and now <= previous:
            now = previous + ONE_MICROSECOND
        return now

    def _apply_defaults(self, record: Any, now: datetime) -> None:
        """Bind declared defaults for columns the caller left empty."""
        for f in self.record_type.writable_fields:
            if not f.has_default or getattr(record, f.attribute) is not None:
                continue
            value = now if isinstance(f.default_value, TimestampDefault) else f.default_value
            setattr(record, f.attribute, value)

    def _refresh_on_update(self, record: Any, now: datetime) -> None:
        """Columns defaulting to CURRENT_TIMESTAMP_ON_UPDATE follow every write."""
        for f in self.record_type.writable_fields:
            if f.default_value is TimestampDefault.CURRENT_ON_UPDATE:
                setattr(record, f.attribute, now)

    def _normalize(self, record: Any) -> None:
        """Bring values to the form a reload would produce."""
        for f in self.record_type.writable_fields:
            value = getattr(record, f.attribute)
            if value is not None and f.semantic_type == "decimal":
                setattr(record, f.attribute, quantize(f, value))

    def _column_values(self, record: Any) -> dict[str, Any]:
        return {f.attribute: getattr(record, f.attribute) for f in self.record_type.fields}

    @staticmethod
    def _restore_column_values(record: Any, snapshot: dict[str, Any]) -> None:
        for attribute, value in snapshot.items():
            setattr(record, attribute, value)
