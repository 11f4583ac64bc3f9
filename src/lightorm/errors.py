"""Error taxonomy for the mapping engine.

Configuration-time failures (bad metadata, unmappable types, invalid
identifiers) are programming errors and are never retried. Execution-time
failures carry the original backing-store error so callers can react,
e.g. retry a unique-constraint violation with a different value.
"""

from typing import Any


class LightOrmError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(LightOrmError):
    """Record-type metadata is missing or malformed."""


class UnsupportedTypeError(ConfigurationError):
    """A field's semantic type has no SQL mapping."""

    def __init__(self, type_name: str, field_name: str | None = None):
        self.type_name = type_name
        self.field_name = field_name
        where = f" (field '{field_name}')" if field_name else ""
        super().__init__(f"Type '{type_name}'{where} is not supported for SQL mapping")


class InvalidIdentifierError(LightOrmError):
    """A table or column name fails the identifier grammar."""

    def __init__(self, identifier: Any):
        self.identifier = identifier
        super().__init__(
            f"Invalid SQL identifier {identifier!r}: identifiers may only contain "
            "letters, digits and underscores and must not be purely numeric"
        )


class ExecutionError(LightOrmError):
    """The backing store rejected a statement."""

    def __init__(self, message: str, original: BaseException | None = None):
        self.original = original
        super().__init__(message)


class ConstraintViolationError(ExecutionError):
    """A unique, check, not-null or foreign-key constraint was violated."""


class ConcurrentModificationError(LightOrmError):
    """An update by primary key affected no rows; the row no longer exists."""

    def __init__(self, table: str, id: int):
        self.table = table
        self.id = id
        super().__init__(
            f"Update of '{table}' id={id} affected no rows; "
            "the record was deleted or never existed"
        )


class TransactionError(LightOrmError):
    """Begin, commit or rollback failed."""

    def __init__(self, message: str, original: BaseException | None = None):
        self.original = original
        super().__init__(message)


class RecordStateError(LightOrmError):
    """The operation is not allowed in the record's current lifecycle state."""
