"""LightORM: metadata-driven mapping of dataclass records onto SQL tables.

Usage:
    from lightorm import (
        ForeignKey, IdentityCache, Record, Repository, SQLiteExecutor,
        column, one_to_many, one_to_one, record_type,
    )

    @record_type("employees")
    class Employee(Record):
        first_name: str = column(max_length=50)
        supervisor_id: int | None = column(foreign_key=ForeignKey("employees"))
        supervisor: "Employee | None" = one_to_one()
        subordinates: "list[Employee] | None" = one_to_many("employees", "supervisor_id")

    executor = SQLiteExecutor("app.db")
    await executor.open()
    employees = Repository(Employee, executor, IdentityCache())
    await employees.ensure_schema()
    await employees.save(Employee(first_name="Ada"))
"""

from lightorm.errors import (
    ConcurrentModificationError,
    ConfigurationError,
    ConstraintViolationError,
    ExecutionError,
    InvalidIdentifierError,
    LightOrmError,
    RecordStateError,
    TransactionError,
    UnsupportedTypeError,
)
from lightorm.metadata.descriptors import (
    CURRENT_TIMESTAMP,
    CURRENT_TIMESTAMP_ON_UPDATE,
    FieldDescriptor,
    ForeignKey,
    ManyToMany,
    NavigationNaming,
    OneToMany,
    OneToOne,
    RecordType,
)
from lightorm.metadata.record import (
    Record,
    RecordState,
    column,
    many_to_many,
    one_to_many,
    one_to_one,
    record_type,
)
from lightorm.metadata.registry import MetadataRegistry, default_registry
from lightorm.persistence.cache import IdentityCache
from lightorm.persistence.config import DatabaseConfig, create_executor
from lightorm.persistence.executor import Executor, transaction
from lightorm.persistence.postgresql import PostgreSQLExecutor
from lightorm.persistence.repository import Repository
from lightorm.persistence.sqlite import SQLiteExecutor

__version__ = "0.1.0"

__all__ = [
    "CURRENT_TIMESTAMP",
    "CURRENT_TIMESTAMP_ON_UPDATE",
    "ConcurrentModificationError",
    "ConfigurationError",
    "ConstraintViolationError",
    "DatabaseConfig",
    "ExecutionError",
    "Executor",
    "FieldDescriptor",
    "ForeignKey",
    "IdentityCache",
    "InvalidIdentifierError",
    "LightOrmError",
    "ManyToMany",
    "MetadataRegistry",
    "NavigationNaming",
    "OneToMany",
    "OneToOne",
    "PostgreSQLExecutor",
    "Record",
    "RecordState",
    "RecordStateError",
    "RecordType",
    "Repository",
    "SQLiteExecutor",
    "TransactionError",
    "UnsupportedTypeError",
    "column",
    "create_executor",
    "default_registry",
    "many_to_many",
    "one_to_many",
    "one_to_one",
    "record_type",
    "transaction",
]
