"""Executor Protocol: the engine's only view of a database connection."""

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from lightorm.errors import TransactionError
from lightorm.sql.dialect import Dialect
from lightorm.sql.statements import Statement

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


@runtime_checkable
class Executor(Protocol):
    """Interface every executor must implement.

    Executors own connection lifecycle, transport and timeouts. They
    translate driver failures into ExecutionError/ConstraintViolationError
    and begin/commit/rollback failures into TransactionError.
    """

    dialect: Dialect

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def begin(self) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a statement and return the number of affected rows."""
        ...

    async def execute_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Run a statement and return the first column of the first row, or None."""
        ...

    async def query(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        """Run a query and return rows addressable by column name."""
        ...

    async def query_batch(self, statements: Sequence[Statement]) -> list[list[Row]]:
        """Run several queries in one round trip; results in statement order."""
        ...


@asynccontextmanager
async def transaction(executor: Executor) -> AsyncIterator[Executor]:
    """Begin, then commit on success or roll back and re-raise on failure.

    A failing rollback is logged and the original error still propagates.
    """
    await executor.begin()
    try:
        yield executor
        await executor.commit()
    except BaseException:
        try:
            await executor.rollback()
        except TransactionError as rollback_error:
            logger.warning("Rollback failed after error: %s", rollback_error)
        raise
