"""PostgreSQL executor.

Uses psycopg v3 (psycopg[binary]>=3.1.0) through ``psycopg.AsyncConnection``:
  - %s placeholders instead of ?
  - dict_row cursor factory for dict-based row access
  - autocommit connection with explicit BEGIN/COMMIT/ROLLBACK so the
    engine, not the driver, decides transaction boundaries
  - pipeline mode for ``query_batch`` so a batch of relationship
    queries costs one network round trip

Identifiers are double-quoted by the dialect, which preserves camelCase
column names such as ``createdAt`` that PostgreSQL would otherwise fold
to lowercase.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from lightorm.errors import ConstraintViolationError, ExecutionError, TransactionError
from lightorm.persistence.executor import Row
from lightorm.sql.dialect import PostgreSQLDialect
from lightorm.sql.statements import Statement

logger = logging.getLogger(__name__)


def _bind(params: Sequence[Any]) -> list[Any] | None:
    # None skips placeholder parsing, so a literal % in DDL survives
    return list(params) or None


class PostgreSQLExecutor:
    """Executor backed by a psycopg async connection."""

    def __init__(self, url: str):
        # psycopg.connect() wants a plain libpq DSN or postgres:// URL,
        # so strip the +psycopg driver suffix when present.
        self.url = url.replace("postgresql+psycopg://", "postgresql://")
        self.conn: Any = None
        self.dialect = PostgreSQLDialect()

    async def open(self) -> None:
        """Establish database connection."""
        if self.conn is not None:
            return
        import psycopg
        from psycopg.rows import dict_row

        self.conn = await psycopg.AsyncConnection.connect(
            self.url, row_factory=dict_row, autocommit=True
        )

    async def close(self) -> None:
        """Close database connection."""
        if self.conn:
            await self.conn.close()
            self.conn = None

    def _connection(self) -> Any:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    # -----------------------------------------------------------------
    # Transaction management
    # -----------------------------------------------------------------

    async def begin(self) -> None:
        await self._control("BEGIN")

    async def commit(self) -> None:
        await self._control("COMMIT")

    async def rollback(self) -> None:
        await self._control("ROLLBACK")

    async def _control(self, command: str) -> None:
        import psycopg

        conn = self._connection()
        logger.debug("SQL: %s", command)
        try:
            await conn.execute(command)
        except psycopg.Error as e:
            raise TransactionError(f"{command} failed: {e}", original=e) from e

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def _translate(self, error: Exception) -> ExecutionError:
        import psycopg

        if isinstance(error, psycopg.errors.IntegrityError):
            return ConstraintViolationError(f"Constraint violation: {error}", original=error)
        return ExecutionError(f"Statement failed: {error}", original=error)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        import psycopg

        conn = self._connection()
        logger.debug("SQL: %s %r", sql, tuple(params))
        try:
            cursor = await conn.execute(sql, _bind(params))
        except psycopg.Error as e:
            raise self._translate(e) from e
        return cursor.rowcount

    async def execute_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        import psycopg

        conn = self._connection()
        logger.debug("SQL: %s %r", sql, tuple(params))
        try:
            cursor = await conn.execute(sql, _bind(params))
            row = await cursor.fetchone()
        except psycopg.Error as e:
            raise self._translate(e) from e
        if row is None:
            return None
        # dict_row returns a dict
        return next(iter(row.values()))

    async def query(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        import psycopg

        conn = self._connection()
        logger.debug("SQL: %s %r", sql, tuple(params))
        try:
            cursor = await conn.execute(sql, _bind(params))
            return list(await cursor.fetchall())
        except psycopg.Error as e:
            raise self._translate(e) from e

    async def query_batch(self, statements: Sequence[Statement]) -> list[list[Row]]:
        import psycopg

        conn = self._connection()
        cursors = []
        try:
            async with conn.pipeline():
                for statement in statements:
                    logger.debug("SQL (pipeline): %s %r", statement.sql, statement.params)
                    cursor = conn.cursor()
                    await cursor.execute(statement.sql, _bind(statement.params))
                    cursors.append(cursor)
            return [list(await cursor.fetchall()) for cursor in cursors]
        except psycopg.Error as e:
            raise self._translate(e) from e
