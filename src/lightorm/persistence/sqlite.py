"""SQLite executor.

Runs the standard library ``sqlite3`` module in autocommit mode
(``isolation_level=None``) so transactions are driven explicitly with
BEGIN/COMMIT/ROLLBACK. Foreign keys are enforced per connection.
SQLite is in-process, so statements run inline and ``query_batch`` is a
plain loop: there is no network round trip to save.
"""

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from lightorm.errors import ConstraintViolationError, ExecutionError, TransactionError
from lightorm.persistence.executor import Row
from lightorm.sql.dialect import SQLiteDialect
from lightorm.sql.statements import Statement

logger = logging.getLogger(__name__)


class SQLiteExecutor:
    """Executor backed by a single sqlite3 connection."""

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.conn: sqlite3.Connection | None = None
        self.dialect = SQLiteDialect()

    async def open(self) -> None:
        """Establish database connection."""
        if self.conn is not None:
            return
        self.conn = sqlite3.connect(
            self.db_path, check_same_thread=False, isolation_level=None
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

    async def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _connection(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    # -----------------------------------------------------------------
    # Transaction management
    # -----------------------------------------------------------------

    async def begin(self) -> None:
        self._control("BEGIN")

    async def commit(self) -> None:
        self._control("COMMIT")

    async def rollback(self) -> None:
        self._control("ROLLBACK")

    def _control(self, command: str) -> None:
        conn = self._connection()
        logger.debug("SQL: %s", command)
        try:
            conn.execute(command)
        except sqlite3.Error as e:
            raise TransactionError(f"{command} failed: {e}", original=e) from e

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def _run(self, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        conn = self._connection()
        logger.debug("SQL: %s %r", sql, tuple(params))
        try:
            return conn.execute(sql, tuple(params))
        except sqlite3.IntegrityError as e:
            raise ConstraintViolationError(f"Constraint violation: {e}", original=e) from e
        except sqlite3.Error as e:
            raise ExecutionError(f"Statement failed: {e}", original=e) from e

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        cursor = self._run(sql, params)
        return cursor.rowcount

    async def execute_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        cursor = self._run(sql, params)
        try:
            row = cursor.fetchone()
        except sqlite3.IntegrityError as e:
            # RETURNING surfaces constraint failures on fetch
            raise ConstraintViolationError(f"Constraint violation: {e}", original=e) from e
        finally:
            cursor.close()
        return row[0] if row else None

    async def query(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        cursor = self._run(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    async def query_batch(self, statements: Sequence[Statement]) -> list[list[Row]]:
        return [await self.query(s.sql, s.params) for s in statements]
