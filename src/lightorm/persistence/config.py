"""Database configuration and executor factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lightorm.persistence.executor import Executor


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports sqlite:/// and postgresql:// URL schemes.
    """

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. DATABASE_URL env var
        2. LIGHTORM_DB_PATH env var (converted to sqlite:/// URL)
        3. sqlite:///{base_path}/data/lightorm.db when a base path is given
        4. sqlite:///lightorm.db
        """
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url)

        db_path = os.environ.get("LIGHTORM_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}")

        if base_path:
            return cls(url=f"sqlite:///{base_path / 'data' / 'lightorm.db'}")

        return cls(url="sqlite:///lightorm.db")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlite_path(self) -> str:
        """Filesystem path of a sqlite:/// URL, ``:memory:`` when empty."""
        path = self.url.replace("sqlite:///", "", 1)
        return path or ":memory:"


def create_executor(config: DatabaseConfig) -> Executor:
    """Create an executor based on the database URL scheme.

    Args:
        config: Database configuration with URL.

    Returns:
        An Executor instance (not yet opened).

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_sqlite:
        from lightorm.persistence.sqlite import SQLiteExecutor

        return SQLiteExecutor(config.sqlite_path)

    if config.is_postgresql:
        from lightorm.persistence.postgresql import PostgreSQLExecutor

        return PostgreSQLExecutor(config.url)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
