"""Persistence layer - executors, identity cache and repositories."""

from lightorm.persistence.config import DatabaseConfig, create_executor
from lightorm.persistence.executor import Executor, transaction

__all__ = ["DatabaseConfig", "Executor", "create_executor", "transaction"]
