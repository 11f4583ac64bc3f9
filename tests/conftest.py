"""Shared fixtures: an in-memory SQLite executor with the sample schema."""

import pytest
import pytest_asyncio

from lightorm import IdentityCache, Repository, SQLiteExecutor
from sample_models import ALL_TYPES, RecordingExecutor, registry


@pytest_asyncio.fixture
async def executor():
    executor = SQLiteExecutor(":memory:")
    await executor.open()
    yield executor
    await executor.close()


@pytest_asyncio.fixture
async def recording(executor):
    """Recording wrapper over a database that already has the sample schema."""
    cache = IdentityCache()
    for cls in ALL_TYPES:
        await Repository(cls, executor, cache, registry).ensure_schema()
    return RecordingExecutor(executor)


@pytest.fixture
def cache():
    return IdentityCache()


@pytest.fixture
def repo(recording, cache):
    """Factory for repositories sharing one executor and cache."""

    def make(cls):
        return Repository(cls, recording, cache, registry)

    return make
