"""Store fixtures: SQLite (aiosqlite) for the relational backend, mongomock for the document backend."""

import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from joke_service.storage.document_store import MongoJokeStore
from joke_service.storage.relational_store import SQLAlchemyJokeStore


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'jokes.db'}"


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    store = SQLAlchemyJokeStore(sqlite_url(tmp_path))
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["relational", "document"])
async def store(request, tmp_path):
    """Runs a test once per backend."""
    if request.param == "relational":
        store = SQLAlchemyJokeStore(sqlite_url(tmp_path))
    else:
        store = MongoJokeStore("mongodb://localhost:27017", database="jokes_test", client=AsyncMongoMockClient())
    await store.initialize()
    yield store
    if request.param == "relational":
        await store.close()
