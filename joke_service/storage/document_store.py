"""
MongoDB backend for the joke Store, using the motor async driver.
"""
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from joke_common.errors import StoreError
from joke_common.models.dtos import JokeDTO, normalize_type
from joke_service.storage.base_store import ANY_TYPE

logger = logging.getLogger(__name__)


class MongoJokeStore:
    """
    Document Store: a ``types`` collection with a unique index on ``name`` and a
    ``jokes`` collection whose documents carry the type name directly.
    """

    backend_name = "mongo"

    def __init__(self, uri: str, database: str = "jokes", client: Optional[Any] = None):
        self.uri = uri
        self.database_name = database
        self._client = client
        self._db = None

    async def initialize(self) -> None:
        if self._client is None:
            self._client = AsyncIOMotorClient(self.uri)
        self._db = self._client[self.database_name]
        try:
            await self._db.types.create_index("name", unique=True)
            await self._db.jokes.create_index("type")
        except PyMongoError as e:
            raise StoreError(f"Failed to initialize document store: {e}") from e
        logger.info(f"Document store ready (database={self.database_name})")

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def _require_db(self):
        if self._db is None:
            raise StoreError("Document store used before initialize()")
        return self._db

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
            return True
        except (PyMongoError, AttributeError):
            return False

    async def insert_type(self, name: str) -> bool:
        db = self._require_db()
        name = normalize_type(name)
        try:
            result = await db.types.update_one({"name": name}, {"$setOnInsert": {"name": name}}, upsert=True)
        except DuplicateKeyError:
            # Another worker created it between our match and insert.
            return False
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return result.upserted_id is not None

    async def insert_joke(self, type_name: str, setup: str, punchline: str) -> None:
        db = self._require_db()
        name = normalize_type(type_name)
        try:
            if await db.types.find_one({"name": name}) is None:
                raise StoreError(f"Unknown joke type: {name}")
            await db.jokes.insert_one({
                "type": name,
                "setup": setup,
                "punchline": punchline,
                "created_at": datetime.now(timezone.utc),
            })
        except PyMongoError as e:
            raise StoreError(str(e)) from e

    async def insert_joke_with_type(self, type_name: str, setup: str, punchline: str) -> bool:
        """
        Without multi-document transactions, a type created here starts out
        ``pending``. The call that clears the flag, after its joke is stored,
        is the one that reports the type as created.
        """
        db = self._require_db()
        name = normalize_type(type_name)
        try:
            try:
                await db.types.update_one(
                    {"name": name},
                    {"$setOnInsert": {"name": name, "pending": True}},
                    upsert=True,
                )
            except DuplicateKeyError:
                pass
            await db.jokes.insert_one({
                "type": name,
                "setup": setup,
                "punchline": punchline,
                "created_at": datetime.now(timezone.utc),
            })
            claimed = await db.types.find_one_and_update(
                {"name": name, "pending": True},
                {"$unset": {"pending": ""}},
            )
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return claimed is not None

    async def list_distinct_types(self) -> List[str]:
        db = self._require_db()
        try:
            names = await db.types.distinct("name")
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return sorted(names)

    async def count_jokes(self) -> int:
        db = self._require_db()
        try:
            return await db.jokes.count_documents({})
        except PyMongoError as e:
            raise StoreError(str(e)) from e

    async def sample(self, type_name: str, count: int) -> List[JokeDTO]:
        db = self._require_db()
        name = normalize_type(type_name)
        match_stage = {} if name == ANY_TYPE else {"type": name}
        pipeline = [
            {"$match": match_stage},
            {"$sample": {"size": count}},
            {"$project": {"_id": 0, "type": 1, "setup": 1, "punchline": 1}},
        ]
        try:
            documents = await db.jokes.aggregate(pipeline).to_list(length=count)
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return [JokeDTO(**document) for document in documents]
