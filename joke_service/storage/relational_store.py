"""
SQLAlchemy-based relational backend for the joke Store.

PostgreSQL (asyncpg) in production. The insert-or-ignore statement is built for
the engine's dialect so the same store also runs on SQLite (aiosqlite).
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from sqlalchemy import func, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from joke_common.errors import StoreError
from joke_common.models.dtos import JokeDTO, normalize_type
from joke_service.models import Base, JokeORM, TypeORM
from joke_service.storage.base_store import ANY_TYPE

logger = logging.getLogger(__name__)


class SQLAlchemyJokeStore:
    """Relational Store: ``types`` and ``jokes`` tables joined by a foreign key."""

    backend_name = "postgres"

    def __init__(self, database_url: str, echo: bool = False, engine: Optional[AsyncEngine] = None):
        self.database_url = database_url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = engine
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def initialize(self) -> None:
        if self._engine is None:
            self._engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
            class_=AsyncSession,
        )
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize relational store: {e}") from e
        logger.info(f"Relational store ready ({self._engine.dialect.name})")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session that commits on success and rolls back on error.

        Driver errors surface as StoreError.
        """
        if self._session_factory is None:
            raise StoreError("Relational store used before initialize()")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreError(str(e)) from e
            except Exception:
                await session.rollback()
                raise

    def _insert(self, table):
        if self._engine.dialect.name == "sqlite":
            return sqlite.insert(table)
        return postgresql.insert(table)

    async def ping(self) -> bool:
        try:
            async with self._session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except StoreError:
            return False

    async def insert_type(self, name: str) -> bool:
        stmt = self._insert(TypeORM).values(name=normalize_type(name)).on_conflict_do_nothing(index_elements=["name"])
        async with self._session() as session:
            result = await session.execute(stmt)
        return result.rowcount > 0

    async def insert_joke(self, type_name: str, setup: str, punchline: str) -> None:
        name = normalize_type(type_name)
        async with self._session() as session:
            type_id = await session.scalar(select(TypeORM.id).where(TypeORM.name == name))
            if type_id is None:
                raise StoreError(f"Unknown joke type: {name}")
            session.add(JokeORM(type_id=type_id, setup=setup, punchline=punchline))

    async def insert_joke_with_type(self, type_name: str, setup: str, punchline: str) -> bool:
        # One transaction: if the joke insert or the commit fails, the type insert rolls back too.
        name = normalize_type(type_name)
        stmt = self._insert(TypeORM).values(name=name).on_conflict_do_nothing(index_elements=["name"])
        async with self._session() as session:
            result = await session.execute(stmt)
            created = result.rowcount > 0
            type_id = await session.scalar(select(TypeORM.id).where(TypeORM.name == name))
            session.add(JokeORM(type_id=type_id, setup=setup, punchline=punchline))
        return created

    async def list_distinct_types(self) -> List[str]:
        async with self._session() as session:
            result = await session.execute(select(TypeORM.name).distinct().order_by(TypeORM.name))
            return list(result.scalars().all())

    async def count_jokes(self) -> int:
        async with self._session() as session:
            return await session.scalar(select(func.count()).select_from(JokeORM)) or 0

    async def sample(self, type_name: str, count: int) -> List[JokeDTO]:
        stmt = select(
            TypeORM.name.label("type"),
            JokeORM.setup,
            JokeORM.punchline,
        ).join(TypeORM, JokeORM.type_id == TypeORM.id)
        name = normalize_type(type_name)
        if name != ANY_TYPE:
            stmt = stmt.where(TypeORM.name == name)
        stmt = stmt.order_by(func.random()).limit(count)

        async with self._session() as session:
            result = await session.execute(stmt)
            return [JokeDTO(type=row.type, setup=row.setup, punchline=row.punchline) for row in result]
