from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from types import TracebackType

from sqlalchemy import Table
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tickflow.core.sink import MessageSink
from tickflow.core.types import Message, MessageBatch
from tickflow.storage.handlers.base import DatabaseMessageHandler
from tickflow.storage.models import Base

logger = logging.getLogger(__name__)


def make_engine(url: str, *, pool_size: int = 10, max_overflow: int = 20) -> AsyncEngine:
    return create_async_engine(
        url,
        echo=False,
        pool_size=pool_size,
        max_overflow=max_overflow,
    )


async def create_schema(engine: AsyncEngine, tables: Sequence[Table] | None = None) -> None:
    """Create *tables* (every tickflow table by default) if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(
            Base.metadata.create_all,
            tables=list(tables) if tables is not None else None,
        )


class Database[M: Message](MessageSink[M]):
    """PostgreSQL sink: one session per batch, schema and inserts owned by
    a :class:`DatabaseMessageHandler`.

    Usage::

        async with Database(url, AlpacaMessageHandler()) as db:
            await db.init_schema()
            handles = TickflowBuilder(source, db).start()
            await handles.join()
    """

    name = "postgres"

    def __init__(
        self,
        url: str,
        handler: DatabaseMessageHandler[M],
        *,
        pool_size: int = 10,
        max_overflow: int = 20,
    ) -> None:
        self._handler = handler
        self._engine = make_engine(url, pool_size=pool_size, max_overflow=max_overflow)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @classmethod
    def from_params(
        cls,
        handler: DatabaseMessageHandler[M],
        *,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        **kwargs: int,
    ) -> Database[M]:
        url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database}"
        return cls(url, handler, **kwargs)

    @property
    def handler(self) -> DatabaseMessageHandler[M]:
        return self._handler

    def get_engine(self) -> AsyncEngine:
        return self._engine

    def get_session(self) -> AsyncSession:
        return self._session_factory()

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession]:
        """Provide a transactional scope around a series of operations."""
        session = self.get_session()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def init_schema(self) -> None:
        """Create the handler's tables.  Safe to call repeatedly."""
        logger.info("Initializing database schema...")
        await create_schema(self._engine, self._handler.tables)
        logger.info("Database schema initialized")

    async def handle_batch(self, batch: MessageBatch[M]) -> None:
        if not batch:
            return
        async with self.session_scope() as session:
            await self._handler.insert_batch(session, batch)

    async def close(self) -> None:
        """Dispose of the connection pool and release all resources."""
        await self._engine.dispose()

    async def __aenter__(self) -> Database[M]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
