from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest

from tickflow.storage import Database, DatabaseMessageHandler, create_schema
from tickflow.storage.models import Base


def pytest_collection_modifyitems(items: list, config) -> None:  # noqa: ANN001
    """Auto-mark every test in the integration directory."""
    marker = pytest.mark.integration
    here = Path(__file__).parent
    for item in items:
        if here in item.path.parents:
            item.add_marker(marker)


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("POSTGRES_HOST", "localhost")
        self.port = int(os.getenv("POSTGRES_PORT", "5432"))
        self.database = os.getenv("POSTGRES_DB", "tickflow_test")
        self.user = os.getenv("POSTGRES_USER", "postgres")
        self.password = os.getenv("POSTGRES_PASSWORD", "postgres")


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings()


async def _truncate(db: Database) -> None:
    async with db.session_scope() as session:
        for table in reversed(Base.metadata.sorted_tables):
            await session.execute(table.delete())


@pytest.fixture()
async def make_db(
    settings: Settings,
) -> AsyncGenerator[Callable[[DatabaseMessageHandler], Awaitable[Database]]]:
    """Factory for a Database sink with a clean schema, disposed after the test."""
    opened: list[Database] = []

    async def open_db(handler: DatabaseMessageHandler) -> Database:
        db = Database.from_params(
            handler,
            host=settings.host,
            port=settings.port,
            database=settings.database,
            user=settings.user,
            password=settings.password,
        )
        await create_schema(db.get_engine())
        await _truncate(db)
        opened.append(db)
        return db

    yield open_db

    for db in opened:
        await _truncate(db)
        await db.close()
