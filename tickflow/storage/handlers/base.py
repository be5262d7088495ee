from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import Executable, Table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tickflow.core.types import Message, MessageBatch

logger = logging.getLogger(__name__)


class DatabaseMessageHandler[M: Message](ABC):
    """Schema and insert logic for one message family.

    A :class:`~tickflow.storage.postgres.Database` sink owns exactly one
    handler.  The handler declares the tables it writes to and turns a
    batch into statements on a session the sink opened; it never commits.
    """

    @property
    @abstractmethod
    def tables(self) -> Sequence[Table]:
        """Tables created by ``Database.init_schema``."""
        ...

    @abstractmethod
    async def insert_batch(self, session: AsyncSession, batch: MessageBatch[M]) -> None:
        """Write *batch* using *session*.  Raise to fail the whole batch."""
        ...


async def execute_isolated(
    session: AsyncSession, statement: Executable, description: str
) -> bool:
    """Run *statement* inside a savepoint.

    A database error rolls back only this statement and is logged;
    returns whether the statement succeeded.
    """
    try:
        async with session.begin_nested():
            await session.execute(statement)
    except SQLAlchemyError as exc:
        logger.error("Failed to insert %s: %s", description, exc)
        return False
    return True


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into a naive UTC datetime.

    Fractions finer than a microsecond (Alpaca sends nanoseconds) are
    truncated.  Raises ``ValueError`` for malformed input or a missing
    UTC offset.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"failed to parse RFC3339 timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        raise ValueError(f"RFC3339 timestamp has no UTC offset: {value!r}")
    return parsed.astimezone(UTC).replace(tzinfo=None)


def parse_optional_timestamp(value: str | None) -> datetime | None:
    """Lenient variant for optional API fields: ``None`` when unparseable.

    Timestamps without an offset are taken as UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone(UTC).replace(tzinfo=None)
