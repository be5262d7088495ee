"""Sinks that keep batches in process, for tests and dry runs."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from tickflow.core.sink import MessageSink
from tickflow.core.types import Message, MessageBatch

logger = logging.getLogger(__name__)


class InMemorySink[M: Message](MessageSink[M]):
    """Records every batch it is handed, in arrival order."""

    name = "memory"

    def __init__(self) -> None:
        self._batches: list[MessageBatch[M]] = []
        self._lock = asyncio.Lock()

    async def handle_batch(self, batch: MessageBatch[M]) -> None:
        async with self._lock:
            self._batches.append(list(batch))

    @property
    def batches(self) -> list[MessageBatch[M]]:
        return [list(batch) for batch in self._batches]

    @property
    def messages(self) -> list[M]:
        return [message for batch in self._batches for message in batch]

    def clear(self) -> None:
        self._batches.clear()


class LoggingSink[M: Message](MessageSink[M]):
    """Logs a one-line summary per batch and stores nothing."""

    name = "logging"

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level
        self.batch_count = 0
        self.message_count = 0

    async def handle_batch(self, batch: MessageBatch[M]) -> None:
        self.batch_count += 1
        self.message_count += len(batch)
        kinds = Counter(type(message).__name__ for message in batch)
        summary = ", ".join(f"{count} {kind}" for kind, count in sorted(kinds.items()))
        logger.log(self._level, "Batch %d: %s", self.batch_count, summary or "empty")
