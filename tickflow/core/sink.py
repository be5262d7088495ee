from __future__ import annotations

from abc import ABC, abstractmethod

from tickflow.core.types import Message, MessageBatch


class MessageSink[M: Message](ABC):
    """Base class for every destination a pipeline writes to.

    :meth:`handle_batch` may be called many times, sequentially, for the
    whole lifetime of the sink, and the sink may also be referenced
    elsewhere (e.g. to create a schema before the pipeline starts).
    Implementations must therefore keep any mutable resource (a
    connection, a file handle) internally synchronized and must not
    assume exclusive ownership across calls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Diagnostic name used in logs."""
        ...

    @abstractmethod
    async def handle_batch(self, batch: MessageBatch[M]) -> None:
        """Handle one batch, raising on failure.

        The batch arrives whole and in send order.  Atomicity across
        batches, retries and deduplication are the implementation's job.
        """
        ...
