from __future__ import annotations

import logging

from tickflow.core.channel import BatchReceiver
from tickflow.core.sink import MessageSink
from tickflow.core.types import Message

logger = logging.getLogger(__name__)


class MessageProcessor[M: Message]:
    """Forwards batches from a channel's read end to a sink.

    A failing batch is logged and skipped; only end-of-stream stops the
    loop.  The sink is held by reference, so the caller may keep using it
    (e.g. for schema setup) alongside the processor.
    """

    def __init__(self, sink: MessageSink[M]) -> None:
        self._sink = sink
        self.batches_handled: int = 0
        self.batches_failed: int = 0

    @property
    def sink(self) -> MessageSink[M]:
        return self._sink

    async def process_messages(self, rx: BatchReceiver[M]) -> None:
        """Drain *rx* into the sink until the sender closes.

        The receiver is closed on exit, whatever the reason, so a source
        still sending sees "receiver gone" instead of waiting forever on a
        full channel.
        """
        name = self._sink.name
        logger.info("Message processor started (%s)", name)
        try:
            while (batch := await rx.recv()) is not None:
                try:
                    await self._sink.handle_batch(batch)
                except Exception as exc:
                    self.batches_failed += 1
                    logger.warning("%s sink error: %s", name, exc)
                else:
                    self.batches_handled += 1
        finally:
            rx.close()
        logger.info(
            "Message processor stopped (%s): %d handled, %d failed",
            name,
            self.batches_handled,
            self.batches_failed,
        )
