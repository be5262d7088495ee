"""Single-producer single-consumer pipeline orchestration."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tickflow.core.channel import BatchReceiver, BatchSender, channel
from tickflow.core.exceptions import (
    ChannelClosedError,
    PipelineConfigError,
    SourceError,
)
from tickflow.core.sink import MessageSink
from tickflow.core.source import MessageSource
from tickflow.core.types import Message
from tickflow.pipeline.processor import MessageProcessor

if TYPE_CHECKING:
    from tickflow.pipeline.builder import TickflowBuilder

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_CAPACITY = 1_000


@dataclass
class DataFeedHandles:
    """Task handles returned by :meth:`SPSCDataFeed.start`.

    Each task resolves to ``None`` on success.  A source failure surfaces
    as :class:`SourceError` when the ``source`` task is awaited; per-batch
    sink failures never reach either handle.
    """

    source: asyncio.Task[None]
    processor: asyncio.Task[None]

    async def join(self) -> None:
        """Wait for both tasks, then re-raise the first task-level failure."""
        results = await asyncio.gather(
            self.source, self.processor, return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result


class SPSCDataFeed[M: Message]:
    """Connects a :class:`MessageSource` to a :class:`MessageProcessor`
    through a bounded channel.

    Usage::

        feed = SPSCDataFeed.builder(source, sink).channel_capacity(64).build()
        handles = feed.start()
        await handles.join()
    """

    def __init__(
        self,
        source: MessageSource[M],
        sink: MessageSink[M],
        channel_capacity: int = DEFAULT_CHANNEL_CAPACITY,
    ) -> None:
        if (
            isinstance(channel_capacity, bool)
            or not isinstance(channel_capacity, int)
            or channel_capacity < 1
        ):
            raise PipelineConfigError(
                f"Channel capacity must be a positive integer, got {channel_capacity!r}"
            )
        self._source = source
        self._processor = MessageProcessor(sink)
        self._channel_capacity = channel_capacity
        self._started = False

    @classmethod
    def builder(
        cls, source: MessageSource[M], sink: MessageSink[M]
    ) -> TickflowBuilder[M]:
        """Return a builder for configuring and launching a data feed."""
        from tickflow.pipeline.builder import TickflowBuilder

        return TickflowBuilder(source, sink)

    @property
    def channel_capacity(self) -> int:
        return self._channel_capacity

    @property
    def source(self) -> MessageSource[M]:
        return self._source

    @property
    def processor(self) -> MessageProcessor[M]:
        return self._processor

    def start(self) -> DataFeedHandles:
        """Spawn the source and processor tasks and return their handles.

        Must be called from a running event loop.  Returns immediately;
        neither task has run yet when this returns.
        """
        if self._started:
            raise PipelineConfigError("Data feed has already been started")
        self._started = True

        tx, rx = channel(self._channel_capacity)
        source_task = asyncio.create_task(
            _run_source(self._source, tx), name="tickflow-source"
        )
        processor_task = asyncio.create_task(
            _run_processor(self._processor, rx), name="tickflow-processor"
        )
        return DataFeedHandles(source=source_task, processor=processor_task)


async def _run_source[M: Message](
    source: MessageSource[M], tx: BatchSender[M]
) -> None:
    try:
        await source.run(tx)
    except ChannelClosedError as exc:
        logger.info("Source %s stopped: %s", type(source).__name__, exc)
    except SourceError as exc:
        logger.error("Source task failed: %s", exc)
        raise
    except Exception as exc:
        logger.error("Source task failed: %s", exc)
        raise SourceError(str(exc)) from exc
    finally:
        tx.close()


async def _run_processor[M: Message](
    processor: MessageProcessor[M], rx: BatchReceiver[M]
) -> None:
    try:
        await processor.process_messages(rx)
    except Exception as exc:
        logger.error("Processor task failed: %s", exc)
        raise
