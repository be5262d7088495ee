"""Fluent builder for wiring a source to a sink."""

from __future__ import annotations

from tickflow.core.sink import MessageSink
from tickflow.core.source import MessageSource
from tickflow.core.types import Message
from tickflow.pipeline.datafeed import (
    DEFAULT_CHANNEL_CAPACITY,
    DataFeedHandles,
    SPSCDataFeed,
)


class TickflowBuilder[M: Message]:
    """Builds an :class:`SPSCDataFeed` from any compatible source/sink pair.

    Usage::

        handles = (
            TickflowBuilder(source, sink)
            .channel_capacity(config.channel_capacity)
            .start()
        )
        await handles.join()
    """

    def __init__(self, source: MessageSource[M], sink: MessageSink[M]) -> None:
        self._source = source
        self._sink = sink
        self._channel_capacity = DEFAULT_CHANNEL_CAPACITY

    def channel_capacity(self, capacity: int) -> TickflowBuilder[M]:
        """Override the bounded channel capacity (default 1,000)."""
        self._channel_capacity = capacity
        return self

    def build(self) -> SPSCDataFeed[M]:
        """Build the data feed without starting any task."""
        return SPSCDataFeed(self._source, self._sink, self._channel_capacity)

    def start(self) -> DataFeedHandles:
        """Build and start the data feed, returning the task handles."""
        return self.build().start()
