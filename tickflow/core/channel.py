"""Bounded single-producer / single-consumer channel of message batches.

:func:`channel` returns a pair of ends sharing one queue:

- :class:`BatchSender` is held by exactly one producer.  ``send()``
  suspends while the queue is full and fails with
  :class:`ChannelClosedError` once the receiver is gone.
- :class:`BatchReceiver` is held by exactly one consumer.  ``recv()``
  suspends while the queue is empty and returns ``None`` once the sender
  is closed and every queued batch has been consumed.

Both ends live on one event loop, so no locking is needed: ownership is
partitioned by construction and every state change happens between
awaits.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from types import TracebackType

from tickflow.core.exceptions import ChannelClosedError, PipelineConfigError
from tickflow.core.types import Message, MessageBatch


class _ChannelState[M: Message]:
    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.buffer: deque[MessageBatch[M]] = deque()
        self.sender_closed = False
        self.receiver_closed = False
        self.send_waiter: asyncio.Future[None] | None = None
        self.recv_waiter: asyncio.Future[None] | None = None

    @staticmethod
    def wake(waiter: asyncio.Future[None] | None) -> None:
        if waiter is not None and not waiter.done():
            waiter.set_result(None)


class BatchSender[M: Message]:
    """Write end of a batch channel."""

    def __init__(self, state: _ChannelState[M]) -> None:
        self._state = state

    @property
    def capacity(self) -> int:
        return self._state.capacity

    @property
    def is_closed(self) -> bool:
        """True once either end has been closed."""
        return self._state.sender_closed or self._state.receiver_closed

    async def send(self, batch: MessageBatch[M]) -> None:
        """Queue *batch*, suspending while the channel is at capacity.

        Raises:
            ChannelClosedError: the receiver end is gone, or this sender
                was already closed.
        """
        state = self._state
        if state.sender_closed:
            raise ChannelClosedError("sender already closed")

        while len(state.buffer) >= state.capacity:
            if state.receiver_closed:
                break
            waiter = asyncio.get_running_loop().create_future()
            state.send_waiter = waiter
            try:
                await waiter
            finally:
                if state.send_waiter is waiter:
                    state.send_waiter = None

        if state.receiver_closed:
            raise ChannelClosedError("receiver gone")

        state.buffer.append(batch)
        state.wake(state.recv_waiter)

    def close(self) -> None:
        """Signal end-of-stream to the receiver.  Idempotent."""
        state = self._state
        if state.sender_closed:
            return
        state.sender_closed = True
        state.wake(state.recv_waiter)

    async def __aenter__(self) -> BatchSender[M]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class BatchReceiver[M: Message]:
    """Read end of a batch channel."""

    def __init__(self, state: _ChannelState[M]) -> None:
        self._state = state

    @property
    def capacity(self) -> int:
        return self._state.capacity

    def __len__(self) -> int:
        return len(self._state.buffer)

    async def recv(self) -> MessageBatch[M] | None:
        """Return the next batch, or ``None`` at end-of-stream."""
        state = self._state
        while not state.buffer:
            if state.sender_closed or state.receiver_closed:
                return None
            waiter = asyncio.get_running_loop().create_future()
            state.recv_waiter = waiter
            try:
                await waiter
            finally:
                if state.recv_waiter is waiter:
                    state.recv_waiter = None

        batch = state.buffer.popleft()
        state.wake(state.send_waiter)
        return batch

    def close(self) -> None:
        """Drop the read end; queued batches are discarded.  Idempotent."""
        state = self._state
        if state.receiver_closed:
            return
        state.receiver_closed = True
        state.buffer.clear()
        state.wake(state.send_waiter)

    def __aiter__(self) -> AsyncIterator[MessageBatch[M]]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[MessageBatch[M]]:
        while (batch := await self.recv()) is not None:
            yield batch


def channel[M: Message](
    capacity: int,
) -> tuple[BatchSender[M], BatchReceiver[M]]:
    """Create a bounded channel and return its ``(sender, receiver)`` ends."""
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise PipelineConfigError(
            f"Channel capacity must be a positive integer, got {capacity!r}"
        )
    state: _ChannelState[M] = _ChannelState(capacity)
    return BatchSender(state), BatchReceiver(state)
