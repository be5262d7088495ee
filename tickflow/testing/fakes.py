"""Scriptable sources and sinks for exercising pipelines in tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

from tickflow.core.channel import BatchSender
from tickflow.core.exceptions import SinkError
from tickflow.core.sink import MessageSink
from tickflow.core.source import MessageSource
from tickflow.core.types import Message, MessageBatch


class Tick(Message):
    """Minimal payload: a sequence number and a symbol."""

    seq: int
    symbol: str = "TEST"


def ticks(*seqs: int, symbol: str = "TEST") -> list[Tick]:
    return [Tick(seq=seq, symbol=symbol) for seq in seqs]


async def settle(rounds: int = 20) -> None:
    """Let every ready task on the loop run for a few iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ScriptedSource[M: Message](MessageSource[M]):
    """Sends the given batches in order, then optionally raises *error*.

    ``attempted`` counts send calls started and ``sent`` counts send calls
    that returned, so a test can observe a send suspended on a full
    channel.
    """

    def __init__(
        self,
        batches: Iterable[MessageBatch[M]],
        *,
        error: BaseException | None = None,
    ) -> None:
        self.batches = [list(batch) for batch in batches]
        self.error = error
        self.attempted = 0
        self.sent = 0

    async def run(self, tx: BatchSender[M]) -> None:
        for batch in self.batches:
            self.attempted += 1
            await tx.send(batch)
            self.sent += 1
        if self.error is not None:
            raise self.error


class ScriptedSink[M: Message](MessageSink[M]):
    """Records every call; fails the calls whose index is in *fail_on*.

    While *gate* is set but not released, each call waits on it before
    doing anything, which keeps batches queued in the channel.
    """

    name = "scripted"

    def __init__(
        self,
        *,
        fail_on: Sequence[int] = (),
        gate: asyncio.Event | None = None,
    ) -> None:
        self.fail_on = set(fail_on)
        self.gate = gate
        self.attempts: list[MessageBatch[M]] = []
        self.accepted: list[MessageBatch[M]] = []

    async def handle_batch(self, batch: MessageBatch[M]) -> None:
        index = len(self.attempts)
        self.attempts.append(list(batch))
        if self.gate is not None:
            await self.gate.wait()
        if index in self.fail_on:
            raise SinkError(self.name, f"batch {index} rejected")
        self.accepted.append(list(batch))
