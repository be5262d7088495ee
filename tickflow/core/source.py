from __future__ import annotations

from abc import ABC, abstractmethod

from tickflow.core.channel import BatchSender
from tickflow.core.types import Message


class MessageSource[M: Message](ABC):
    """Base class for every producer that feeds a pipeline.

    A source drives itself end-to-end: it connects, fetches or streams
    messages, groups them into batches and pushes each batch onto the
    channel's write end.  Connection handles, pagination cursors and
    rate-limit timers are private to the source; the pipeline never
    touches them while :meth:`run` is executing.

    The pipeline imposes no scheduling beyond channel backpressure.
    Retries, if any, happen inside the adapter.
    """

    @abstractmethod
    async def run(self, tx: BatchSender[M]) -> None:
        """Produce batches onto *tx* until the source is exhausted.

        Return normally on natural completion (stream closed, last page
        fetched).  Raise to abort the rest of the run; batches already
        sent stay sent.  The caller closes *tx* after this returns or
        raises.
        """
        ...
