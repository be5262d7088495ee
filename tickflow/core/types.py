from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    """Base class for every payload that flows through a pipeline.

    Messages are frozen, so a single instance can be read from the source
    task and the processor task at the same time without copying.  Use
    :meth:`~pydantic.BaseModel.model_copy` when a duplicate is needed
    (e.g. to log or retry) without touching the original.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)


type MessageBatch[M: Message] = list[M]
"""An ordered group of messages, sent and handled as one unit."""
