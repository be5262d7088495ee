from tickflow.core.channel import BatchReceiver, BatchSender, channel
from tickflow.core.exceptions import (
    ChannelClosedError,
    ConfigError,
    PipelineConfigError,
    SinkError,
    SourceError,
    TickflowError,
)
from tickflow.core.sink import MessageSink
from tickflow.core.source import MessageSource
from tickflow.core.types import Message, MessageBatch

__all__ = [
    "BatchReceiver",
    "BatchSender",
    "ChannelClosedError",
    "ConfigError",
    "Message",
    "MessageBatch",
    "MessageSink",
    "MessageSource",
    "PipelineConfigError",
    "SinkError",
    "SourceError",
    "TickflowError",
    "channel",
]
