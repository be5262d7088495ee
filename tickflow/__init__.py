"""tickflow: stream market data from any source into any sink."""

from tickflow.core import (
    BatchReceiver,
    BatchSender,
    ChannelClosedError,
    Message,
    MessageBatch,
    MessageSink,
    MessageSource,
    PipelineConfigError,
    SinkError,
    SourceError,
    channel,
)
from tickflow.pipeline import (
    DataFeedHandles,
    MessageProcessor,
    SPSCDataFeed,
    TickflowBuilder,
)

__all__ = [
    "BatchReceiver",
    "BatchSender",
    "ChannelClosedError",
    "DataFeedHandles",
    "Message",
    "MessageBatch",
    "MessageProcessor",
    "MessageSink",
    "MessageSource",
    "PipelineConfigError",
    "SPSCDataFeed",
    "SinkError",
    "SourceError",
    "TickflowBuilder",
    "channel",
]
