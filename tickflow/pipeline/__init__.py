from tickflow.pipeline.builder import TickflowBuilder
from tickflow.pipeline.datafeed import (
    DEFAULT_CHANNEL_CAPACITY,
    DataFeedHandles,
    SPSCDataFeed,
)
from tickflow.pipeline.processor import MessageProcessor

__all__ = [
    "DEFAULT_CHANNEL_CAPACITY",
    "DataFeedHandles",
    "MessageProcessor",
    "SPSCDataFeed",
    "TickflowBuilder",
]
