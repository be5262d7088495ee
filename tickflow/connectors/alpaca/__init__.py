from tickflow.connectors.alpaca.types import (
    AlpacaError,
    AlpacaMessage,
    AlpacaSuccess,
    Bar,
    Quote,
    Subscription,
    Trade,
    parse_frame,
)
from tickflow.connectors.alpaca.websocket import (
    IEX_STREAM_URL,
    AlpacaStreamError,
    AlpacaWebSocketClient,
)

__all__ = [
    "IEX_STREAM_URL",
    "AlpacaError",
    "AlpacaMessage",
    "AlpacaStreamError",
    "AlpacaSuccess",
    "AlpacaWebSocketClient",
    "Bar",
    "Quote",
    "Subscription",
    "Trade",
    "parse_frame",
]
