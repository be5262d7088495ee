from tickflow.storage.handlers.alpaca import AlpacaMessageHandler
from tickflow.storage.handlers.base import (
    DatabaseMessageHandler,
    execute_isolated,
    parse_optional_timestamp,
    parse_rfc3339,
)
from tickflow.storage.handlers.polymarket import PolymarketMessageHandler
from tickflow.storage.handlers.yahoo import YahooMessageHandler

__all__ = [
    "AlpacaMessageHandler",
    "DatabaseMessageHandler",
    "PolymarketMessageHandler",
    "YahooMessageHandler",
    "execute_isolated",
    "parse_optional_timestamp",
    "parse_rfc3339",
]
