from tickflow.storage.handlers import (
    AlpacaMessageHandler,
    DatabaseMessageHandler,
    PolymarketMessageHandler,
    YahooMessageHandler,
)
from tickflow.storage.memory import InMemorySink, LoggingSink
from tickflow.storage.postgres import Database, create_schema, make_engine

__all__ = [
    "AlpacaMessageHandler",
    "Database",
    "DatabaseMessageHandler",
    "InMemorySink",
    "LoggingSink",
    "PolymarketMessageHandler",
    "YahooMessageHandler",
    "create_schema",
    "make_engine",
]
