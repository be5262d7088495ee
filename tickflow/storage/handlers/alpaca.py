"""Persists Alpaca bars, quotes and trades."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.ext.asyncio import AsyncSession

from tickflow.connectors.alpaca.types import AlpacaMessage, Bar, Quote, Trade
from tickflow.storage.handlers.base import DatabaseMessageHandler, parse_rfc3339
from tickflow.storage.models import BarRecord, QuoteRecord, TradeRecord

logger = logging.getLogger(__name__)


def bar_values(bar: Bar) -> dict[str, Any]:
    return {
        "symbol": bar.symbol,
        "open": bar.open,
        "high": bar.high,
        "low": bar.low,
        "close": bar.close,
        "volume": int(bar.volume),
        "timestamp": parse_rfc3339(bar.timestamp),
        "trade_count": bar.trade_count,
        "vwap": bar.vwap,
    }


def quote_values(quote: Quote) -> dict[str, Any]:
    return {
        "symbol": quote.symbol,
        "bid_exchange": quote.bid_exchange,
        "bid_price": quote.bid_price,
        "bid_size": int(quote.bid_size),
        "ask_exchange": quote.ask_exchange,
        "ask_price": quote.ask_price,
        "ask_size": int(quote.ask_size),
        "timestamp": parse_rfc3339(quote.timestamp),
        "tape": quote.tape,
    }


def trade_values(trade: Trade) -> dict[str, Any]:
    return {
        "trade_id": trade.id,
        "symbol": trade.symbol,
        "exchange": trade.exchange,
        "price": trade.price,
        "size": int(trade.size),
        "timestamp": parse_rfc3339(trade.timestamp),
        "tape": trade.tape,
        "tks": trade.tks,
    }


def insert_bars(rows: list[dict[str, Any]]) -> Insert:
    return (
        insert(BarRecord)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["symbol", "timestamp"])
    )


def insert_quotes(rows: list[dict[str, Any]]) -> Insert:
    return insert(QuoteRecord).values(rows)


def insert_trades(rows: list[dict[str, Any]]) -> Insert:
    return (
        insert(TradeRecord)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["trade_id", "symbol"])
    )


class AlpacaMessageHandler(DatabaseMessageHandler[AlpacaMessage]):
    """Bars and trades ignore duplicates; quotes are append-only.

    Control messages (success, error, subscription) are not stored.  Every
    timestamp is parsed before anything is written, so one malformed
    timestamp fails the whole batch.
    """

    @property
    def tables(self) -> Sequence[Table]:
        return [BarRecord.__table__, QuoteRecord.__table__, TradeRecord.__table__]

    async def insert_batch(
        self, session: AsyncSession, batch: list[AlpacaMessage]
    ) -> None:
        bars: list[dict[str, Any]] = []
        quotes: list[dict[str, Any]] = []
        trades: list[dict[str, Any]] = []

        for message in batch:
            match message:
                case Bar():
                    bars.append(bar_values(message))
                case Quote():
                    quotes.append(quote_values(message))
                case Trade():
                    trades.append(trade_values(message))
                case _:
                    logger.debug("Ignoring control message: %s", message.kind)

        if bars:
            await session.execute(insert_bars(bars))
        if quotes:
            await session.execute(insert_quotes(quotes))
        if trades:
            await session.execute(insert_trades(trades))
