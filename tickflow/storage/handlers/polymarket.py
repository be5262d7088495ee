"""Upserts Polymarket CLOB and Gamma market listings."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Table, func
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.ext.asyncio import AsyncSession

from tickflow.connectors.polymarket.types import GammaMarket, Market, PolymarketMessage
from tickflow.storage.handlers.base import (
    DatabaseMessageHandler,
    execute_isolated,
    parse_optional_timestamp,
)
from tickflow.storage.models import PolymarketGammaMarketRecord, PolymarketMarketRecord

logger = logging.getLogger(__name__)

_MARKET_TIMESTAMPS = ("end_date_iso", "game_start_time", "accepting_order_timestamp")
_GAMMA_TIMESTAMPS = ("start_date", "end_date", "updated_at")


def market_values(market: Market) -> dict[str, Any]:
    values = market.model_dump(by_alias=False)
    for field in _MARKET_TIMESTAMPS:
        values[field] = parse_optional_timestamp(values[field])
    return values


def gamma_market_values(market: GammaMarket) -> dict[str, Any]:
    values = market.model_dump(by_alias=False)
    for field in _GAMMA_TIMESTAMPS:
        values[field] = parse_optional_timestamp(values[field])
    return values


def _upsert(model: type, values: dict[str, Any], key: str) -> Insert:
    statement = insert(model).values(**values)
    refreshed = {name: statement.excluded[name] for name in values if name != key}
    refreshed["received_at"] = func.current_timestamp()
    return statement.on_conflict_do_update(index_elements=[key], set_=refreshed)


def upsert_market(market: Market) -> Insert:
    return _upsert(PolymarketMarketRecord, market_values(market), "condition_id")


def upsert_gamma_market(market: GammaMarket) -> Insert:
    return _upsert(PolymarketGammaMarketRecord, gamma_market_values(market), "id")


class PolymarketMessageHandler(DatabaseMessageHandler[PolymarketMessage]):
    """Latest listing wins: every column and ``received_at`` are refreshed
    on conflict.  A failing row is rolled back to its savepoint and logged.
    """

    @property
    def tables(self) -> Sequence[Table]:
        return [PolymarketMarketRecord.__table__, PolymarketGammaMarketRecord.__table__]

    async def insert_batch(
        self, session: AsyncSession, batch: list[PolymarketMessage]
    ) -> None:
        written = 0
        for message in batch:
            match message:
                case Market():
                    ok = await execute_isolated(
                        session,
                        upsert_market(message),
                        f"market {message.condition_id}",
                    )
                case GammaMarket():
                    ok = await execute_isolated(
                        session,
                        upsert_gamma_market(message),
                        f"gamma market {message.id}",
                    )
                case _:
                    ok = False
            written += ok
        logger.info("Upserted %d of %d Polymarket markets", written, len(batch))
