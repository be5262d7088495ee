"""Polymarket market listings from the CLOB and Gamma APIs."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from tickflow.core.types import Message


class Market(Message):
    """A market as listed by the CLOB ``/markets`` endpoint.

    Only ``condition_id`` is required.  ``tokens``, ``rewards`` and
    ``tags`` are kept as the raw JSON the API returned.
    """

    condition_id: str
    question_id: str | None = None
    market_slug: str | None = None
    question: str | None = None
    description: str | None = None

    active: bool = False
    closed: bool = False
    archived: bool = False
    accepting_orders: bool = False
    enable_order_book: bool = False
    neg_risk: bool = False

    end_date_iso: str | None = None
    game_start_time: str | None = None
    accepting_order_timestamp: str | None = None

    minimum_order_size: float = 0.0
    minimum_tick_size: float = 0.0
    maker_base_fee: float = 0.0
    taker_base_fee: float = 0.0
    seconds_delay: int = 0

    tokens: Any = None
    rewards: Any = None
    tags: Any = None

    icon: str | None = None
    image: str | None = None
    fpmm: str | None = None
    neg_risk_market_id: str | None = None
    neg_risk_request_id: str | None = None
    notifications_enabled: bool = False
    is_50_50_outcome: bool = False


class GammaMarket(Message):
    """A market as listed by the Gamma ``/markets`` endpoint (camelCase)."""

    model_config = ConfigDict(alias_generator=to_camel, coerce_numbers_to_str=True)

    id: str
    question: str | None = None
    condition_id: str | None = None
    slug: str | None = None
    description: str | None = None
    category: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    active: bool | None = None
    closed: bool | None = None
    archived: bool | None = None
    restricted: bool | None = None
    enable_order_book: bool | None = None
    neg_risk: bool | None = None
    liquidity: float | None = None
    volume: float | None = None
    # to_camel would give "volume24Hr"
    volume_24hr: float | None = Field(default=None, alias="volume24hr")
    outcomes: str | None = None
    outcome_prices: str | None = None
    clob_token_ids: str | None = None
    image: str | None = None
    icon: str | None = None
    updated_at: str | None = None


PolymarketMessage = Market | GammaMarket
