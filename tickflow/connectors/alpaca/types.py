"""Alpaca market-data stream messages.

Every frame on the stream is a JSON array of objects tagged by ``T``.
Field names follow the wire format (single letters) through aliases, so
``Bar.model_validate({"T": "b", "S": "AAPL", ...})`` works as-is.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, TypeAdapter

from tickflow.core.types import Message


class AlpacaSuccess(Message):
    kind: Literal["success"] = Field(default="success", alias="T")
    msg: str


class AlpacaError(Message):
    kind: Literal["error"] = Field(default="error", alias="T")
    code: int
    msg: str


class Subscription(Message):
    """Server acknowledgement listing every active subscription."""

    kind: Literal["subscription"] = Field(default="subscription", alias="T")
    trades: list[str] = Field(default_factory=list)
    quotes: list[str] = Field(default_factory=list)
    bars: list[str] = Field(default_factory=list)
    orderbooks: list[str] = Field(default_factory=list)
    updated_bars: list[str] = Field(default_factory=list, alias="updatedBars")
    daily_bars: list[str] = Field(default_factory=list, alias="dailyBars")
    statuses: list[str] = Field(default_factory=list)
    lulds: list[str] = Field(default_factory=list)
    corrections: list[str] = Field(default_factory=list)
    cancel_errors: list[str] = Field(default_factory=list, alias="cancelErrors")


class Bar(Message):
    kind: Literal["b"] = Field(default="b", alias="T")
    symbol: str = Field(alias="S")
    open: float = Field(alias="o")
    high: float = Field(alias="h")
    low: float = Field(alias="l")
    close: float = Field(alias="c")
    volume: float = Field(alias="v")
    timestamp: str = Field(alias="t")
    trade_count: int | None = Field(default=None, alias="n")
    vwap: float | None = Field(default=None, alias="vw")

    @property
    def price_change(self) -> float:
        return self.close - self.open

    @property
    def price_change_percent(self) -> float:
        return self.price_change / self.open * 100.0


class Quote(Message):
    kind: Literal["q"] = Field(default="q", alias="T")
    symbol: str = Field(alias="S")
    bid_exchange: str | None = Field(default=None, alias="bx")
    bid_price: float = Field(alias="bp")
    bid_size: float = Field(alias="bs")
    ask_exchange: str | None = Field(default=None, alias="ax")
    ask_price: float = Field(alias="ap")
    ask_size: float = Field(alias="as")
    conditions: list[str] | None = Field(default=None, alias="c")
    tape: str | None = Field(default=None, alias="z")
    timestamp: str = Field(alias="t")

    @property
    def spread(self) -> float:
        return self.ask_price - self.bid_price

    @property
    def spread_bps(self) -> float:
        """Spread in basis points of the bid price."""
        return self.spread / self.bid_price * 10_000.0


class Trade(Message):
    kind: Literal["t"] = Field(default="t", alias="T")
    symbol: str = Field(alias="S")
    id: int = Field(alias="i")
    exchange: str | None = Field(default=None, alias="x")
    price: float = Field(alias="p")
    size: float = Field(alias="s")
    conditions: list[str] | None = Field(default=None, alias="c")
    tape: str | None = Field(default=None, alias="z")
    tks: str | None = None
    timestamp: str = Field(alias="t")


AlpacaMessage = Annotated[
    AlpacaSuccess | AlpacaError | Subscription | Bar | Quote | Trade,
    Field(discriminator="kind"),
]

_frame_adapter: TypeAdapter[list[AlpacaMessage]] = TypeAdapter(list[AlpacaMessage])


def parse_frame(text: str | bytes) -> list[AlpacaMessage]:
    """Parse one text frame (a JSON array) into messages.

    Raises :class:`pydantic.ValidationError` when the frame is not a JSON
    array or any element has an unknown tag or a missing field.
    """
    return _frame_adapter.validate_json(text)
