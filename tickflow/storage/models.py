from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Double,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all tickflow tables."""

    pass


class ReceivedAtMixin:
    """Adds a ``received_at`` column filled in by the database."""

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.current_timestamp(),
        nullable=True,
    )


# ── Alpaca ──────────────────────────────────────────────────────────


class BarRecord(ReceivedAtMixin, Base):
    __tablename__ = "bars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    open: Mapped[float] = mapped_column(Double, nullable=False)
    high: Mapped[float] = mapped_column(Double, nullable=False)
    low: Mapped[float] = mapped_column(Double, nullable=False)
    close: Mapped[float] = mapped_column(Double, nullable=False)
    volume: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    trade_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    vwap: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (UniqueConstraint("symbol", "timestamp", name="uq_bars_symbol_timestamp"),)


class QuoteRecord(ReceivedAtMixin, Base):
    __tablename__ = "quotes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    bid_exchange: Mapped[str | None] = mapped_column(String(10), nullable=True)
    bid_price: Mapped[float] = mapped_column(Double, nullable=False)
    bid_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ask_exchange: Mapped[str | None] = mapped_column(String(10), nullable=True)
    ask_price: Mapped[float] = mapped_column(Double, nullable=False)
    ask_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    tape: Mapped[str | None] = mapped_column(String(5), nullable=True)


class TradeRecord(ReceivedAtMixin, Base):
    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trade_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    exchange: Mapped[str | None] = mapped_column(String(10), nullable=True)
    price: Mapped[float] = mapped_column(Double, nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    tape: Mapped[str | None] = mapped_column(String(5), nullable=True)
    tks: Mapped[str | None] = mapped_column(String(5), nullable=True)

    __table_args__ = (UniqueConstraint("trade_id", "symbol", name="uq_trades_trade_id_symbol"),)


# ── Yahoo Finance ───────────────────────────────────────────────────


class IncomeStatementRecord(ReceivedAtMixin, Base):
    __tablename__ = "quarterly_income_statements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    period_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_revenue: Mapped[float | None] = mapped_column(Double, nullable=True)
    gross_profit: Mapped[float | None] = mapped_column(Double, nullable=True)
    operating_income: Mapped[float | None] = mapped_column(Double, nullable=True)
    net_income: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "period_date", name="uq_income_symbol_period"),
    )


class BalanceSheetRecord(ReceivedAtMixin, Base):
    __tablename__ = "quarterly_balance_sheets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    period_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_assets: Mapped[float | None] = mapped_column(Double, nullable=True)
    total_liabilities: Mapped[float | None] = mapped_column(Double, nullable=True)
    total_equity: Mapped[float | None] = mapped_column(Double, nullable=True)
    cash: Mapped[float | None] = mapped_column(Double, nullable=True)
    long_term_debt: Mapped[float | None] = mapped_column(Double, nullable=True)
    shares_outstanding: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "period_date", name="uq_balance_symbol_period"),
    )


class CashflowRecord(ReceivedAtMixin, Base):
    __tablename__ = "quarterly_cashflow_statements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    period_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    operating_cashflow: Mapped[float | None] = mapped_column(Double, nullable=True)
    capital_expenditures: Mapped[float | None] = mapped_column(Double, nullable=True)
    free_cash_flow: Mapped[float | None] = mapped_column(Double, nullable=True)
    net_income: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "period_date", name="uq_cashflow_symbol_period"),
    )


class CalendarEventRecord(ReceivedAtMixin, Base):
    __tablename__ = "calendar_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    date_type: Mapped[str] = mapped_column(String(20), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "symbol", "date_type", "event_date", name="uq_calendar_symbol_type_date"
        ),
    )


# ── Polymarket ──────────────────────────────────────────────────────


class PolymarketMarketRecord(ReceivedAtMixin, Base):
    __tablename__ = "polymarket_markets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    condition_id: Mapped[str] = mapped_column(String(66), nullable=False, unique=True)
    question_id: Mapped[str | None] = mapped_column(String(66), nullable=True)
    market_slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    question: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    closed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    archived: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    accepting_orders: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    enable_order_book: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    neg_risk: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    end_date_iso: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    game_start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=False), nullable=True
    )
    accepting_order_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=False), nullable=True
    )

    minimum_order_size: Mapped[float | None] = mapped_column(Double, nullable=True)
    minimum_tick_size: Mapped[float | None] = mapped_column(Double, nullable=True)
    maker_base_fee: Mapped[float | None] = mapped_column(Double, nullable=True)
    taker_base_fee: Mapped[float | None] = mapped_column(Double, nullable=True)
    seconds_delay: Mapped[int | None] = mapped_column(Integer, nullable=True)

    tokens: Mapped[Any] = mapped_column(JSONB, nullable=True)
    rewards: Mapped[Any] = mapped_column(JSONB, nullable=True)
    tags: Mapped[Any] = mapped_column(JSONB, nullable=True)

    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    fpmm: Mapped[str | None] = mapped_column(String(66), nullable=True)
    neg_risk_market_id: Mapped[str | None] = mapped_column(String(66), nullable=True)
    neg_risk_request_id: Mapped[str | None] = mapped_column(String(66), nullable=True)
    notifications_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_50_50_outcome: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class PolymarketGammaMarketRecord(ReceivedAtMixin, Base):
    __tablename__ = "polymarket_gamma_markets"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    question: Mapped[str | None] = mapped_column(Text, nullable=True)
    condition_id: Mapped[str | None] = mapped_column(String(66), nullable=True)
    slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    closed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    archived: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    restricted: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    enable_order_book: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    neg_risk: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    liquidity: Mapped[float | None] = mapped_column(Double, nullable=True)
    volume: Mapped[float | None] = mapped_column(Double, nullable=True)
    volume_24hr: Mapped[float | None] = mapped_column(Double, nullable=True)
    outcomes: Mapped[str | None] = mapped_column(Text, nullable=True)
    outcome_prices: Mapped[str | None] = mapped_column(Text, nullable=True)
    clob_token_ids: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
