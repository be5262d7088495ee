"""Yahoo Finance fundamentals source backed by yfinance."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any

import pandas as pd
import yfinance as yf
from curl_cffi import requests as curl_requests

from tickflow.connectors.yahoo.types import (
    BalanceSheetRow,
    CalendarDateType,
    CalendarEntry,
    CashflowRow,
    IncomeStatementRow,
    YahooMessage,
)
from tickflow.core.channel import BatchSender
from tickflow.core.exceptions import SourceError
from tickflow.core.source import MessageSource

logger = logging.getLogger(__name__)

# yfinance line-item labels, first match wins.
INCOME_STATEMENT_FIELDS: dict[str, tuple[str, ...]] = {
    "total_revenue": ("Total Revenue", "Operating Revenue"),
    "gross_profit": ("Gross Profit",),
    "operating_income": ("Operating Income",),
    "net_income": ("Net Income", "Net Income Common Stockholders"),
}

BALANCE_SHEET_FIELDS: dict[str, tuple[str, ...]] = {
    "total_assets": ("Total Assets",),
    "total_liabilities": ("Total Liabilities Net Minority Interest",),
    "total_equity": ("Stockholders Equity", "Total Equity Gross Minority Interest"),
    "cash": ("Cash And Cash Equivalents",),
    "long_term_debt": ("Long Term Debt",),
    "shares_outstanding": ("Ordinary Shares Number", "Share Issued"),
}

CASHFLOW_FIELDS: dict[str, tuple[str, ...]] = {
    "operating_cashflow": ("Operating Cash Flow",),
    "capital_expenditures": ("Capital Expenditure",),
    "free_cash_flow": ("Free Cash Flow",),
    "net_income": ("Net Income From Continuing Operations", "Net Income"),
}

CALENDAR_FIELDS: tuple[tuple[str, CalendarDateType], ...] = (
    ("Earnings Date", CalendarDateType.EARNINGS),
    ("Dividend Date", CalendarDateType.DIVIDEND_PAYMENT),
    ("Ex-Dividend Date", CalendarDateType.EX_DIVIDEND),
)


class YahooFetchError(SourceError):
    """A fetch failed while the client runs in fail-fast mode."""

    def __init__(self, symbol: str, what: str, cause: object):
        self.symbol = symbol
        self.what = what
        super().__init__(f"failed to fetch {what} for {symbol}: {cause}")


# ── DataFrame conversion ────────────────────────────────────────────


def _to_date(value: object) -> dt.date | None:
    if value is None:
        return None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def _lookup(frame: pd.DataFrame, labels: Iterable[str], column: Any) -> float | None:
    for label in labels:
        if label in frame.index:
            value = frame.at[label, column]
            if pd.notna(value):
                return float(value)
    return None


def _statement_columns(
    frame: pd.DataFrame | None, fields: Mapping[str, tuple[str, ...]]
) -> Iterator[tuple[dt.date | None, dict[str, float | None]]]:
    """Yield ``(period, values)`` per column of a yfinance statement.

    yfinance statements have one row per line item and one column per
    reporting period.
    """
    if frame is None or frame.empty:
        return
    for column in frame.columns:
        values = {name: _lookup(frame, labels, column) for name, labels in fields.items()}
        yield _to_date(column), values


def income_statement_rows(
    symbol: str, frame: pd.DataFrame | None
) -> list[IncomeStatementRow]:
    return [
        IncomeStatementRow(symbol=symbol, period=period, **values)
        for period, values in _statement_columns(frame, INCOME_STATEMENT_FIELDS)
    ]


def balance_sheet_rows(symbol: str, frame: pd.DataFrame | None) -> list[BalanceSheetRow]:
    rows = []
    for period, values in _statement_columns(frame, BALANCE_SHEET_FIELDS):
        shares = values.pop("shares_outstanding")
        rows.append(
            BalanceSheetRow(
                symbol=symbol,
                period=period,
                shares_outstanding=int(shares) if shares is not None else None,
                **values,
            )
        )
    return rows


def cashflow_rows(symbol: str, frame: pd.DataFrame | None) -> list[CashflowRow]:
    return [
        CashflowRow(symbol=symbol, period=period, **values)
        for period, values in _statement_columns(frame, CASHFLOW_FIELDS)
    ]


def calendar_entries(
    symbol: str, calendar: Mapping[str, Any] | None
) -> list[CalendarEntry]:
    """Flatten a yfinance calendar dict into entries.

    ``Earnings Date`` holds a list (a range when the date is not yet
    confirmed); the dividend keys hold a single date.  Missing or
    unparseable values are dropped.
    """
    if not calendar:
        return []
    entries = []
    for key, date_type in CALENDAR_FIELDS:
        raw = calendar.get(key)
        values = raw if isinstance(raw, (list, tuple)) else [raw]
        for value in values:
            event_date = _to_date(value)
            if event_date is not None:
                entries.append(
                    CalendarEntry(symbol=symbol, date_type=date_type, event_date=event_date)
                )
    return entries


_FETCHES: tuple[tuple[str, str, Callable[[str, Any], list[Any]]], ...] = (
    ("income statement", "quarterly_income_stmt", income_statement_rows),
    ("balance sheet", "quarterly_balance_sheet", balance_sheet_rows),
    ("cashflow", "quarterly_cashflow", cashflow_rows),
    ("calendar", "calendar", calendar_entries),
)


# ── Source ──────────────────────────────────────────────────────────

TickerFactory = Callable[[str, Any], Any]


def _default_ticker(symbol: str, session: Any) -> yf.Ticker:
    return yf.Ticker(symbol, session=session)


class YahooClient(MessageSource[YahooMessage]):
    """Fetches quarterly fundamentals and calendars for a list of symbols.

    For each symbol the income statement, balance sheet, cashflow and
    calendar are fetched in that order; each fetch that returns data is
    sent as one batch, and every fetch is followed by *request_delay_ms*.

    With *proxies*, requests rotate round-robin over a direct connection
    and one curl_cffi session per proxy.  By default a failed fetch is
    logged and skipped; with *fail_fast* it ends the run with
    :class:`YahooFetchError`.
    """

    def __init__(
        self,
        symbols: Sequence[str],
        *,
        request_delay_ms: int = 0,
        proxies: Sequence[str] = (),
        fail_fast: bool = False,
        ticker_factory: TickerFactory = _default_ticker,
    ) -> None:
        self.symbols = list(symbols)
        self.request_delay_ms = request_delay_ms
        self.fail_fast = fail_fast
        self._ticker_factory = ticker_factory
        self._sessions: list[Any] = [None]
        for proxy in proxies:
            self._sessions.append(
                curl_requests.Session(
                    impersonate="chrome", proxies={"http": proxy, "https": proxy}
                )
            )
        self._counter = 0

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def _next_session(self) -> Any:
        session = self._sessions[self._counter % len(self._sessions)]
        self._counter += 1
        return session

    async def run(self, tx: BatchSender[YahooMessage]) -> None:
        logger.info("Fetching fundamentals for %d symbols", len(self.symbols))
        for symbol in self.symbols:
            for what, attribute, convert in _FETCHES:
                await self._fetch(symbol, what, attribute, convert, tx)
                await asyncio.sleep(self.request_delay_ms / 1000)
        logger.info("Finished fetching fundamentals")

    async def _fetch(
        self,
        symbol: str,
        what: str,
        attribute: str,
        convert: Callable[[str, Any], list[Any]],
        tx: BatchSender[YahooMessage],
    ) -> None:
        logger.debug("Fetching %s for %s", what, symbol)
        ticker = self._ticker_factory(symbol, self._next_session())
        try:
            raw = await asyncio.to_thread(getattr, ticker, attribute)
            batch = convert(symbol, raw)
        except Exception as exc:
            if self.fail_fast:
                raise YahooFetchError(symbol, what, exc) from exc
            logger.error("Failed to fetch %s for %s: %s", what, symbol, exc)
            return

        if batch:
            await tx.send(batch)
