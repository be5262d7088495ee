from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from tickflow.connectors.yahoo import (
    BalanceSheetRow,
    CalendarDateType,
    CalendarEntry,
    CashflowRow,
    IncomeStatementRow,
    YahooClient,
    YahooFetchError,
    balance_sheet_rows,
    calendar_entries,
    cashflow_rows,
    income_statement_rows,
    load_symbols,
)
from tickflow.core.channel import channel

Q1 = pd.Timestamp("2024-03-31")
Q2 = pd.Timestamp("2024-06-30")


def statement(rows: dict[str, list[float | None]]) -> pd.DataFrame:
    return pd.DataFrame.from_dict(rows, orient="index", columns=[Q2, Q1])


INCOME = statement(
    {
        "Total Revenue": [120.0, 100.0],
        "Gross Profit": [60.0, 50.0],
        "Operating Income": [30.0, None],
        "Net Income Common Stockholders": [20.0, 15.0],
    }
)
BALANCE = statement(
    {
        "Total Assets": [1000.0, 900.0],
        "Total Liabilities Net Minority Interest": [400.0, 380.0],
        "Stockholders Equity": [600.0, 520.0],
        "Cash And Cash Equivalents": [50.0, 45.0],
        "Ordinary Shares Number": [15_500_000_000.0, None],
        "Share Issued": [15_600_000_000.0, 15_700_000_000.0],
    }
)
CASHFLOW = statement(
    {
        "Operating Cash Flow": [80.0, 70.0],
        "Capital Expenditure": [-10.0, -12.0],
        "Free Cash Flow": [70.0, 58.0],
    }
)
CALENDAR = {
    "Earnings Date": [dt.date(2024, 7, 25), dt.date(2024, 7, 30)],
    "Dividend Date": dt.date(2024, 8, 15),
    "Ex-Dividend Date": dt.date(2024, 8, 12),
    "Earnings High": 1.5,
}


class FakeTicker:
    def __init__(self, symbol: str, session: Any, fail: set[str]) -> None:
        self.symbol = symbol
        self.session = session
        self._fail = fail

    def _get(self, name: str, value: Any) -> Any:
        if (self.symbol, name) in self._fail or (self.symbol, "*") in self._fail:
            raise RuntimeError(f"{name} unavailable")
        return value

    @property
    def quarterly_income_stmt(self) -> pd.DataFrame:
        return self._get("income", INCOME)

    @property
    def quarterly_balance_sheet(self) -> pd.DataFrame:
        return self._get("balance", BALANCE)

    @property
    def quarterly_cashflow(self) -> pd.DataFrame:
        return self._get("cashflow", pd.DataFrame())

    @property
    def calendar(self) -> dict:
        return self._get("calendar", CALENDAR)


class TickerFactory:
    def __init__(self, fail: set[tuple[str, str]] | None = None) -> None:
        self.fail = fail or set()
        self.calls: list[tuple[str, Any]] = []

    def __call__(self, symbol: str, session: Any) -> FakeTicker:
        self.calls.append((symbol, session))
        return FakeTicker(symbol, session, self.fail)


async def collect(client: YahooClient) -> list[list]:
    tx, rx = channel(100)
    await client.run(tx)
    tx.close()
    return [batch async for batch in rx]


# ── Statement conversion ─────────────────────────────────────────────


def test_income_statement_rows_one_per_period() -> None:
    rows = income_statement_rows("AAPL", INCOME)

    assert [r.period for r in rows] == [dt.date(2024, 6, 30), dt.date(2024, 3, 31)]
    latest, earlier = rows
    assert latest == IncomeStatementRow(
        symbol="AAPL",
        period=dt.date(2024, 6, 30),
        total_revenue=120.0,
        gross_profit=60.0,
        operating_income=30.0,
        net_income=20.0,
    )
    assert earlier.operating_income is None


def test_balance_sheet_label_fallback_and_int_shares() -> None:
    latest, earlier = balance_sheet_rows("AAPL", BALANCE)

    assert isinstance(latest, BalanceSheetRow)
    assert latest.shares_outstanding == 15_500_000_000
    assert earlier.shares_outstanding == 15_700_000_000
    assert latest.long_term_debt is None
    assert latest.total_equity == 600.0


def test_cashflow_rows() -> None:
    rows = cashflow_rows("MSFT", CASHFLOW)
    assert all(isinstance(r, CashflowRow) for r in rows)
    assert rows[0].capital_expenditures == -10.0
    assert rows[0].net_income is None


@pytest.mark.parametrize("frame", [None, pd.DataFrame()])
def test_missing_statement_yields_nothing(frame) -> None:
    assert income_statement_rows("AAPL", frame) == []


def test_calendar_entries() -> None:
    entries = calendar_entries("AAPL", CALENDAR)

    assert entries == [
        CalendarEntry(
            symbol="AAPL", date_type=CalendarDateType.EARNINGS, event_date=dt.date(2024, 7, 25)
        ),
        CalendarEntry(
            symbol="AAPL", date_type=CalendarDateType.EARNINGS, event_date=dt.date(2024, 7, 30)
        ),
        CalendarEntry(
            symbol="AAPL",
            date_type=CalendarDateType.DIVIDEND_PAYMENT,
            event_date=dt.date(2024, 8, 15),
        ),
        CalendarEntry(
            symbol="AAPL", date_type=CalendarDateType.EX_DIVIDEND, event_date=dt.date(2024, 8, 12)
        ),
    ]


def test_calendar_skips_missing_dates() -> None:
    assert calendar_entries("AAPL", {}) == []
    assert calendar_entries("AAPL", None) == []
    entries = calendar_entries("AAPL", {"Earnings Date": [], "Dividend Date": None})
    assert entries == []


# ── Symbols file ─────────────────────────────────────────────────────


def test_load_symbols_skips_header_and_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "symbols.csv"
    path.write_text("Symbol,Name\nAAPL,Apple\n\nMSFT,Microsoft\n  GOOG ,Alphabet\n")

    assert load_symbols(path) == ["AAPL", "MSFT", "GOOG"]


def test_load_symbols_without_header(tmp_path: Path) -> None:
    path = tmp_path / "symbols.csv"
    path.write_text("AAPL\nTSLA\n")

    assert load_symbols(str(path)) == ["AAPL", "TSLA"]


def test_load_symbols_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_symbols(tmp_path / "nope.csv")


# ── Client ───────────────────────────────────────────────────────────


async def test_one_batch_per_non_empty_fetch() -> None:
    factory = TickerFactory()
    client = YahooClient(["AAPL", "MSFT"], ticker_factory=factory)

    batches = await collect(client)

    # Empty cashflow frames are not sent.
    assert [(b[0].kind, b[0].symbol) for b in batches] == [
        ("income_statement", "AAPL"),
        ("balance_sheet", "AAPL"),
        ("calendar", "AAPL"),
        ("income_statement", "MSFT"),
        ("balance_sheet", "MSFT"),
        ("calendar", "MSFT"),
    ]
    assert len(factory.calls) == 8


async def test_failed_fetch_is_skipped_by_default() -> None:
    factory = TickerFactory(fail={("AAPL", "income"), ("MSFT", "*")})
    client = YahooClient(["AAPL", "MSFT", "TSLA"], ticker_factory=factory)

    batches = await collect(client)

    symbols_kinds = [(b[0].symbol, b[0].kind) for b in batches]
    assert ("AAPL", "income_statement") not in symbols_kinds
    assert ("AAPL", "balance_sheet") in symbols_kinds
    assert not any(symbol == "MSFT" for symbol, _ in symbols_kinds)
    assert ("TSLA", "calendar") in symbols_kinds


async def test_fail_fast_stops_the_run() -> None:
    factory = TickerFactory(fail={("MSFT", "balance")})
    client = YahooClient(["AAPL", "MSFT", "TSLA"], fail_fast=True, ticker_factory=factory)
    tx, rx = channel(100)

    with pytest.raises(YahooFetchError, match="balance sheet for MSFT") as excinfo:
        await client.run(tx)
    tx.close()

    assert excinfo.value.symbol == "MSFT"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    sent = [(b[0].symbol, b[0].kind) async for b in rx]
    assert sent[-1] == ("MSFT", "income_statement")


def test_sessions_rotate_over_direct_and_proxies() -> None:
    client = YahooClient(
        ["AAPL"],
        proxies=["http://proxy-a:8080", "http://proxy-b:8080"],
        ticker_factory=TickerFactory(),
    )
    assert client.session_count == 3

    picked = [client._next_session() for _ in range(6)]
    assert picked[0] is None
    assert picked[3] is None
    assert picked[1] is not None and picked[1] is picked[4]
    assert picked[2] is not None and picked[2] is not picked[1]


def test_no_proxies_means_direct_only() -> None:
    client = YahooClient(["AAPL"])
    assert client.session_count == 1
    assert client._next_session() is None
