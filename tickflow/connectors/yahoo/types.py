from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import Field

from tickflow.core.types import Message


class IncomeStatementRow(Message):
    kind: Literal["income_statement"] = "income_statement"
    symbol: str
    period: dt.date | None = None
    total_revenue: float | None = None
    gross_profit: float | None = None
    operating_income: float | None = None
    net_income: float | None = None


class BalanceSheetRow(Message):
    kind: Literal["balance_sheet"] = "balance_sheet"
    symbol: str
    period: dt.date | None = None
    total_assets: float | None = None
    total_liabilities: float | None = None
    total_equity: float | None = None
    cash: float | None = None
    long_term_debt: float | None = None
    shares_outstanding: int | None = None


class CashflowRow(Message):
    kind: Literal["cashflow"] = "cashflow"
    symbol: str
    period: dt.date | None = None
    operating_cashflow: float | None = None
    capital_expenditures: float | None = None
    free_cash_flow: float | None = None
    net_income: float | None = None


class CalendarDateType(StrEnum):
    EARNINGS = "earnings"
    EX_DIVIDEND = "ex_dividend"
    DIVIDEND_PAYMENT = "dividend_payment"


class CalendarEntry(Message):
    """One upcoming date from a ticker's calendar."""

    kind: Literal["calendar"] = "calendar"
    symbol: str
    date_type: CalendarDateType
    event_date: dt.date


YahooMessage = Annotated[
    IncomeStatementRow | BalanceSheetRow | CashflowRow | CalendarEntry,
    Field(discriminator="kind"),
]
