"""Persists Yahoo Finance quarterly statements and calendar dates."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.ext.asyncio import AsyncSession

from tickflow.connectors.yahoo.types import (
    BalanceSheetRow,
    CalendarEntry,
    CashflowRow,
    IncomeStatementRow,
    YahooMessage,
)
from tickflow.storage.handlers.base import DatabaseMessageHandler, execute_isolated
from tickflow.storage.models import (
    BalanceSheetRecord,
    CalendarEventRecord,
    CashflowRecord,
    IncomeStatementRecord,
)

logger = logging.getLogger(__name__)


def _skip(what: str, symbol: str, reason: str) -> None:
    logger.warning("Skipping %s for %s: %s", what, symbol, reason)


def income_statement_values(row: IncomeStatementRow) -> dict[str, Any] | None:
    if row.period is None:
        _skip("income statement", row.symbol, "invalid period")
        return None
    if row.total_revenue is None:
        _skip("income statement", row.symbol, "missing total_revenue")
        return None
    return {
        "symbol": row.symbol,
        "period_date": row.period,
        "total_revenue": row.total_revenue,
        "gross_profit": row.gross_profit,
        "operating_income": row.operating_income,
        "net_income": row.net_income,
    }


def balance_sheet_values(row: BalanceSheetRow) -> dict[str, Any] | None:
    if row.period is None:
        _skip("balance sheet", row.symbol, "invalid period")
        return None
    if row.total_assets is None:
        _skip("balance sheet", row.symbol, "missing total_assets")
        return None
    return {
        "symbol": row.symbol,
        "period_date": row.period,
        "total_assets": row.total_assets,
        "total_liabilities": row.total_liabilities,
        "total_equity": row.total_equity,
        "cash": row.cash,
        "long_term_debt": row.long_term_debt,
        "shares_outstanding": row.shares_outstanding,
    }


def cashflow_values(row: CashflowRow) -> dict[str, Any] | None:
    if row.period is None:
        _skip("cashflow", row.symbol, "invalid period")
        return None
    if row.operating_cashflow is None:
        _skip("cashflow", row.symbol, "missing operating_cashflow")
        return None
    return {
        "symbol": row.symbol,
        "period_date": row.period,
        "operating_cashflow": row.operating_cashflow,
        "capital_expenditures": row.capital_expenditures,
        "free_cash_flow": row.free_cash_flow,
        "net_income": row.net_income,
    }


def calendar_values(entry: CalendarEntry) -> dict[str, Any]:
    return {
        "symbol": entry.symbol,
        "date_type": entry.date_type.value,
        "event_date": entry.event_date,
    }


# message type -> (table, conflict columns, description, row mapper)
_TARGETS: dict[type, tuple[type, list[str], str, Callable[[Any], dict[str, Any] | None]]] = {
    IncomeStatementRow: (
        IncomeStatementRecord,
        ["symbol", "period_date"],
        "income statement",
        income_statement_values,
    ),
    BalanceSheetRow: (
        BalanceSheetRecord,
        ["symbol", "period_date"],
        "balance sheet",
        balance_sheet_values,
    ),
    CashflowRow: (
        CashflowRecord,
        ["symbol", "period_date"],
        "cashflow",
        cashflow_values,
    ),
    CalendarEntry: (
        CalendarEventRecord,
        ["symbol", "date_type", "event_date"],
        "calendar event",
        calendar_values,
    ),
}


def build_insert(message: YahooMessage) -> tuple[Insert, str] | None:
    """Statement and log description for *message*, or ``None`` to skip it."""
    target = _TARGETS.get(type(message))
    if target is None:
        return None
    model, unique, what, to_values = target

    values = to_values(message)
    if values is None:
        return None
    statement = insert(model).values(**values).on_conflict_do_nothing(index_elements=unique)
    key = values.get("period_date", values.get("event_date"))
    return statement, f"{what} for {message.symbol} ({key})"


class YahooMessageHandler(DatabaseMessageHandler[YahooMessage]):
    """One row per message, each in its own savepoint.

    Rows without a period or their primary amount are skipped with a
    warning; a row that fails to insert is logged and the rest of the
    batch is still written.
    """

    @property
    def tables(self) -> Sequence[Table]:
        return [
            IncomeStatementRecord.__table__,
            BalanceSheetRecord.__table__,
            CashflowRecord.__table__,
            CalendarEventRecord.__table__,
        ]

    async def insert_batch(self, session: AsyncSession, batch: list[YahooMessage]) -> None:
        written = 0
        for message in batch:
            built = build_insert(message)
            if built is None:
                continue
            statement, description = built
            if await execute_isolated(session, statement, description):
                written += 1
        logger.debug("Wrote %d of %d Yahoo rows", written, len(batch))
