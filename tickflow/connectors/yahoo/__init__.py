from tickflow.connectors.yahoo.client import (
    YahooClient,
    YahooFetchError,
    balance_sheet_rows,
    calendar_entries,
    cashflow_rows,
    income_statement_rows,
)
from tickflow.connectors.yahoo.symbols import load_symbols
from tickflow.connectors.yahoo.types import (
    BalanceSheetRow,
    CalendarDateType,
    CalendarEntry,
    CashflowRow,
    IncomeStatementRow,
    YahooMessage,
)

__all__ = [
    "BalanceSheetRow",
    "CalendarDateType",
    "CalendarEntry",
    "CashflowRow",
    "IncomeStatementRow",
    "YahooClient",
    "YahooFetchError",
    "YahooMessage",
    "balance_sheet_rows",
    "calendar_entries",
    "cashflow_rows",
    "income_statement_rows",
    "load_symbols",
]
