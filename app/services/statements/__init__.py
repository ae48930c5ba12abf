"""
HostelHub Finance - Statement Assemblers Package

Pure functions that shape aggregated ledger sums into reports.

Modules:
- income_statement: revenue/expenses with monthly breakdown
- balance_sheet: position as of a date, and month-end series
- cash_flow: direct-method cash flow with monthly breakdown
- ledger_views: trial balance, general ledger, account balances
"""

from app.services.statements.balance_sheet import (
    BALANCE_SHEET_VIEWS,
    build_balance_sheet,
    build_monthly_balance_sheet,
)
from app.services.statements.cash_flow import build_cash_flow_statement, classify_cash_flow
from app.services.statements.income_statement import build_income_statement
from app.services.statements.ledger_views import (
    build_account_balances,
    build_general_ledger,
    build_trial_balance,
)

__all__ = [
    "BALANCE_SHEET_VIEWS",
    "build_account_balances",
    "build_balance_sheet",
    "build_cash_flow_statement",
    "build_general_ledger",
    "build_income_statement",
    "build_monthly_balance_sheet",
    "build_trial_balance",
    "classify_cash_flow",
]
