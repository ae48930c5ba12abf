"""
HostelHub Finance - Routers Package

FastAPI route handlers.

Routers:
- financial_reports: Income statement, balance sheet, cash flow, trial
  balance, general ledger, account balances, financial summary
- ledger: Account directory, residences, appending transaction entries
"""

from app.routers import financial_reports, ledger

__all__ = [
    "financial_reports",
    "ledger",
]
