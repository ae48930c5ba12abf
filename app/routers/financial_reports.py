"""
HostelHub Finance - Financial Reports Router

API endpoints for residence financial statements. Every report accepts a
basis (cash | accrual) and an optional residence filter.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_async_session
from app.services.financial_reports_service import FinancialReportsService

router = APIRouter()


# ===========================================
# INCOME & CASH FLOW
# ===========================================

@router.get("/income-statement")
async def get_income_statement(
    period: Optional[str] = Query(None, description="Reporting year, e.g. 2025 (default: current year)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    month: Optional[int] = Query(None, description="Restrict to one month (1-12)"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Generate the income statement.

    Shows:
    - Revenue by account and category (rental, admin fees, deposits, ...)
    - Expenses by account and category (petty cash allocations excluded)
    - Net income
    - Monthly breakdown adding up to the period totals
    """
    service = FinancialReportsService(db)
    return await service.generate_income_statement(
        period=period,
        basis=basis,
        residence_id=residence_id,
        month=month,
    )


@router.get("/cash-flow")
async def get_cash_flow_statement(
    period: Optional[str] = Query(None, description="Reporting year, e.g. 2025 (default: current year)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    month: Optional[int] = Query(None, description="Restrict to one month (1-12)"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Generate the cash flow statement (direct method).

    Shows:
    - Operating, investing and financing activities
    - Internal cash transfers (excluded from the sections)
    - Cash at beginning and end of the period, per month
    """
    service = FinancialReportsService(db)
    return await service.generate_cash_flow_statement(
        period=period,
        basis=basis,
        residence_id=residence_id,
        month=month,
    )


# ===========================================
# BALANCE SHEET
# ===========================================

@router.get("/balance-sheet")
async def get_balance_sheet(
    as_of: Optional[date] = Query(None, description="Balance sheet date (default: today)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Generate the balance sheet as of a date.

    The balance_check block reports any difference between assets and
    liabilities + equity; it is never corrected.
    """
    service = FinancialReportsService(db)
    return await service.generate_balance_sheet(
        as_of=as_of,
        basis=basis,
        residence_id=residence_id,
    )


@router.get("/monthly-balance-sheet")
async def get_monthly_balance_sheet(
    period: Optional[str] = Query(None, description="Reporting year, e.g. 2025 (default: current year)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    view: str = Query("cumulative", description="cumulative (month-end position) or monthly (movements)"),
    db: AsyncSession = Depends(get_async_session),
):
    """Generate one balance sheet per month-end of a year."""
    service = FinancialReportsService(db)
    return await service.generate_monthly_balance_sheet(
        period=period,
        basis=basis,
        residence_id=residence_id,
        view=view,
    )


# ===========================================
# LEDGER VIEWS
# ===========================================

@router.get("/trial-balance")
async def get_trial_balance(
    as_of: Optional[date] = Query(None, description="Trial balance date (default: today)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    db: AsyncSession = Depends(get_async_session),
):
    """Generate the trial balance: every account with a non-zero balance."""
    service = FinancialReportsService(db)
    return await service.generate_trial_balance(
        as_of=as_of,
        basis=basis,
        residence_id=residence_id,
    )


@router.get("/general-ledger")
async def get_general_ledger(
    account: str = Query(..., description="Account code, e.g. 1000"),
    period: Optional[str] = Query(None, description="Reporting year, e.g. 2025 (default: current year)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Generate the general ledger for one account.

    Shows the opening balance, every posting of the year with a running
    balance, and the closing balance.
    """
    service = FinancialReportsService(db)
    return await service.generate_general_ledger(
        account_code=account,
        period=period,
        basis=basis,
        residence_id=residence_id,
    )


@router.get("/account-balances")
async def get_account_balances(
    as_of: Optional[date] = Query(None, description="Balance date (default: today)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    db: AsyncSession = Depends(get_async_session),
):
    """Non-zero account balances grouped by account type."""
    service = FinancialReportsService(db)
    return await service.get_account_balances(
        as_of=as_of,
        basis=basis,
        residence_id=residence_id,
    )


@router.get("/financial-summary")
async def get_financial_summary(
    period: Optional[str] = Query(None, description="Reporting year, e.g. 2025 (default: current year)"),
    as_of: Optional[date] = Query(None, description="Balance date (default: end of the year)"),
    basis: str = Query(settings.default_basis, description="cash or accrual"),
    residence_id: Optional[uuid.UUID] = Query(None, description="Only entries of this residence"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Combined financial summary.

    Returns the income statement, balance sheet, cash flow statement and
    trial balance for the same period and basis.
    """
    service = FinancialReportsService(db)
    return await service.get_financial_summary(
        period=period,
        as_of=as_of,
        basis=basis,
        residence_id=residence_id,
    )
