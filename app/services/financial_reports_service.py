"""
HostelHub Finance - Financial Reports Service

Orchestrates report generation:
1. Validate parameters (period, month, basis)
2. Serve from the report cache when possible
3. Check the residence exists when filtering
4. Load the account directory and posted entries once
5. Run the statement assembler
6. Cache the result

Report generation only reads the ledger.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.services.cache_service import CacheService, get_cache_service
from app.services.ledger_aggregation import AccountDirectory, AccountInfo, year_range
from app.services.ledger_repository import LedgerRepository
from app.services.statements import (
    BALANCE_SHEET_VIEWS,
    build_account_balances,
    build_balance_sheet,
    build_cash_flow_statement,
    build_general_ledger,
    build_income_statement,
    build_monthly_balance_sheet,
    build_trial_balance,
)
from app.utils.error_handling import (
    AccountNotFoundException,
    InvalidDateRangeException,
    ResidenceNotFoundException,
    ValidationException,
    validate_basis,
    validate_month,
    validate_period,
)

logger = logging.getLogger(__name__)
settings = get_settings()

ResidenceId = Optional[Union[str, UUID]]


class FinancialReportsService:
    """Service for generating residence financial reports."""

    def __init__(self, db: AsyncSession, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache or get_cache_service()
        self.repository = LedgerRepository(db, cache=self.cache)
        self.tolerance = Decimal(str(settings.balance_tolerance))

    # ===========================================
    # HELPERS
    # ===========================================

    @staticmethod
    def _default_year(period: Optional[Any]) -> int:
        if period is None or str(period).strip() == "":
            return date.today().year
        return validate_period(period)

    async def _check_residence(self, residence_id: ResidenceId) -> None:
        if residence_id is None:
            return
        if await self.repository.get_residence(residence_id) is None:
            raise ResidenceNotFoundException(residence_id)

    async def _directory(self) -> AccountDirectory:
        return AccountDirectory(await self.repository.list_accounts(include_inactive=True))

    async def _cached(
        self,
        report_type: str,
        residence_id: ResidenceId,
        params: Dict[str, Any],
        generate: Callable[[], Awaitable[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        """Return the cached report or generate, cache and return it."""
        scope = CacheService.scope_for(residence_id)
        cached = await self.cache.get_report(report_type, scope, params)
        if cached is not None:
            return cached

        await self._check_residence(residence_id)
        report = await generate()
        await self.cache.set_report(report_type, scope, params, report)
        return report

    # ===========================================
    # INCOME STATEMENT
    # ===========================================

    async def generate_income_statement(
        self,
        period: Optional[Any] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
        month: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Income statement for a year, or one month of it."""
        year = self._default_year(period)
        basis = validate_basis(basis)
        month = validate_month(month)
        params = {"year": year, "basis": basis, "month": month}

        async def generate() -> Dict[str, Any]:
            start, end = year_range(year)
            entries = await self.repository.fetch_entries(end, start_date=start, residence_id=residence_id)
            return build_income_statement(
                entries, await self._directory(), year, basis, residence_id, month=month,
            )

        logger.info(
            f"Income statement requested: {year}{f'-{month:02d}' if month else ''} ({basis}), "
            f"residence {residence_id or 'all'}"
        )
        return await self._cached("income_statement", residence_id, params, generate)

    # ===========================================
    # BALANCE SHEET
    # ===========================================

    async def generate_balance_sheet(
        self,
        as_of: Optional[date] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
    ) -> Dict[str, Any]:
        """Balance sheet as of a date (default today)."""
        as_of = as_of or date.today()
        basis = validate_basis(basis)
        params = {"as_of": as_of.isoformat(), "basis": basis}

        async def generate() -> Dict[str, Any]:
            entries = await self.repository.fetch_entries(as_of, residence_id=residence_id)
            return build_balance_sheet(
                entries, await self._directory(), as_of, basis, residence_id, tolerance=self.tolerance,
            )

        logger.info(f"Balance sheet requested as of {as_of} ({basis}), residence {residence_id or 'all'}")
        return await self._cached("balance_sheet", residence_id, params, generate)

    async def generate_monthly_balance_sheet(
        self,
        period: Optional[Any] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
        view: str = "cumulative",
    ) -> Dict[str, Any]:
        """Twelve month-end balance sheets for a year."""
        year = self._default_year(period)
        basis = validate_basis(basis)
        view = (view or "cumulative").strip().lower()
        if view not in BALANCE_SHEET_VIEWS:
            raise ValidationException(
                f'View must be one of {", ".join(BALANCE_SHEET_VIEWS)}, got "{view}"',
                field="view",
            )
        params = {"year": year, "basis": basis, "view": view}

        async def generate() -> Dict[str, Any]:
            _, end = year_range(year)
            entries = await self.repository.fetch_entries(end, residence_id=residence_id)
            return build_monthly_balance_sheet(
                entries, await self._directory(), year, basis, residence_id,
                view=view, tolerance=self.tolerance,
            )

        logger.info(f"Monthly balance sheet requested: {year} ({basis}, {view}), residence {residence_id or 'all'}")
        return await self._cached("monthly_balance_sheet", residence_id, params, generate)

    # ===========================================
    # CASH FLOW
    # ===========================================

    async def generate_cash_flow_statement(
        self,
        period: Optional[Any] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
        month: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Cash flow statement for a year, or one month of it."""
        year = self._default_year(period)
        basis = validate_basis(basis)
        month = validate_month(month)
        params = {"year": year, "basis": basis, "month": month}

        async def generate() -> Dict[str, Any]:
            # Everything before the period is needed for the opening cash balance
            _, end = year_range(year)
            entries = await self.repository.fetch_entries(end, residence_id=residence_id)
            return build_cash_flow_statement(
                entries, await self._directory(), year, basis, residence_id, month=month,
            )

        logger.info(
            f"Cash flow requested: {year}{f'-{month:02d}' if month else ''} ({basis}), "
            f"residence {residence_id or 'all'}"
        )
        return await self._cached("cash_flow_statement", residence_id, params, generate)

    # ===========================================
    # TRIAL BALANCE & GENERAL LEDGER
    # ===========================================

    async def generate_trial_balance(
        self,
        as_of: Optional[date] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
    ) -> Dict[str, Any]:
        as_of = as_of or date.today()
        basis = validate_basis(basis)
        params = {"as_of": as_of.isoformat(), "basis": basis}

        async def generate() -> Dict[str, Any]:
            entries = await self.repository.fetch_entries(as_of, residence_id=residence_id)
            return build_trial_balance(entries, await self._directory(), as_of, basis, residence_id)

        logger.info(f"Trial balance requested as of {as_of} ({basis}), residence {residence_id or 'all'}")
        return await self._cached("trial_balance", residence_id, params, generate)

    async def generate_general_ledger(
        self,
        account_code: str,
        period: Optional[Any] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
    ) -> Dict[str, Any]:
        """
        Postings to one account for a year with a running balance.

        Codes missing from the directory are accepted when ledger lines use
        them (per-tenant sub-accounts); otherwise AccountNotFoundException.
        """
        account_code = (account_code or "").strip()
        if not account_code:
            raise ValidationException("Account code is required", field="account")
        year = self._default_year(period)
        basis = validate_basis(basis)
        params = {"account": account_code, "year": year, "basis": basis}

        async def generate() -> Dict[str, Any]:
            _, end = year_range(year)
            entries = await self.repository.fetch_entries(
                end, residence_id=residence_id, account_code=account_code,
            )
            account = await self.repository.get_account(account_code)
            if account is None:
                account = self._account_from_lines(account_code, entries)
            return build_general_ledger(entries, account, year, basis, residence_id)

        logger.info(f"General ledger requested: {account_code} {year} ({basis}), residence {residence_id or 'all'}")
        return await self._cached("general_ledger", residence_id, params, generate)

    @staticmethod
    def _account_from_lines(account_code: str, entries) -> AccountInfo:
        for entry in entries:
            for line in entry.lines:
                if line.account_code == account_code:
                    return AccountDirectory([]).resolve(account_code, line.account_name, line.account_type)
        raise AccountNotFoundException(account_code)

    # ===========================================
    # BALANCES & SUMMARY
    # ===========================================

    async def get_account_balances(
        self,
        as_of: Optional[date] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
    ) -> Dict[str, Any]:
        as_of = as_of or date.today()
        basis = validate_basis(basis)
        params = {"as_of": as_of.isoformat(), "basis": basis}

        async def generate() -> Dict[str, Any]:
            entries = await self.repository.fetch_entries(as_of, residence_id=residence_id)
            return build_account_balances(entries, await self._directory(), as_of, basis, residence_id)

        return await self._cached("account_balances", residence_id, params, generate)

    async def get_financial_summary(
        self,
        period: Optional[Any] = None,
        as_of: Optional[date] = None,
        basis: str = "cash",
        residence_id: ResidenceId = None,
    ) -> Dict[str, Any]:
        """
        Income statement, balance sheet, cash flow and trial balance together.

        Raises:
            InvalidDateRangeException: as_of falls before the start of the year
        """
        year = self._default_year(period)
        basis = validate_basis(basis)
        start, end = year_range(year)
        as_of = as_of or end
        if as_of < start:
            raise InvalidDateRangeException(start.isoformat(), as_of.isoformat())

        await self._check_residence(residence_id)
        summary = {
            "period": str(year),
            "as_of": as_of.isoformat(),
            "basis": basis,
            "residence_id": str(residence_id) if residence_id else None,
            "income_statement": await self.generate_income_statement(year, basis, residence_id),
            "balance_sheet": await self.generate_balance_sheet(as_of, basis, residence_id),
            "cash_flow_statement": await self.generate_cash_flow_statement(year, basis, residence_id),
            "trial_balance": await self.generate_trial_balance(as_of, basis, residence_id),
        }
        logger.info(f"Financial summary generated: {year} as of {as_of} ({basis}), residence {residence_id or 'all'}")
        return summary
