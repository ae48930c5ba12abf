"""
HostelHub Finance - Income Statement

Revenue and expenses for a year (or one month of it) on cash or accrual
basis, with a month-by-month breakdown whose values add up to the period
totals.

Structure:
- Revenue (Income accounts, credit - debit), by income category
  - Rental income (4000/4001 and rental accounts)
  - Admin income (4002/4020 and admin fee accounts)
- Expenses (Expense accounts, debit - credit), by expense category
  - Petty cash allocations are transfers, never expenses
- Net income
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from app.models.ledger import AccountType
from app.services.account_classification import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    classify_balance_group,
    classify_expense,
    classify_income,
    is_accrual_source,
    is_cash_source,
    is_internal_cash_transfer,
    rollup_parent_code,
    signed_balance,
)
from app.services.ledger_aggregation import (
    MONTH_NAMES,
    ZERO,
    AccountDirectory,
    AccountInfo,
    AccountTotals,
    LedgerEntry,
    LedgerLine,
    filter_entries,
    money_map,
    month_range,
    period_months,
    sum_by_account,
    sum_by_category,
    sum_by_month,
    to_money,
    year_range,
)
from app.services.statements.common import account_line, report_header

logger = logging.getLogger(__name__)


def _recognition_filter(directory: AccountDirectory):
    """Lines that are revenue or expense on the income statement."""

    def recognised(entry: LedgerEntry, line: LedgerLine) -> bool:
        account_type = directory.resolve(line.account_code, line.account_name, line.account_type).type
        if account_type == AccountType.INCOME:
            return True
        if account_type == AccountType.EXPENSE:
            return not is_internal_cash_transfer(entry)
        return False

    return recognised


def _section_totals(totals: Dict[str, AccountTotals]) -> Dict[str, Any]:
    revenue = sum_by_category(totals, AccountType.INCOME, classify_income, INCOME_CATEGORIES)
    expenses = sum_by_category(totals, AccountType.EXPENSE, classify_expense, EXPENSE_CATEGORIES)
    total_revenue = sum(revenue.values(), ZERO)
    total_expenses = sum(expenses.values(), ZERO)
    return {
        "revenue": revenue,
        "expenses": expenses,
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_income": total_revenue - total_expenses,
    }


def _account_lines(totals: Dict[str, AccountTotals], account_type: AccountType) -> List[Dict[str, Any]]:
    classify = classify_income if account_type == AccountType.INCOME else classify_expense
    return [
        account_line(bucket, bucket.balance, category=classify(bucket.code, bucket.name))
        for code, bucket in sorted(totals.items())
        if bucket.account_type == account_type
    ]


def _settlement_side(info: AccountInfo) -> Optional[AccountType]:
    """Income/expense side a receivable or payable account settles, if any."""
    group = classify_balance_group(info.type, info.code, info.name)
    if info.type == AccountType.ASSET and group == "accounts_receivable":
        return AccountType.INCOME
    if info.type == AccountType.LIABILITY and group in ("accounts_payable", "accrued_expenses"):
        return AccountType.EXPENSE
    return None


def _settled_accruals(entries: List[LedgerEntry], directory: AccountDirectory) -> Dict[str, Decimal]:
    """
    Cash collected or paid later against accrued revenue and expenses.

    Accrual entries open items on their receivable/payable account, one per
    revenue or expense line. Cash entries that reduce that account close the
    oldest open items first. Returns the settled amount per revenue/expense
    account code.
    """
    open_items: Dict[str, List[List[Any]]] = {}
    settled: Dict[str, Decimal] = {}

    for entry in sorted(entries, key=lambda e: e.date):
        resolved = [
            (line, directory.resolve(line.account_code, line.account_name, line.account_type))
            for line in entry.lines
        ]
        if is_accrual_source(entry.source):
            for side in (AccountType.INCOME, AccountType.EXPENSE):
                counterparts = [
                    rollup_parent_code(line.account_code, parent_code=info.parent_code)
                    for line, info in resolved
                    if _settlement_side(info) == side
                    and signed_balance(info.type, line.debit, line.credit) > 0
                ]
                if not counterparts:
                    continue
                for line, info in resolved:
                    if info.type == side:
                        amount = signed_balance(info.type, line.debit, line.credit)
                        if amount > 0:
                            open_items.setdefault(counterparts[0], []).append([line.account_code, amount])
        elif is_cash_source(entry.source):
            for line, info in resolved:
                if _settlement_side(info) is None:
                    continue
                remaining = -signed_balance(info.type, line.debit, line.credit)
                key = rollup_parent_code(line.account_code, parent_code=info.parent_code)
                queue = open_items.get(key, [])
                while remaining > 0 and queue:
                    item = queue[0]
                    applied = min(remaining, item[1])
                    settled[item[0]] = settled.get(item[0], ZERO) + applied
                    item[1] -= applied
                    remaining -= applied
                    if item[1] <= 0:
                        queue.pop(0)
    return settled


def _accrual_detail(
    entries: List[LedgerEntry],
    directory: AccountDirectory,
    totals: Dict[str, AccountTotals],
) -> Dict[str, Any]:
    """
    Earned vs received (revenue) and incurred vs paid (expenses) per account.

    Received/paid counts cash posted straight to the account plus later
    collections of receivables and settlements of payables raised by
    accruals in the same period.
    """
    cash_entries = [e for e in entries if is_cash_source(e.source)]
    direct = sum_by_account(cash_entries, directory, _recognition_filter(directory))
    settled = _settled_accruals(entries, directory)

    revenue, expenses = [], []
    for code, bucket in sorted(totals.items()):
        paid_part = direct[code].balance if code in direct else ZERO
        paid_part += settled.get(code, ZERO)
        if bucket.account_type == AccountType.INCOME:
            revenue.append({
                "account_code": code,
                "account_name": bucket.name,
                "earned": to_money(bucket.balance),
                "received": to_money(paid_part),
                "outstanding": to_money(bucket.balance - paid_part),
            })
        elif bucket.account_type == AccountType.EXPENSE:
            expenses.append({
                "account_code": code,
                "account_name": bucket.name,
                "incurred": to_money(bucket.balance),
                "paid": to_money(paid_part),
                "payable": to_money(bucket.balance - paid_part),
            })
    return {"revenue": revenue, "expenses": expenses}


def _month_block(month: int, totals: Dict[str, AccountTotals]) -> Dict[str, Any]:
    sections = _section_totals(totals)
    return {
        "month": month,
        "month_name": MONTH_NAMES[month - 1],
        "revenue": {
            "rental_income": to_money(sections["revenue"]["rental_income"]),
            "admin_income": to_money(sections["revenue"]["admin_fees"]),
            "by_category": money_map(sections["revenue"]),
            "total": to_money(sections["total_revenue"]),
        },
        "expenses": {
            "by_category": money_map(sections["expenses"]),
            "total": to_money(sections["total_expenses"]),
        },
        "net_income": to_money(sections["net_income"]),
    }


def build_income_statement(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    year: int,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
    month: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Assemble the income statement.

    Args:
        entries: Ledger entries (any superset of the period)
        directory: Account directory
        year: Reporting year
        basis: "cash" or "accrual"
        residence_id: Only entries of this residence
        month: Restrict the period to one month of the year

    Returns:
        Income statement dict with monthly_breakdown and annual_summary
    """
    start, end = month_range(year, month) if month else year_range(year)
    period_entries = filter_entries(entries, basis, residence_id, start, end)
    recognised = _recognition_filter(directory)

    totals = sum_by_account(period_entries, directory, recognised)
    monthly = sum_by_month(period_entries, directory, recognised)
    sections = _section_totals(totals)

    monthly_breakdown = {
        str(m): _month_block(m, monthly[m]) for m in period_months(month)
    }
    months_with_activity = sum(1 for m in period_months(month) if monthly[m])

    report = report_header(
        "income_statement",
        basis,
        residence_id,
        period=f"{year}-{month:02d}" if month else str(year),
        year=year,
        month=month,
        period_start=start.isoformat(),
        period_end=end.isoformat(),
    )
    report.update({
        "revenue": {
            "accounts": _account_lines(totals, AccountType.INCOME),
            "by_category": money_map(sections["revenue"]),
            "rental_income": to_money(sections["revenue"]["rental_income"]),
            "admin_income": to_money(sections["revenue"]["admin_fees"]),
            "total": to_money(sections["total_revenue"]),
        },
        "expenses": {
            "accounts": _account_lines(totals, AccountType.EXPENSE),
            "by_category": money_map(sections["expenses"]),
            "total": to_money(sections["total_expenses"]),
        },
        "net_income": to_money(sections["net_income"]),
        "monthly_breakdown": monthly_breakdown,
        "annual_summary": {
            "total_revenue": to_money(sections["total_revenue"]),
            "total_expenses": to_money(sections["total_expenses"]),
            "net_income": to_money(sections["net_income"]),
            "months_with_activity": months_with_activity,
        },
        "entry_count": len(period_entries),
    })
    if basis == "accrual":
        report["accrual_detail"] = _accrual_detail(period_entries, directory, totals)

    logger.info(
        f"Income statement {report['period']} ({basis}): revenue {report['revenue']['total']}, "
        f"expenses {report['expenses']['total']}, {len(period_entries)} entries"
    )
    return report
