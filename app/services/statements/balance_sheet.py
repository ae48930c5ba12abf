"""
HostelHub Finance - Balance Sheet

Financial position as of a date, or as a series of month-ends.

Assets = Liabilities + Equity, where equity carries retained earnings plus
the cumulative net income of every income and expense account up to the
as-of date. Balances are never clamped; an imbalance is reported in
balance_check and logged, never corrected.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from app.models.ledger import AccountType
from app.services.account_classification import (
    classify_balance_group,
    classify_equity,
    is_current_asset,
    is_current_liability,
)
from app.services.ledger_aggregation import (
    MONTH_NAMES,
    ZERO,
    AccountDirectory,
    AccountTotals,
    LedgerEntry,
    filter_entries,
    money_map,
    month_range,
    quantize,
    rollup_totals,
    sum_by_account,
    to_money,
)
from app.services.statements.common import report_header

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")
BALANCE_SHEET_VIEWS = ("cumulative", "monthly")


class _Section:
    """Accumulates statement lines and their total."""

    def __init__(self):
        self.accounts: List[Dict[str, Any]] = []
        self.total = ZERO

    def add(self, bucket: AccountTotals, group: str) -> None:
        self.total += bucket.balance
        line = {
            "account_code": bucket.code,
            "account_name": bucket.name,
            "amount": to_money(bucket.balance),
            "group": group,
        }
        if bucket.children:
            line["children"] = [
                {
                    "account_code": child.code,
                    "account_name": child.name,
                    "amount": to_money(child.balance),
                }
                for child in bucket.children
            ]
        self.accounts.append(line)

    def to_dict(self, **extra: Any) -> Dict[str, Any]:
        result = {"accounts": self.accounts}
        result.update(extra)
        result["total"] = to_money(self.total)
        return result


def _ratio(numerator: Decimal, denominator: Decimal) -> Optional[float]:
    if denominator == ZERO:
        return None
    return float(quantize(numerator / denominator))


def _position(
    entries: List[LedgerEntry],
    directory: AccountDirectory,
    tolerance: Decimal,
) -> Dict[str, Any]:
    """Statement body for a set of already-filtered entries."""
    rolled = rollup_totals(sum_by_account(entries, directory), directory)

    current_assets, non_current_assets = _Section(), _Section()
    current_liabilities, non_current_liabilities = _Section(), _Section()
    equity = {"capital": _Section(), "retained_earnings": _Section(), "other_equity": _Section()}
    asset_groups: Dict[str, Decimal] = {}
    liability_groups: Dict[str, Decimal] = {}
    net_income = ZERO

    for code in sorted(rolled):
        bucket = rolled[code]
        if bucket.account_type == AccountType.INCOME:
            net_income += bucket.balance
            continue
        if bucket.account_type == AccountType.EXPENSE:
            net_income -= bucket.balance
            continue
        if bucket.balance == ZERO and not bucket.children:
            continue

        info = directory.get(code)
        category = info.category if info else None
        group = classify_balance_group(bucket.account_type, code, bucket.name)

        if bucket.account_type == AccountType.ASSET:
            section = current_assets if is_current_asset(code, bucket.name, category) else non_current_assets
            asset_groups[group] = asset_groups.get(group, ZERO) + bucket.balance
        elif bucket.account_type == AccountType.LIABILITY:
            section = (
                current_liabilities if is_current_liability(code, bucket.name, category)
                else non_current_liabilities
            )
            liability_groups[group] = liability_groups.get(group, ZERO) + bucket.balance
        else:
            section = equity[classify_equity(code, bucket.name)]
        section.add(bucket, group)

    # Net income not yet closed to retained earnings
    equity["retained_earnings"].total += net_income

    total_assets = current_assets.total + non_current_assets.total
    total_liabilities = current_liabilities.total + non_current_liabilities.total
    total_equity = sum((s.total for s in equity.values()), ZERO)
    difference = total_assets - (total_liabilities + total_equity)
    balanced = abs(difference) < tolerance

    return {
        "assets": {
            "current": current_assets.to_dict(),
            "non_current": non_current_assets.to_dict(),
            "total": to_money(total_assets),
        },
        "liabilities": {
            "current": current_liabilities.to_dict(),
            "non_current": non_current_liabilities.to_dict(),
            "total": to_money(total_liabilities),
        },
        "equity": {
            "capital": equity["capital"].to_dict(),
            "retained_earnings": equity["retained_earnings"].to_dict(
                accumulated_net_income=to_money(net_income),
            ),
            "other_equity": equity["other_equity"].to_dict(),
            "total": to_money(total_equity),
        },
        "total_liabilities_and_equity": to_money(total_liabilities + total_equity),
        "groups": {
            "assets": money_map(asset_groups),
            "liabilities": money_map(liability_groups),
        },
        "ratios": {
            "working_capital": to_money(current_assets.total - current_liabilities.total),
            "current_ratio": _ratio(current_assets.total, current_liabilities.total),
            "debt_to_equity": _ratio(total_liabilities, total_equity),
        },
        "balance_check": {
            "assets": to_money(total_assets),
            "liabilities_and_equity": to_money(total_liabilities + total_equity),
            "difference": to_money(difference),
            "balanced": balanced,
        },
        "entry_count": len(entries),
    }


def build_balance_sheet(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    as_of: date,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> Dict[str, Any]:
    """Balance sheet as of a date (entries dated on or before it)."""
    selected = filter_entries(entries, basis, residence_id, end=as_of)
    report = report_header("balance_sheet", basis, residence_id, as_of=as_of.isoformat())
    report.update(_position(selected, directory, tolerance))

    check = report["balance_check"]
    if not check["balanced"]:
        logger.warning(
            f"Balance sheet as of {as_of} ({basis}) is out of balance by {check['difference']}: "
            f"assets {check['assets']} vs liabilities + equity {check['liabilities_and_equity']}"
        )
    return report


def build_monthly_balance_sheet(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    year: int,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
    view: str = "cumulative",
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> Dict[str, Any]:
    """
    One balance sheet per month-end of a year.

    "cumulative" shows the position at each month end; "monthly" shows only
    that month's movements, so the months add up to the year's activity.
    """
    if view not in BALANCE_SHEET_VIEWS:
        raise ValueError(f"Unknown balance sheet view: {view}")

    entries = list(entries)
    monthly: Dict[str, Dict[str, Any]] = {}
    for month in range(1, 13):
        start, end = month_range(year, month)
        if view == "cumulative":
            selected = filter_entries(entries, basis, residence_id, end=end)
        else:
            selected = filter_entries(entries, basis, residence_id, start=start, end=end)
        position = _position(selected, directory, tolerance)
        monthly[str(month)] = {
            "month": month,
            "month_name": MONTH_NAMES[month - 1],
            "as_of": end.isoformat(),
            **position,
        }

    totals = {
        key: [Decimal(str(m[section]["total"])) for m in monthly.values()]
        for key, section in (
            ("total_assets", "assets"),
            ("total_liabilities", "liabilities"),
            ("total_equity", "equity"),
        )
    }
    unbalanced = [m["month_name"] for m in monthly.values() if not m["balance_check"]["balanced"]]
    if unbalanced:
        logger.warning(f"Monthly balance sheet {year} ({basis}) out of balance in: {', '.join(unbalanced)}")

    if view == "cumulative":
        year_end = monthly["12"]
        annual_summary = {
            "year_end": {
                "total_assets": year_end["assets"]["total"],
                "total_liabilities": year_end["liabilities"]["total"],
                "total_equity": year_end["equity"]["total"],
            },
            "average": {key: to_money(sum(values, ZERO) / 12) for key, values in totals.items()},
        }
    else:
        annual_summary = {
            "total_change": {key: to_money(sum(values, ZERO)) for key, values in totals.items()},
        }
    annual_summary["all_months_balanced"] = not unbalanced

    report = report_header(
        "monthly_balance_sheet",
        basis,
        residence_id,
        period=str(year),
        year=year,
        view=view,
    )
    report.update({"monthly": monthly, "annual_summary": annual_summary})
    return report
