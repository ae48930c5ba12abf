"""
HostelHub Finance - Trial Balance, General Ledger & Account Balances
"""

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from app.models.ledger import AccountType
from app.services.account_classification import normal_balance, signed_balance
from app.services.ledger_aggregation import (
    ZERO,
    AccountDirectory,
    AccountInfo,
    LedgerEntry,
    filter_entries,
    sum_by_account,
    to_money,
    year_range,
)
from app.services.statements.common import report_header

logger = logging.getLogger(__name__)

BALANCE_TYPE_KEYS = {
    AccountType.ASSET: "assets",
    AccountType.LIABILITY: "liabilities",
    AccountType.EQUITY: "equity",
    AccountType.INCOME: "income",
    AccountType.EXPENSE: "expenses",
}


# ===========================================
# TRIAL BALANCE
# ===========================================

def build_trial_balance(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    as_of: date,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
) -> Dict[str, Any]:
    """
    Trial balance as of a date.

    A net debit balance is listed in the debit column and a net credit
    balance in the credit column, so the columns agree whenever every entry
    is balanced.
    """
    selected = filter_entries(entries, basis, residence_id, end=as_of)
    totals = sum_by_account(selected, directory)

    rows: List[Dict[str, Any]] = []
    total_debits = ZERO
    total_credits = ZERO
    for code in sorted(totals):
        bucket = totals[code]
        net = bucket.net_debit
        if net == ZERO:
            continue
        debit = net if net > ZERO else ZERO
        credit = -net if net < ZERO else ZERO
        total_debits += debit
        total_credits += credit
        rows.append({
            "account_code": code,
            "account_name": bucket.name,
            "account_type": bucket.account_type.value,
            "normal_balance": normal_balance(bucket.account_type),
            "debit": to_money(debit),
            "credit": to_money(credit),
            "balance": to_money(bucket.balance),
        })

    difference = total_debits - total_credits
    report = report_header("trial_balance", basis, residence_id, as_of=as_of.isoformat())
    report.update({
        "accounts": rows,
        "totals": {
            "total_debits": to_money(total_debits),
            "total_credits": to_money(total_credits),
            "difference": to_money(difference),
            "balanced": abs(difference) < Decimal("0.01"),
        },
        "entry_count": len(selected),
    })
    if not report["totals"]["balanced"]:
        logger.warning(f"Trial balance as of {as_of} ({basis}) does not balance: difference {difference}")
    return report


# ===========================================
# GENERAL LEDGER
# ===========================================

def build_general_ledger(
    entries: Iterable[LedgerEntry],
    account: AccountInfo,
    year: int,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
) -> Dict[str, Any]:
    """
    Every posting to one account during a year, with a running balance.

    The opening balance covers everything dated before January 1st; balances
    move in the account's normal direction.
    """
    start, end = year_range(year)
    selected = filter_entries(entries, basis, residence_id, end=end)

    opening = ZERO
    rows: List[Dict[str, Any]] = []
    period_lines = []
    for entry in selected:
        for line in entry.lines:
            if line.account_code != account.code:
                continue
            if entry.date < start:
                opening += signed_balance(account.type, line.debit, line.credit)
            else:
                period_lines.append((entry, line))

    period_lines.sort(key=lambda pair: (pair[0].date, pair[0].transaction_id))

    running = opening
    total_debits = ZERO
    total_credits = ZERO
    for entry, line in period_lines:
        running += signed_balance(account.type, line.debit, line.credit)
        total_debits += line.debit
        total_credits += line.credit
        rows.append({
            "date": entry.date.isoformat(),
            "transaction_id": entry.transaction_id,
            "description": line.description or entry.description,
            "reference": entry.reference,
            "source": entry.source,
            "debit": to_money(line.debit),
            "credit": to_money(line.credit),
            "balance": to_money(running),
        })

    report = report_header(
        "general_ledger",
        basis,
        residence_id,
        period=str(year),
        account_code=account.code,
        account_name=account.name,
        account_type=account.type.value,
    )
    report.update({
        "opening_balance": to_money(opening),
        "entries": rows,
        "total_debits": to_money(total_debits),
        "total_credits": to_money(total_credits),
        "closing_balance": to_money(running),
    })
    return report


# ===========================================
# ACCOUNT BALANCES
# ===========================================

def slugify_account_name(name: str) -> str:
    """'Rental Income - Singles' -> 'rental_income_singles'"""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def build_account_balances(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    as_of: date,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
) -> Dict[str, Any]:
    """Non-zero balances grouped by account type, keyed by account name."""
    selected = filter_entries(entries, basis, residence_id, end=as_of)
    totals = sum_by_account(selected, directory)

    grouped: Dict[str, Dict[str, float]] = {key: {} for key in BALANCE_TYPE_KEYS.values()}
    type_totals: Dict[str, Decimal] = {key: ZERO for key in BALANCE_TYPE_KEYS.values()}
    for code in sorted(totals):
        bucket = totals[code]
        if bucket.balance == ZERO:
            continue
        key = BALANCE_TYPE_KEYS[bucket.account_type]
        slug = slugify_account_name(bucket.name) or code
        if slug in grouped[key]:
            slug = f"{slug}_{code}"
        grouped[key][slug] = to_money(bucket.balance)
        type_totals[key] += bucket.balance

    report = report_header("account_balances", basis, residence_id, as_of=as_of.isoformat())
    report.update(grouped)
    report["totals"] = {key: to_money(value) for key, value in type_totals.items()}
    return report
