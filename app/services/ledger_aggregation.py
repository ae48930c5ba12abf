"""
HostelHub Finance - Ledger Aggregation Engine

Walks posted ledger entries for a period (and optional residence), groups
their lines by account, month and classified category, and sums debits and
credits. Everything here works on plain value objects so report generation
never touches ORM state.
"""

import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from app.models.ledger import AccountType, EntryStatus
from app.services.account_classification import (
    entry_in_basis,
    resolve_account_type,
    rollup_parent_code,
    signed_balance,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

MONTH_NAMES = [calendar.month_name[m] for m in range(1, 13)]


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class LedgerLine:
    """One debit or credit line."""
    account_code: str
    account_name: str
    account_type: Optional[str]
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None


@dataclass(frozen=True)
class LedgerEntry:
    """A posted transaction entry, detached from the database."""
    entry_id: str
    transaction_id: str
    date: date
    description: str
    source: str
    lines: Tuple[LedgerLine, ...]
    status: str = EntryStatus.POSTED.value
    reference: Optional[str] = None
    residence_id: Optional[str] = None

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class AccountInfo:
    """Account directory row."""
    code: str
    name: str
    type: AccountType
    category: Optional[str] = None
    parent_code: Optional[str] = None
    is_active: bool = True


@dataclass
class AccountTotals:
    """Debit/credit sums for one account."""
    code: str
    name: str
    account_type: AccountType
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    children: List["AccountTotals"] = field(default_factory=list)

    @property
    def net_debit(self) -> Decimal:
        return self.debit - self.credit

    @property
    def balance(self) -> Decimal:
        """Balance in the account's normal direction."""
        return signed_balance(self.account_type, self.debit, self.credit)

    def add(self, debit: Decimal, credit: Decimal) -> None:
        self.debit += debit
        self.credit += credit


# =============================================================================
# ACCOUNT DIRECTORY
# =============================================================================

class AccountDirectory:
    """Code lookup over the account directory with line-level fallbacks."""

    def __init__(self, accounts: Iterable[AccountInfo]):
        self._accounts: Dict[str, AccountInfo] = {a.code: a for a in accounts}

    def __contains__(self, code: str) -> bool:
        return code in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    @property
    def codes(self) -> List[str]:
        return list(self._accounts)

    def get(self, code: str) -> Optional[AccountInfo]:
        return self._accounts.get(code)

    def accounts(self, active_only: bool = True) -> List[AccountInfo]:
        return [a for a in self._accounts.values() if a.is_active or not active_only]

    def resolve(
        self,
        code: str,
        name: Optional[str] = None,
        declared_type: Optional[str] = None,
    ) -> AccountInfo:
        """
        Directory row for a code.

        Codes missing from the directory (e.g. per-tenant sub-accounts) are
        described from the line itself, with the type from the code rule.
        """
        info = self._accounts.get(code)
        if info is not None:
            return info
        return AccountInfo(
            code=code,
            name=name or code,
            type=resolve_account_type(code, declared_type),
        )

    def parent_of(self, code: str) -> str:
        """Rollup target for a code (itself when it has no parent)."""
        info = self._accounts.get(code)
        return rollup_parent_code(
            code,
            known_codes=self._accounts.keys(),
            parent_code=info.parent_code if info else None,
        )


# =============================================================================
# PERIODS
# =============================================================================

def year_range(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def month_range(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_ends(year: int) -> List[date]:
    return [month_range(year, month)[1] for month in range(1, 13)]


def period_months(month: Optional[int] = None) -> List[int]:
    """Months covered by a yearly (None) or single-month period."""
    return [month] if month else list(range(1, 13))


# =============================================================================
# FILTERING
# =============================================================================

def _same_residence(entry: LedgerEntry, residence_id: Optional[Union[str, UUID]]) -> bool:
    if residence_id is None:
        return True
    return entry.residence_id is not None and str(entry.residence_id) == str(residence_id)


def filter_entries(
    entries: Iterable[LedgerEntry],
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[LedgerEntry]:
    """Posted entries in the basis, residence and inclusive date range."""
    selected = []
    seen = 0
    for entry in entries:
        seen += 1
        if entry.status != EntryStatus.POSTED.value:
            continue
        if start is not None and entry.date < start:
            continue
        if end is not None and entry.date > end:
            continue
        if not _same_residence(entry, residence_id):
            continue
        if not entry_in_basis(entry, basis):
            continue
        selected.append(entry)
    logger.debug(f"Selected {len(selected)} of {seen} entries ({basis} basis, {start} to {end})")
    return selected


def check_entry_balanced(entry: LedgerEntry) -> bool:
    """Double-entry invariant: debits equal credits."""
    return entry.total_debit == entry.total_credit


# =============================================================================
# SUMMING
# =============================================================================

def sum_by_account(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    line_filter: Optional[Callable[[LedgerEntry, LedgerLine], bool]] = None,
) -> Dict[str, AccountTotals]:
    """Debit and credit totals per account code."""
    totals: Dict[str, AccountTotals] = {}
    for entry in entries:
        for line in entry.lines:
            if line_filter is not None and not line_filter(entry, line):
                continue
            bucket = totals.get(line.account_code)
            if bucket is None:
                info = directory.resolve(line.account_code, line.account_name, line.account_type)
                bucket = AccountTotals(code=info.code, name=info.name, account_type=info.type)
                totals[line.account_code] = bucket
            bucket.add(line.debit, line.credit)
    return totals


def sum_by_month(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    line_filter: Optional[Callable[[LedgerEntry, LedgerLine], bool]] = None,
) -> Dict[int, Dict[str, AccountTotals]]:
    """Per-month account totals, keyed 1..12 (months without activity are empty)."""
    by_month: Dict[int, List[LedgerEntry]] = defaultdict(list)
    for entry in entries:
        by_month[entry.date.month].append(entry)
    return {
        month: sum_by_account(by_month.get(month, []), directory, line_filter)
        for month in range(1, 13)
    }


def sum_by_category(
    totals: Dict[str, AccountTotals],
    account_type: AccountType,
    classify: Callable[[str, Optional[str]], str],
    categories: Iterable[str] = (),
) -> Dict[str, Decimal]:
    """Normal-direction balances of one account type, grouped by category."""
    grouped: Dict[str, Decimal] = {category: ZERO for category in categories}
    for bucket in totals.values():
        if bucket.account_type != account_type:
            continue
        category = classify(bucket.code, bucket.name)
        grouped[category] = grouped.get(category, ZERO) + bucket.balance
    return grouped


def rollup_totals(
    totals: Dict[str, AccountTotals],
    directory: AccountDirectory,
) -> Dict[str, AccountTotals]:
    """
    Fold child accounts into their parent line.

    The parent's debits/credits include its children; each child is also
    listed under the parent's children.
    """
    rolled: Dict[str, AccountTotals] = {}
    for code in sorted(totals):
        bucket = totals[code]
        parent_code = directory.parent_of(code)
        if parent_code == code:
            target = rolled.get(code)
            if target is None:
                target = AccountTotals(code=code, name=bucket.name, account_type=bucket.account_type)
                rolled[code] = target
            else:
                target.name = bucket.name
                target.account_type = bucket.account_type
            target.add(bucket.debit, bucket.credit)
            continue

        target = rolled.get(parent_code)
        if target is None:
            parent = directory.resolve(parent_code, declared_type=bucket.account_type.value)
            target = AccountTotals(code=parent.code, name=parent.name, account_type=parent.type)
            rolled[parent_code] = target
        target.add(bucket.debit, bucket.credit)
        target.children.append(
            AccountTotals(
                code=bucket.code,
                name=bucket.name,
                account_type=bucket.account_type,
                debit=bucket.debit,
                credit=bucket.credit,
            )
        )
    return rolled


# =============================================================================
# OUTPUT HELPERS
# =============================================================================

def quantize(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(amount: Decimal) -> float:
    """Round to cents for JSON output."""
    return float(quantize(amount))


def money_map(values: Dict[str, Decimal]) -> Dict[str, float]:
    return {key: to_money(value) for key, value in values.items()}
