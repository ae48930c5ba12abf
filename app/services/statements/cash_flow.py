"""
HostelHub Finance - Cash Flow Statement

Direct-method cash flow built from movements on cash accounts (bank, cash,
Ecocash, Innbucks, petty cash).

Every non-cash line of an entry that moves cash accounts for part of that
movement (credit - debit), so the sections always add up to the change in
cash. The counterpart account decides the section:
- Operating: income, expenses, receivables, payables, deposits, advances
- Investing: non-current assets (equipment, buildings)
- Financing: owner's equity and loans

Outflows are negative. Moves between cash accounts (petty cash allocations)
are internal transfers and appear in no section.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from app.models.ledger import AccountType
from app.services.account_classification import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    LONG_TERM_LIABILITY_KEYWORDS,
    classify_balance_group,
    classify_expense,
    classify_income,
    is_cash_account,
    is_current_asset,
    is_current_liability,
)
from app.services.ledger_aggregation import (
    MONTH_NAMES,
    ZERO,
    AccountDirectory,
    AccountInfo,
    LedgerEntry,
    filter_entries,
    money_map,
    month_range,
    period_months,
    to_money,
    year_range,
)
from app.services.statements.common import report_header

logger = logging.getLogger(__name__)

OPERATING_ITEMS = (
    "cash_received_from_customers",
    "cash_paid_to_suppliers",
    "cash_paid_for_expenses",
    "deposits_refunded",
)
INVESTING_ITEMS = ("purchase_of_equipment", "purchase_of_buildings", "other_investing")
FINANCING_ITEMS = ("owners_contribution", "owner_drawings", "loan_proceeds", "loan_repayments")

EQUIPMENT_KEYWORDS = ("equipment", "furniture", "machinery", "vehicle")
BUILDING_KEYWORDS = ("building", "construction", "property")


def _name_has(name: str, keywords) -> bool:
    text = (name or "").lower()
    return any(keyword in text for keyword in keywords)


def classify_cash_flow(info: AccountInfo, amount: Decimal) -> tuple:
    """
    (section, item, category) for cash attributed to a counterpart account.

    Args:
        info: Counterpart account
        amount: Cash contribution, positive for inflow
    """
    inflow = amount > ZERO
    code, name = info.code, info.name

    if info.type == AccountType.INCOME:
        return "operating", "cash_received_from_customers", classify_income(code, name)

    if info.type == AccountType.EXPENSE:
        return "operating", "cash_paid_for_expenses", classify_expense(code, name)

    if info.type == AccountType.EQUITY:
        return "financing", "owners_contribution" if inflow else "owner_drawings", None

    if info.type == AccountType.ASSET:
        if not is_current_asset(code, name, info.category):
            if _name_has(name, EQUIPMENT_KEYWORDS):
                return "investing", "purchase_of_equipment", None
            if _name_has(name, BUILDING_KEYWORDS):
                return "investing", "purchase_of_buildings", None
            return "investing", "other_investing", None
        if inflow:
            group = classify_balance_group(info.type, code, name)
            category = "rental_income" if group == "accounts_receivable" else "other_income"
            return "operating", "cash_received_from_customers", category
        return "operating", "cash_paid_for_expenses", "other"

    # Liabilities
    group = classify_balance_group(info.type, code, name)
    if _name_has(name, LONG_TERM_LIABILITY_KEYWORDS) or not is_current_liability(code, name, info.category):
        return "financing", "loan_proceeds" if inflow else "loan_repayments", None
    if group == "tenant_deposits":
        if inflow:
            return "operating", "cash_received_from_customers", "deposits"
        return "operating", "deposits_refunded", None
    if group == "deferred_income" and inflow:
        return "operating", "cash_received_from_customers", "advance_payments"
    if group in ("accounts_payable", "accrued_expenses") and not inflow:
        return "operating", "cash_paid_to_suppliers", None
    if inflow:
        return "operating", "cash_received_from_customers", "other_income"
    return "operating", "cash_paid_for_expenses", "other"


def cash_delta(entry: LedgerEntry) -> Decimal:
    """Net change in cash accounts caused by an entry."""
    return sum(
        (line.debit - line.credit for line in entry.lines
         if is_cash_account(line.account_code, line.account_name)),
        ZERO,
    )


def cash_balance(entries: Iterable[LedgerEntry]) -> Decimal:
    return sum((cash_delta(entry) for entry in entries), ZERO)


class _CashFlows:
    """Section totals for one period."""

    def __init__(self):
        self.operating = {item: ZERO for item in OPERATING_ITEMS}
        self.investing = {item: ZERO for item in INVESTING_ITEMS}
        self.financing = {item: ZERO for item in FINANCING_ITEMS}
        self.receipts_by_category = {category: ZERO for category in INCOME_CATEGORIES}
        self.payments_by_category = {category: ZERO for category in EXPENSE_CATEGORIES}
        self.transfer_count = 0
        self.transfer_amount = ZERO

    def add_entry(self, entry: LedgerEntry, directory: AccountDirectory) -> None:
        cash_lines = [line for line in entry.lines if is_cash_account(line.account_code, line.account_name)]
        if not cash_lines:
            return
        if cash_delta(entry) == ZERO:
            self.transfer_count += 1
            self.transfer_amount += sum((line.debit for line in cash_lines), ZERO)
            return

        sections = {"operating": self.operating, "investing": self.investing, "financing": self.financing}
        for line in entry.lines:
            if is_cash_account(line.account_code, line.account_name):
                continue
            amount = line.credit - line.debit
            if amount == ZERO:
                continue
            info = directory.resolve(line.account_code, line.account_name, line.account_type)
            section, item, category = classify_cash_flow(info, amount)
            sections[section][item] += amount
            if item == "cash_received_from_customers":
                self.receipts_by_category[category] = self.receipts_by_category.get(category, ZERO) + amount
            elif item == "cash_paid_for_expenses":
                self.payments_by_category[category] = self.payments_by_category.get(category, ZERO) - amount

    @property
    def net_operating(self) -> Decimal:
        return sum(self.operating.values(), ZERO)

    @property
    def net_investing(self) -> Decimal:
        return sum(self.investing.values(), ZERO)

    @property
    def net_financing(self) -> Decimal:
        return sum(self.financing.values(), ZERO)

    @property
    def net_change(self) -> Decimal:
        return self.net_operating + self.net_investing + self.net_financing

    def to_dict(self, cash_at_beginning: Decimal) -> Dict[str, Any]:
        operating = money_map(self.operating)
        operating["receipts_by_category"] = money_map(self.receipts_by_category)
        operating["payments_by_category"] = money_map(self.payments_by_category)
        operating["net_cash_from_operating"] = to_money(self.net_operating)

        investing = money_map(self.investing)
        investing["net_cash_from_investing"] = to_money(self.net_investing)

        financing = money_map(self.financing)
        financing["net_cash_from_financing"] = to_money(self.net_financing)

        return {
            "operating_activities": operating,
            "investing_activities": investing,
            "financing_activities": financing,
            "internal_transfers": {
                "count": self.transfer_count,
                "amount": to_money(self.transfer_amount),
            },
            "net_change_in_cash": to_money(self.net_change),
            "cash_at_beginning": to_money(cash_at_beginning),
            "cash_at_end": to_money(cash_at_beginning + self.net_change),
        }


def _flows(entries: List[LedgerEntry], directory: AccountDirectory) -> _CashFlows:
    flows = _CashFlows()
    for entry in entries:
        flows.add_entry(entry, directory)
    return flows


def _cash_by_account(entries: List[LedgerEntry]) -> Dict[str, float]:
    balances: Dict[str, Decimal] = {}
    for entry in entries:
        for line in entry.lines:
            if is_cash_account(line.account_code, line.account_name):
                balances[line.account_code] = balances.get(line.account_code, ZERO) + line.debit - line.credit
    return {code: to_money(balances[code]) for code in sorted(balances)}


def build_cash_flow_statement(
    entries: Iterable[LedgerEntry],
    directory: AccountDirectory,
    year: int,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
    month: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Assemble the cash flow statement for a year (or one month of it).

    cash_at_end equals the cash balance as of the period end, and the
    monthly net changes add up to the period's net change.
    """
    start, end = month_range(year, month) if month else year_range(year)
    entries = list(entries)
    prior = [e for e in filter_entries(entries, basis, residence_id) if e.date < start]
    period_entries = filter_entries(entries, basis, residence_id, start, end)

    opening_cash = cash_balance(prior)
    flows = _flows(period_entries, directory)

    monthly_breakdown: Dict[str, Dict[str, Any]] = {}
    running = opening_cash
    for m in period_months(month):
        m_start, m_end = month_range(year, m)
        month_entries = [e for e in period_entries if m_start <= e.date <= m_end]
        month_flows = _flows(month_entries, directory)
        block = {"month": m, "month_name": MONTH_NAMES[m - 1]}
        block.update(month_flows.to_dict(running))
        monthly_breakdown[str(m)] = block
        running += month_flows.net_change

    report = report_header(
        "cash_flow_statement",
        basis,
        residence_id,
        period=f"{year}-{month:02d}" if month else str(year),
        year=year,
        month=month,
        period_start=start.isoformat(),
        period_end=end.isoformat(),
    )
    report.update(flows.to_dict(opening_cash))
    report.update({
        "cash_balances": _cash_by_account(prior + period_entries),
        "monthly_breakdown": monthly_breakdown,
        "entry_count": len(period_entries),
    })

    logger.info(
        f"Cash flow {report['period']} ({basis}): net change {report['net_change_in_cash']}, "
        f"cash {report['cash_at_beginning']} -> {report['cash_at_end']}"
    )
    return report
