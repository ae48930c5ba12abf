"""
HostelHub Finance - Account Classification Tests

Tests for code/name classification rules and basis selection.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.models.ledger import AccountType
from app.services.account_classification import (
    classify_account_type,
    classify_balance_group,
    classify_equity,
    classify_expense,
    classify_income,
    entry_in_basis,
    is_accrual_source,
    is_cash_account,
    is_cash_source,
    is_current_asset,
    is_current_liability,
    is_internal_cash_transfer,
    normal_balance,
    resolve_account_type,
    rollup_parent_code,
    signed_balance,
)
from tests.fixtures.ledger_factory import make_entry, make_line


class TestAccountType:
    """Test code -> account type rules."""

    @pytest.mark.parametrize("code,expected", [
        ("1000", AccountType.ASSET),
        ("1750", AccountType.ASSET),
        ("1100-DR0001", AccountType.ASSET),
        ("2500", AccountType.LIABILITY),
        ("20002", AccountType.LIABILITY),
        ("3100", AccountType.EQUITY),
        ("4999", AccountType.INCOME),
        ("5010", AccountType.EXPENSE),
    ])
    def test_prefix_ranges(self, code, expected):
        assert classify_account_type(code) == expected

    def test_unknown_code_raises(self):
        with pytest.raises(ValueError):
            classify_account_type("9000")

    def test_declared_type_wins(self):
        # 1999 would be an asset by prefix
        assert resolve_account_type("1999", "Liability") == AccountType.LIABILITY
        assert resolve_account_type("1999", AccountType.EQUITY) == AccountType.EQUITY
        assert resolve_account_type("1999", None) == AccountType.ASSET

    def test_signed_balance_follows_normal_side(self):
        debit, credit = Decimal("100"), Decimal("30")
        assert signed_balance(AccountType.ASSET, debit, credit) == Decimal("70")
        assert signed_balance(AccountType.EXPENSE, debit, credit) == Decimal("70")
        assert signed_balance(AccountType.LIABILITY, debit, credit) == Decimal("-70")
        assert signed_balance(AccountType.INCOME, credit, debit) == Decimal("70")

    @pytest.mark.parametrize("account_type,side", [
        (AccountType.ASSET, "debit"),
        (AccountType.EXPENSE, "debit"),
        (AccountType.LIABILITY, "credit"),
        (AccountType.EQUITY, "credit"),
        (AccountType.INCOME, "credit"),
    ])
    def test_normal_balance(self, account_type, side):
        assert normal_balance(account_type) == side


class TestBalanceSheetClassification:
    """Test current/non-current and grouping rules."""

    @pytest.mark.parametrize("code,name", [
        ("1000", "Bank"),
        ("1002", "Ecocash"),
        ("1013", "Maintenance Petty Cash"),
        ("1050", "CBZ Bank Account"),
    ])
    def test_cash_accounts(self, code, name):
        assert is_cash_account(code, name)

    def test_non_cash_accounts(self):
        assert not is_cash_account("1100", "Accounts Receivable")
        assert not is_cash_account("1050", "Cash Receivable Clearing")
        assert not is_cash_account("5000", "Bank Charges")

    def test_current_assets(self):
        assert is_current_asset("1100", "Accounts Receivable")
        assert is_current_asset("1400", "Deposits Paid")
        assert is_current_asset("1999", "Prepaid Insurance")

    def test_fixed_asset_names_are_non_current(self):
        assert not is_current_asset("1500", "Office Equipment")
        assert not is_current_asset("1700", "Building")

    def test_category_overrides_code(self):
        assert not is_current_asset("1000", "Bank", "Non-Current Assets")
        assert is_current_asset("1800", "Sundry", "Current Assets")

    def test_current_liabilities(self):
        assert is_current_liability("2000", "Accounts Payable")
        assert is_current_liability("200015", "Supplier X")
        assert is_current_liability("2020", "Tenant Deposits")
        assert is_current_liability("2600", "Accrued Wages")

    def test_long_term_liabilities(self):
        assert not is_current_liability("2400", "Long Term Loan")
        assert not is_current_liability("2600", "Bank Borrowing")
        assert not is_current_liability("2000", "Accounts Payable", "Long Term Liabilities")

    def test_equity_sections(self):
        assert classify_equity("3000", "Owner's Equity") == "capital"
        assert classify_equity("3200", "Capital Contributions") == "capital"
        assert classify_equity("3100", "Retained Earnings") == "retained_earnings"
        assert classify_equity("3300", "Revaluation Reserve") == "other_equity"

    @pytest.mark.parametrize("account_type,code,name,group", [
        (AccountType.ASSET, "1001", "Cash", "cash_and_bank"),
        (AccountType.ASSET, "1100", "Debtors", "accounts_receivable"),
        (AccountType.ASSET, "1650", "Motor Vehicle", "property_and_equipment"),
        (AccountType.ASSET, "1900", "Suspense", "other_assets"),
        (AccountType.LIABILITY, "2002", "Deposits", "tenant_deposits"),
        (AccountType.LIABILITY, "2150", "VAT Tax Payable", "taxes_payable"),
        (AccountType.LIABILITY, "2500", "Bank Loan", "long_term_loans"),
        (AccountType.LIABILITY, "2900", "Sundry", "other_liabilities"),
    ])
    def test_balance_groups(self, account_type, code, name, group):
        assert classify_balance_group(account_type, code, name) == group


class TestIncomeAndExpenseCategories:
    """Test revenue and expense category rules."""

    @pytest.mark.parametrize("code,name,category", [
        ("4000", "Income", "rental_income"),
        ("4100", "Accommodation Fees", "rental_income"),
        ("4020", "Sundry", "admin_fees"),
        ("4200", "Damage Deposit Forfeits", "deposits"),
        ("4300", "Electricity Recoveries", "utilities"),
        ("4400", "Advance Payments Received", "advance_payments"),
        ("4900", "Laundry", "other_income"),
    ])
    def test_income_categories(self, code, name, category):
        assert classify_income(code, name) == category

    @pytest.mark.parametrize("name,category", [
        ("Plumbing Repairs", "maintenance"),
        ("Internet & Wifi", "utilities"),
        ("Cleaning Supplies", "cleaning"),
        ("Security Guards", "security"),
        ("Staff Salaries", "management"),
        ("Bank Charges", "other"),
    ])
    def test_expense_categories(self, name, category):
        assert classify_expense("5000", name) == category


class TestBasisSelection:
    """Test cash/accrual source rules and internal transfers."""

    def test_sources(self):
        assert is_cash_source("payment")
        assert is_cash_source("advance_payment")
        assert not is_cash_source("rental_accrual")
        assert is_accrual_source("expense_accrual")
        assert not is_accrual_source("manual")

    def test_entry_in_basis(self):
        accrual = make_entry("A", date(2025, 1, 1), "rental_accrual", [
            make_line("1100", "AR", "Asset", debit=10),
            make_line("4001", "Rent", "Income", credit=10),
        ])
        cash = make_entry("C", date(2025, 1, 1), "payment", [
            make_line("1000", "Bank", "Asset", debit=10),
            make_line("4001", "Rent", "Income", credit=10),
        ])
        assert not entry_in_basis(accrual, "cash")
        assert entry_in_basis(accrual, "accrual")
        assert entry_in_basis(cash, "cash")
        assert entry_in_basis(cash, "accrual")

    def test_opening_balances_count_on_both_bases(self):
        opening = make_entry("OB", date(2024, 12, 31), "opening_balance", [
            make_line("1000", "Bank", "Asset", debit=10000),
            make_line("3000", "Owner's Capital", "Equity", credit=10000),
        ])
        adjustment = make_entry("ADJ", date(2025, 1, 31), "adjustment", [
            make_line("5000", "Maintenance", "Expense", debit=10),
            make_line("2100", "Accrued Expenses", "Liability", credit=10),
        ])
        assert entry_in_basis(opening, "cash")
        assert entry_in_basis(opening, "accrual")
        assert not entry_in_basis(adjustment, "cash")
        assert entry_in_basis(adjustment, "accrual")

    def test_internal_transfer_by_accounts(self):
        entry = make_entry("T", date(2025, 1, 1), "manual", [
            make_line("1010", "Admin Petty Cash", "Asset", debit=50),
            make_line("1000", "Bank", "Asset", credit=50),
        ], description="Top up")
        assert is_internal_cash_transfer(entry)

    def test_internal_transfer_by_description(self):
        entry = make_entry("T", date(2025, 1, 1), "manual", [
            make_line("1013", "Maintenance Petty Cash", "Asset", debit=50),
            make_line("5000", "Maintenance", "Expense", debit=5),
            make_line("1000", "Bank", "Asset", credit=55),
        ], description="Cash allocation for maintenance team")
        assert is_internal_cash_transfer(entry)

    def test_expense_paid_from_petty_cash_is_not_transfer(self):
        entry = make_entry("T", date(2025, 1, 1), "expense_payment", [
            make_line("5000", "Maintenance", "Expense", debit=150),
            make_line("1004", "Petty Cash", "Asset", credit=150),
        ], description="Plumbing repair paid from petty cash")
        assert not is_internal_cash_transfer(entry)

    def test_regular_expense_is_not_transfer(self):
        entry = make_entry("T", date(2025, 1, 1), "expense_payment", [
            make_line("5000", "Maintenance", "Expense", debit=50),
            make_line("1000", "Bank", "Asset", credit=50),
        ], description="Paint")
        assert not is_internal_cash_transfer(entry)


class TestRollup:
    """Test parent/child code rollup."""

    def test_suffix_rolls_into_base(self):
        assert rollup_parent_code("1100-DR0001") == "1100"

    def test_payable_children_roll_into_2000(self):
        assert rollup_parent_code("200015") == "2000"

    def test_tenant_deposits_do_not_roll_up(self):
        assert rollup_parent_code("20002") == "20002"
        assert rollup_parent_code("2020") == "2020"

    def test_explicit_parent_wins(self):
        assert rollup_parent_code("1105", parent_code="1100") == "1100"

    def test_missing_parent_keeps_code(self):
        assert rollup_parent_code("1100-DR0001", known_codes={"1000"}) == "1100-DR0001"
