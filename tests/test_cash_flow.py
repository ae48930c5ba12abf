"""
HostelHub Finance - Cash Flow Statement Tests
"""

import copy
from datetime import date
from decimal import Decimal

import pytest

from app.models.ledger import AccountType
from app.services.ledger_aggregation import AccountInfo
from app.services.statements import build_balance_sheet, build_cash_flow_statement, classify_cash_flow
from app.services.statements.cash_flow import cash_delta
from tests.fixtures.ledger_factory import make_entry, make_line


class TestClassifyCashFlow:
    """Test counterpart account -> section rules."""

    @pytest.mark.parametrize("info,amount,expected", [
        (AccountInfo("4001", "Rental Income", AccountType.INCOME), "100",
         ("operating", "cash_received_from_customers", "rental_income")),
        (AccountInfo("5000", "Cleaning", AccountType.EXPENSE), "-40",
         ("operating", "cash_paid_for_expenses", "cleaning")),
        (AccountInfo("1100", "Accounts Receivable", AccountType.ASSET), "60",
         ("operating", "cash_received_from_customers", "rental_income")),
        (AccountInfo("1650", "Kitchen Equipment", AccountType.ASSET), "-900",
         ("investing", "purchase_of_equipment", None)),
        (AccountInfo("1700", "Building Extension", AccountType.ASSET), "-5000",
         ("investing", "purchase_of_buildings", None)),
        (AccountInfo("3000", "Owner's Capital", AccountType.EQUITY), "1000",
         ("financing", "owners_contribution", None)),
        (AccountInfo("3200", "Drawings", AccountType.EQUITY), "-300",
         ("financing", "owner_drawings", None)),
        (AccountInfo("2500", "Bank Loan", AccountType.LIABILITY), "-250",
         ("financing", "loan_repayments", None)),
        (AccountInfo("2020", "Tenant Deposits", AccountType.LIABILITY), "-100",
         ("operating", "deposits_refunded", None)),
        (AccountInfo("2200", "Advance Payments", AccountType.LIABILITY), "300",
         ("operating", "cash_received_from_customers", "advance_payments")),
        (AccountInfo("2000", "Accounts Payable", AccountType.LIABILITY), "-75",
         ("operating", "cash_paid_to_suppliers", None)),
    ])
    def test_sections(self, info, amount, expected):
        assert classify_cash_flow(info, Decimal(amount)) == expected


class TestCashFlowStatement:
    """Test the statement built from the sample ledger."""

    def test_sections(self, entries, directory):
        report = build_cash_flow_statement(entries, directory, 2025, "cash")
        operating = report["operating_activities"]

        assert operating["cash_received_from_customers"] == 1250.0
        assert operating["cash_paid_for_expenses"] == -320.0
        assert operating["net_cash_from_operating"] == 930.0
        assert operating["receipts_by_category"]["rental_income"] == 800.0
        assert operating["receipts_by_category"]["admin_fees"] == 50.0
        assert operating["receipts_by_category"]["deposits"] == 400.0
        assert operating["payments_by_category"]["maintenance"] == 200.0
        assert operating["payments_by_category"]["utilities"] == 120.0
        assert report["investing_activities"]["purchase_of_equipment"] == -1500.0
        assert report["investing_activities"]["net_cash_from_investing"] == -1500.0
        assert report["financing_activities"]["loan_proceeds"] == 2000.0
        assert report["financing_activities"]["net_cash_from_financing"] == 2000.0

    def test_cash_reconciles(self, entries, directory):
        report = build_cash_flow_statement(entries, directory, 2025, "cash")

        assert report["cash_at_beginning"] == 10000.0
        assert report["net_change_in_cash"] == 1430.0
        assert report["cash_at_end"] == 11430.0
        assert report["cash_balances"] == {"1000": 11250.0, "1004": 180.0}

    def test_cash_at_end_matches_balance_sheet(self, entries, directory):
        for basis in ("cash", "accrual"):
            report = build_cash_flow_statement(entries, directory, 2025, basis)
            sheet = build_balance_sheet(entries, directory, date(2025, 12, 31), basis)
            assert report["cash_at_end"] == sheet["groups"]["assets"]["cash_and_bank"]

    def test_internal_transfer_excluded(self, entries, directory):
        report = build_cash_flow_statement(entries, directory, 2025, "cash")
        assert report["internal_transfers"] == {"count": 1, "amount": 300.0}

    def test_monthly_breakdown(self, entries, directory):
        report = build_cash_flow_statement(entries, directory, 2025, "cash")
        months = report["monthly_breakdown"]

        assert sum(m["net_change_in_cash"] for m in months.values()) == pytest.approx(report["net_change_in_cash"])
        assert months["1"]["cash_at_beginning"] == 10000.0
        assert months["1"]["cash_at_end"] == 10600.0
        for m in range(2, 13):
            assert months[str(m)]["cash_at_beginning"] == months[str(m - 1)]["cash_at_end"]
        assert months["12"]["cash_at_end"] == report["cash_at_end"]

    def test_single_month_opening_balance(self, entries, directory):
        report = build_cash_flow_statement(entries, directory, 2025, "cash", month=3)

        assert report["period"] == "2025-03"
        assert report["cash_at_beginning"] == 10650.0
        assert report["investing_activities"]["purchase_of_equipment"] == -1500.0
        assert report["net_change_in_cash"] == -1100.0
        assert list(report["monthly_breakdown"]) == ["3"]

    def test_cash_delta(self, entries):
        by_id = {e.transaction_id: e for e in entries}
        assert cash_delta(by_id["TXN-001"]) == Decimal("800")
        assert cash_delta(by_id["TXN-004"]) == Decimal("0")
        assert cash_delta(by_id["TXN-009"]) == Decimal("0")

    def test_owner_drawings(self, directory):
        drawing = make_entry("DR", date(2025, 8, 1), "manual", [
            make_line("3000", "Owner's Capital", "Equity", debit=500),
            make_line("1000", "Bank", "Asset", credit=500),
        ])
        report = build_cash_flow_statement([drawing], directory, 2025, "cash")
        assert report["financing_activities"]["owner_drawings"] == -500.0
        assert report["cash_at_end"] == -500.0


class TestCashFlowOpeningBalances:
    """Cash carried in by an opening balance entry."""

    def test_opening_balance_is_cash_at_beginning(self, directory):
        opening = make_entry("OB-1", date(2024, 12, 31), "opening_balance", [
            make_line("1000", "Bank", "Asset", debit=10000),
            make_line("3000", "Owner's Capital", "Equity", credit=10000),
        ], description="Opening balances")
        report = build_cash_flow_statement([opening], directory, 2025, "cash")

        assert report["cash_at_beginning"] == 10000.0
        assert report["net_change_in_cash"] == 0.0
        assert report["cash_at_end"] == 10000.0


class TestCashFlowIdempotence:
    """Generating a report never changes its inputs."""

    def test_inputs_unchanged_and_results_repeatable(self, entries, directory):
        snapshot = copy.deepcopy(entries)
        first = build_cash_flow_statement(entries, directory, 2025, "cash")
        second = build_cash_flow_statement(entries, directory, 2025, "cash")

        assert entries == snapshot
        first.pop("generated_at")
        second.pop("generated_at")
        assert first == second
