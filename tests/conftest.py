"""
HostelHub Finance - Test Configuration

Pytest fixtures and configuration.

The sample ledger (two residences, mostly 2025):

    date        source            residence  lines
    2024-12-15  manual            R1         Dr 1000 Bank 10000 / Cr 3000 Capital
    2025-01-10  payment           R1         Dr 1000 800 / Cr 4001 Rental Income
    2025-01-20  expense_payment   R1         Dr 5000 Maintenance 200 / Cr 1000
    2025-02-05  payment           R2         Dr 1000 50 / Cr 4002 Admin Fees
    2025-02-15  manual            R1         Dr 1004 Petty Cash 300 / Cr 1000  (allocation)
    2025-03-01  expense_payment   R1         Dr 1600 Furniture 1500 / Cr 1000
    2025-03-10  payment           R1         Dr 1000 400 / Cr 2020 Tenant Deposits
    2025-04-01  bank_transfer     R1         Dr 1000 2000 / Cr 2400 Long Term Loan
    2025-05-01  expense_payment   R1         Dr 5001 Electricity 120 / Cr 1004
    2025-06-01  rental_accrual    R1         Dr 1100-DR0001 600 / Cr 4001
    2025-06-15  expense_accrual   R1         Dr 5000 250 / Cr 2000 Payables
    2025-07-01  payment (draft)   R1         Dr 1000 999 / Cr 4001
    2026-01-05  payment           R1         Dr 1000 700 / Cr 4001
"""

from datetime import date
from typing import AsyncGenerator, List
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.database import get_async_session
from app.models.ledger import AccountType
from app.services import cache_service
from app.services.cache_service import CacheService
from app.services.ledger_aggregation import AccountDirectory, AccountInfo, LedgerEntry
from main import app
from tests.fixtures.ledger_factory import RESIDENCE_1, RESIDENCE_2, make_entry, make_line


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest.fixture
def accounts() -> List[AccountInfo]:
    return [
        AccountInfo("1000", "Bank", AccountType.ASSET, "Current Assets"),
        AccountInfo("1004", "Petty Cash", AccountType.ASSET, "Current Assets"),
        AccountInfo("1100", "Accounts Receivable", AccountType.ASSET, "Current Assets"),
        AccountInfo("1600", "Furniture & Equipment", AccountType.ASSET, "Non-Current Assets"),
        AccountInfo("2000", "Accounts Payable", AccountType.LIABILITY, "Current Liabilities"),
        AccountInfo("2020", "Tenant Deposits", AccountType.LIABILITY, "Current Liabilities"),
        AccountInfo("2400", "Long Term Loan", AccountType.LIABILITY, "Long Term Liabilities"),
        AccountInfo("3000", "Owner's Capital", AccountType.EQUITY),
        AccountInfo("4001", "Rental Income", AccountType.INCOME),
        AccountInfo("4002", "Admin Fees", AccountType.INCOME),
        AccountInfo("5000", "Maintenance Expense", AccountType.EXPENSE, "Maintenance"),
        AccountInfo("5001", "Electricity & Water", AccountType.EXPENSE, "Utilities"),
    ]


@pytest.fixture
def directory(accounts) -> AccountDirectory:
    return AccountDirectory(accounts)


@pytest.fixture
def entries() -> List[LedgerEntry]:
    bank = ("1000", "Bank", "Asset")
    petty = ("1004", "Petty Cash", "Asset")
    return [
        make_entry("TXN-000", date(2024, 12, 15), "manual", [
            make_line(*bank, debit=10000),
            make_line("3000", "Owner's Capital", "Equity", credit=10000),
        ], description="Owner capital injection"),
        make_entry("TXN-001", date(2025, 1, 10), "payment", [
            make_line(*bank, debit=800),
            make_line("4001", "Rental Income", "Income", credit=800),
        ], description="January rent"),
        make_entry("TXN-002", date(2025, 1, 20), "expense_payment", [
            make_line("5000", "Maintenance Expense", "Expense", debit=200),
            make_line(*bank, credit=200),
        ], description="Plumbing repair"),
        make_entry("TXN-003", date(2025, 2, 5), "payment", [
            make_line(*bank, debit=50),
            make_line("4002", "Admin Fees", "Income", credit=50),
        ], description="Admin fee", residence_id=RESIDENCE_2),
        make_entry("TXN-004", date(2025, 2, 15), "manual", [
            make_line(*petty, debit=300),
            make_line(*bank, credit=300),
        ], description="Petty cash allocation to maintenance"),
        make_entry("TXN-005", date(2025, 3, 1), "expense_payment", [
            make_line("1600", "Furniture & Equipment", "Asset", debit=1500),
            make_line(*bank, credit=1500),
        ], description="Bunk beds"),
        make_entry("TXN-006", date(2025, 3, 10), "payment", [
            make_line(*bank, debit=400),
            make_line("2020", "Tenant Deposits", "Liability", credit=400),
        ], description="Security deposit"),
        make_entry("TXN-007", date(2025, 4, 1), "bank_transfer", [
            make_line(*bank, debit=2000),
            make_line("2400", "Long Term Loan", "Liability", credit=2000),
        ], description="Loan drawdown"),
        make_entry("TXN-008", date(2025, 5, 1), "expense_payment", [
            make_line("5001", "Electricity & Water", "Expense", debit=120),
            make_line(*petty, credit=120),
        ], description="Electricity bill"),
        make_entry("TXN-009", date(2025, 6, 1), "rental_accrual", [
            make_line("1100-DR0001", "Accounts Receivable - Room 12", "Asset", debit=600),
            make_line("4001", "Rental Income", "Income", credit=600),
        ], description="June rent accrued"),
        make_entry("TXN-010", date(2025, 6, 15), "expense_accrual", [
            make_line("5000", "Maintenance Expense", "Expense", debit=250),
            make_line("2000", "Accounts Payable", "Liability", credit=250),
        ], description="Painting invoice"),
        make_entry("TXN-011", date(2025, 7, 1), "payment", [
            make_line(*bank, debit=999),
            make_line("4001", "Rental Income", "Income", credit=999),
        ], description="Draft rent", status="draft"),
        make_entry("TXN-012", date(2026, 1, 5), "payment", [
            make_line(*bank, debit=700),
            make_line("4001", "Rental Income", "Income", credit=700),
        ], description="Next year rent"),
    ]


# ===========================================
# CACHE & CLIENT
# ===========================================

@pytest.fixture(autouse=True)
def fresh_cache(monkeypatch) -> CacheService:
    """Each test gets its own in-process report cache."""
    cache = CacheService(backend="memory", default_ttl=300, max_entries=100)
    monkeypatch.setattr(cache_service, "_cache_service", cache)
    return cache


@pytest.fixture
def db_session() -> AsyncMock:
    """Stand-in AsyncSession; repository methods are patched per test."""
    session = AsyncMock()
    session.add = lambda obj: None
    return session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
