"""
HostelHub Finance - Account Classification Rules

Pure rules that decide, from an account code and name, what an account is
and where it lands on each statement, and from a transaction's source
whether it moved real cash.

Account codes (prefix ranges):
- 1xxx: Asset       (debit normal)
- 2xxx: Liability   (credit normal)
- 3xxx: Equity      (credit normal)
- 4xxx: Income      (credit normal)
- 5xxx: Expense     (debit normal)

Well-known codes are looked up before the prefix ranges and keyword matching.
"""

from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, TYPE_CHECKING

from app.models.ledger import AccountType, EntrySource

if TYPE_CHECKING:
    from app.services.ledger_aggregation import LedgerEntry


# =============================================================================
# CONSTANTS
# =============================================================================

# code -> (type, balance sheet group)
WELL_KNOWN_ACCOUNTS: Dict[str, Tuple[AccountType, str]] = {
    "1000": (AccountType.ASSET, "cash_and_bank"),
    "1001": (AccountType.ASSET, "cash_and_bank"),
    "1002": (AccountType.ASSET, "cash_and_bank"),      # Ecocash
    "1003": (AccountType.ASSET, "cash_and_bank"),      # Innbucks
    "1004": (AccountType.ASSET, "cash_and_bank"),      # Petty Cash
    "1005": (AccountType.ASSET, "cash_and_bank"),      # Cash on Hand
    "1008": (AccountType.ASSET, "cash_and_bank"),
    "1010": (AccountType.ASSET, "cash_and_bank"),      # Admin Petty Cash
    "1011": (AccountType.ASSET, "cash_and_bank"),      # Finance Petty Cash
    "1012": (AccountType.ASSET, "cash_and_bank"),      # Property Manager Petty Cash
    "1013": (AccountType.ASSET, "cash_and_bank"),      # Maintenance Petty Cash
    "1014": (AccountType.ASSET, "cash_and_bank"),      # General Petty Cash
    "1100": (AccountType.ASSET, "accounts_receivable"),
    "1200": (AccountType.ASSET, "inventory"),
    "1300": (AccountType.ASSET, "prepaid_expenses"),
    "2000": (AccountType.LIABILITY, "accounts_payable"),
    "2002": (AccountType.LIABILITY, "tenant_deposits"),
    "2020": (AccountType.LIABILITY, "tenant_deposits"),
    "20002": (AccountType.LIABILITY, "tenant_deposits"),
    "2100": (AccountType.LIABILITY, "accrued_expenses"),
    "2200": (AccountType.LIABILITY, "deferred_income"),  # Advance payments from tenants
    "2300": (AccountType.LIABILITY, "taxes_payable"),
    "2400": (AccountType.LIABILITY, "long_term_loans"),
    "3000": (AccountType.EQUITY, "capital"),
    "3100": (AccountType.EQUITY, "retained_earnings"),
}

CASH_ACCOUNT_CODES: FrozenSet[str] = frozenset(
    code for code, (_, group) in WELL_KNOWN_ACCOUNTS.items() if group == "cash_and_bank"
)
CASH_NAME_KEYWORDS = ("cash", "bank", "ecocash", "innbucks", "petty")

CURRENT_ASSET_CODES = frozenset({"1000", "1100", "1200", "1300", "1400", "1500"})
CURRENT_ASSET_KEYWORDS = ("cash", "bank", "ecocash", "innbucks", "petty", "receivable", "inventory", "prepaid")
FIXED_ASSET_KEYWORDS = ("property", "equipment", "building", "vehicle", "furniture", "machinery", "construction")

CURRENT_LIABILITY_CODES = frozenset({"2000", "2100", "2200", "2300"})
CURRENT_LIABILITY_KEYWORDS = ("payable", "accrued", "deposit", "advance", "tax", "short term")
LONG_TERM_LIABILITY_KEYWORDS = ("loan", "borrowing", "mortgage", "long term")

# Tenant deposit sub-codes share the 2000 prefix but are not payables
ROLLUP_EXCLUDED_CODES = frozenset({"2002", "2020", "20002"})

RENTAL_INCOME_CODES = frozenset({"4000", "4001"})
ADMIN_INCOME_CODES = frozenset({"4002", "4020"})

INCOME_CATEGORIES = (
    "rental_income",
    "admin_fees",
    "deposits",
    "utilities",
    "advance_payments",
    "other_income",
)
EXPENSE_CATEGORIES = (
    "maintenance",
    "utilities",
    "cleaning",
    "security",
    "management",
    "other",
)

# Checked in order, first match wins
_INCOME_KEYWORDS = (
    ("rental_income", ("rent", "rental", "accommodation")),
    ("admin_fees", ("admin",)),
    ("deposits", ("deposit",)),
    ("utilities", ("utilit", "electric", "water")),
    ("advance_payments", ("advance",)),
)
_EXPENSE_KEYWORDS = (
    ("maintenance", ("maintenance", "repair", "plumb", "electrical")),
    ("utilities", ("utilit", "electric", "water", "gas", "internet", "wifi")),
    ("cleaning", ("clean",)),
    ("security", ("security",)),
    ("management", ("management", "admin", "salar", "wage", "staff")),
)

CASH_SOURCES = frozenset({
    EntrySource.PAYMENT.value,
    EntrySource.EXPENSE_PAYMENT.value,
    EntrySource.RENTAL_PAYMENT.value,
    EntrySource.MANUAL.value,
    EntrySource.PAYMENT_COLLECTION.value,
    EntrySource.BANK_TRANSFER.value,
    EntrySource.ADVANCE_PAYMENT.value,
})
ACCRUAL_SOURCES = frozenset({
    EntrySource.RENTAL_ACCRUAL.value,
    EntrySource.EXPENSE_ACCRUAL.value,
})
# Positions carried in from before the ledger started; they count on both bases
POSITION_SOURCES = frozenset({
    EntrySource.OPENING_BALANCE.value,
})

INTERNAL_TRANSFER_PHRASES = ("petty cash", "cash allocation")

_PREFIX_TYPES = {
    "1": AccountType.ASSET,
    "2": AccountType.LIABILITY,
    "3": AccountType.EQUITY,
    "4": AccountType.INCOME,
    "5": AccountType.EXPENSE,
}


def _lower(name: Optional[str]) -> str:
    return (name or "").lower()


def _has_keyword(name: Optional[str], keywords: Iterable[str]) -> bool:
    text = _lower(name)
    return any(keyword in text for keyword in keywords)


def base_code(code: str) -> str:
    """Strip a sub-account suffix: "1100-DR0001" -> "1100"."""
    return str(code).strip().split("-", 1)[0]


# =============================================================================
# ACCOUNT TYPE & NORMAL BALANCE
# =============================================================================

def classify_account_type(code: str) -> AccountType:
    """
    Classify an account code into its type.

    Well-known codes first, then the prefix range of the first digit.

    Raises:
        ValueError: If the code matches no known range
    """
    code = str(code).strip()
    if code in WELL_KNOWN_ACCOUNTS:
        return WELL_KNOWN_ACCOUNTS[code][0]
    root = base_code(code)
    if root in WELL_KNOWN_ACCOUNTS:
        return WELL_KNOWN_ACCOUNTS[root][0]
    account_type = _PREFIX_TYPES.get(root[:1])
    if account_type is None:
        raise ValueError(f"Cannot classify account code: {code}")
    return account_type


def resolve_account_type(code: str, declared: Optional[str] = None) -> AccountType:
    """Prefer the declared (directory/line) type, fall back to the code rule."""
    if declared:
        value = declared.value if isinstance(declared, AccountType) else str(declared)
        for account_type in AccountType:
            if account_type.value.lower() == value.lower():
                return account_type
    return classify_account_type(code)


def is_debit_normal(account_type: AccountType) -> bool:
    """Assets and expenses increase with debits."""
    return account_type in (AccountType.ASSET, AccountType.EXPENSE)


def normal_balance(account_type: AccountType) -> str:
    return "debit" if is_debit_normal(account_type) else "credit"


def signed_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Balance in the account's normal direction."""
    if is_debit_normal(account_type):
        return debit - credit
    return credit - debit


# =============================================================================
# BALANCE SHEET CLASSIFICATION
# =============================================================================

def is_cash_account(code: str, name: Optional[str] = None) -> bool:
    """Cash, bank, mobile money and petty cash accounts."""
    code = str(code).strip()
    if code in CASH_ACCOUNT_CODES:
        return True
    if not code.startswith("1") or code in WELL_KNOWN_ACCOUNTS:
        return False
    return _has_keyword(name, CASH_NAME_KEYWORDS) and not _has_keyword(name, ("receivable",))


def is_current_asset(code: str, name: Optional[str] = None, category: Optional[str] = None) -> bool:
    """
    Current vs non-current asset.

    An explicit directory category wins. Fixed-asset names are non-current
    whatever their code, then the current code list, then name keywords.
    """
    category_text = _lower(category)
    if "non-current" in category_text or "non current" in category_text or "fixed" in category_text:
        return False
    if "current" in category_text:
        return True
    if is_cash_account(code, name):
        return True
    if _has_keyword(name, FIXED_ASSET_KEYWORDS):
        return False
    if base_code(code) in CURRENT_ASSET_CODES:
        return True
    return _has_keyword(name, CURRENT_ASSET_KEYWORDS)


def is_current_liability(code: str, name: Optional[str] = None, category: Optional[str] = None) -> bool:
    """Current vs non-current liability."""
    category_text = _lower(category)
    if "non-current" in category_text or "non current" in category_text or "long" in category_text:
        return False
    if "current" in category_text:
        return True
    root = base_code(code)
    if root in CURRENT_LIABILITY_CODES or root in ROLLUP_EXCLUDED_CODES:
        return True
    if root.startswith("2000"):
        return True
    if _has_keyword(name, LONG_TERM_LIABILITY_KEYWORDS):
        return False
    return _has_keyword(name, CURRENT_LIABILITY_KEYWORDS)


def classify_equity(code: str, name: Optional[str] = None) -> str:
    """capital, retained_earnings or other_equity."""
    root = base_code(code)
    if root == "3000" or _has_keyword(name, ("capital",)):
        return "capital"
    if root == "3100" or _has_keyword(name, ("retained", "earnings")):
        return "retained_earnings"
    return "other_equity"


def classify_balance_group(account_type: AccountType, code: str, name: Optional[str] = None) -> str:
    """Display grouping for a balance sheet line."""
    root = base_code(code)
    if root in WELL_KNOWN_ACCOUNTS and WELL_KNOWN_ACCOUNTS[root][0] == account_type:
        return WELL_KNOWN_ACCOUNTS[root][1]

    if account_type == AccountType.ASSET:
        if is_cash_account(code, name):
            return "cash_and_bank"
        if _has_keyword(name, ("receivable",)):
            return "accounts_receivable"
        if _has_keyword(name, ("inventory", "supplies")):
            return "inventory"
        if _has_keyword(name, ("prepaid",)):
            return "prepaid_expenses"
        if _has_keyword(name, FIXED_ASSET_KEYWORDS):
            return "property_and_equipment"
        return "other_assets"

    if account_type == AccountType.LIABILITY:
        if root.startswith("2000") or (_has_keyword(name, ("payable",)) and not _has_keyword(name, ("tax",))):
            return "accounts_payable"
        if _has_keyword(name, ("accrued",)):
            return "accrued_expenses"
        if _has_keyword(name, ("deposit",)):
            return "tenant_deposits"
        if _has_keyword(name, ("advance", "deferred")):
            return "deferred_income"
        if _has_keyword(name, ("tax",)):
            return "taxes_payable"
        if _has_keyword(name, LONG_TERM_LIABILITY_KEYWORDS):
            return "long_term_loans"
        return "other_liabilities"

    if account_type == AccountType.EQUITY:
        return classify_equity(code, name)

    return account_type.value.lower()


# =============================================================================
# INCOME & EXPENSE CATEGORIES
# =============================================================================

def classify_income(code: str, name: Optional[str] = None) -> str:
    """Income category for a revenue account."""
    root = base_code(code)
    if root in RENTAL_INCOME_CODES:
        return "rental_income"
    if root in ADMIN_INCOME_CODES:
        return "admin_fees"
    for category, keywords in _INCOME_KEYWORDS:
        if _has_keyword(name, keywords):
            return category
    return "other_income"


def classify_expense(code: str, name: Optional[str] = None) -> str:
    """Expense category for an expense account."""
    for category, keywords in _EXPENSE_KEYWORDS:
        if _has_keyword(name, keywords):
            return category
    return "other"


# =============================================================================
# ENTRY CLASSIFICATION
# =============================================================================

def is_cash_source(source: Optional[str]) -> bool:
    """Sources that represent actual cash movement."""
    return _lower(source) in CASH_SOURCES


def is_accrual_source(source: Optional[str]) -> bool:
    """Sources that recognise income/expense before cash moves."""
    return _lower(source) in ACCRUAL_SOURCES


def entry_in_basis(entry: "LedgerEntry", basis: str) -> bool:
    """
    Whether an entry counts under a reporting basis.

    Cash basis keeps real cash movement plus opening balances, so cash
    carried into the ledger is not lost. Accrual basis keeps every posted
    entry, so accrual-sourced entries are recognised directly. Adjustments
    stay accrual-only.
    """
    if basis == "cash":
        return is_cash_source(entry.source) or _lower(entry.source) in POSITION_SOURCES
    return True


def is_internal_cash_transfer(entry: "LedgerEntry") -> bool:
    """
    Petty cash allocations and other moves between cash accounts.

    An entry whose lines are all cash accounts is a transfer. A petty cash
    or cash allocation description only marks a transfer when the entry
    also funds a cash account; an expense paid out of petty cash is still
    an expense.
    """
    if not entry.lines:
        return False
    if all(is_cash_account(line.account_code, line.account_name) for line in entry.lines):
        return True
    funds_cash = any(
        line.debit > 0 and is_cash_account(line.account_code, line.account_name)
        for line in entry.lines
    )
    return funds_cash and _has_keyword(entry.description, INTERNAL_TRANSFER_PHRASES)


# =============================================================================
# PARENT / CHILD ROLLUP
# =============================================================================

def rollup_parent_code(
    code: str,
    known_codes: Optional[Iterable[str]] = None,
    parent_code: Optional[str] = None,
) -> str:
    """
    Code whose statement line this account's balance belongs to.

    An explicit directory parent wins. Otherwise "1100-xyz" rolls into
    "1100" and "2000nn" into "2000" (except tenant deposit codes).
    When known_codes is given, a prefix parent must exist in it.
    """
    if parent_code:
        return parent_code
    code = str(code).strip()
    known = set(known_codes) if known_codes is not None else None

    if "-" in code:
        parent = base_code(code)
        if known is None or parent in known:
            return parent
    if code.startswith("2000") and code != "2000" and code not in ROLLUP_EXCLUDED_CODES:
        if known is None or "2000" in known:
            return "2000"
    return code
