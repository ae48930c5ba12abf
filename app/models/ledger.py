"""
HostelHub Finance - Account Directory & Ledger Store Models

Double-entry ledger for residence finances:
- Residences (properties that entries can be tagged with)
- Account directory (code -> type, name, category, parent linkage)
- Transaction entries (append-only, balanced debit/credit lines)

Reports only ever read these tables.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, ForeignKey, Integer, Numeric, String, Text,
    Enum as SQLEnum, Index, CheckConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel


# =============================================================================
# ENUMS
# =============================================================================

class AccountType(str, Enum):
    """The five account types of the directory."""
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"


class EntrySource(str, Enum):
    """Where a transaction entry came from."""
    # Actual cash movement
    PAYMENT = "payment"
    EXPENSE_PAYMENT = "expense_payment"
    RENTAL_PAYMENT = "rental_payment"
    MANUAL = "manual"
    PAYMENT_COLLECTION = "payment_collection"
    BANK_TRANSFER = "bank_transfer"
    ADVANCE_PAYMENT = "advance_payment"

    # Accruals (earned/incurred, not yet settled)
    RENTAL_ACCRUAL = "rental_accrual"
    EXPENSE_ACCRUAL = "expense_accrual"

    # Non-cash adjustments
    ADJUSTMENT = "adjustment"
    OPENING_BALANCE = "opening_balance"


class EntryStatus(str, Enum):
    """Entry lifecycle. Only posted entries count in reports."""
    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"
    VOIDED = "voided"


# =============================================================================
# RESIDENCE
# =============================================================================

class Residence(BaseModel):
    """A hostel/residence property."""

    __tablename__ = "residences"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Residence(name={self.name})>"


# =============================================================================
# ACCOUNT DIRECTORY
# =============================================================================

class Account(BaseModel):
    """
    Account directory entry.

    Codes follow fixed prefix ranges (1xxx Asset ... 5xxx Expense). Sub-accounts
    either point at their parent through parent_id or share its code prefix
    (e.g. "1100-DR0001" under "1100").
    """

    __tablename__ = "accounts"

    code: Mapped[str] = mapped_column(
        String(30), nullable=False, unique=True, index=True,
        comment="Account code (e.g., 1000, 1100, 2000)",
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[AccountType] = mapped_column(SQLEnum(AccountType), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True,
        comment="Display category, e.g. Current Assets, Maintenance",
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    parent: Mapped[Optional["Account"]] = relationship(
        "Account",
        remote_side="Account.id",
        back_populates="children",
    )
    children: Mapped[List["Account"]] = relationship(
        "Account",
        back_populates="parent",
    )

    __table_args__ = (
        Index("ix_accounts_type_active", "type", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Account(code={self.code}, name={self.name})>"


# =============================================================================
# LEDGER STORE
# =============================================================================

class TransactionEntry(BaseModel):
    """
    A balanced double-entry transaction.

    Entries are append-only: corrections are new entries, never edits.
    """

    __tablename__ = "transaction_entries"

    transaction_id: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    source: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True,
        comment="payment, expense_payment, rental_accrual, manual, ...",
    )
    source_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[EntryStatus] = mapped_column(
        SQLEnum(EntryStatus), default=EntryStatus.POSTED, nullable=False,
    )

    residence_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("residences.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )

    residence: Mapped[Optional["Residence"]] = relationship("Residence")
    lines: Mapped[List["TransactionEntryLine"]] = relationship(
        "TransactionEntryLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="TransactionEntryLine.line_number",
    )

    __table_args__ = (
        CheckConstraint("total_debit = total_credit", name="balanced_entry"),
        Index("ix_transaction_entries_status_date", "status", "date"),
    )

    def __repr__(self) -> str:
        return f"<TransactionEntry(transaction_id={self.transaction_id}, date={self.date})>"


class TransactionEntryLine(BaseModel):
    """One debit or credit line of a transaction entry."""

    __tablename__ = "transaction_entry_lines"

    entry_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("transaction_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Denormalised from the directory at posting time
    account_code: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    account_name: Mapped[str] = mapped_column(String(200), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(SQLEnum(AccountType), nullable=False)

    debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    entry: Mapped["TransactionEntry"] = relationship("TransactionEntry", back_populates="lines")

    __table_args__ = (
        CheckConstraint("debit >= 0", name="non_negative_debit"),
        CheckConstraint("credit >= 0", name="non_negative_credit"),
    )
