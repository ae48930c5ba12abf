"""
HostelHub Finance - SQLAlchemy Models Package

Account directory and ledger store tables.
"""

from app.models.base import BaseModel, TimestampMixin
from app.models.ledger import (
    Account,
    AccountType,
    EntrySource,
    EntryStatus,
    Residence,
    TransactionEntry,
    TransactionEntryLine,
)

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "Account",
    "AccountType",
    "EntrySource",
    "EntryStatus",
    "Residence",
    "TransactionEntry",
    "TransactionEntryLine",
]
