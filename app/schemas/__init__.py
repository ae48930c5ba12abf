"""
HostelHub Finance - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.ledger import (
    AccountResponse,
    ResidenceResponse,
    TransactionEntryCreate,
    TransactionEntryLineCreate,
    TransactionEntryLineResponse,
    TransactionEntryResponse,
)

__all__ = [
    "AccountResponse",
    "ResidenceResponse",
    "TransactionEntryCreate",
    "TransactionEntryLineCreate",
    "TransactionEntryLineResponse",
    "TransactionEntryResponse",
]
