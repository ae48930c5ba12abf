"""
HostelHub Finance - Ledger Schemas

Pydantic schemas for the account directory, residences and transaction
entries.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.ledger import AccountType, EntrySource, EntryStatus


# =============================================================================
# ACCOUNT DIRECTORY
# =============================================================================

class AccountResponse(BaseModel):
    """Account directory row as served by the API."""
    code: str
    name: str
    type: AccountType
    category: Optional[str] = None
    parent_code: Optional[str] = None
    is_active: bool = True


class ResidenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    address: Optional[str] = None
    is_active: bool = True


# =============================================================================
# TRANSACTION ENTRIES
# =============================================================================

class TransactionEntryLineCreate(BaseModel):
    """One debit or credit line. Exactly one side carries an amount."""
    account_code: str = Field(..., min_length=1, max_length=30)
    debit: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("debit", "credit")
    @classmethod
    def validate_amounts(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Amount cannot be negative")
        return v.quantize(Decimal("0.01"))


class TransactionEntryCreate(BaseModel):
    """Schema for appending a transaction entry to the ledger."""
    transaction_id: str = Field(..., min_length=1, max_length=50)
    date: date
    description: str = Field(..., min_length=1, max_length=500)
    reference: Optional[str] = Field(None, max_length=100)
    source: EntrySource = EntrySource.MANUAL
    source_id: Optional[str] = None
    residence_id: Optional[UUID] = None
    created_by: Optional[str] = None
    lines: List[TransactionEntryLineCreate] = Field(..., min_length=2)


class TransactionEntryLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    line_number: int
    account_code: str
    account_name: str
    account_type: AccountType
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None


class TransactionEntryResponse(BaseModel):
    """Schema for a stored transaction entry."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transaction_id: str
    date: date
    description: str
    reference: Optional[str] = None
    source: str
    status: EntryStatus
    residence_id: Optional[UUID] = None
    total_debit: Decimal
    total_credit: Decimal
    created_at: Optional[datetime] = None
    lines: List[TransactionEntryLineResponse] = []
