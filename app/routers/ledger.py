"""
HostelHub Finance - Ledger Router

Account directory, residences, and appending transaction entries.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.schemas.ledger import (
    AccountResponse,
    ResidenceResponse,
    TransactionEntryCreate,
    TransactionEntryResponse,
)
from app.services.ledger_repository import LedgerRepository

router = APIRouter()


@router.get("/accounts", response_model=List[AccountResponse])
async def list_accounts(
    include_inactive: bool = Query(False, description="Include deactivated accounts"),
    db: AsyncSession = Depends(get_async_session),
):
    """List the account directory ordered by code."""
    repository = LedgerRepository(db)
    accounts = await repository.list_accounts(include_inactive=include_inactive)
    return [
        AccountResponse(
            code=account.code,
            name=account.name,
            type=account.type,
            category=account.category,
            parent_code=account.parent_code,
            is_active=account.is_active,
        )
        for account in accounts
    ]


@router.get("/residences", response_model=List[ResidenceResponse])
async def list_residences(
    db: AsyncSession = Depends(get_async_session),
):
    """List residences that entries can be tagged with."""
    repository = LedgerRepository(db)
    return await repository.list_residences()


@router.post(
    "/entries",
    response_model=TransactionEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction_entry(
    data: TransactionEntryCreate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Append a balanced transaction entry.

    Entries are never edited; post a new entry to correct one. Cached
    reports for the entry's residence and for all residences are dropped.
    """
    repository = LedgerRepository(db)
    return await repository.append_entry(data)
