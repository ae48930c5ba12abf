"""
HostelHub Finance - Ledger Repository

Data access for the account directory and the ledger store.

Reads return detached value objects (AccountInfo, LedgerEntry) so report
generation never holds ORM state. The only mutation is append_entry: entries
are never edited, corrections are posted as new entries.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.ledger import (
    Account,
    EntryStatus,
    Residence,
    TransactionEntry,
    TransactionEntryLine,
)
from app.schemas.ledger import TransactionEntryCreate
from app.services.cache_service import CacheService, get_cache_service
from app.services.ledger_aggregation import ZERO, AccountInfo, LedgerEntry, LedgerLine
from app.utils.error_handling import (
    AccountNotFoundException,
    BusinessRuleException,
    DatabaseException,
    DuplicateEntryException,
    ResidenceNotFoundException,
    UnbalancedEntryException,
)

logger = logging.getLogger(__name__)


def _to_uuid(value: Union[str, uuid.UUID]) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ResidenceNotFoundException(value)


def _to_ledger_entry(entry: TransactionEntry) -> LedgerEntry:
    status = entry.status.value if isinstance(entry.status, EntryStatus) else str(entry.status)
    return LedgerEntry(
        entry_id=str(entry.id),
        transaction_id=entry.transaction_id,
        date=entry.date,
        description=entry.description or "",
        source=entry.source,
        status=status,
        reference=entry.reference,
        residence_id=str(entry.residence_id) if entry.residence_id else None,
        lines=tuple(
            LedgerLine(
                account_code=line.account_code,
                account_name=line.account_name,
                account_type=line.account_type.value if line.account_type else None,
                debit=Decimal(line.debit or 0),
                credit=Decimal(line.credit or 0),
                description=line.description,
            )
            for line in entry.lines
        ),
    )


class LedgerRepository:
    """Read access to the ledger plus the append-only write."""

    def __init__(self, db: AsyncSession, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache

    # =========================================================================
    # ACCOUNT DIRECTORY
    # =========================================================================

    async def list_accounts(self, include_inactive: bool = False) -> List[AccountInfo]:
        """Account directory rows, parent codes resolved from parent_id."""
        result = await self.db.execute(select(Account).order_by(Account.code))
        accounts = list(result.scalars().all())
        codes_by_id: Dict[uuid.UUID, str] = {account.id: account.code for account in accounts}

        return [
            AccountInfo(
                code=account.code,
                name=account.name,
                type=account.type,
                category=account.category,
                parent_code=codes_by_id.get(account.parent_id) if account.parent_id else None,
                is_active=account.is_active,
            )
            for account in accounts
            if include_inactive or account.is_active
        ]

    async def get_account(self, code: str) -> Optional[AccountInfo]:
        """One directory row by code (active or not), or None."""
        result = await self.db.execute(
            select(Account)
            .options(selectinload(Account.parent))
            .where(Account.code == code)
        )
        account = result.scalar_one_or_none()
        if account is None:
            return None
        return AccountInfo(
            code=account.code,
            name=account.name,
            type=account.type,
            category=account.category,
            parent_code=account.parent.code if account.parent else None,
            is_active=account.is_active,
        )

    # =========================================================================
    # RESIDENCES
    # =========================================================================

    async def get_residence(self, residence_id: Union[str, uuid.UUID]) -> Optional[Residence]:
        result = await self.db.execute(
            select(Residence).where(Residence.id == _to_uuid(residence_id))
        )
        return result.scalar_one_or_none()

    async def list_residences(self) -> List[Residence]:
        result = await self.db.execute(select(Residence).order_by(Residence.name))
        return list(result.scalars().all())

    # =========================================================================
    # LEDGER ENTRIES
    # =========================================================================

    async def fetch_entries(
        self,
        end_date: date,
        start_date: Optional[date] = None,
        residence_id: Optional[Union[str, uuid.UUID]] = None,
        account_code: Optional[str] = None,
    ) -> List[LedgerEntry]:
        """
        Posted entries dated on or before end_date.

        Args:
            end_date: Last entry date included
            start_date: First entry date included (None = from the beginning)
            residence_id: Only entries tagged with this residence
            account_code: Only entries with a line on this account
        """
        query = (
            select(TransactionEntry)
            .options(selectinload(TransactionEntry.lines))
            .where(
                TransactionEntry.status == EntryStatus.POSTED,
                TransactionEntry.date <= end_date,
            )
        )
        if start_date is not None:
            query = query.where(TransactionEntry.date >= start_date)
        if residence_id is not None:
            query = query.where(TransactionEntry.residence_id == _to_uuid(residence_id))
        if account_code is not None:
            query = query.where(
                TransactionEntry.lines.any(TransactionEntryLine.account_code == account_code)
            )
        query = query.order_by(TransactionEntry.date, TransactionEntry.created_at)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Ledger read failed up to {end_date}: {e}")
            raise DatabaseException("Could not read ledger entries", original_error=e)
        entries = [_to_ledger_entry(entry) for entry in result.scalars().all()]
        logger.debug(
            f"Fetched {len(entries)} posted entries up to {end_date}"
            f"{f' from {start_date}' if start_date else ''}"
            f"{f' for residence {residence_id}' if residence_id else ''}"
        )
        return entries

    async def append_entry(self, data: TransactionEntryCreate) -> TransactionEntry:
        """
        Validate and store a balanced transaction entry.

        Raises:
            BusinessRuleException: fewer than two lines, or a line with no
                amount or amounts on both sides
            UnbalancedEntryException: debits differ from credits
            AccountNotFoundException: a line uses an unknown account code
            ResidenceNotFoundException: the residence does not exist
            DuplicateEntryException: the transaction_id is already used
            DatabaseException: the store rejected the write
        """
        if len(data.lines) < 2:
            raise BusinessRuleException(
                "A transaction entry needs at least two lines",
                rule="MINIMUM_TWO_LINES",
            )

        for idx, line in enumerate(data.lines, 1):
            if line.debit < 0 or line.credit < 0:
                raise BusinessRuleException(
                    f"Line {idx}: amounts cannot be negative",
                    rule="NON_NEGATIVE_AMOUNTS",
                )
            if (line.debit > 0) == (line.credit > 0):
                raise BusinessRuleException(
                    f"Line {idx}: exactly one of debit or credit must be positive",
                    rule="ONE_SIDED_LINE",
                )

        total_debit = sum((line.debit for line in data.lines), ZERO)
        total_credit = sum((line.credit for line in data.lines), ZERO)
        if total_debit != total_credit:
            raise UnbalancedEntryException(total_debit, total_credit)

        result = await self.db.execute(
            select(Account).where(Account.code.in_({line.account_code for line in data.lines}))
        )
        accounts = {account.code: account for account in result.scalars().all()}
        for line in data.lines:
            if line.account_code not in accounts:
                raise AccountNotFoundException(line.account_code)

        if data.residence_id is not None:
            if await self.get_residence(data.residence_id) is None:
                raise ResidenceNotFoundException(data.residence_id)

        existing = await self.db.execute(
            select(TransactionEntry.id).where(TransactionEntry.transaction_id == data.transaction_id)
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateEntryException("TransactionEntry", "transaction_id", data.transaction_id)

        entry = TransactionEntry(
            transaction_id=data.transaction_id,
            date=data.date,
            description=data.description,
            reference=data.reference,
            source=data.source.value,
            source_id=data.source_id,
            status=EntryStatus.POSTED,
            residence_id=data.residence_id,
            created_by=data.created_by,
            total_debit=total_debit,
            total_credit=total_credit,
        )
        entry.lines = [
            TransactionEntryLine(
                line_number=idx,
                account_code=line.account_code,
                account_name=accounts[line.account_code].name,
                account_type=accounts[line.account_code].type,
                debit=line.debit,
                credit=line.credit,
                description=line.description,
            )
            for idx, line in enumerate(data.lines, 1)
        ]

        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Entry {data.transaction_id} rejected by the store: {e}")
            raise DuplicateEntryException("TransactionEntry", "transaction_id", data.transaction_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to store entry {data.transaction_id}: {e}")
            raise DatabaseException("Could not store the transaction entry", original_error=e)
        await self.db.refresh(entry, attribute_names=["created_at"])

        logger.info(
            f"Appended entry {entry.transaction_id} ({entry.source}) dated {entry.date}: "
            f"{len(entry.lines)} lines, total {total_debit}"
        )

        cache = self.cache or get_cache_service()
        if data.residence_id is not None:
            await cache.invalidate_reports(scope=CacheService.scope_for(data.residence_id))
        await cache.invalidate_reports(scope=CacheService.SCOPE_ALL)

        return entry
