"""SQLAlchemy implementation of CreditLedgerRepository

Append-only persistence for credit ledger entries. Balances are computed
from the entries, never stored on them independently.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType


class SqlAlchemyCreditLedgerRepository(CreditLedgerRepository):
    """
    SQLAlchemy implementation of CreditLedgerRepository

    Entries are only ever added; there is no update or delete path.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: CreditLedgerEntry) -> CreditLedgerEntry:
        """
        Append a ledger entry

        Args:
            entry: CreditLedgerEntry to persist

        Returns:
            Created CreditLedgerEntry with generated ID
        """
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_balance(self, client_id: str, product_id: str) -> int:
        """
        Compute the balance as SUM(amount) over the (client, product) entries

        Args:
            client_id: Client identifier
            product_id: Product identifier

        Returns:
            Balance in credits (0 when there are no entries)
        """
        stmt = select(func.coalesce(func.sum(CreditLedgerEntry.amount), 0)).where(
            CreditLedgerEntry.client_id == client_id,
            CreditLedgerEntry.product_id == product_id,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get_latest(self, client_id: str, product_id: str) -> Optional[CreditLedgerEntry]:
        stmt = (
            select(CreditLedgerEntry)
            .where(
                CreditLedgerEntry.client_id == client_id,
                CreditLedgerEntry.product_id == product_id,
            )
            .order_by(CreditLedgerEntry.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_usage_by_reference(self, reference_id: str) -> List[CreditLedgerEntry]:
        stmt = select(CreditLedgerEntry).where(
            CreditLedgerEntry.reference_id == reference_id,
            CreditLedgerEntry.type == LedgerEntryType.USAGE,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_entries(
        self, client_id: str, product_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[CreditLedgerEntry], int]:
        """
        Retrieve entries newest first with pagination

        Args:
            client_id: Client identifier
            product_id: Product identifier
            limit: Maximum number of entries to return
            offset: Number of entries to skip

        Returns:
            Tuple of (entries, total count)
        """
        filters = (
            CreditLedgerEntry.client_id == client_id,
            CreditLedgerEntry.product_id == product_id,
        )

        count_stmt = select(func.count(CreditLedgerEntry.id)).where(*filters)
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar_one()

        stmt = (
            select(CreditLedgerEntry)
            .where(*filters)
            .order_by(CreditLedgerEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def list_usage_between(
        self, client_id: str, start: datetime, end: datetime
    ) -> List[CreditLedgerEntry]:
        stmt = (
            select(CreditLedgerEntry)
            .where(
                CreditLedgerEntry.client_id == client_id,
                CreditLedgerEntry.type == LedgerEntryType.USAGE,
                CreditLedgerEntry.created_at >= start,
                CreditLedgerEntry.created_at <= end,
            )
            .order_by(CreditLedgerEntry.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
