"""SQLAlchemy Invoice Line Repository Implementation

Implements invoice line item persistence using SQLAlchemy async session.
"""

from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.domain.invoice_line import InvoiceLineItem


class SqlAlchemyInvoiceLineRepository(InvoiceLineRepository):
    """
    SQLAlchemy implementation of InvoiceLineRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_many(self, lines: List[InvoiceLineItem]) -> List[InvoiceLineItem]:
        """
        Persist several line items in one flush

        Args:
            lines: Line items to persist

        Returns:
            Created line items with generated IDs
        """
        for line in lines:
            self.session.add(line)
        await self.session.flush()

        for line in lines:
            await self.session.refresh(line)
        return lines

    async def list_by_invoice(self, invoice_id: str) -> List[InvoiceLineItem]:
        statement = (
            select(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .order_by(InvoiceLineItem.id.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
