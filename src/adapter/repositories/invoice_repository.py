"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus, COMPLETED_STATUSES, UNPAID_STATUSES


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice
        """
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, invoice_id: str, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID

        Args:
            invoice_id: Invoice ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        statement = select(Invoice).where(Invoice.id == invoice_id)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_by_client(
        self,
        client_id: str,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Invoice]:
        """
        Retrieve invoices by client ID

        Args:
            client_id: Client identifier
            status: Optional filter by status
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            List of invoices
        """
        statement = select(Invoice).where(Invoice.client_id == client_id)

        if status:
            statement = statement.where(Invoice.status == status)

        statement = statement.order_by(Invoice.generated_at.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_pending(self, client_id: str) -> List[Invoice]:
        statement = select(Invoice).where(
            Invoice.client_id == client_id,
            Invoice.status == InvoiceStatus.PENDING,
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_unpaid(self, client_id: str) -> List[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.client_id == client_id)
            .where(Invoice.status.in_(UNPAID_STATUSES))
            .where(Invoice.amount_paid_credits < Invoice.amount_due_credits)
            .order_by(Invoice.period_end.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_last_completed(self, client_id: str) -> Optional[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.client_id == client_id)
            .where(Invoice.status.in_(COMPLETED_STATUSES))
            .order_by(Invoice.period_end.desc())
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        invoice.updated_at = datetime.utcnow()
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def delete(self, invoice: Invoice) -> None:
        await self.session.delete(invoice)
        await self.session.flush()

    async def next_invoice_number(self, now: datetime) -> str:
        """
        Generate the next invoice number for the month of ``now``

        Format: INV-YYYY-MM-NNN (e.g., INV-2024-02-001)

        Returns:
            Unique invoice number string
        """
        prefix = f"INV-{now.year}-{now.month:02d}-"

        # Highest sequence issued this month
        statement = (
            select(func.max(Invoice.invoice_number))
            .where(Invoice.invoice_number.like(f"{prefix}%"))
        )
        result = await self.session.execute(statement)
        max_number = result.scalar_one_or_none()

        if max_number:
            sequence = int(max_number.split("-")[-1]) + 1
        else:
            sequence = 1

        return f"{prefix}{sequence:03d}"
