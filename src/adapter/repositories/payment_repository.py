"""SQLAlchemy Payment Repository Implementation"""

from datetime import datetime
from typing import List
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment


class SqlAlchemyPaymentRepository(PaymentRepository):
    """SQLAlchemy implementation of PaymentRepository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def list_by_invoice(self, invoice_id: str) -> List[Payment]:
        statement = (
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_advance(self, client_id: str) -> List[Payment]:
        statement = (
            select(Payment)
            .where(Payment.client_id == client_id)
            .where(Payment.invoice_id.is_(None))
            .order_by(Payment.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count_by_invoice(self, invoice_id: str) -> int:
        statement = select(func.count(Payment.id)).where(Payment.invoice_id == invoice_id)
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def next_receipt_number(self, now: datetime) -> str:
        """
        Generate the next receipt number for the month of ``now``

        Format: RCP-YYYY-MM-NNN (e.g., RCP-2024-02-001)
        """
        prefix = f"RCP-{now.year}-{now.month:02d}-"

        statement = (
            select(func.max(Payment.receipt_number))
            .where(Payment.receipt_number.like(f"{prefix}%"))
        )
        result = await self.session.execute(statement)
        max_number = result.scalar_one_or_none()

        sequence = int(max_number.split("-")[-1]) + 1 if max_number else 1
        return f"{prefix}{sequence:03d}"
