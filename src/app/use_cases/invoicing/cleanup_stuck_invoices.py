"""CleanupStuckInvoices Use Case

Removes invoices left in PENDING by a failed generation.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from .dtos import CleanupResultDTO

logger = logging.getLogger(__name__)


class CleanupStuckInvoices:
    """
    Use Case: Delete stuck pending invoices

    Business Rules:
    1. Only PENDING invoices are deleted
    2. An invoice with any recorded payment is never deleted
    3. older_than limits deletion to invoices generated before now - older_than
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(
        self, client_id: str, older_than: Optional[timedelta] = None
    ) -> Result[CleanupResultDTO]:
        try:
            client = await self.client_repo.get_by_id(client_id)
            if not client:
                return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

            cutoff = datetime.utcnow() - older_than if older_than else None
            deleted = []

            for invoice in await self.invoice_repo.list_pending(client_id):
                if cutoff and invoice.generated_at > cutoff:
                    continue
                if await self.payment_repo.count_by_invoice(invoice.id) > 0:
                    logger.warning(f"Pending invoice {invoice.invoice_number} has payments; not deleted")
                    continue
                deleted.append(invoice.invoice_number)
                await self.invoice_repo.delete(invoice)

            await self.uow.commit()

            if deleted:
                logger.info(f"Deleted {len(deleted)} stuck invoices for client {client_id}: {deleted}")

            return Return.ok(
                CleanupResultDTO(client_id=client_id, deleted_count=len(deleted), invoice_numbers=deleted)
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CLEANUP_INVOICES_FAILED",
                    message="Failed to clean up pending invoices",
                    reason=str(e),
                )
            )
