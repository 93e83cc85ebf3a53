"""Invoice read-side use cases"""

from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceDTO, InvoiceDetailDTO, PaymentDTO
from .invoice_builder import to_invoice_dto, to_line_dto, to_payment_dto


def _client_not_found(client_id: str) -> Error:
    return Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found")


def _invoice_not_found(invoice_id: str) -> Error:
    return Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")


class ListInvoices:
    """Use case: list a client's invoices, newest first"""

    def __init__(
        self,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
        credits_per_currency_unit: int = 10,
    ):
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo
        self.credits_per_currency_unit = credits_per_currency_unit

    async def execute(
        self,
        client_id: str,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Result[List[InvoiceDTO]]:
        if not await self.client_repo.get_by_id(client_id):
            return Return.err(_client_not_found(client_id))

        status_filter = None
        if status:
            try:
                status_filter = InvoiceStatus(status)
            except ValueError:
                return Return.err(Error(code="VALIDATION_ERROR", message=f"Unknown invoice status: {status}"))

        invoices = await self.invoice_repo.list_by_client(client_id, status_filter, limit, offset)
        return Return.ok([to_invoice_dto(invoice, self.credits_per_currency_unit) for invoice in invoices])


class GetInvoice:
    """
    Use case: invoice detail with its lines and payments

    An invoice of another client is reported as not found.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        line_repo: InvoiceLineRepository,
        payment_repo: PaymentRepository,
        credits_per_currency_unit: int = 10,
    ):
        self.invoice_repo = invoice_repo
        self.line_repo = line_repo
        self.payment_repo = payment_repo
        self.credits_per_currency_unit = credits_per_currency_unit

    async def execute(self, client_id: str, invoice_id: str) -> Result[InvoiceDetailDTO]:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if invoice is None or invoice.client_id != client_id:
            return Return.err(_invoice_not_found(invoice_id))

        lines = await self.line_repo.list_by_invoice(invoice_id)
        payments = await self.payment_repo.list_by_invoice(invoice_id)
        return Return.ok(
            InvoiceDetailDTO(
                invoice=to_invoice_dto(invoice, self.credits_per_currency_unit),
                lines=[to_line_dto(line) for line in lines],
                payments=[to_payment_dto(payment) for payment in payments],
            )
        )


class ListInvoicePayments:
    """Use case: payments recorded against one invoice"""

    def __init__(self, invoice_repo: InvoiceRepository, payment_repo: PaymentRepository):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(self, client_id: str, invoice_id: str) -> Result[List[PaymentDTO]]:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if invoice is None or invoice.client_id != client_id:
            return Return.err(_invoice_not_found(invoice_id))

        payments = await self.payment_repo.list_by_invoice(invoice_id)
        return Return.ok([to_payment_dto(payment) for payment in payments])


class ListAdvancePayments:
    """Use case: payments recorded without an invoice"""

    def __init__(self, client_repo: ClientRepository, payment_repo: PaymentRepository):
        self.client_repo = client_repo
        self.payment_repo = payment_repo

    async def execute(self, client_id: str) -> Result[List[PaymentDTO]]:
        if not await self.client_repo.get_by_id(client_id):
            return Return.err(_client_not_found(client_id))

        payments = await self.payment_repo.list_advance(client_id)
        return Return.ok([to_payment_dto(payment) for payment in payments])
