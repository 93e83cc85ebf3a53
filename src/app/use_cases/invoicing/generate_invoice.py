"""GenerateInvoice Use Case

Issues the next invoice for a client: usage of the period plus the unpaid
remainders of earlier invoices, which are superseded.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.use_cases.billing.billing_clock import to_local
from src.domain.invoice import Invoice, InvoiceStatus, UNPAID_STATUSES
from src.domain.invoice_line import InvoiceLineItem, InvoiceLineType
from .dtos import GenerateInvoiceCommandDTO, InvoiceDTO
from .invoice_builder import InvoiceDraft, build_draft, to_invoice_dto

logger = logging.getLogger(__name__)


class GenerateInvoice:
    """
    Use Case: Generate an invoice

    Business Rules:
    1. Refused while another invoice of the client is PENDING
    2. Refused when there is no usage and nothing unpaid (NOTHING_TO_INVOICE)
    3. Invoice number INV-YYYY-MM-NNN, due PAYMENT_TERMS_DAYS after generation
    4. Every unpaid earlier invoice becomes SUPERSEDED and its remainder is
       carried as a previous_balance line
    5. amount_due_credits = period usage + carried remainders

    Flow:
    1. Validate and compute the draft
    2. Insert the invoice as PENDING and commit
    3. In one transaction: write lines, supersede unpaid invoices, set
       totals and status GENERATED, commit
    4. If step 3 fails, delete the PENDING invoice (cleanup removes it
       otherwise)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
        line_repo: InvoiceLineRepository,
        ledger_repo: CreditLedgerRepository,
        product_id: str = "true_identity",
        sst_rate: str = "0.08",
        credits_per_currency_unit: int = 10,
        payment_terms_days: int = 14,
        utc_offset_hours: int = 8,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo
        self.line_repo = line_repo
        self.ledger_repo = ledger_repo
        self.product_id = product_id
        self.sst_rate = Decimal(sst_rate)
        self.credits_per_currency_unit = credits_per_currency_unit
        self.payment_terms_days = payment_terms_days
        self.utc_offset_hours = utc_offset_hours

    async def execute(self, command: GenerateInvoiceCommandDTO) -> Result[InvoiceDTO]:
        """
        Execute invoice generation

        Args:
            command: GenerateInvoiceCommandDTO with client_id and optional end_date

        Returns:
            Result[InvoiceDTO]: Generated invoice or error
        """
        try:
            # Step 1: Validate
            client = await self.client_repo.get_by_id(command.client_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {command.client_id} not found")
                )

            pending = await self.invoice_repo.list_pending(client.id)
            if pending:
                return Return.err(
                    Error(
                        code="INVOICE_PENDING",
                        message=f"Invoice {pending[0].invoice_number} is still pending",
                        reason="Clean up stuck invoices before generating",
                    )
                )

            draft = await build_draft(
                client, self.invoice_repo, self.ledger_repo, self.utc_offset_hours, command.end_date
            )
            if draft.is_empty_period:
                return Return.err(
                    Error(
                        code="NOTHING_TO_INVOICE",
                        message="No billable period available. Start date is after end date.",
                    )
                )
            if not draft.has_anything_to_invoice:
                return Return.err(
                    Error(
                        code="NOTHING_TO_INVOICE",
                        message="No usage and no unpaid invoices in the billing period",
                    )
                )

            # Step 2: Insert PENDING
            now = datetime.utcnow()
            local_now = to_local(now, self.utc_offset_hours)
            balance = await self.ledger_repo.get_balance(client.id, self.product_id)

            invoice = Invoice(
                client_id=client.id,
                invoice_number=await self.invoice_repo.next_invoice_number(local_now),
                period_start=draft.period_start,
                period_end=draft.period_end,
                due_date=local_now.date() + timedelta(days=self.payment_terms_days),
                total_usage_credits=draft.total_usage_credits,
                previous_balance_credits=0,
                credit_balance_at_generation=balance,
                amount_due_credits=draft.total_usage_credits,
                amount_paid_credits=0,
                sst_rate=self.sst_rate,
                status=InvoiceStatus.PENDING,
                generated_by=command.generated_by,
                generated_at=now,
            )
            invoice = await self.invoice_repo.create(invoice)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice generation failed for client {command.client_id}: {e}")
            return Return.err(
                Error(
                    code="GENERATE_INVOICE_FAILED",
                    message="Failed to generate invoice",
                    reason=str(e),
                )
            )

        invoice_id = invoice.id
        try:
            # Step 3: Assemble in one transaction
            invoice = await self._assemble(invoice_id, draft)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice {invoice_id} assembly failed, discarding pending row: {e}")
            await self._discard_pending(invoice_id)
            return Return.err(
                Error(
                    code="GENERATE_INVOICE_FAILED",
                    message="Failed to generate invoice",
                    reason=str(e),
                )
            )

        logger.info(
            f"Generated invoice {invoice.invoice_number} for client {client.id}: "
            f"usage={invoice.total_usage_credits}, previous={invoice.previous_balance_credits}, "
            f"due={invoice.amount_due_credits}"
        )
        return Return.ok(to_invoice_dto(invoice, self.credits_per_currency_unit))

    async def _assemble(self, invoice_id: str, draft: InvoiceDraft) -> Invoice:
        invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)

        lines = [
            InvoiceLineItem(
                invoice_id=invoice_id,
                line_type=InvoiceLineType.USAGE,
                product_id=usage.product_id,
                tier_name=usage.tier_name,
                session_count=usage.session_count,
                credits_per_session=usage.credits_per_session,
                total_credits=usage.total_credits,
            )
            for usage in draft.usage
        ]

        previous_balance = 0
        for candidate in draft.unpaid:
            unpaid = await self.invoice_repo.get_by_id(candidate.id, for_update=True)
            if unpaid is None or unpaid.status not in UNPAID_STATUSES or unpaid.remaining_credits == 0:
                continue

            remaining = unpaid.remaining_credits
            lines.append(
                InvoiceLineItem(
                    invoice_id=invoice_id,
                    line_type=InvoiceLineType.PREVIOUS_BALANCE,
                    reference_invoice_id=unpaid.id,
                    reference_invoice_number=unpaid.invoice_number,
                    total_credits=remaining,
                )
            )
            unpaid.status = InvoiceStatus.SUPERSEDED
            unpaid.superseded_by_invoice_id = invoice_id
            await self.invoice_repo.update(unpaid)
            previous_balance += remaining

        if lines:
            await self.line_repo.create_many(lines)

        invoice.previous_balance_credits = previous_balance
        invoice.amount_due_credits = invoice.total_usage_credits + previous_balance
        invoice.status = InvoiceStatus.GENERATED
        return await self.invoice_repo.update(invoice)

    async def _discard_pending(self, invoice_id: str) -> None:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if invoice and invoice.status == InvoiceStatus.PENDING:
                await self.invoice_repo.delete(invoice)
                await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Could not discard pending invoice {invoice_id}, left for cleanup: {e}")
