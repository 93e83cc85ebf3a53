"""PreviewInvoice Use Case

Shows what the next invoice for a client would contain, without writing.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import InvoicePreviewDTO
from .invoice_builder import build_draft, unpaid_dtos
from .payment_allocation import credits_to_currency, round_half_up_cents


class PreviewInvoice:
    """
    Use Case: Preview the next invoice

    Business Rules:
    1. Blocked while a pending invoice exists (reason given, no error)
    2. Blocked when the period is empty or has no usage and no unpaid invoices
    3. Amount due = period usage + unpaid remainders of earlier invoices
    4. SST is computed on the currency value of the amount due
    """

    def __init__(
        self,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
        ledger_repo: CreditLedgerRepository,
        product_id: str = "true_identity",
        sst_rate: str = "0.08",
        credits_per_currency_unit: int = 10,
        utc_offset_hours: int = 8,
    ):
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo
        self.ledger_repo = ledger_repo
        self.product_id = product_id
        self.sst_rate = Decimal(sst_rate)
        self.credits_per_currency_unit = credits_per_currency_unit
        self.utc_offset_hours = utc_offset_hours

    async def execute(self, client_id: str, end_date: Optional[date] = None) -> Result[InvoicePreviewDTO]:
        """
        Execute preview

        Args:
            client_id: Client identifier
            end_date: Last day of the period (defaults to yesterday)

        Returns:
            Result[InvoicePreviewDTO]: Preview, or CLIENT_NOT_FOUND
        """
        try:
            client = await self.client_repo.get_by_id(client_id)
            if not client:
                return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

            current_balance = await self.ledger_repo.get_balance(client_id, self.product_id)

            pending = await self.invoice_repo.list_pending(client_id)
            if pending:
                return Return.ok(
                    InvoicePreviewDTO(
                        client_id=client_id,
                        can_generate=False,
                        reason=(
                            f"Invoice {pending[0].invoice_number} is still pending. "
                            "Clean up stuck invoices before generating."
                        ),
                        current_balance=current_balance,
                        sst_rate=self.sst_rate,
                    )
                )

            draft = await build_draft(
                client, self.invoice_repo, self.ledger_repo, self.utc_offset_hours, end_date
            )

            reason = None
            if draft.is_empty_period:
                reason = "No billable period available. Start date is after end date."
            elif not draft.has_anything_to_invoice:
                reason = "No usage and no unpaid invoices in the billing period."

            amount_due = credits_to_currency(draft.amount_due_credits, self.credits_per_currency_unit)
            sst_amount = round_half_up_cents(amount_due * self.sst_rate)

            return Return.ok(
                InvoicePreviewDTO(
                    client_id=client_id,
                    can_generate=reason is None,
                    reason=reason,
                    period_start=draft.period_start_date,
                    period_end=draft.period_end_date,
                    usage=draft.usage,
                    total_usage_credits=draft.total_usage_credits,
                    unpaid_invoices=unpaid_dtos(draft.unpaid),
                    previous_balance_credits=draft.previous_balance_credits,
                    current_balance=current_balance,
                    amount_due_credits=draft.amount_due_credits,
                    amount_due=amount_due,
                    sst_rate=self.sst_rate,
                    sst_amount=sst_amount,
                    total_with_sst=amount_due + sst_amount,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="PREVIEW_INVOICE_FAILED",
                    message="Failed to preview invoice",
                    reason=str(e),
                )
            )
