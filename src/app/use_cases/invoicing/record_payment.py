"""RecordPayment Use Case

Applies a received payment to an invoice, or credits it in advance when no
invoice is given.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.settlement_lock import SettlementLock, ledger_lock_key
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.billing.billing_clock import to_local
from src.app.use_cases.billing.ledger import append_ledger_entry, lock_account
from src.domain.credit_ledger import LedgerEntryType
from src.domain.invoice import InvoiceStatus, UNPAID_STATUSES
from src.domain.payment import Payment
from .dtos import PaymentResultDTO, RecordPaymentCommandDTO
from .invoice_builder import to_payment_dto
from .payment_allocation import CENT, allocate_payment

logger = logging.getLogger(__name__)


class RecordPayment:
    """
    Use Case: Record a payment

    Business Rules:
    1. amount_paid is SST-inclusive, positive, in whole cents
    2. Only GENERATED or PARTIAL invoices accept payments (INVOICE_NOT_PAYABLE)
    3. The invoice portion is recorded as a PAYMENT ledger entry, the excess
       as a TOPUP entry
    4. Advance payments (no invoice) credit everything as TOPUP
    5. Ledger writes happen under the (client, product) ledger lock
    6. Invoice payments use the SST rate stored on the invoice, advance
       payments the configured rate
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        account_repo: CreditAccountRepository,
        ledger_repo: CreditLedgerRepository,
        lock: SettlementLock,
        product_id: str = "true_identity",
        sst_rate: str = "0.08",
        credits_per_currency_unit: int = 10,
        utc_offset_hours: int = 8,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.account_repo = account_repo
        self.ledger_repo = ledger_repo
        self.lock = lock
        self.product_id = product_id
        self.sst_rate = Decimal(sst_rate)
        self.credits_per_currency_unit = credits_per_currency_unit
        self.utc_offset_hours = utc_offset_hours

    def _validate_amount(self, amount) -> Optional[Error]:
        try:
            amount = Decimal(amount)
        except (InvalidOperation, TypeError, ValueError):
            return Error(code="VALIDATION_ERROR", message="amount_paid must be a decimal amount")

        if not amount.is_finite() or amount <= 0:
            return Error(code="VALIDATION_ERROR", message="amount_paid must be greater than zero")
        if amount != amount.quantize(CENT):
            return Error(code="VALIDATION_ERROR", message="amount_paid must have at most 2 decimal places")
        return None

    async def execute(self, command: RecordPaymentCommandDTO) -> Result[PaymentResultDTO]:
        """
        Execute payment recording

        Args:
            command: RecordPaymentCommandDTO (invoice_id None for an advance payment)

        Returns:
            Result[PaymentResultDTO]: Payment, invoice status and new balance, or error
        """
        invalid = self._validate_amount(command.amount_paid)
        if invalid:
            return Return.err(invalid)

        try:
            # Step 1: Validate client and invoice
            client = await self.client_repo.get_by_id(command.client_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {command.client_id} not found")
                )

            if command.invoice_id:
                error = await self._check_payable(command.client_id, command.invoice_id)
                if error:
                    return Return.err(error)

            # Step 2: Apply under the ledger lock
            async with self.lock.hold(ledger_lock_key(client.id, self.product_id)):
                account = await lock_account(self.account_repo, client.id, self.product_id)

                invoice = None
                remaining = None
                if command.invoice_id:
                    invoice = await self.invoice_repo.get_by_id(command.invoice_id, for_update=True)
                    if invoice is None or invoice.status not in UNPAID_STATUSES:
                        await self.uow.rollback()
                        return Return.err(
                            Error(
                                code="INVOICE_NOT_PAYABLE",
                                message=f"Invoice {command.invoice_id} no longer accepts payments",
                            )
                        )
                    remaining = invoice.remaining_credits

                # An invoice is paid at the rate it was issued with
                sst_rate = Decimal(invoice.sst_rate) if invoice else self.sst_rate
                allocation = allocate_payment(
                    Decimal(command.amount_paid),
                    sst_rate,
                    remaining,
                    self.credits_per_currency_unit,
                )

                now = datetime.utcnow()
                payment = Payment(
                    client_id=client.id,
                    invoice_id=invoice.id if invoice else None,
                    receipt_number=await self.payment_repo.next_receipt_number(
                        to_local(now, self.utc_offset_hours)
                    ),
                    amount_paid=allocation.total,
                    sst_rate=allocation.sst_rate,
                    base_amount=allocation.base_amount,
                    sst_amount=allocation.sst_amount,
                    rounding_residual=allocation.rounding_residual,
                    credits=allocation.credits,
                    applied_credits=allocation.invoice_portion,
                    excess_credits=allocation.excess,
                    payment_date=command.payment_date,
                    payment_method=command.payment_method,
                    payment_reference=command.payment_reference,
                    notes=command.notes,
                    recorded_by=command.recorded_by,
                    created_at=now,
                )
                payment = await self.payment_repo.create(payment)

                balance = account.balance
                if allocation.invoice_portion > 0:
                    entry = await append_ledger_entry(
                        self.account_repo,
                        self.ledger_repo,
                        account,
                        amount=allocation.invoice_portion,
                        entry_type=LedgerEntryType.PAYMENT,
                        reference_id=payment.id,
                        description=f"Payment for {invoice.invoice_number} ({payment.receipt_number})",
                        created_by=command.recorded_by,
                        created_at=now,
                    )
                    balance = entry.balance_after

                if allocation.excess > 0:
                    description = (
                        f"Excess payment credits from {invoice.invoice_number} ({payment.receipt_number})"
                        if invoice
                        else f"Advance payment ({payment.receipt_number})"
                    )
                    entry = await append_ledger_entry(
                        self.account_repo,
                        self.ledger_repo,
                        account,
                        amount=allocation.excess,
                        entry_type=LedgerEntryType.TOPUP,
                        reference_id=payment.id,
                        description=description,
                        created_by=command.recorded_by,
                        created_at=now,
                    )
                    balance = entry.balance_after

                if invoice:
                    invoice.amount_paid_credits += allocation.invoice_portion
                    invoice.status = allocation.invoice_status
                    await self.invoice_repo.update(invoice)

                await self.uow.commit()

            logger.info(
                f"Recorded payment {payment.receipt_number} for client {client.id}: "
                f"amount={allocation.total}, credits={allocation.credits}, "
                f"applied={allocation.invoice_portion}, excess={allocation.excess}, "
                f"residual={allocation.rounding_residual}"
            )
            return Return.ok(
                PaymentResultDTO(
                    payment=to_payment_dto(payment),
                    invoice_status=allocation.invoice_status.value if allocation.invoice_status else None,
                    new_balance=balance,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to record payment for client {command.client_id}: {e}")
            return Return.err(
                Error(
                    code="RECORD_PAYMENT_FAILED",
                    message="Failed to record payment",
                    reason=str(e),
                )
            )

    async def _check_payable(self, client_id: str, invoice_id: str) -> Optional[Error]:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if invoice is None or invoice.client_id != client_id:
            return Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
        if invoice.status not in UNPAID_STATUSES:
            return Error(
                code="INVOICE_NOT_PAYABLE",
                message=f"Invoice {invoice.invoice_number} is {InvoiceStatus(invoice.status).value} and does not accept payments",
            )
        return None
