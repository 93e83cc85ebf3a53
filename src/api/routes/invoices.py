"""Admin Invoice Routes

Invoice preview, generation, cleanup and payment recording.
"""

from datetime import date, timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories import (
    SqlAlchemyClientRepository,
    SqlAlchemyCreditAccountRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.schemas.admin_request import GenerateInvoiceRequestSchema, RecordPaymentRequestSchema
from src.api.security import require_admin
from src.app.services.settlement_lock import SettlementLock
from src.app.use_cases.billing.billing_clock import local_today
from src.app.use_cases.invoicing import (
    CleanupResultDTO,
    CleanupStuckInvoices,
    GenerateInvoice,
    GenerateInvoiceCommandDTO,
    GetInvoice,
    InvoiceDTO,
    InvoiceDetailDTO,
    InvoicePreviewDTO,
    ListAdvancePayments,
    ListInvoicePayments,
    ListInvoices,
    PaymentDTO,
    PaymentResultDTO,
    PreviewInvoice,
    RecordPayment,
    RecordPaymentCommandDTO,
)
from src.depends import get_config, get_session, get_settlement_lock

router = APIRouter(prefix="/admin/clients", tags=["Admin: Invoices"], dependencies=[Depends(require_admin)])


def _unwrap(result):
    if result.is_err():
        raise ClientError(result.error)
    return result.value


def _record_payment_use_case(session: AsyncSession, lock: SettlementLock, config) -> RecordPayment:
    return RecordPayment(
        uow=SqlAlchemyUnitOfWork(session),
        client_repo=SqlAlchemyClientRepository(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
        account_repo=SqlAlchemyCreditAccountRepository(session),
        ledger_repo=SqlAlchemyCreditLedgerRepository(session),
        lock=lock,
        product_id=config.DEFAULT_PRODUCT_ID,
        sst_rate=config.SST_RATE,
        credits_per_currency_unit=config.CREDITS_PER_CURRENCY_UNIT,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
    )


def _payment_command(
    client_id: str, invoice_id: Optional[str], request: RecordPaymentRequestSchema, admin: str, config
) -> RecordPaymentCommandDTO:
    return RecordPaymentCommandDTO(
        client_id=client_id,
        invoice_id=invoice_id,
        amount_paid=request.amount_paid,
        payment_date=request.payment_date or local_today(config.BILLING_UTC_OFFSET_HOURS),
        payment_method=request.payment_method,
        payment_reference=request.payment_reference,
        notes=request.notes,
        recorded_by=admin,
    )


@router.get("/{client_id}/invoices", response_model=List[InvoiceDTO])
async def list_invoices(
    client_id: str,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Invoices of a client, newest first."""
    use_case = ListInvoices(
        SqlAlchemyClientRepository(session),
        SqlAlchemyInvoiceRepository(session),
        credits_per_currency_unit=config.CREDITS_PER_CURRENCY_UNIT,
    )
    return _unwrap(await use_case.execute(client_id, status_filter, limit, offset))


@router.get("/{client_id}/invoices/preview", response_model=InvoicePreviewDTO)
async def preview_invoice(
    client_id: str,
    end_date: Optional[date] = None,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    What the next invoice would contain.

    When generation is blocked (pending invoice, nothing to invoice) the
    answer has `can_generate=false` and a `reason`.
    """
    use_case = PreviewInvoice(
        SqlAlchemyClientRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyCreditLedgerRepository(session),
        product_id=config.DEFAULT_PRODUCT_ID,
        sst_rate=config.SST_RATE,
        credits_per_currency_unit=config.CREDITS_PER_CURRENCY_UNIT,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
    )
    return _unwrap(await use_case.execute(client_id, end_date))


@router.post(
    "/{client_id}/invoices",
    response_model=InvoiceDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {
            "description": "Pending invoice exists or nothing to invoice",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "NOTHING_TO_INVOICE",
                            "message": "No usage and no unpaid invoices in the billing period"
                        }
                    }
                }
            }
        }
    },
)
async def generate_invoice(
    client_id: str,
    request: Optional[GenerateInvoiceRequestSchema] = None,
    admin: str = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    Generate the next invoice.

    Unpaid earlier invoices are superseded and their remainders carried
    forward as previous-balance lines.
    """
    use_case = GenerateInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        client_repo=SqlAlchemyClientRepository(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        line_repo=SqlAlchemyInvoiceLineRepository(session),
        ledger_repo=SqlAlchemyCreditLedgerRepository(session),
        product_id=config.DEFAULT_PRODUCT_ID,
        sst_rate=config.SST_RATE,
        credits_per_currency_unit=config.CREDITS_PER_CURRENCY_UNIT,
        payment_terms_days=config.PAYMENT_TERMS_DAYS,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
    )
    command = GenerateInvoiceCommandDTO(
        client_id=client_id,
        end_date=request.end_date if request else None,
        generated_by=admin,
    )
    return _unwrap(await use_case.execute(command))


@router.delete("/{client_id}/invoices/cleanup", response_model=CleanupResultDTO)
async def cleanup_invoices(
    client_id: str,
    older_than_minutes: Optional[int] = Query(default=None, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """Delete invoices stuck in pending that have no payments."""
    use_case = CleanupStuckInvoices(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    older_than = timedelta(minutes=older_than_minutes) if older_than_minutes is not None else None
    return _unwrap(await use_case.execute(client_id, older_than))


@router.get("/{client_id}/invoices/{invoice_id}", response_model=InvoiceDetailDTO)
async def get_invoice(
    client_id: str,
    invoice_id: str,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Invoice with its line items and payments."""
    use_case = GetInvoice(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        SqlAlchemyPaymentRepository(session),
        credits_per_currency_unit=config.CREDITS_PER_CURRENCY_UNIT,
    )
    return _unwrap(await use_case.execute(client_id, invoice_id))


@router.get("/{client_id}/invoices/{invoice_id}/payments", response_model=List[PaymentDTO])
async def list_invoice_payments(client_id: str, invoice_id: str, session: AsyncSession = Depends(get_session)):
    use_case = ListInvoicePayments(SqlAlchemyInvoiceRepository(session), SqlAlchemyPaymentRepository(session))
    return _unwrap(await use_case.execute(client_id, invoice_id))


@router.post(
    "/{client_id}/invoices/{invoice_id}/payments",
    response_model=PaymentResultDTO,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Invoice is paid or superseded"}},
)
async def record_invoice_payment(
    client_id: str,
    invoice_id: str,
    request: RecordPaymentRequestSchema,
    admin: str = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    lock: SettlementLock = Depends(get_settlement_lock),
    config=Depends(get_config),
):
    """
    Record an SST-inclusive payment against an invoice.

    The base amount is converted to credits; anything above the invoice's
    remainder is credited as a top-up.
    """
    use_case = _record_payment_use_case(session, lock, config)
    return _unwrap(await use_case.execute(_payment_command(client_id, invoice_id, request, admin, config)))


@router.get("/{client_id}/advance-payments", response_model=List[PaymentDTO])
async def list_advance_payments(client_id: str, session: AsyncSession = Depends(get_session)):
    use_case = ListAdvancePayments(SqlAlchemyClientRepository(session), SqlAlchemyPaymentRepository(session))
    return _unwrap(await use_case.execute(client_id))


@router.post("/{client_id}/advance-payments", response_model=PaymentResultDTO, status_code=status.HTTP_201_CREATED)
async def record_advance_payment(
    client_id: str,
    request: RecordPaymentRequestSchema,
    admin: str = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    lock: SettlementLock = Depends(get_settlement_lock),
    config=Depends(get_config),
):
    """Record a payment without an invoice; all of its credits are a top-up."""
    use_case = _record_payment_use_case(session, lock, config)
    return _unwrap(await use_case.execute(_payment_command(client_id, None, request, admin, config)))
