"""Invoice assembly helpers shared by preview and generation"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.use_cases.billing.billing_clock import (
    local_day_end_utc,
    local_midnight_utc,
    local_today,
    to_local,
)
from src.app.use_cases.billing.pricing import DEFAULT_TIER_NAME
from src.domain.client import Client
from src.domain.credit_ledger import CreditLedgerEntry
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLineItem
from src.domain.payment import Payment
from .dtos import (
    InvoiceDTO,
    InvoiceLineItemDTO,
    PaymentDTO,
    UnpaidInvoiceDTO,
    UsageLineDTO,
)
from .payment_allocation import credits_to_currency


@dataclass
class InvoiceDraft:
    """Everything an invoice for one period would contain"""
    client_id: str
    period_start_date: date
    period_end_date: date
    period_start: datetime
    period_end: datetime
    usage: List[UsageLineDTO] = field(default_factory=list)
    unpaid: List[Invoice] = field(default_factory=list)

    @property
    def is_empty_period(self) -> bool:
        return self.period_start_date > self.period_end_date

    @property
    def total_usage_credits(self) -> int:
        return sum(line.total_credits for line in self.usage)

    @property
    def previous_balance_credits(self) -> int:
        return sum(invoice.remaining_credits for invoice in self.unpaid)

    @property
    def amount_due_credits(self) -> int:
        return self.total_usage_credits + self.previous_balance_credits

    @property
    def has_anything_to_invoice(self) -> bool:
        return bool(self.usage) or bool(self.unpaid)


def group_usage(entries: Iterable[CreditLedgerEntry]) -> List[UsageLineDTO]:
    """
    Roll usage entries up by (product, tier, rate)

    Args:
        entries: USAGE ledger entries

    Returns:
        Usage lines sorted by product then tier name
    """
    groups: Dict[Tuple[str, str, int], int] = defaultdict(int)
    for entry in entries:
        key = (entry.product_id, entry.tier_name or DEFAULT_TIER_NAME, abs(entry.amount))
        groups[key] += 1

    lines = [
        UsageLineDTO(
            product_id=product_id,
            tier_name=tier_name,
            session_count=count,
            credits_per_session=rate,
            total_credits=count * rate,
        )
        for (product_id, tier_name, rate), count in groups.items()
    ]
    return sorted(lines, key=lambda line: (line.product_id, line.tier_name, line.credits_per_session))


async def build_draft(
    client: Client,
    invoice_repo: InvoiceRepository,
    ledger_repo: CreditLedgerRepository,
    utc_offset_hours: int,
    end_date: Optional[date] = None,
) -> InvoiceDraft:
    """
    Compute the next billing period and its contents

    The period starts the day after the latest completed invoice ends, or on
    the client's creation day, and ends on end_date (default yesterday).
    Days are calendar days in the billing timezone.
    """
    last = await invoice_repo.get_last_completed(client.id)
    if last:
        start_date = to_local(last.period_end, utc_offset_hours).date() + timedelta(days=1)
    else:
        start_date = to_local(client.created_at, utc_offset_hours).date()

    if end_date is None:
        end_date = local_today(utc_offset_hours) - timedelta(days=1)

    draft = InvoiceDraft(
        client_id=client.id,
        period_start_date=start_date,
        period_end_date=end_date,
        period_start=local_midnight_utc(start_date, utc_offset_hours),
        period_end=local_day_end_utc(end_date, utc_offset_hours),
    )
    if draft.is_empty_period:
        return draft

    entries = await ledger_repo.list_usage_between(client.id, draft.period_start, draft.period_end)
    draft.usage = group_usage(entries)
    draft.unpaid = await invoice_repo.list_unpaid(client.id)
    return draft


def unpaid_dtos(invoices: Iterable[Invoice]) -> List[UnpaidInvoiceDTO]:
    return [
        UnpaidInvoiceDTO(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            unpaid_credits=invoice.remaining_credits,
        )
        for invoice in invoices
    ]


def to_invoice_dto(invoice: Invoice, credits_per_currency_unit: int = 10) -> InvoiceDTO:
    return InvoiceDTO(
        id=invoice.id,
        client_id=invoice.client_id,
        invoice_number=invoice.invoice_number,
        period_start=invoice.period_start,
        period_end=invoice.period_end,
        due_date=invoice.due_date,
        total_usage_credits=invoice.total_usage_credits,
        previous_balance_credits=invoice.previous_balance_credits,
        credit_balance_at_generation=invoice.credit_balance_at_generation,
        amount_due_credits=invoice.amount_due_credits,
        amount_paid_credits=invoice.amount_paid_credits,
        remaining_credits=invoice.remaining_credits,
        amount_due=credits_to_currency(invoice.amount_due_credits, credits_per_currency_unit),
        sst_rate=Decimal(invoice.sst_rate),
        status=InvoiceStatus(invoice.status).value,
        superseded_by_invoice_id=invoice.superseded_by_invoice_id,
        generated_by=invoice.generated_by,
        generated_at=invoice.generated_at,
    )


def to_line_dto(line: InvoiceLineItem) -> InvoiceLineItemDTO:
    return InvoiceLineItemDTO(
        id=line.id,
        line_type=line.line_type.value if hasattr(line.line_type, "value") else line.line_type,
        product_id=line.product_id,
        tier_name=line.tier_name,
        session_count=line.session_count,
        credits_per_session=line.credits_per_session,
        reference_invoice_id=line.reference_invoice_id,
        reference_invoice_number=line.reference_invoice_number,
        total_credits=line.total_credits,
    )


def to_payment_dto(payment: Payment) -> PaymentDTO:
    return PaymentDTO(
        id=payment.id,
        client_id=payment.client_id,
        invoice_id=payment.invoice_id,
        receipt_number=payment.receipt_number,
        amount_paid=payment.amount_paid,
        sst_rate=payment.sst_rate,
        base_amount=payment.base_amount,
        sst_amount=payment.sst_amount,
        rounding_residual=payment.rounding_residual,
        credits=payment.credits,
        applied_credits=payment.applied_credits,
        excess_credits=payment.excess_credits,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        payment_reference=payment.payment_reference,
        notes=payment.notes,
        recorded_by=payment.recorded_by,
        created_at=payment.created_at,
    )
