"""Payment Allocator

Turns a tax-inclusive currency payment into integer credits and splits the
credits between an invoice's unpaid remainder and excess top-up.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from src.domain.invoice import InvoiceStatus

CENT = Decimal("0.01")
ONE = Decimal("1")


def round_half_up_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def credits_to_currency(credits: int, credits_per_currency_unit: int = 10) -> Decimal:
    """Currency value of a credit amount, in cents precision"""
    return round_half_up_cents(Decimal(credits) / Decimal(credits_per_currency_unit))


@dataclass(frozen=True)
class PaymentAllocation:
    """
    Outcome of allocating one payment

    Invariants:
    - invoice_portion + excess == credits
    - base_amount + sst_amount + rounding_residual == total
    """

    total: Decimal
    sst_rate: Decimal
    credits: int
    base_amount: Decimal
    sst_amount: Decimal
    rounding_residual: Decimal
    invoice_portion: int
    excess: int
    invoice_status: Optional[InvoiceStatus]

    @property
    def actual_total(self) -> Decimal:
        return self.base_amount + self.sst_amount


def allocate_payment(
    total: Decimal,
    sst_rate: Decimal,
    remaining_on_invoice: Optional[int],
    credits_per_currency_unit: int = 10,
) -> PaymentAllocation:
    """
    Allocate a tax-inclusive payment

    base = total / (1 + r); credits = round_half_up(base * units). The tax
    is then recomputed from the credited base, and whatever the integer
    credit rounding could not represent is kept as rounding_residual.

    Args:
        total: Amount received including SST
        sst_rate: SST rate (e.g., Decimal("0.08"))
        remaining_on_invoice: Unpaid credits of the invoice, None for an advance payment
        credits_per_currency_unit: Credits per currency unit (10 credits = RM 1)

    Returns:
        PaymentAllocation
    """
    total = Decimal(total)
    sst_rate = Decimal(sst_rate)
    units = Decimal(credits_per_currency_unit)

    base = total / (ONE + sst_rate)
    credits = int((base * units).quantize(ONE, rounding=ROUND_HALF_UP))

    base_amount = round_half_up_cents(Decimal(credits) / units)
    sst_amount = round_half_up_cents(base_amount * sst_rate)
    residual = total - (base_amount + sst_amount)

    if remaining_on_invoice is None:
        invoice_portion, excess, status = 0, credits, None
    else:
        invoice_portion = min(credits, remaining_on_invoice)
        excess = max(0, credits - remaining_on_invoice)
        status = InvoiceStatus.PAID if invoice_portion == remaining_on_invoice else InvoiceStatus.PARTIAL

    return PaymentAllocation(
        total=total,
        sst_rate=sst_rate,
        credits=credits,
        base_amount=base_amount,
        sst_amount=sst_amount,
        rounding_residual=residual,
        invoice_portion=invoice_portion,
        excess=excess,
        invoice_status=status,
    )
