"""Data Transfer Objects for Invoicing Use Cases

Credit amounts are integers; currency amounts are Decimals in ringgit
(10 credits = RM 1).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class UsageLineDTO(BaseModel):
    """Usage rolled up by product, tier and rate"""

    product_id: str = Field(..., description="Product identifier")
    tier_name: str = Field(..., description="Tier applied at settlement")
    session_count: int = Field(..., description="Number of sessions")
    credits_per_session: int = Field(..., description="Credits charged per session")
    total_credits: int = Field(..., description="session_count * credits_per_session")


class UnpaidInvoiceDTO(BaseModel):
    invoice_id: str
    invoice_number: str
    unpaid_credits: int


class InvoicePreviewDTO(BaseModel):
    """
    Response DTO for invoice preview

    can_generate is False with a reason when generation would be refused.
    """

    client_id: str = Field(..., description="Client identifier")
    can_generate: bool = Field(..., description="Whether generate would succeed now")
    reason: Optional[str] = Field(default=None, description="Why generation is blocked")
    period_start: Optional[date] = Field(default=None, description="First day of the period (billing timezone)")
    period_end: Optional[date] = Field(default=None, description="Last day of the period (billing timezone)")
    usage: List[UsageLineDTO] = Field(default_factory=list)
    total_usage_credits: int = Field(default=0)
    unpaid_invoices: List[UnpaidInvoiceDTO] = Field(default_factory=list)
    previous_balance_credits: int = Field(default=0)
    current_balance: int = Field(default=0, description="Current credit balance")
    amount_due_credits: int = Field(default=0)
    amount_due: Decimal = Field(default=Decimal("0.00"), description="Amount due before SST (RM)")
    sst_rate: Decimal = Field(..., description="SST rate applied")
    sst_amount: Decimal = Field(default=Decimal("0.00"), description="SST on the amount due (RM)")
    total_with_sst: Decimal = Field(default=Decimal("0.00"), description="Amount due including SST (RM)")


class GenerateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for generating an invoice

    Used as input to GenerateInvoice use case.
    """

    client_id: str = Field(..., description="Client identifier")
    end_date: Optional[date] = Field(
        default=None, description="Last day of the period (defaults to yesterday)"
    )
    generated_by: Optional[str] = Field(default=None, description="Admin user, None for the scheduler")

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "end_date": "2024-01-31",
                "generated_by": "admin@truestack.example"
            }
        }


class InvoiceLineItemDTO(BaseModel):
    id: int
    line_type: str
    product_id: Optional[str] = None
    tier_name: Optional[str] = None
    session_count: Optional[int] = None
    credits_per_session: Optional[int] = None
    reference_invoice_id: Optional[str] = None
    reference_invoice_number: Optional[str] = None
    total_credits: int


class InvoiceDTO(BaseModel):
    """Invoice as exposed to callers"""

    id: str = Field(..., description="Invoice ID")
    client_id: str = Field(..., description="Client identifier")
    invoice_number: str = Field(..., description="Invoice number (INV-YYYY-MM-NNN)")
    period_start: datetime = Field(..., description="Period start (UTC)")
    period_end: datetime = Field(..., description="Period end (UTC)")
    due_date: date = Field(..., description="Payment due date")
    total_usage_credits: int
    previous_balance_credits: int
    credit_balance_at_generation: int
    amount_due_credits: int
    amount_paid_credits: int
    remaining_credits: int
    amount_due: Decimal = Field(..., description="Amount due before SST (RM)")
    sst_rate: Decimal
    status: str = Field(..., description="pending, generated, partial, paid or superseded")
    superseded_by_invoice_id: Optional[str] = None
    generated_by: Optional[str] = None
    generated_at: datetime


class PaymentDTO(BaseModel):
    """Payment as exposed to callers"""

    id: str
    client_id: str
    invoice_id: Optional[str] = None
    receipt_number: str
    amount_paid: Decimal
    sst_rate: Decimal
    base_amount: Decimal
    sst_amount: Decimal
    rounding_residual: Decimal
    credits: int
    applied_credits: int
    excess_credits: int
    payment_date: date
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[str] = None
    created_at: datetime


class InvoiceDetailDTO(BaseModel):
    invoice: InvoiceDTO
    lines: List[InvoiceLineItemDTO] = Field(default_factory=list)
    payments: List[PaymentDTO] = Field(default_factory=list)


class CleanupResultDTO(BaseModel):
    client_id: str = Field(..., description="Client identifier")
    deleted_count: int = Field(..., description="Number of pending invoices removed")
    invoice_numbers: List[str] = Field(default_factory=list)


class RecordPaymentCommandDTO(BaseModel):
    """
    Command DTO for recording a payment

    invoice_id None records an advance payment credited entirely as top-up.
    """

    client_id: str = Field(..., description="Client identifier")
    invoice_id: Optional[str] = Field(default=None, description="Invoice paid, None for advance payments")
    amount_paid: Decimal = Field(..., description="Amount received including SST (RM)")
    payment_date: date = Field(..., description="Date the payment was received")
    payment_method: Optional[str] = Field(default=None, description="e.g., bank_transfer")
    payment_reference: Optional[str] = Field(default=None, description="Bank or cheque reference")
    notes: Optional[str] = Field(default=None)
    recorded_by: Optional[str] = Field(default=None, description="Admin user recording the payment")

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "invoice_id": "8a1e4c52-0f0d-4e7e-9b7b-5d0f4f3a2b11",
                "amount_paid": "108.00",
                "payment_date": "2024-02-10",
                "payment_method": "bank_transfer",
                "payment_reference": "FT240210-001"
            }
        }


class PaymentResultDTO(BaseModel):
    """Response DTO for a recorded payment"""

    payment: PaymentDTO
    invoice_status: Optional[str] = Field(default=None, description="Invoice status after the payment")
    new_balance: int = Field(..., description="Credit balance after the payment")


class MonthlyInvoicingResultDTO(BaseModel):
    """
    Response DTO for the monthly invoicing run
    """

    period_end: date = Field(..., description="Last day invoiced")
    total_clients: int = Field(..., description="Active clients considered")
    invoices_generated: int = Field(..., description="Invoices generated")
    skipped: int = Field(..., description="Clients with nothing to invoice or a pending invoice")
    failed: int = Field(..., description="Clients whose generation failed")
    errors: List[dict] = Field(default_factory=list, description="client_id and error per failure")
    execution_time_ms: int = Field(..., description="Execution time in milliseconds")
