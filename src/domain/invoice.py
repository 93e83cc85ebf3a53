"""Invoice Domain Entity

Tracks periodic usage invoices, carried unpaid balances and payment status.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, ForeignKey, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    PENDING = "pending"          # Being assembled; blocks further generation
    GENERATED = "generated"      # Issued, nothing paid yet
    PARTIAL = "partial"          # Partially paid
    PAID = "paid"                # Fully paid
    SUPERSEDED = "superseded"    # Unpaid remainder folded into a newer invoice


UNPAID_STATUSES = (InvoiceStatus.GENERATED, InvoiceStatus.PARTIAL)

COMPLETED_STATUSES = (
    InvoiceStatus.GENERATED,
    InvoiceStatus.PARTIAL,
    InvoiceStatus.PAID,
    InvoiceStatus.SUPERSEDED,
)


class Invoice(BaseModel, table=True):
    """
    Invoice - Usage invoice for one client billing period

    Domain Rules:
    - invoice_number is unique (INV-YYYY-MM-NNN)
    - amount_due_credits = total_usage_credits + previous_balance_credits
    - amount_paid_credits <= amount_due_credits
    - Status transitions: pending -> generated -> partial -> paid,
      generated/partial -> superseded
    - A superseded invoice's unpaid remainder is carried by exactly one
      successor (superseded_by_invoice_id)
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_client_status', 'client_id', 'status'),
        CheckConstraint('amount_paid_credits <= amount_due_credits', name='paid_not_above_due'),
        CheckConstraint('amount_paid_credits >= 0', name='paid_non_negative'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Invoice identifier (UUID)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Client"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique invoice number (e.g., INV-2024-01-001)"
    )

    period_start: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Billing period start (UTC, inclusive)"
    )

    period_end: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Billing period end (UTC, inclusive)"
    )

    due_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Payment due date"
    )

    total_usage_credits: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Credits used in the period"
    )

    previous_balance_credits: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Unpaid credits carried from superseded invoices"
    )

    credit_balance_at_generation: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Ledger balance snapshot when the invoice was generated"
    )

    amount_due_credits: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Total credits due on this invoice"
    )

    amount_paid_credits: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Credits paid against this invoice"
    )

    sst_rate: Decimal = Field(
        sa_column=Column(Numeric(5, 4), nullable=False),
        description="SST rate applied on top of the base amount (e.g., 0.0800)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.PENDING,
        description="Invoice status (pending, generated, partial, paid, superseded)"
    )

    superseded_by_invoice_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Invoice that carries this invoice's unpaid remainder"
    )

    generated_by: Optional[str] = Field(
        default=None,
        description="Admin user that generated the invoice (None for the monthly job)"
    )

    generated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Generation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def remaining_credits(self) -> int:
        """Credits still owed on this invoice"""
        return max(0, self.amount_due_credits - self.amount_paid_credits)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "9a8b7c6d-5e4f-4a3b-2c1d-0e9f8a7b6c5d",
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "invoice_number": "INV-2024-02-001",
                "period_start": "2024-01-01T00:00:00Z",
                "period_end": "2024-01-31T23:59:59Z",
                "due_date": "2024-02-15",
                "total_usage_credits": 500,
                "previous_balance_credits": 120,
                "amount_due_credits": 620,
                "amount_paid_credits": 0,
                "sst_rate": "0.0800",
                "status": "generated"
            }
        }
