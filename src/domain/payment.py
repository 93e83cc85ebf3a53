"""Payment Domain Entity

Records a currency payment, its conversion into credits and its split
between the invoice it was made against and excess credited to the account.
"""

from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, Date, ForeignKey, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class Payment(BaseModel, table=True):
    """
    Payment - Tax-inclusive currency payment converted to credits

    Domain Rules:
    - credits = applied_credits + excess_credits
    - invoice_id is None for advance payments (everything is excess)
    - rounding_residual = amount_paid - (base_amount + sst_amount), kept for audit
    - receipt_number is unique (RCP-YYYY-MM-NNN)
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index('ix_payments_client_id', 'client_id'),
        Index('ix_payments_invoice_id', 'invoice_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Payment identifier (UUID)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Client"
    )

    invoice_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True),
        description="Invoice paid against (None for advance payments)"
    )

    receipt_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique receipt number"
    )

    amount_paid: Decimal = Field(
        sa_column=Column(Numeric(14, 2), nullable=False),
        description="Currency amount received, tax inclusive"
    )

    sst_rate: Decimal = Field(
        sa_column=Column(Numeric(5, 4), nullable=False),
        description="SST rate used for the conversion"
    )

    base_amount: Decimal = Field(
        sa_column=Column(Numeric(14, 2), nullable=False),
        description="Tax-exclusive amount recomputed from credits"
    )

    sst_amount: Decimal = Field(
        sa_column=Column(Numeric(14, 2), nullable=False),
        description="Tax recomputed from credits"
    )

    rounding_residual: Decimal = Field(
        sa_column=Column(Numeric(14, 2), nullable=False),
        description="amount_paid minus the recomputed total"
    )

    credits: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Credits purchased by the payment"
    )

    applied_credits: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Credits applied to the invoice"
    )

    excess_credits: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Credits topped up to the account"
    )

    payment_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date the payment was received"
    )

    payment_method: Optional[str] = Field(default=None)

    payment_reference: Optional[str] = Field(default=None)

    notes: Optional[str] = Field(default=None)

    recorded_by: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
