"""Invoice Line Item Domain Entity

Tracks individual line items within an invoice: one line per (product, tier,
rate) of period usage, and one line per carried unpaid invoice.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, ForeignKey, Integer, String
from src.domain.base import BaseModel, BigIntegerPK


class InvoiceLineType(str, Enum):
    """Invoice line types"""
    USAGE = "usage"
    PREVIOUS_BALANCE = "previous_balance"


class InvoiceLineItem(BaseModel, table=True):
    """
    Invoice Line Item - Individual line within an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice
    - USAGE lines: total_credits = session_count * credits_per_session
    - PREVIOUS_BALANCE lines reference the superseded invoice
    - Immutable once the invoice is generated
    """

    __tablename__ = "invoice_line_items"
    __table_args__ = (
        Index('ix_invoice_line_items_invoice_id', 'invoice_id'),
    )

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="Unique line identifier (auto-increment)"
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    line_type: InvoiceLineType = Field(
        description="Line type (usage, previous_balance)"
    )

    product_id: Optional[str] = Field(default=None, description="Product (usage lines)")

    tier_name: Optional[str] = Field(default=None, description="Pricing tier (usage lines)")

    session_count: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True),
        description="Number of billed sessions (usage lines)"
    )

    credits_per_session: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True),
        description="Rate charged per session (usage lines)"
    )

    reference_invoice_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Superseded invoice (previous_balance lines)"
    )

    reference_invoice_number: Optional[str] = Field(
        default=None,
        description="Superseded invoice number (previous_balance lines)"
    )

    total_credits: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Line total in credits"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Line item creation timestamp"
    )
