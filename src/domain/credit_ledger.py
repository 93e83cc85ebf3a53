"""Credit Ledger Domain Entity

Immutable append-only record of every balance-affecting event for a
(client, product). The current balance is derived from it.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, String
from src.domain.base import BaseModel, BigIntegerPK


class LedgerEntryType(str, Enum):
    """Credit ledger entry types"""
    TOPUP = "topup"            # Credits purchased or over-payment excess
    INCLUDED = "included"      # Credits bundled with a plan or promotion
    USAGE = "usage"            # Settlement of a verification session
    ADJUSTMENT = "adjustment"  # Manual admin adjustment (either sign)
    REFUND = "refund"          # Credits returned to the client
    PAYMENT = "payment"        # Invoice portion of a recorded payment


class CreditLedgerEntry(BaseModel, table=True):
    """
    Credit Ledger Entry - Immutable balance-affecting event

    Domain Rules:
    - Entries are immutable (append-only)
    - amount is a signed integer number of credits
    - balance_after equals the running sum of amount for the same
      (client_id, product_id) up to and including this entry
    - Entries of one (client_id, product_id) are totally ordered by id
    - At most one USAGE entry exists per verification session (reference_id)
    """

    __tablename__ = "credit_ledger_entries"
    __table_args__ = (
        Index('ix_credit_ledger_client_product', 'client_id', 'product_id'),
        Index('ix_credit_ledger_reference', 'reference_id'),
        Index('ix_credit_ledger_created_at', 'created_at'),
    )

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="Entry identifier (auto-increment, commit order)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), nullable=False),
        description="Client identifier"
    )

    product_id: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Product identifier"
    )

    amount: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Signed credit amount (negative for usage)"
    )

    balance_after: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Running balance including this entry"
    )

    type: LedgerEntryType = Field(
        description="Entry type (topup, included, usage, adjustment, refund, payment)"
    )

    reference_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Referenced entity (session id for usage, payment id for payments)"
    )

    tier_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Pricing tier applied (usage entries only)"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Human-readable description"
    )

    created_by: Optional[str] = Field(
        default=None,
        description="Admin user that created the entry (None for automatic entries)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Entry timestamp (immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "product_id": "true_identity",
                "amount": -50,
                "balance_after": 150,
                "type": "usage",
                "reference_id": "4f1d2c3b-6a7e-4b8c-9d0e-1f2a3b4c5d6e",
                "tier_name": "Tier 1",
                "description": "KYC session approved (tier: 50 credits)",
                "created_at": "2024-01-15T08:30:00Z"
            }
        }
