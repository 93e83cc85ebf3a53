"""Credit Account Domain Entity

Per-(client, product) control record for the credit ledger. The row is the
lock target of every ledger append, and its balance counter is only ever
written in the same transaction as the ledger entry it reflects.
"""

from datetime import datetime
from sqlmodel import Field, Column
from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from src.domain.base import BaseModel, BigIntegerPK


class CreditAccount(BaseModel, table=True):
    """
    Credit Account - Lock target and balance counter for one (client, product)

    Domain Rules:
    - One account per (client_id, product_id)
    - balance may be negative (overdraft is decided at session creation)
    - balance changes only together with a CreditLedgerEntry append
    - balance must equal sum(amount) of the account's ledger entries
    """

    __tablename__ = "credit_accounts"
    __table_args__ = (
        UniqueConstraint('client_id', 'product_id', name='uq_credit_account_client_product'),
    )

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="Account identifier (auto-increment)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Client"
    )

    product_id: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Product identifier"
    )

    balance: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Balance counter in credits (kept equal to the ledger sum)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Account creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last balance update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "product_id": "true_identity",
                "balance": 150,
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
