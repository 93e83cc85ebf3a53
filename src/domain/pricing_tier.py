"""Pricing Tier Domain Entity

Volume tiers map a client's monthly session ordinal to a per-session
credit rate.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from src.domain.base import BaseModel, BigIntegerPK


class PricingTier(BaseModel, table=True):
    """
    Pricing Tier - Volume range with a fixed per-session credit rate

    Domain Rules:
    - Ranges are 1-indexed: the first billed session of the month is ordinal 1
    - max_volume=None means the tier is unbounded above
    - credits_per_session is a positive integer
    - Tiers are configuration: the billing path only reads them
    """

    __tablename__ = "pricing_tiers"
    __table_args__ = (
        Index('ix_pricing_tiers_client_product', 'client_id', 'product_id'),
        CheckConstraint('min_volume >= 1', name='min_volume_positive'),
        CheckConstraint('max_volume IS NULL OR max_volume >= min_volume', name='max_volume_gte_min'),
        CheckConstraint('credits_per_session > 0', name='credits_per_session_positive'),
    )

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="Tier identifier (auto-increment)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Client"
    )

    product_id: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Product identifier"
    )

    tier_name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name (e.g., Tier 1)"
    )

    min_volume: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="First ordinal covered by the tier (inclusive)"
    )

    max_volume: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True),
        description="Last ordinal covered by the tier (inclusive, None = unbounded)"
    )

    credits_per_session: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Credits charged per session in this tier"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def covers(self, ordinal: int) -> bool:
        """Whether the tier's [min_volume, max_volume] range contains the ordinal"""
        if ordinal < self.min_volume:
            return False
        return self.max_volume is None or ordinal <= self.max_volume

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "product_id": "true_identity",
                "tier_name": "Tier 1",
                "min_volume": 1,
                "max_volume": 100,
                "credits_per_session": 50
            }
        }
