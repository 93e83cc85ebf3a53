"""Webhook Log Domain Entity

Deduplication log for inbound vendor callbacks.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, BigIntegerPK


class WebhookLog(BaseModel, table=True):
    """
    Webhook Log - One row per distinct inbound callback content

    Domain Rules:
    - payload_hash is unique (sha256 of the identifying fields)
    - processed=True means every side effect of the callback has committed;
      a later delivery with the same hash is a no-op
    - Callbacks failing signature verification are never logged
    """

    __tablename__ = "webhook_logs"

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="Log identifier (auto-increment)"
    )

    payload_hash: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Hex sha256 over ref_id, onboarding_id, status and result"
    )

    source: str = Field(
        default="innovatif",
        sa_column=Column(String(50), nullable=False, default="innovatif"),
        description="Callback source"
    )

    session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Verification session the callback refers to"
    )

    processed: bool = Field(
        default=False,
        description="Whether all side effects have been committed"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    processed_at: Optional[datetime] = Field(default=None)
