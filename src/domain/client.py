"""Client Domain Entities

A client is a B2B customer of the verification platform. Each client has
one configuration row per product controlling whether the product is
enabled, whether the client may overdraw its credit balance, and where
session events are relayed.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import ForeignKey, String, UniqueConstraint
from src.domain.base import BaseModel, BigIntegerPK, generate_uuid


class ClientStatus(str, Enum):
    """Client lifecycle status"""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class Client(BaseModel, table=True):
    """
    Client - B2B customer identity

    Domain Rules:
    - code is unique and used as the ref_id prefix for sessions
    - Only ACTIVE clients may create verification sessions
    - Identity fields are immutable once created
    """

    __tablename__ = "clients"

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Client identifier (UUID)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Client display name"
    )

    code: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Short unique client code (e.g., ACME)"
    )

    status: ClientStatus = Field(
        default=ClientStatus.ACTIVE,
        description="Client status (active, suspended, inactive)"
    )

    contact_email: Optional[str] = Field(
        default=None,
        description="Billing contact email"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Client creation timestamp (start of the first billing period)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "name": "Acme Lending Sdn Bhd",
                "code": "ACME",
                "status": "active",
                "contact_email": "billing@acme.example",
                "created_at": "2024-01-01T00:00:00Z"
            }
        }


class ClientProductConfig(BaseModel, table=True):
    """
    Client Product Config - Per-product flags for a client

    Domain Rules:
    - One row per (client_id, product_id)
    - enabled=False blocks session creation for the product
    - allow_overdraft=False blocks session creation when the balance
      cannot cover the next session's rate
    """

    __tablename__ = "client_product_configs"
    __table_args__ = (
        UniqueConstraint('client_id', 'product_id', name='uq_client_product_config'),
    )

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="Config identifier (auto-increment)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Client"
    )

    product_id: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Product identifier (e.g., true_identity)"
    )

    enabled: bool = Field(
        default=True,
        description="Whether the client may use the product"
    )

    allow_overdraft: bool = Field(
        default=False,
        description="Whether sessions may be created when credits are insufficient"
    )

    webhook_url: Optional[str] = Field(
        default=None,
        description="Default URL for session event relays"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)
