"""Client API Key Domain Entity

API keys authenticate machine clients on the public verification API.
Only a SHA-256 hash of the key is stored.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import ForeignKey, String
from src.domain.base import BaseModel, BigIntegerPK


class ApiKeyStatus(str, Enum):
    """API key status"""
    ACTIVE = "active"
    REVOKED = "revoked"


class ClientApiKey(BaseModel, table=True):
    """
    Client API Key - Hashed credential for the public API

    Domain Rules:
    - key_hash is the hex SHA-256 of the plaintext key and is unique
    - Plaintext is returned once at creation and never persisted
    - Only ACTIVE keys authenticate
    """

    __tablename__ = "client_api_keys"

    id: int = Field(
        sa_column=Column(BigIntegerPK, primary_key=True, autoincrement=True),
        description="API key identifier (auto-increment)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Foreign key to Client"
    )

    key_hash: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Hex SHA-256 of the plaintext key"
    )

    key_prefix: str = Field(
        sa_column=Column(String(16), nullable=False),
        description="First characters of the key, for display"
    )

    status: ApiKeyStatus = Field(
        default=ApiKeyStatus.ACTIVE,
        description="Key status (active, revoked)"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    last_used_at: Optional[datetime] = Field(default=None)
