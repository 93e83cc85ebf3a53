"""Data Transfer Objects for client administration"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CreateClientCommandDTO(BaseModel):
    """Command to register a client with its product configuration"""
    name: str = Field(..., min_length=1, description="Client display name")
    code: str = Field(..., min_length=1, max_length=50, description="Unique short code (ref_id prefix)")
    contact_email: Optional[str] = Field(default=None)
    product_id: str = Field(default="true_identity")
    allow_overdraft: bool = Field(default=False)
    webhook_url: Optional[str] = Field(default=None, description="Client URL for session events")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Lending Sdn Bhd",
                "code": "ACME",
                "contact_email": "ops@acme.example",
                "allow_overdraft": False,
                "webhook_url": "https://acme.example/hooks/kyc"
            }
        }


class ClientDTO(BaseModel):
    id: str
    name: str
    code: str
    status: str
    contact_email: Optional[str] = None
    product_id: str
    product_enabled: bool
    allow_overdraft: bool
    webhook_url: Optional[str] = None
    created_at: datetime


class ApiKeyCreatedDTO(BaseModel):
    """A freshly issued key; api_key is shown only once"""
    id: int
    client_id: str
    api_key: str = Field(..., description="Plaintext key, not retrievable later")
    key_prefix: str
    created_at: datetime


class AuthenticatedClientDTO(BaseModel):
    client_id: str
    client_code: str
    product_id: str
    api_key_id: int
