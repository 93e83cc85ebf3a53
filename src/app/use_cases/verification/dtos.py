"""Data Transfer Objects for verification session use cases"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class CreateSessionCommandDTO(BaseModel):
    """
    Command to start a verification session

    client_id and product_id come from the authenticated API key.
    """
    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(default="true_identity", description="Product identifier")
    document_name: str = Field(default="", description="Name on the identity document")
    document_number: str = Field(default="", description="Identity document number")
    document_type: str = Field(default="1", description="1 = MyKad, 2 = passport")
    webhook_url: Optional[str] = Field(default=None, description="Overrides the configured client webhook")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Echoed back in session events")

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "product_id": "true_identity",
                "document_name": "TAN AH KOW",
                "document_number": "900101-14-5678",
                "document_type": "1",
                "metadata": {"customer_ref": "C-1001"}
            }
        }


class CreateSessionResultDTO(BaseModel):
    id: str = Field(..., description="Session ID")
    ref_id: str = Field(..., description="Reference shared with the vendor")
    onboarding_url: str = Field(..., description="URL the end user opens")
    expires_at: Optional[datetime] = Field(default=None)
    status: str = Field(..., description="Session status")


class SessionViewDTO(BaseModel):
    """Stored, normalized view of a session"""
    id: str
    ref_id: str
    status: str
    result: Optional[str] = None
    reject_message: Optional[str] = None
    document_name: str
    document_number: str
    document_type: str
    metadata: Optional[Dict[str, Any]] = None
    ocr_result: Optional[Dict[str, Any]] = Field(default=None, description="OCR fields of a completed session")
    billed: bool = False
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None


class RefreshResultDTO(BaseModel):
    id: str
    status: str
    result: Optional[str] = None
    refreshed: bool = Field(..., description="Whether the vendor was queried and the state applied")
    message: Optional[str] = None
    error: Optional[str] = None
    billed: bool = False


class WebhookResultDTO(BaseModel):
    success: bool = True
    duplicate: bool = Field(default=False, description="Callback was already fully processed")
    session_id: Optional[str] = None
    status: Optional[str] = None


class RelayResultDTO(BaseModel):
    session_id: str
    event: str
    delivered: bool
    attempts: int = 0
    error: Optional[str] = None
