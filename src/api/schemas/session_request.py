"""Request schemas for the public verification API"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class CreateSessionRequestSchema(BaseModel):
    """
    Request schema for starting a verification session

    Used for POST /v1/kyc/sessions. Missing document fields are reported
    as VALIDATION_ERROR (400) by the use case, not as a schema error.
    """

    document_name: str = Field(default="", description="Name as printed on the document")
    document_number: str = Field(default="", description="Document number")
    document_type: str = Field(default="1", description="1 = MyKad, 2 = passport")
    webhook_url: Optional[str] = Field(default=None, description="Overrides the configured webhook")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Echoed back in session events")

    class Config:
        json_schema_extra = {
            "example": {
                "document_name": "TAN AH KOW",
                "document_number": "900101-14-5678",
                "document_type": "1",
                "metadata": {"customer_ref": "C-1001"}
            }
        }
