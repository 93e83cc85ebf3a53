"""Request schemas for the admin API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class CreateClientRequestSchema(BaseModel):
    """Used for POST /admin/clients"""

    name: str = Field(..., min_length=1, description="Client display name")
    code: str = Field(..., min_length=1, max_length=50, description="Unique short code")
    contact_email: Optional[str] = Field(default=None)
    allow_overdraft: bool = Field(default=False)
    webhook_url: Optional[str] = Field(default=None)


class PricingTierSchema(BaseModel):
    tier_name: Optional[str] = Field(default=None, description="Defaults to 'Tier N'")
    min_volume: int = Field(..., description="First ordinal covered (>= 1)")
    max_volume: Optional[int] = Field(default=None, description="Last ordinal covered, null = unbounded")
    credits_per_session: int = Field(..., description="Credits charged per session (> 0)")


class ReplacePricingRequestSchema(BaseModel):
    """
    Used for POST /admin/clients/{id}/pricing

    The tiers replace the client's whole tier set.
    """

    product_id: Optional[str] = Field(default=None)
    tiers: List[PricingTierSchema] = Field(..., description="Complete new tier set")

    class Config:
        json_schema_extra = {
            "example": {
                "tiers": [
                    {"tier_name": "Starter", "min_volume": 1, "max_volume": 3, "credits_per_session": 50},
                    {"tier_name": "Volume", "min_volume": 4, "max_volume": None, "credits_per_session": 40}
                ]
            }
        }


class AddCreditsRequestSchema(BaseModel):
    """Used for POST /admin/clients/{id}/credits"""

    amount: int = Field(..., description="Signed credit amount, non-zero")
    type: str = Field(default="topup", description="topup, adjustment, refund or included")
    description: Optional[str] = Field(default=None)
    product_id: Optional[str] = Field(default=None)


class GenerateInvoiceRequestSchema(BaseModel):
    """Used for POST /admin/clients/{id}/invoices"""

    end_date: Optional[date] = Field(default=None, description="Last day invoiced, defaults to yesterday")


class RecordPaymentRequestSchema(BaseModel):
    """Used for POST .../invoices/{invoice_id}/payments and .../advance-payments"""

    amount_paid: Decimal = Field(..., description="Amount received including SST (RM)")
    payment_date: Optional[date] = Field(default=None, description="Defaults to today")
    payment_method: Optional[str] = Field(default=None)
    payment_reference: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    @field_validator('amount_paid')
    @classmethod
    def validate_amount(cls, v):
        """Ensure amount is positive"""
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "amount_paid": "108.00",
                "payment_date": "2024-02-10",
                "payment_method": "bank_transfer",
                "payment_reference": "FT240210-001"
            }
        }
