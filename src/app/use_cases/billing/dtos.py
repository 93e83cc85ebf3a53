"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class RateDTO(BaseModel):
    """Per-session rate resolved for one ordinal"""

    credits_per_session: int = Field(..., description="Credits charged for the session")
    tier_name: str = Field(..., description="Name of the tier applied, or 'default'")


class SettleSessionCommandDTO(BaseModel):
    """
    Command DTO for settling a verification session

    Used as input to SettleSession use case.
    """

    session_id: str = Field(..., description="Verification session to settle")

    trigger: str = Field(
        default="webhook",
        description="What observed the terminal status (webhook, refresh)"
    )


class SettlementResultDTO(BaseModel):
    """
    Response DTO for a settlement attempt

    settled is False when the session was already billed or is not billable;
    in that case no ledger entry was written.
    """

    session_id: str = Field(..., description="Verification session ID")
    settled: bool = Field(..., description="Whether this call wrote the usage entry")
    already_billed: bool = Field(default=False, description="Session had been billed before")
    credits_deducted: int = Field(default=0, description="Credits charged by this call")
    tier_name: Optional[str] = Field(default=None, description="Tier applied")
    ordinal: Optional[int] = Field(default=None, description="Session's billing ordinal in the month")
    balance_after: Optional[int] = Field(default=None, description="Balance after the usage entry")

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "4f1d2c3b-6a7e-4b8c-9d0e-1f2a3b4c5d6e",
                "settled": True,
                "already_billed": False,
                "credits_deducted": 50,
                "tier_name": "Tier 1",
                "ordinal": 1,
                "balance_after": 150
            }
        }


class AddCreditsCommandDTO(BaseModel):
    """
    Command DTO for an administrative ledger entry

    Used as input to AddCredits use case.
    """

    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(default="true_identity", description="Product identifier")
    amount: int = Field(..., description="Signed credit amount (non-zero)")
    type: str = Field(default="topup", description="topup, adjustment, refund or included")
    description: Optional[str] = Field(default=None, description="Entry description")
    created_by: Optional[str] = Field(default=None, description="Admin user recording the entry")


class LedgerEntryDTO(BaseModel):
    """Ledger entry as exposed to callers"""

    id: int
    client_id: str
    product_id: str
    amount: int
    balance_after: int
    type: str
    reference_id: Optional[str] = None
    tier_name: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


class LedgerPageDTO(BaseModel):
    """
    Response DTO for ledger listing

    Entries are ordered newest first.
    """

    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(..., description="Product identifier")
    balance: int = Field(..., description="Current balance (sum of all entries)")
    entries: List[LedgerEntryDTO] = Field(default_factory=list)
    total: int = Field(..., description="Total number of entries")
    limit: int = Field(..., description="Page size")
    offset: int = Field(..., description="Page offset")


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for balance query

    Balance is an unlocked snapshot.
    """

    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(..., description="Product identifier")
    balance: int = Field(..., description="Current balance in credits")
    allow_overdraft: bool = Field(default=False, description="Whether the client may go negative")
    last_entry_at: Optional[datetime] = Field(default=None, description="Time of the newest ledger entry")

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "product_id": "true_identity",
                "balance": 150,
                "allow_overdraft": False,
                "last_entry_at": "2024-01-15T08:30:00Z"
            }
        }


class PricingTierInputDTO(BaseModel):
    """One tier of a pricing replacement request"""

    tier_name: Optional[str] = Field(default=None, description="Display name (defaults to 'Tier N')")
    min_volume: int = Field(..., description="First ordinal covered (>= 1)")
    max_volume: Optional[int] = Field(default=None, description="Last ordinal covered (None = unbounded)")
    credits_per_session: int = Field(..., description="Credits per session (> 0)")


class ReplacePricingCommandDTO(BaseModel):
    """
    Command DTO for replacing a client's pricing tiers

    Used as input to ReplacePricingTiers use case.
    """

    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(default="true_identity", description="Product identifier")
    tiers: List[PricingTierInputDTO] = Field(..., description="Complete new tier set")


class PricingTierDTO(BaseModel):
    id: int
    tier_name: str
    min_volume: int
    max_volume: Optional[int] = None
    credits_per_session: int


class PricingResponseDTO(BaseModel):
    """Response DTO for pricing configuration"""

    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(..., description="Product identifier")
    tiers: List[PricingTierDTO] = Field(default_factory=list)
    current_month_usage: int = Field(default=0, description="Sessions billed this billing month")
    allow_overdraft: bool = Field(default=False)
    default_credits_per_session: int = Field(..., description="Rate applied when no tier matches")


class LedgerDiscrepancyDTO(BaseModel):
    """
    DTO representing a ledger discrepancy

    Produced when a credit account's counter, its ledger sum and its newest
    running balance disagree.
    """

    client_id: str = Field(..., description="Client identifier")
    product_id: str = Field(..., description="Product identifier")
    account_id: int = Field(..., description="Credit account ID")
    account_balance: int = Field(..., description="Balance counter on the account")
    ledger_sum: int = Field(..., description="Sum of ledger entry amounts")
    latest_balance_after: Optional[int] = Field(
        default=None, description="balance_after of the newest entry"
    )
    discrepancy: int = Field(..., description="account_balance - ledger_sum")


class ReconciliationResultDTO(BaseModel):
    """
    Response DTO for ledger reconciliation
    """

    total_accounts_checked: int = Field(..., description="Number of credit accounts checked")
    discrepancies_found: int = Field(..., description="Number of discrepancies found")
    discrepancies: List[LedgerDiscrepancyDTO] = Field(
        default_factory=list, description="List of discrepancies"
    )
    reconciliation_time: datetime = Field(..., description="Time of reconciliation")
    execution_time_ms: int = Field(..., description="Execution time in milliseconds")
