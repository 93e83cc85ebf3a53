"""Verification Session Domain Entity

Tracks one identity-verification attempt through the vendor, and holds the
single status mapping shared by the webhook and status-pull paths.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from src.domain.base import BaseModel, generate_uuid


class SessionStatus(str, Enum):
    """Verification session lifecycle status"""
    PENDING = "pending"          # Created, user has not opened the flow
    PROCESSING = "processing"    # User is completing the flow
    COMPLETED = "completed"      # Vendor finished with a result (terminal)
    EXPIRED = "expired"          # Session timed out (terminal)


class SessionResult(str, Enum):
    """Verification outcome for completed sessions"""
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.EXPIRED})

# Expired sessions are not billed: no verification result was produced.
BILLABLE_STATUSES = frozenset({SessionStatus.COMPLETED})

_STATUS_RANK = {
    SessionStatus.PENDING: 0,
    SessionStatus.PROCESSING: 1,
    SessionStatus.COMPLETED: 2,
    SessionStatus.EXPIRED: 2,
}

_VENDOR_STATUS_MAP = {
    "0": SessionStatus.PENDING,
    "pending": SessionStatus.PENDING,
    "1": SessionStatus.PROCESSING,
    "processing": SessionStatus.PROCESSING,
    "2": SessionStatus.COMPLETED,
    "completed": SessionStatus.COMPLETED,
    "3": SessionStatus.EXPIRED,
    "expired": SessionStatus.EXPIRED,
}

_APPROVED_RESULT_VALUES = frozenset({"1", "pass", "approved"})


def map_vendor_status(
    vendor_status: Any, vendor_result: Any = None
) -> Tuple[SessionStatus, Optional[SessionResult]]:
    """
    Map a vendor status/result pair to the internal status and result

    Vendor status codes: 0 = URL not opened, 1 = processing, 2 = completed,
    3 = expired. Result codes (completed only): 1 = approved, 0 = rejected,
    2 = not available. The status pull API may also return the words
    "pending"/"completed"/"expired" and results "PASS"/"approved".

    Args:
        vendor_status: Status as sent by the vendor (int or str)
        vendor_result: Result as sent by the vendor (int, str or None)

    Returns:
        Tuple of (SessionStatus, SessionResult or None). Unknown status codes
        map to PROCESSING; a completed session without an approving result
        is REJECTED.
    """
    key = str(vendor_status).strip().lower() if vendor_status is not None else ""
    status = _VENDOR_STATUS_MAP.get(key, SessionStatus.PROCESSING)

    if status != SessionStatus.COMPLETED:
        return status, None

    result_key = str(vendor_result).strip().lower() if vendor_result is not None else ""
    if result_key in _APPROVED_RESULT_VALUES:
        return status, SessionResult.APPROVED
    return status, SessionResult.REJECTED


def is_terminal(status: SessionStatus) -> bool:
    return SessionStatus(status) in TERMINAL_STATUSES


def is_billable(status: SessionStatus) -> bool:
    return SessionStatus(status) in BILLABLE_STATUSES


def can_transition(current: SessionStatus, new: SessionStatus) -> bool:
    """
    Whether a session may move from current to new status

    Transitions are monotonic: a terminal status never changes and a
    session never regresses (processing -> pending). Repeating the current
    non-terminal status is allowed so that fields can be refreshed.
    """
    current = SessionStatus(current)
    new = SessionStatus(new)
    if current in TERMINAL_STATUSES:
        return False
    return _STATUS_RANK[new] >= _STATUS_RANK[current]


class VerificationSession(BaseModel, table=True):
    """
    Verification Session - One verification attempt for a client

    Domain Rules:
    - ref_id is unique and is the identifier shared with the vendor
    - status transitions are monotonic (see can_transition)
    - billed flips False -> True at most once, only via settlement
    - webhook_* fields record the latest relay to the client's webhook
    """

    __tablename__ = "verification_sessions"
    __table_args__ = (
        Index('ix_verification_sessions_client_billed', 'client_id', 'product_id', 'billed', 'billed_at'),
        Index('ix_verification_sessions_onboarding_id', 'onboarding_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Session identifier (UUID)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Foreign key to Client"
    )

    product_id: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Product identifier"
    )

    ref_id: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="External reference shared with the vendor"
    )

    onboarding_id: Optional[str] = Field(
        default=None,
        description="Vendor onboarding/transaction identifier"
    )

    onboarding_url: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Vendor URL the end user opens to verify"
    )

    status: SessionStatus = Field(
        default=SessionStatus.PENDING,
        description="Lifecycle status (pending, processing, completed, expired)"
    )

    result: Optional[SessionResult] = Field(
        default=None,
        description="Verification result (approved, rejected) once completed"
    )

    reject_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Vendor rejection reason"
    )

    document_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Name on the identity document"
    )

    document_number: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Identity document number"
    )

    document_type: str = Field(
        default="1",
        sa_column=Column(String(10), nullable=False, default="1"),
        description="Vendor document type (1 = MyKad, 2 = passport)"
    )

    client_metadata: Optional[dict] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
        description="Opaque client metadata echoed back in events"
    )

    vendor_response: Optional[dict] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Latest vendor payload (OCR fields, step results)"
    )

    webhook_url: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Client URL receiving session events"
    )

    billed: bool = Field(
        default=False,
        description="Whether the session has been settled"
    )

    billed_at: Optional[datetime] = Field(
        default=None,
        description="Settlement timestamp (used for the monthly ordinal)"
    )

    expires_at: Optional[datetime] = Field(
        default=None,
        description="Time after which the onboarding link is no longer valid"
    )

    webhook_delivered: bool = Field(default=False)

    webhook_delivered_at: Optional[datetime] = Field(default=None)

    webhook_attempts: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
    )

    webhook_last_error: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def apply_vendor_status(
        self,
        status: SessionStatus,
        result: Optional[SessionResult],
        reject_message: Optional[str] = None,
    ) -> bool:
        """
        Apply a mapped vendor status if the transition is allowed

        Args:
            status: New internal status
            result: New internal result
            reject_message: Vendor rejection reason, kept only for rejections

        Returns:
            True if the status changed, False if it was ignored or unchanged
        """
        if not can_transition(self.status, status):
            return False

        changed = SessionStatus(self.status) != status
        self.status = status
        self.result = result
        if result == SessionResult.REJECTED and reject_message:
            self.reject_message = reject_message
        self.updated_at = datetime.utcnow()
        return changed

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "4f1d2c3b-6a7e-4b8c-9d0e-1f2a3b4c5d6e",
                "client_id": "1b7c0e9e-34b5-4d0c-9a3c-7a3b1f3d2c10",
                "product_id": "true_identity",
                "ref_id": "ACME_lq2k9x1a_3f9c",
                "onboarding_id": "ONB-778812",
                "status": "completed",
                "result": "approved",
                "billed": True,
                "billed_at": "2024-01-15T08:30:00Z"
            }
        }
