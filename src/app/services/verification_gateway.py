"""Verification Gateway Interface

Defines the contract for the external identity-verification vendor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Sequence


class GatewayError(Exception):
    """Vendor call failed (transport error, timeout, or error response)"""


class InvalidCallbackError(GatewayError):
    """Inbound vendor callback could not be decoded"""


@dataclass
class TransactionRequest:
    """Parameters of a new vendor transaction"""
    session_id: str
    ref_id: str
    document_name: str
    document_number: str
    document_type: str = "1"


@dataclass
class GatewayTransaction:
    """Vendor transaction created for a session"""
    onboarding_id: str
    onboarding_url: str


@dataclass
class GatewayStatus:
    """Current vendor-side state of a transaction, not yet mapped"""
    status: Any
    result: Any = None
    reject_message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VendorCallback:
    """Decoded vendor webhook payload"""
    ref_id: Optional[str]
    onboarding_id: Optional[str]
    status: Any
    result: Any = None
    reject_message: Optional[str] = None
    request_time: Optional[str] = None
    signature: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class VerificationGateway(ABC):
    """
    Abstract verification vendor

    Implementations handle payload encryption, request signing and transport.
    Outbound calls raise GatewayError on any failure so callers can leave
    state untouched.
    """

    @abstractmethod
    async def create_transaction(self, request: TransactionRequest) -> GatewayTransaction:
        """
        Create a vendor transaction for a verification session

        Args:
            request: Session identity and document details

        Returns:
            GatewayTransaction with the onboarding id and URL

        Raises:
            GatewayError: If the vendor call fails or returns an error
        """
        pass

    @abstractmethod
    async def get_status(self, ref_id: str, onboarding_id: str) -> GatewayStatus:
        """
        Fetch the current status of a vendor transaction

        Args:
            ref_id: External reference of the session
            onboarding_id: Vendor onboarding identifier

        Returns:
            GatewayStatus with the raw vendor status and result

        Raises:
            GatewayError: If the vendor call fails
        """
        pass

    @abstractmethod
    def decode_callback(self, body: Dict[str, Any]) -> VendorCallback:
        """
        Decode an inbound webhook body

        Args:
            body: Parsed JSON body as received

        Returns:
            VendorCallback

        Raises:
            InvalidCallbackError: If the body cannot be decrypted or parsed
        """
        pass

    @abstractmethod
    def verify_callback(
        self, callback: VendorCallback, ref_id_candidates: Sequence[str], now: datetime
    ) -> bool:
        """
        Check a callback's signature and freshness

        Args:
            callback: Decoded callback
            ref_id_candidates: ref_id spellings the signature may be computed over
            now: Current UTC time

        Returns:
            True if the signature matches one candidate and request_time is fresh
        """
        pass

    @abstractmethod
    def strip_ref_prefix(self, ref_id: str) -> str:
        """Remove the vendor's package-name prefix from an echoed ref_id"""
        pass
