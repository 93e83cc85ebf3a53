from .base import BaseModel, generate_uuid
from .client import Client, ClientProductConfig, ClientStatus
from .client_api_key import ClientApiKey, ApiKeyStatus
from .pricing_tier import PricingTier
from .credit_account import CreditAccount
from .credit_ledger import CreditLedgerEntry, LedgerEntryType
from .verification_session import (
    VerificationSession,
    SessionStatus,
    SessionResult,
    map_vendor_status,
    can_transition,
    is_billable,
    is_terminal,
)
from .invoice import Invoice, InvoiceStatus
from .invoice_line import InvoiceLineItem, InvoiceLineType
from .payment import Payment
from .webhook_log import WebhookLog

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Client",
    "ClientProductConfig",
    "ClientStatus",
    "ClientApiKey",
    "ApiKeyStatus",
    "PricingTier",
    "CreditAccount",
    "CreditLedgerEntry",
    "LedgerEntryType",
    "VerificationSession",
    "SessionStatus",
    "SessionResult",
    "map_vendor_status",
    "can_transition",
    "is_billable",
    "is_terminal",
    "Invoice",
    "InvoiceStatus",
    "InvoiceLineItem",
    "InvoiceLineType",
    "Payment",
    "WebhookLog",
]
