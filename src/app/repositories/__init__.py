from .client_repository import ClientRepository
from .api_key_repository import ApiKeyRepository
from .pricing_tier_repository import PricingTierRepository
from .credit_account_repository import CreditAccountRepository
from .credit_ledger_repository import CreditLedgerRepository
from .verification_session_repository import VerificationSessionRepository
from .invoice_repository import InvoiceRepository
from .invoice_line_repository import InvoiceLineRepository
from .payment_repository import PaymentRepository
from .webhook_log_repository import WebhookLogRepository

__all__ = [
    "ClientRepository",
    "ApiKeyRepository",
    "PricingTierRepository",
    "CreditAccountRepository",
    "CreditLedgerRepository",
    "VerificationSessionRepository",
    "InvoiceRepository",
    "InvoiceLineRepository",
    "PaymentRepository",
    "WebhookLogRepository",
]
