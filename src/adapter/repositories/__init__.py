from .client_repository import SqlAlchemyClientRepository
from .api_key_repository import SqlAlchemyApiKeyRepository
from .pricing_tier_repository import SqlAlchemyPricingTierRepository
from .credit_account_repository import SqlAlchemyCreditAccountRepository
from .credit_ledger_repository import SqlAlchemyCreditLedgerRepository
from .verification_session_repository import SqlAlchemyVerificationSessionRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_repository import SqlAlchemyInvoiceLineRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .webhook_log_repository import SqlAlchemyWebhookLogRepository

__all__ = [
    "SqlAlchemyClientRepository",
    "SqlAlchemyApiKeyRepository",
    "SqlAlchemyPricingTierRepository",
    "SqlAlchemyCreditAccountRepository",
    "SqlAlchemyCreditLedgerRepository",
    "SqlAlchemyVerificationSessionRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyWebhookLogRepository",
]
