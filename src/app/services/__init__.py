from .unit_of_work import UnitOfWork
from .settlement_lock import SettlementLock, ledger_lock_key
from .verification_gateway import (
    VerificationGateway,
    GatewayError,
    InvalidCallbackError,
    TransactionRequest,
    GatewayTransaction,
    GatewayStatus,
    VendorCallback,
)
from .client_notifier import ClientNotifier, DeliveryOutcome

__all__ = [
    "UnitOfWork",
    "SettlementLock",
    "ledger_lock_key",
    "VerificationGateway",
    "GatewayError",
    "InvalidCallbackError",
    "TransactionRequest",
    "GatewayTransaction",
    "GatewayStatus",
    "VendorCallback",
    "ClientNotifier",
    "DeliveryOutcome",
]
