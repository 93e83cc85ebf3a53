from .unit_of_work import SqlAlchemyUnitOfWork
from .settlement_lock import InProcessSettlementLock
from .innovatif_gateway import InnovatifCodec, InnovatifGateway, create_verification_gateway
from .client_webhook_notifier import WebhookClientNotifier, create_client_notifier, sign_payload

__all__ = [
    "SqlAlchemyUnitOfWork",
    "InProcessSettlementLock",
    "InnovatifCodec",
    "InnovatifGateway",
    "create_verification_gateway",
    "WebhookClientNotifier",
    "create_client_notifier",
    "sign_payload",
]
