from .dtos import (
    CreateSessionCommandDTO,
    CreateSessionResultDTO,
    SessionViewDTO,
    RefreshResultDTO,
    WebhookResultDTO,
    RelayResultDTO,
)
from .create_session import CreateSession, generate_ref_id
from .get_session import GetSession
from .refresh_session_status import RefreshSessionStatus
from .process_vendor_webhook import ProcessVendorWebhook, payload_hash
from .relay_client_webhook import RelayClientWebhook

__all__ = [
    "CreateSessionCommandDTO",
    "CreateSessionResultDTO",
    "SessionViewDTO",
    "RefreshResultDTO",
    "WebhookResultDTO",
    "RelayResultDTO",
    "CreateSession",
    "generate_ref_id",
    "GetSession",
    "RefreshSessionStatus",
    "ProcessVendorWebhook",
    "payload_hash",
    "RelayClientWebhook",
]
