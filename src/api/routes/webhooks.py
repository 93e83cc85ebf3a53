"""Vendor Webhook Routes

Inbound callbacks from the Innovatif eKYC gateway.
"""

import json
import logging
from fastapi import APIRouter, Depends, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession
from libs.result import Error
from src.adapter.repositories import (
    SqlAlchemyVerificationSessionRepository,
    SqlAlchemyWebhookLogRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.builders import build_relay, build_settle_session
from src.api.error import ClientError
from src.app.services.client_notifier import ClientNotifier
from src.app.services.settlement_lock import SettlementLock
from src.app.services.verification_gateway import VerificationGateway
from src.app.use_cases.verification import ProcessVendorWebhook, WebhookResultDTO
from src.depends import (
    get_client_notifier,
    get_config,
    get_session,
    get_settlement_lock,
    get_verification_gateway,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal/webhooks", tags=["Webhooks"])


@router.post(
    "/innovatif/ekyc",
    response_model=WebhookResultDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Undecodable payload or missing ref_id/onboarding_id"},
        401: {"description": "Invalid signature or stale request_time"},
        404: {"description": "Unknown session"},
        500: {"description": "Processing failed; the vendor should retry"},
    },
)
async def innovatif_ekyc_webhook(
    request: Request,
    session: AsyncSession = Depends(get_session),
    lock: SettlementLock = Depends(get_settlement_lock),
    gateway: VerificationGateway = Depends(get_verification_gateway),
    notifier: ClientNotifier = Depends(get_client_notifier),
    config=Depends(get_config),
):
    """
    Receive an eKYC status callback.

    The body is either `{"data": "<AES-256-CBC base64>"}` or the plain
    payload. Processing is idempotent: a replay of an already processed
    callback answers `{"success": true, "duplicate": true}` with no side
    effects.
    """
    try:
        body = json.loads(await request.body())
    except ValueError:
        raise ClientError(Error(code="INVALID_PAYLOAD", message="Body is not valid JSON"))

    use_case = ProcessVendorWebhook(
        uow=SqlAlchemyUnitOfWork(session),
        session_repo=SqlAlchemyVerificationSessionRepository(session),
        webhook_log_repo=SqlAlchemyWebhookLogRepository(session),
        gateway=gateway,
        settle=build_settle_session(session, lock, config),
        relay=build_relay(session, notifier),
    )
    result = await use_case.execute(body)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
