"""Verification Session Routes

Public API for clients, authenticated with an API key bearer token.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories import (
    SqlAlchemyClientRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemyPricingTierRepository,
    SqlAlchemyVerificationSessionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.builders import build_relay, build_settle_session
from src.api.error import ClientError
from src.api.schemas.session_request import CreateSessionRequestSchema
from src.api.security import require_api_client
from src.app.services.client_notifier import ClientNotifier
from src.app.services.settlement_lock import SettlementLock
from src.app.services.verification_gateway import VerificationGateway
from src.app.use_cases.clients import AuthenticatedClientDTO
from src.app.use_cases.verification import (
    CreateSession,
    CreateSessionCommandDTO,
    CreateSessionResultDTO,
    GetSession,
    RefreshResultDTO,
    RefreshSessionStatus,
    SessionViewDTO,
)
from src.depends import (
    get_client_notifier,
    get_config,
    get_session,
    get_settlement_lock,
    get_verification_gateway,
)

router = APIRouter(prefix="/v1/kyc/sessions", tags=["Verification Sessions"])


@router.post(
    "",
    response_model=CreateSessionResultDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Validation error",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VALIDATION_ERROR",
                            "message": "document_name and document_number are required"
                        }
                    }
                }
            }
        },
        402: {"description": "Insufficient credits"},
        403: {"description": "Product not enabled or client not active"},
        502: {"description": "Vendor gateway error"},
    },
)
async def create_session(
    request: CreateSessionRequestSchema,
    api_client: AuthenticatedClientDTO = Depends(require_api_client),
    session: AsyncSession = Depends(get_session),
    gateway: VerificationGateway = Depends(get_verification_gateway),
    config=Depends(get_config),
):
    """
    Start a verification session and return the vendor onboarding URL.

    Nothing is charged here; the session is billed once it completes.
    Without overdraft the balance must cover the next session's rate.
    """
    use_case = CreateSession(
        uow=SqlAlchemyUnitOfWork(session),
        client_repo=SqlAlchemyClientRepository(session),
        session_repo=SqlAlchemyVerificationSessionRepository(session),
        ledger_repo=SqlAlchemyCreditLedgerRepository(session),
        tier_repo=SqlAlchemyPricingTierRepository(session),
        gateway=gateway,
        default_credits_per_session=config.DEFAULT_CREDITS_PER_SESSION,
        session_expiry_hours=config.SESSION_EXPIRY_HOURS,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
    )
    command = CreateSessionCommandDTO(
        client_id=api_client.client_id,
        product_id=api_client.product_id,
        document_name=request.document_name,
        document_number=request.document_number,
        document_type=request.document_type,
        webhook_url=request.webhook_url,
        metadata=request.metadata,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{session_id}", response_model=SessionViewDTO)
async def get_session_view(
    session_id: str,
    api_client: AuthenticatedClientDTO = Depends(require_api_client),
    session: AsyncSession = Depends(get_session),
):
    """Stored view of a session, with OCR fields once completed."""
    result = await GetSession(SqlAlchemyVerificationSessionRepository(session)).execute(
        api_client.client_id, session_id
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{session_id}/refresh", response_model=RefreshResultDTO)
async def refresh_session(
    session_id: str,
    api_client: AuthenticatedClientDTO = Depends(require_api_client),
    session: AsyncSession = Depends(get_session),
    lock: SettlementLock = Depends(get_settlement_lock),
    gateway: VerificationGateway = Depends(get_verification_gateway),
    notifier: ClientNotifier = Depends(get_client_notifier),
    config=Depends(get_config),
):
    """
    Pull the session status from the vendor.

    Finalized sessions are served from storage (`refreshed=false`). A
    vendor failure leaves the session untouched and is reported in `error`.
    """
    use_case = RefreshSessionStatus(
        uow=SqlAlchemyUnitOfWork(session),
        session_repo=SqlAlchemyVerificationSessionRepository(session),
        gateway=gateway,
        settle=build_settle_session(session, lock, config),
        relay=build_relay(session, notifier),
    )
    result = await use_case.execute(api_client.client_id, session_id)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
