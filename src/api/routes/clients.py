"""Admin Client Routes

Client registration, API keys, pricing tiers and the credit ledger.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories import (
    SqlAlchemyApiKeyRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyCreditAccountRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemyPricingTierRepository,
    SqlAlchemyVerificationSessionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.schemas.admin_request import (
    AddCreditsRequestSchema,
    CreateClientRequestSchema,
    ReplacePricingRequestSchema,
)
from src.api.security import require_admin
from src.app.services.settlement_lock import SettlementLock
from src.app.use_cases.billing import (
    AddCredits,
    AddCreditsCommandDTO,
    BalanceResponseDTO,
    DeletePricingTiers,
    GetBalance,
    GetPricing,
    ListLedgerEntries,
    LedgerEntryDTO,
    LedgerPageDTO,
    PricingResponseDTO,
    PricingTierDTO,
    PricingTierInputDTO,
    ReplacePricingCommandDTO,
    ReplacePricingTiers,
)
from src.app.use_cases.clients import (
    ApiKeyCreatedDTO,
    ClientDTO,
    CreateClient,
    CreateClientCommandDTO,
    IssueApiKey,
)
from src.depends import get_config, get_session, get_settlement_lock

router = APIRouter(prefix="/admin/clients", tags=["Admin: Clients"], dependencies=[Depends(require_admin)])


def _unwrap(result):
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "",
    response_model=ClientDTO,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Client code already in use"}},
)
async def create_client(
    request: CreateClientRequestSchema,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Register a client with its product configuration and an empty credit account."""
    use_case = CreateClient(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyCreditAccountRepository(session),
    )
    command = CreateClientCommandDTO(
        name=request.name,
        code=request.code,
        contact_email=request.contact_email,
        product_id=config.DEFAULT_PRODUCT_ID,
        allow_overdraft=request.allow_overdraft,
        webhook_url=request.webhook_url,
    )
    return _unwrap(await use_case.execute(command))


@router.post("/{client_id}/api-keys", response_model=ApiKeyCreatedDTO, status_code=status.HTTP_201_CREATED)
async def issue_api_key(client_id: str, session: AsyncSession = Depends(get_session)):
    """Issue an API key. The plaintext key is only returned in this response."""
    use_case = IssueApiKey(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyApiKeyRepository(session),
    )
    return _unwrap(await use_case.execute(client_id))


@router.get("/{client_id}/pricing", response_model=PricingResponseDTO)
async def get_pricing(
    client_id: str,
    product_id: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Pricing tiers, current-month usage and overdraft setting."""
    use_case = GetPricing(
        SqlAlchemyClientRepository(session),
        SqlAlchemyPricingTierRepository(session),
        SqlAlchemyVerificationSessionRepository(session),
        default_credits_per_session=config.DEFAULT_CREDITS_PER_SESSION,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
    )
    return _unwrap(await use_case.execute(client_id, product_id or config.DEFAULT_PRODUCT_ID))


@router.post("/{client_id}/pricing", response_model=List[PricingTierDTO])
async def replace_pricing(
    client_id: str,
    request: ReplacePricingRequestSchema,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    Replace the client's pricing tiers.

    Tiers take effect for the next settlement; past ledger entries keep
    the rate they were charged.
    """
    use_case = ReplacePricingTiers(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyPricingTierRepository(session),
    )
    command = ReplacePricingCommandDTO(
        client_id=client_id,
        product_id=request.product_id or config.DEFAULT_PRODUCT_ID,
        tiers=[PricingTierInputDTO(**tier.model_dump()) for tier in request.tiers],
    )
    return _unwrap(await use_case.execute(command))


@router.delete("/{client_id}/pricing")
async def delete_pricing(
    client_id: str,
    product_id: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Remove all tiers; sessions are then charged the default rate."""
    use_case = DeletePricingTiers(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyPricingTierRepository(session),
    )
    deleted = _unwrap(await use_case.execute(client_id, product_id or config.DEFAULT_PRODUCT_ID))
    return {"success": True, "deleted": deleted}


@router.get("/{client_id}/credits", response_model=LedgerPageDTO)
async def list_credit_entries(
    client_id: str,
    product_id: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Ledger entries, newest first, with the current balance."""
    use_case = ListLedgerEntries(SqlAlchemyClientRepository(session), SqlAlchemyCreditLedgerRepository(session))
    return _unwrap(
        await use_case.execute(client_id, product_id or config.DEFAULT_PRODUCT_ID, limit, offset)
    )


@router.post(
    "/{client_id}/credits",
    response_model=LedgerEntryDTO,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid type or zero amount"}},
)
async def add_credits(
    client_id: str,
    request: AddCreditsRequestSchema,
    admin: str = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    lock: SettlementLock = Depends(get_settlement_lock),
    config=Depends(get_config),
):
    """Record a top-up, adjustment, refund or included-credits entry."""
    use_case = AddCredits(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyCreditAccountRepository(session),
        SqlAlchemyCreditLedgerRepository(session),
        lock,
    )
    command = AddCreditsCommandDTO(
        client_id=client_id,
        product_id=request.product_id or config.DEFAULT_PRODUCT_ID,
        amount=request.amount,
        type=request.type,
        description=request.description,
        created_by=admin,
    )
    return _unwrap(await use_case.execute(command))


@router.get("/{client_id}/credits/balance", response_model=BalanceResponseDTO)
async def get_balance(
    client_id: str,
    product_id: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """Current balance (sum of the ledger)."""
    use_case = GetBalance(SqlAlchemyClientRepository(session), SqlAlchemyCreditLedgerRepository(session))
    return _unwrap(await use_case.execute(client_id, product_id or config.DEFAULT_PRODUCT_ID))
