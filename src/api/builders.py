"""Use case wiring shared by several routes"""

from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories import (
    SqlAlchemyCreditAccountRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemyPricingTierRepository,
    SqlAlchemyVerificationSessionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.client_notifier import ClientNotifier
from src.app.services.settlement_lock import SettlementLock
from src.app.use_cases.billing import SettleSession
from src.app.use_cases.verification import RelayClientWebhook


def build_settle_session(session: AsyncSession, lock: SettlementLock, config) -> SettleSession:
    return SettleSession(
        uow=SqlAlchemyUnitOfWork(session),
        session_repo=SqlAlchemyVerificationSessionRepository(session),
        account_repo=SqlAlchemyCreditAccountRepository(session),
        ledger_repo=SqlAlchemyCreditLedgerRepository(session),
        tier_repo=SqlAlchemyPricingTierRepository(session),
        lock=lock,
        default_credits_per_session=config.DEFAULT_CREDITS_PER_SESSION,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
    )


def build_relay(session: AsyncSession, notifier: ClientNotifier) -> RelayClientWebhook:
    return RelayClientWebhook(
        uow=SqlAlchemyUnitOfWork(session),
        session_repo=SqlAlchemyVerificationSessionRepository(session),
        notifier=notifier,
    )
