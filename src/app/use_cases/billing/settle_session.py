"""SettleSession Use Case

Charges a verification session exactly once, whichever trigger (vendor
webhook or client status pull) observes its terminal status first.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.settlement_lock import SettlementLock, ledger_lock_key
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.pricing_tier_repository import PricingTierRepository
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from src.domain.credit_ledger import LedgerEntryType
from src.domain.verification_session import VerificationSession, SessionResult, is_billable
from .billing_clock import month_window
from .dtos import SettleSessionCommandDTO, SettlementResultDTO
from .ledger import append_ledger_entry, lock_account
from .pricing import PricingResolver

logger = logging.getLogger(__name__)


class SettleSession:
    """
    Use Case: Settle a terminal verification session

    Business Rules:
    1. Only billable terminal sessions are charged (completed)
    2. A session is charged at most once (billed flag re-checked under lock)
    3. The rate is that of the tier covering the session's monthly ordinal
    4. Ledger entry, balance counter and billed flag commit together
    5. Overdraft is not checked here; it is enforced at session creation

    Flow:
    1. Load session; return no-op if not billable or already billed
    2. Acquire (client, product) lock and SELECT FOR UPDATE the account
    3. Re-read session under the lock; no-op if billed meanwhile
    4. ordinal = sessions billed this billing month + 1
    5. Resolve rate for ordinal
    6. Append USAGE entry with balance_after = sum(amount) - rate
    7. Mark session billed
    8. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_repo: VerificationSessionRepository,
        account_repo: CreditAccountRepository,
        ledger_repo: CreditLedgerRepository,
        tier_repo: PricingTierRepository,
        lock: SettlementLock,
        default_credits_per_session: int = 50,
        utc_offset_hours: int = 8,
    ):
        self.uow = uow
        self.session_repo = session_repo
        self.account_repo = account_repo
        self.ledger_repo = ledger_repo
        self.lock = lock
        self.pricing = PricingResolver(tier_repo, default_credits_per_session)
        self.utc_offset_hours = utc_offset_hours

    async def execute(self, command: SettleSessionCommandDTO) -> Result[SettlementResultDTO]:
        """
        Execute settlement

        Args:
            command: SettleSessionCommandDTO with session_id

        Returns:
            Result[SettlementResultDTO]: settled=True only for the call that charged
        """
        try:
            # Step 1: Cheap checks before taking the lock
            session = await self.session_repo.get_by_id(command.session_id)
            if not session:
                return Return.err(
                    Error(
                        code="SESSION_NOT_FOUND",
                        message=f"Verification session {command.session_id} not found",
                    )
                )

            if not is_billable(session.status):
                return Return.ok(SettlementResultDTO(session_id=session.id, settled=False))

            if session.billed:
                return Return.ok(
                    SettlementResultDTO(session_id=session.id, settled=False, already_billed=True)
                )

            session_id = session.id
            client_id, product_id = session.client_id, session.product_id

            async with self.lock.hold(ledger_lock_key(client_id, product_id)):
                # Step 2: Row lock on the account serializes other processes
                account = await lock_account(self.account_repo, client_id, product_id)

                # Step 3: Re-read the session from the database
                session = await self.session_repo.get_by_id(session_id, for_update=True)
                if session.billed:
                    # Rollback expires every loaded instance; only plain values are read after it
                    await self.uow.rollback()
                    logger.info(f"Session {session_id} already billed by a concurrent {command.trigger} trigger")
                    return Return.ok(
                        SettlementResultDTO(session_id=session_id, settled=False, already_billed=True)
                    )

                # Step 4: Monthly ordinal
                now = datetime.utcnow()
                month_start, month_end = month_window(now, self.utc_offset_hours)
                billed_this_month = await self.session_repo.count_billed_between(
                    client_id, product_id, month_start, month_end
                )
                ordinal = billed_this_month + 1

                # Step 5: Rate
                rate = await self.pricing.resolve_rate(client_id, product_id, ordinal)

                # Step 6: Usage entry
                entry = await append_ledger_entry(
                    self.account_repo,
                    self.ledger_repo,
                    account,
                    amount=-rate.credits_per_session,
                    entry_type=LedgerEntryType.USAGE,
                    reference_id=session.id,
                    tier_name=rate.tier_name,
                    description=self._describe(session, rate.tier_name, rate.credits_per_session),
                    created_at=now,
                )

                # Step 7: Mark billed
                session.billed = True
                session.billed_at = now
                await self.session_repo.update(session)

                # Step 8: Commit inside the held lock
                await self.uow.commit()

            logger.info(
                f"Settled session {session_id} via {command.trigger}: client={client_id}, "
                f"ordinal={ordinal}, tier={rate.tier_name}, credits={rate.credits_per_session}, "
                f"balance_after={entry.balance_after}"
            )

            return Return.ok(
                SettlementResultDTO(
                    session_id=session_id,
                    settled=True,
                    credits_deducted=rate.credits_per_session,
                    tier_name=rate.tier_name,
                    ordinal=ordinal,
                    balance_after=entry.balance_after,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Settlement failed for session {command.session_id}: {e}")
            return Return.err(
                Error(
                    code="SETTLEMENT_FAILED",
                    message="Failed to settle verification session",
                    reason=str(e),
                )
            )

    @staticmethod
    def _describe(session: VerificationSession, tier_name: str, credits: int) -> str:
        outcome = "approved" if session.result == SessionResult.APPROVED else "rejected"
        return f"KYC session {outcome} ({tier_name}: {credits} credits)"
