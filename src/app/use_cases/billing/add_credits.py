"""AddCredits Use Case

Records an administrative ledger entry (top-up, adjustment, refund or
included credits).
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.settlement_lock import SettlementLock, ledger_lock_key
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.domain.credit_ledger import LedgerEntryType
from .dtos import AddCreditsCommandDTO, LedgerEntryDTO
from .ledger import append_ledger_entry, lock_account

logger = logging.getLogger(__name__)

ADMIN_ENTRY_TYPES = (
    LedgerEntryType.TOPUP,
    LedgerEntryType.ADJUSTMENT,
    LedgerEntryType.REFUND,
    LedgerEntryType.INCLUDED,
)


def to_entry_dto(entry) -> LedgerEntryDTO:
    return LedgerEntryDTO(
        id=entry.id,
        client_id=entry.client_id,
        product_id=entry.product_id,
        amount=entry.amount,
        balance_after=entry.balance_after,
        type=LedgerEntryType(entry.type).value,
        reference_id=entry.reference_id,
        tier_name=entry.tier_name,
        description=entry.description,
        created_by=entry.created_by,
        created_at=entry.created_at,
    )


class AddCredits:
    """
    Use Case: Add an administrative credit ledger entry

    Business Rules:
    1. type must be topup, adjustment, refund or included
    2. amount is a non-zero integer (adjustments may be negative)
    3. The entry is appended under the same lock as settlement
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        account_repo: CreditAccountRepository,
        ledger_repo: CreditLedgerRepository,
        lock: SettlementLock,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.account_repo = account_repo
        self.ledger_repo = ledger_repo
        self.lock = lock

    async def execute(self, command: AddCreditsCommandDTO) -> Result[LedgerEntryDTO]:
        """
        Execute credit entry

        Args:
            command: AddCreditsCommandDTO

        Returns:
            Result[LedgerEntryDTO]: Created entry or error
        """
        allowed = [entry_type.value for entry_type in ADMIN_ENTRY_TYPES]
        if command.type not in allowed:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message=f"Invalid type. Must be one of: {', '.join(allowed)}",
                )
            )

        if command.amount == 0:
            return Return.err(
                Error(code="VALIDATION_ERROR", message="Amount must be a non-zero integer")
            )

        try:
            # Step 1: Client must exist
            client = await self.client_repo.get_by_id(command.client_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {command.client_id} not found")
                )

            entry_type = LedgerEntryType(command.type)
            description = command.description or f"Credit {entry_type.value}"

            # Step 2: Append under the ledger lock
            async with self.lock.hold(ledger_lock_key(command.client_id, command.product_id)):
                account = await lock_account(self.account_repo, command.client_id, command.product_id)
                entry = await append_ledger_entry(
                    self.account_repo,
                    self.ledger_repo,
                    account,
                    amount=command.amount,
                    entry_type=entry_type,
                    description=description,
                    created_by=command.created_by,
                )
                await self.uow.commit()

            logger.info(
                f"Ledger {entry_type.value} for client {command.client_id}: "
                f"amount={command.amount}, balance_after={entry.balance_after}"
            )
            return Return.ok(to_entry_dto(entry))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to add credits for client {command.client_id}: {e}")
            return Return.err(
                Error(
                    code="ADD_CREDITS_FAILED",
                    message="Failed to add credits",
                    reason=str(e),
                )
            )
