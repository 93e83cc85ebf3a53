"""Credit ledger append

Every balance change goes through append_ledger_entry. Callers must hold
the (client, product) SettlementLock and must have locked the account with
lock_account in the same transaction; the caller commits.
"""

from datetime import datetime
from typing import Optional
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.domain.credit_account import CreditAccount
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType


async def lock_account(
    account_repo: CreditAccountRepository, client_id: str, product_id: str
) -> CreditAccount:
    """
    Lock the (client, product) credit account, creating it on first use

    Args:
        account_repo: Credit account repository bound to the current transaction
        client_id: Client identifier
        product_id: Product identifier

    Returns:
        The locked CreditAccount
    """
    account = await account_repo.get_by_client_product(client_id, product_id, for_update=True)
    if account is None:
        await account_repo.create(CreditAccount(client_id=client_id, product_id=product_id, balance=0))
        account = await account_repo.get_by_client_product(client_id, product_id, for_update=True)
    return account


async def append_ledger_entry(
    account_repo: CreditAccountRepository,
    ledger_repo: CreditLedgerRepository,
    account: CreditAccount,
    amount: int,
    entry_type: LedgerEntryType,
    reference_id: Optional[str] = None,
    tier_name: Optional[str] = None,
    description: Optional[str] = None,
    created_by: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> CreditLedgerEntry:
    """
    Append one entry and move the account counter with it

    balance_after is computed from SUM(amount) of the existing entries, not
    from the counter, so a drifted counter never propagates into the ledger.

    Args:
        account_repo: Credit account repository
        ledger_repo: Credit ledger repository
        account: Account locked by lock_account
        amount: Signed credit amount
        entry_type: Ledger entry type
        reference_id: Referenced entity (session or payment ID)
        tier_name: Tier applied (usage entries)
        description: Human-readable description
        created_by: Admin user, None for automatic entries
        created_at: Entry timestamp, defaults to now

    Returns:
        The persisted CreditLedgerEntry
    """
    balance = await ledger_repo.get_balance(account.client_id, account.product_id)
    balance_after = balance + amount

    entry = CreditLedgerEntry(
        client_id=account.client_id,
        product_id=account.product_id,
        amount=amount,
        balance_after=balance_after,
        type=entry_type,
        reference_id=reference_id,
        tier_name=tier_name,
        description=description,
        created_by=created_by,
        created_at=created_at or datetime.utcnow(),
    )
    created = await ledger_repo.create(entry)

    await account_repo.update_balance(account.id, balance_after)
    return created
