"""SQLAlchemy implementation of CreditAccountRepository

Provides persistence for CreditAccount entities with pessimistic locking
support so that concurrent ledger appends for one (client, product) are
serialized on the account row.
"""

from typing import List, Optional
from datetime import datetime
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.domain.credit_account import CreditAccount


class SqlAlchemyCreditAccountRepository(CreditAccountRepository):
    """
    SQLAlchemy implementation of CreditAccountRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Locked reads reload the row so no stale identity-map state is returned
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_client_product(
        self, client_id: str, product_id: str, for_update: bool = False
    ) -> Optional[CreditAccount]:
        """
        Retrieve the account of a (client, product) with optional row-level locking

        Args:
            client_id: Client identifier
            product_id: Product identifier
            for_update: If True, locks the row with SELECT FOR UPDATE (prevents concurrent modifications)

        Returns:
            CreditAccount if found, None otherwise
        """
        stmt = select(CreditAccount).where(
            CreditAccount.client_id == client_id,
            CreditAccount.product_id == product_id,
        )

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, account: CreditAccount) -> CreditAccount:
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def update_balance(self, account_id: int, new_balance: int) -> None:
        """
        Update account balance and updated_at timestamp

        Args:
            account_id: Account ID
            new_balance: New balance value

        Note:
            Should be called within a transaction with the account already locked
        """
        account = await self.session.get(CreditAccount, account_id)
        if account:
            account.balance = new_balance
            account.updated_at = datetime.utcnow()
            self.session.add(account)
            await self.session.flush()

    async def get_all(self) -> List[CreditAccount]:
        result = await self.session.execute(select(CreditAccount).order_by(CreditAccount.id))
        return list(result.scalars().all())
