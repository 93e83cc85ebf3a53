"""Credit Account Repository Interface

Defines the contract for credit account persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.credit_account import CreditAccount


class CreditAccountRepository(ABC):
    """
    Repository interface for CreditAccount persistence

    The account row is the per-(client, product) lock target: it is read
    with SELECT FOR UPDATE before every ledger append.
    """

    @abstractmethod
    async def get_by_client_product(
        self, client_id: str, product_id: str, for_update: bool = False
    ) -> Optional[CreditAccount]:
        """
        Retrieve the account of a (client, product)

        Args:
            client_id: Client identifier
            product_id: Product identifier
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            CreditAccount if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, account: CreditAccount) -> CreditAccount:
        """
        Create a new credit account

        Args:
            account: CreditAccount entity to persist

        Returns:
            Created CreditAccount with generated ID
        """
        pass

    @abstractmethod
    async def update_balance(self, account_id: int, new_balance: int) -> None:
        """
        Update the account balance counter

        Args:
            account_id: Account ID
            new_balance: New balance value
        """
        pass

    @abstractmethod
    async def get_all(self) -> List[CreditAccount]:
        """Retrieve every credit account (used by reconciliation)"""
        pass
