"""Credit Ledger Repository Interface

Defines the contract for the append-only credit ledger.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from src.domain.credit_ledger import CreditLedgerEntry


class CreditLedgerRepository(ABC):
    """
    Repository interface for CreditLedgerEntry persistence

    Entries are never updated or deleted. The balance of a (client, product)
    is the sum of its entries' amounts.
    """

    @abstractmethod
    async def create(self, entry: CreditLedgerEntry) -> CreditLedgerEntry:
        """
        Append a ledger entry

        Args:
            entry: CreditLedgerEntry to persist

        Returns:
            Created CreditLedgerEntry with generated ID
        """
        pass

    @abstractmethod
    async def get_balance(self, client_id: str, product_id: str) -> int:
        """
        Compute the balance as the sum of all entry amounts

        Args:
            client_id: Client identifier
            product_id: Product identifier

        Returns:
            Balance in credits (0 when there are no entries)
        """
        pass

    @abstractmethod
    async def get_latest(self, client_id: str, product_id: str) -> Optional[CreditLedgerEntry]:
        """Retrieve the newest entry of a (client, product), or None"""
        pass

    @abstractmethod
    async def get_usage_by_reference(self, reference_id: str) -> List[CreditLedgerEntry]:
        """
        Retrieve USAGE entries referencing a verification session

        Args:
            reference_id: Verification session ID

        Returns:
            List of USAGE entries (at most one under correct operation)
        """
        pass

    @abstractmethod
    async def list_entries(
        self, client_id: str, product_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[CreditLedgerEntry], int]:
        """
        Retrieve entries newest first with pagination

        Args:
            client_id: Client identifier
            product_id: Product identifier
            limit: Maximum number of entries to return
            offset: Number of entries to skip

        Returns:
            Tuple of (entries, total count)
        """
        pass

    @abstractmethod
    async def list_usage_between(
        self, client_id: str, start: datetime, end: datetime
    ) -> List[CreditLedgerEntry]:
        """
        Retrieve USAGE entries of a client created within [start, end]

        Args:
            client_id: Client identifier
            start: Period start (inclusive)
            end: Period end (inclusive)

        Returns:
            List of USAGE entries across all products
        """
        pass
