"""Settlement Lock Interface

Serializes ledger appends for one (client, product).
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


def ledger_lock_key(client_id: str, product_id: str) -> str:
    """Lock key shared by every ledger writer of a (client, product)"""
    return f"{client_id}:{product_id}"


class SettlementLock(ABC):
    """
    Keyed mutual exclusion for the ledger critical section

    Holders of the same key run one at a time; different keys never wait
    on each other. The database row lock on the credit account is taken
    inside the held section.
    """

    @abstractmethod
    def hold(self, key: str) -> AsyncContextManager[None]:
        """
        Hold the lock for ``key`` for the duration of an ``async with`` block

        Args:
            key: Lock key, see ledger_lock_key

        Returns:
            Async context manager that releases the lock on exit
        """
        pass
