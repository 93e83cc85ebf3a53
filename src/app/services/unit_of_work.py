"""Unit of Work Interface

Groups repository writes into one transaction.
"""

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    Abstract transaction boundary

    Leaving the context without a commit rolls back.
    """

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        """Commit the current transaction"""
        pass

    @abstractmethod
    async def rollback(self):
        """Roll back the current transaction"""
        pass
