"""API Key Repository Interface

Defines the contract for client API key persistence.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.client_api_key import ClientApiKey


class ApiKeyRepository(ABC):
    """Repository interface for ClientApiKey persistence"""

    @abstractmethod
    async def get_active_by_hash(self, key_hash: str) -> Optional[ClientApiKey]:
        """
        Retrieve an ACTIVE key by its SHA-256 hash

        Args:
            key_hash: Hex SHA-256 of the presented key

        Returns:
            ClientApiKey if an active key matches, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, api_key: ClientApiKey) -> ClientApiKey:
        """Persist a new API key"""
        pass

    @abstractmethod
    async def touch(self, api_key: ClientApiKey) -> None:
        """Record that the key was just used"""
        pass
