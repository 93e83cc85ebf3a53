"""Client Repository Interface

Defines the contract for client and client product configuration persistence.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.client import Client, ClientProductConfig


class ClientRepository(ABC):
    """Repository interface for Client and ClientProductConfig persistence"""

    @abstractmethod
    async def get_by_id(self, client_id: str) -> Optional[Client]:
        """
        Retrieve client by ID

        Args:
            client_id: Client identifier

        Returns:
            Client if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Client]:
        """Retrieve client by its unique code"""
        pass

    @abstractmethod
    async def create(self, client: Client) -> Client:
        """
        Create a new client

        Args:
            client: Client entity to persist

        Returns:
            Created Client
        """
        pass

    @abstractmethod
    async def list_active(self) -> List[Client]:
        """Retrieve all clients with status ACTIVE"""
        pass

    @abstractmethod
    async def get_product_config(
        self, client_id: str, product_id: str
    ) -> Optional[ClientProductConfig]:
        """
        Retrieve the product configuration of a client

        Args:
            client_id: Client identifier
            product_id: Product identifier

        Returns:
            ClientProductConfig if found, None otherwise
        """
        pass

    @abstractmethod
    async def save_product_config(self, config: ClientProductConfig) -> ClientProductConfig:
        """Create or update a product configuration"""
        pass
