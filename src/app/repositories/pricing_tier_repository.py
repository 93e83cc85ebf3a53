"""Pricing Tier Repository Interface

Defines the contract for pricing tier persistence.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.pricing_tier import PricingTier


class PricingTierRepository(ABC):
    """
    Repository interface for PricingTier persistence

    Tiers are administrative configuration; the billing path only reads them.
    """

    @abstractmethod
    async def list_for_client_product(self, client_id: str, product_id: str) -> List[PricingTier]:
        """
        Retrieve the tiers of a (client, product) ordered by min_volume

        Args:
            client_id: Client identifier
            product_id: Product identifier

        Returns:
            List of PricingTier, lowest range first
        """
        pass

    @abstractmethod
    async def replace_all(
        self, client_id: str, product_id: str, tiers: List[PricingTier]
    ) -> List[PricingTier]:
        """
        Replace every tier of a (client, product) with the given tiers

        Args:
            client_id: Client identifier
            product_id: Product identifier
            tiers: New tiers to persist

        Returns:
            Persisted tiers with generated IDs
        """
        pass

    @abstractmethod
    async def delete_all(self, client_id: str, product_id: str) -> int:
        """Delete every tier of a (client, product) and return how many were removed"""
        pass
