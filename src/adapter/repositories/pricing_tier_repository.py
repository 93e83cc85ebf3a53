"""SQLAlchemy Pricing Tier Repository Implementation"""

from typing import List
from sqlmodel import select, delete
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.pricing_tier_repository import PricingTierRepository
from src.domain.pricing_tier import PricingTier


class SqlAlchemyPricingTierRepository(PricingTierRepository):
    """
    SQLAlchemy implementation of PricingTierRepository

    Tier sets are replaced wholesale; individual tiers are never patched.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_client_product(self, client_id: str, product_id: str) -> List[PricingTier]:
        statement = (
            select(PricingTier)
            .where(
                PricingTier.client_id == client_id,
                PricingTier.product_id == product_id,
            )
            .order_by(PricingTier.min_volume.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def replace_all(
        self, client_id: str, product_id: str, tiers: List[PricingTier]
    ) -> List[PricingTier]:
        """
        Replace every tier of a (client, product)

        Args:
            client_id: Client identifier
            product_id: Product identifier
            tiers: New tiers to persist

        Returns:
            Persisted tiers with generated IDs
        """
        await self.delete_all(client_id, product_id)

        for tier in tiers:
            self.session.add(tier)
        await self.session.flush()

        for tier in tiers:
            await self.session.refresh(tier)
        return tiers

    async def delete_all(self, client_id: str, product_id: str) -> int:
        statement = delete(PricingTier).where(
            PricingTier.client_id == client_id,
            PricingTier.product_id == product_id,
        )
        result = await self.session.execute(statement)
        await self.session.flush()
        return result.rowcount or 0
