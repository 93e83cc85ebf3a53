"""Pricing Resolver

Maps a session's monthly billing ordinal to a per-session credit rate.
"""

from typing import Optional, Sequence
from src.app.repositories.pricing_tier_repository import PricingTierRepository
from src.domain.pricing_tier import PricingTier
from .dtos import RateDTO

DEFAULT_TIER_NAME = "default"


def select_tier(tiers: Sequence[PricingTier], ordinal: int) -> Optional[PricingTier]:
    """
    Pick the tier covering an ordinal

    Overlapping ranges are resolved in favour of the largest min_volume.

    Args:
        tiers: Candidate tiers in any order
        ordinal: 1-based ordinal of the session within the billing month

    Returns:
        The covering tier, or None when no tier covers the ordinal
    """
    covering = [tier for tier in tiers if tier.covers(ordinal)]
    if not covering:
        return None
    return max(covering, key=lambda tier: tier.min_volume)


class PricingResolver:
    """
    Resolves the rate of the k-th billed session of a month

    Business Rules:
    1. The tier whose [min_volume, max_volume] covers the ordinal applies
    2. max_volume None is unbounded above
    3. No covering tier -> default rate, tier name "default"
    """

    def __init__(self, tier_repo: PricingTierRepository, default_credits_per_session: int = 50):
        self.tier_repo = tier_repo
        self.default_credits_per_session = default_credits_per_session

    async def resolve_rate(self, client_id: str, product_id: str, ordinal: int) -> RateDTO:
        """
        Resolve the rate for one ordinal

        Args:
            client_id: Client identifier
            product_id: Product identifier
            ordinal: 1-based billing ordinal within the current month

        Returns:
            RateDTO with credits_per_session and tier_name
        """
        tiers = await self.tier_repo.list_for_client_product(client_id, product_id)
        tier = select_tier(tiers, ordinal)

        if tier is None:
            return RateDTO(
                credits_per_session=self.default_credits_per_session,
                tier_name=DEFAULT_TIER_NAME,
            )

        return RateDTO(credits_per_session=tier.credits_per_session, tier_name=tier.tier_name)
