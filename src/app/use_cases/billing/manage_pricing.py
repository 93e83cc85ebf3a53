"""Pricing administration use cases

Read, replace and clear the volume tiers of a client's product.
"""

import logging
from datetime import datetime
from typing import List
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.pricing_tier_repository import PricingTierRepository
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from src.domain.pricing_tier import PricingTier
from .billing_clock import month_window
from .dtos import (
    PricingResponseDTO,
    PricingTierDTO,
    PricingTierInputDTO,
    ReplacePricingCommandDTO,
)

logger = logging.getLogger(__name__)


def _to_tier_dto(tier: PricingTier) -> PricingTierDTO:
    return PricingTierDTO(
        id=tier.id,
        tier_name=tier.tier_name,
        min_volume=tier.min_volume,
        max_volume=tier.max_volume,
        credits_per_session=tier.credits_per_session,
    )


def validate_tiers(tiers: List[PricingTierInputDTO]) -> str:
    """Return the first validation problem of a tier set, or an empty string"""
    if not tiers:
        return "At least one pricing tier is required"

    for tier in tiers:
        if tier.min_volume < 1:
            return "Invalid min_volume in tier - must be at least 1 (session numbers are 1-indexed)"
        if tier.max_volume is not None and tier.max_volume < tier.min_volume:
            return "Invalid max_volume in tier - must be at least min_volume"
        if tier.credits_per_session < 1:
            return "Invalid credits_per_session in tier - must be a positive integer"

    ordered = sorted(tiers, key=lambda t: t.min_volume)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.max_volume is None or previous.max_volume >= current.min_volume:
            return f"Tiers overlap at session {current.min_volume}"
    return ""


class GetPricing:
    """
    Use case: View pricing configuration

    Returns the tiers together with the number of sessions billed in the
    current billing month, which is the ordinal the next settlement
    continues from.
    """

    def __init__(
        self,
        client_repo: ClientRepository,
        tier_repo: PricingTierRepository,
        session_repo: VerificationSessionRepository,
        default_credits_per_session: int = 50,
        utc_offset_hours: int = 8,
    ):
        self.client_repo = client_repo
        self.tier_repo = tier_repo
        self.session_repo = session_repo
        self.default_credits_per_session = default_credits_per_session
        self.utc_offset_hours = utc_offset_hours

    async def execute(self, client_id: str, product_id: str) -> Result[PricingResponseDTO]:
        client = await self.client_repo.get_by_id(client_id)
        if not client:
            return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

        tiers = await self.tier_repo.list_for_client_product(client_id, product_id)
        config = await self.client_repo.get_product_config(client_id, product_id)

        month_start, month_end = month_window(datetime.utcnow(), self.utc_offset_hours)
        usage = await self.session_repo.count_billed_between(client_id, product_id, month_start, month_end)

        return Return.ok(
            PricingResponseDTO(
                client_id=client_id,
                product_id=product_id,
                tiers=[_to_tier_dto(tier) for tier in tiers],
                current_month_usage=usage,
                allow_overdraft=bool(config and config.allow_overdraft),
                default_credits_per_session=self.default_credits_per_session,
            )
        )


class ReplacePricingTiers:
    """
    Use Case: Replace all tiers of a client's product

    Business Rules:
    1. At least one tier
    2. min_volume >= 1, max_volume >= min_volume when set
    3. credits_per_session is a positive integer
    4. Ranges do not overlap; only the last tier may be unbounded
    5. Missing tier names default to "Tier N" (1-based position)
    6. Old tiers are deleted and new ones inserted in one transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        tier_repo: PricingTierRepository,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.tier_repo = tier_repo

    async def execute(self, command: ReplacePricingCommandDTO) -> Result[List[PricingTierDTO]]:
        problem = validate_tiers(command.tiers)
        if problem:
            return Return.err(Error(code="VALIDATION_ERROR", message=problem))

        try:
            client = await self.client_repo.get_by_id(command.client_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {command.client_id} not found")
                )

            tiers = [
                PricingTier(
                    client_id=command.client_id,
                    product_id=command.product_id,
                    tier_name=tier.tier_name or f"Tier {index + 1}",
                    min_volume=tier.min_volume,
                    max_volume=tier.max_volume,
                    credits_per_session=tier.credits_per_session,
                )
                for index, tier in enumerate(command.tiers)
            ]

            saved = await self.tier_repo.replace_all(command.client_id, command.product_id, tiers)
            await self.uow.commit()

            logger.info(f"Replaced pricing for client {command.client_id}/{command.product_id}: {len(saved)} tiers")
            return Return.ok([_to_tier_dto(tier) for tier in saved])

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_PRICING_FAILED",
                    message="Failed to update pricing tiers",
                    reason=str(e),
                )
            )


class DeletePricingTiers:
    """Use Case: Remove all tiers so the default rate applies"""

    def __init__(self, uow: UnitOfWork, client_repo: ClientRepository, tier_repo: PricingTierRepository):
        self.uow = uow
        self.client_repo = client_repo
        self.tier_repo = tier_repo

    async def execute(self, client_id: str, product_id: str) -> Result[int]:
        try:
            client = await self.client_repo.get_by_id(client_id)
            if not client:
                return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

            deleted = await self.tier_repo.delete_all(client_id, product_id)
            await self.uow.commit()

            logger.info(f"Deleted {deleted} pricing tiers for client {client_id}/{product_id}")
            return Return.ok(deleted)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DELETE_PRICING_FAILED",
                    message="Failed to delete pricing tiers",
                    reason=str(e),
                )
            )
