"""Billing use cases: pricing, settlement and the credit ledger"""
from .pricing import PricingResolver, select_tier, DEFAULT_TIER_NAME
from .ledger import append_ledger_entry, lock_account
from .settle_session import SettleSession
from .add_credits import AddCredits
from .get_balance import GetBalance
from .list_ledger_entries import ListLedgerEntries
from .reconcile_ledger import ReconcileLedger
from .manage_pricing import GetPricing, ReplacePricingTiers, DeletePricingTiers
from .dtos import (
    RateDTO,
    SettleSessionCommandDTO,
    SettlementResultDTO,
    AddCreditsCommandDTO,
    LedgerEntryDTO,
    LedgerPageDTO,
    BalanceResponseDTO,
    PricingTierInputDTO,
    ReplacePricingCommandDTO,
    PricingTierDTO,
    PricingResponseDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "PricingResolver",
    "select_tier",
    "DEFAULT_TIER_NAME",
    "append_ledger_entry",
    "lock_account",
    "SettleSession",
    "AddCredits",
    "GetBalance",
    "ListLedgerEntries",
    "ReconcileLedger",
    "GetPricing",
    "ReplacePricingTiers",
    "DeletePricingTiers",
    "RateDTO",
    "SettleSessionCommandDTO",
    "SettlementResultDTO",
    "AddCreditsCommandDTO",
    "LedgerEntryDTO",
    "LedgerPageDTO",
    "BalanceResponseDTO",
    "PricingTierInputDTO",
    "ReplacePricingCommandDTO",
    "PricingTierDTO",
    "PricingResponseDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
]
