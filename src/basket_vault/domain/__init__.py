"""Domain models for the vault engine."""

from __future__ import annotations

from .composition import (
    AssetAllocation,
    AssetKind,
    PriceSource,
    StrategyDelegation,
    VaultComposition,
    validate_composition,
)
from .reports import (
    AllocationRoute,
    AssetRelease,
    DepositAllocation,
    DepositPlan,
    DriftEntry,
    DriftReport,
    RebalanceOutcome,
    RebalancingInput,
    RebalancingResult,
    SwapInstruction,
    SwapPlan,
    ValuationSnapshot,
    WithdrawalPlan,
    WithdrawalReceipt,
)

__all__ = [
    "AllocationRoute",
    "AssetAllocation",
    "AssetKind",
    "AssetRelease",
    "DepositAllocation",
    "DepositPlan",
    "DriftEntry",
    "DriftReport",
    "PriceSource",
    "RebalanceOutcome",
    "RebalancingInput",
    "RebalancingResult",
    "StrategyDelegation",
    "SwapInstruction",
    "SwapPlan",
    "ValuationSnapshot",
    "VaultComposition",
    "WithdrawalPlan",
    "WithdrawalReceipt",
    "validate_composition",
]
