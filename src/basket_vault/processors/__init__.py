from __future__ import annotations

from .delegation import (
    StrategyLedger,
    attach_strategy,
    detach_strategy,
    record_delegation,
    record_observation,
    record_undelegation,
    require_binding,
)
from .drift import (
    compute_rebalancing,
    effective_balances,
    evaluate_drift,
    evaluate_drift_from_values,
    plan_rebalance,
)
from .issuance import (
    allocate_deposit,
    apply_fraction,
    compute_yield,
    plan_deposit,
    plan_withdrawal,
    shares_to_mint,
    withdrawal_fraction,
)
from .price_normalizer import (
    NormalizedPrice,
    calculate_swap_output,
    normalize,
    tokens_to_usd,
    usd_to_tokens,
)
from .valuation import (
    build_snapshot,
    compute_asset_values,
    compute_share_price,
    compute_strategy_value_usd,
    compute_tvl,
)

__all__ = [
    "NormalizedPrice",
    "StrategyLedger",
    "allocate_deposit",
    "apply_fraction",
    "attach_strategy",
    "build_snapshot",
    "calculate_swap_output",
    "compute_asset_values",
    "compute_rebalancing",
    "compute_share_price",
    "compute_strategy_value_usd",
    "compute_tvl",
    "compute_yield",
    "detach_strategy",
    "effective_balances",
    "evaluate_drift",
    "evaluate_drift_from_values",
    "normalize",
    "plan_deposit",
    "plan_rebalance",
    "plan_withdrawal",
    "record_delegation",
    "record_observation",
    "record_undelegation",
    "require_binding",
    "shares_to_mint",
    "tokens_to_usd",
    "usd_to_tokens",
    "withdrawal_fraction",
]
