"""Drift evaluation and greedy rebalance planning.

Both entry points are pure: the same inputs always yield the same report and
the same plan. :func:`compute_rebalancing` is the index-based form shipped to
the confidential rebalancer, built from the same two functions so either path
reaches the same decision.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from ..constants import (
    BPS_DENOMINATOR,
    DEFAULT_MAX_SWAPS,
    DEFAULT_MIN_SWAP_USD_MICRO,
    DEFAULT_SLIPPAGE_BPS,
    WEIGHT_TOTAL,
)
from ..domain import (
    AssetKind,
    DriftEntry,
    DriftReport,
    RebalancingInput,
    RebalancingResult,
    StrategyDelegation,
    SwapInstruction,
    SwapPlan,
    VaultComposition,
)
from ..errors import InvalidAmount, InvalidAsset
from ..units import I64, I128, checked_add, checked_div, checked_mul, checked_sub, fit
from .price_normalizer import (
    NormalizedPrice,
    calculate_swap_output,
    normalize,
    usd_to_tokens,
)
from .valuation import compute_asset_values

logger = logging.getLogger(__name__)


def _asset_labels(count: int, assets: Sequence[str] | None) -> list[str]:
    if assets is None:
        return [str(i) for i in range(count)]
    if len(assets) != count:
        raise InvalidAsset(f"Expected {count} asset ids, got {len(assets)}")
    return list(assets)


def evaluate_drift_from_values(
    values: Sequence[int],
    weights: Sequence[int],
    threshold_percent: int,
    assets: Sequence[str] | None = None,
) -> DriftReport:
    """Build a drift report from per-asset USD-micro values.

    An empty pool reports every weight as zero and never needs a rebalance.
    """
    if len(values) != len(weights):
        raise InvalidAsset(
            f"Values and weights must align: {len(values)}/{len(weights)}"
        )
    labels = _asset_labels(len(values), assets)

    total = 0
    for value in values:
        total = checked_add(total, value)

    entries = []
    for label, value, weight in zip(labels, values, weights):
        if total == 0:
            current_weight = 0
            target_usd = 0
            drift = 0
            exceeds = False
        else:
            current_weight = fit(
                checked_div(checked_mul(value, WEIGHT_TOTAL, I128), total, I128), I64
            )
            target_usd = fit(
                checked_div(checked_mul(total, weight, I128), WEIGHT_TOTAL, I128), I64
            )
            drift = checked_sub(current_weight, weight)
            exceeds = abs(drift) > threshold_percent
        entries.append(
            DriftEntry(
                asset=label,
                current_usd=value,
                target_usd=target_usd,
                current_weight=current_weight,
                target_weight=weight,
                drift=drift,
                exceeds_threshold=exceeds,
            )
        )

    return DriftReport(
        entries=tuple(entries),
        total_usd=total,
        threshold_percent=threshold_percent,
        needs_rebalance=any(e.exceeds_threshold for e in entries),
    )


def evaluate_drift(
    balances: Sequence[int],
    prices: Sequence[NormalizedPrice],
    weights: Sequence[int],
    decimals: Sequence[int],
    threshold_percent: int,
    assets: Sequence[str] | None = None,
) -> DriftReport:
    """Compare current weights against targets.

    Args:
        balances: Native-unit balances, one per asset.
        prices: Normalized prices aligned with ``balances``.
        weights: Target weights in integer percent.
        decimals: Token decimals aligned with ``balances``.
        threshold_percent: Drift tolerated before an asset is flagged. The
            comparison is strict, so a drift equal to the threshold passes.
        assets: Optional asset ids; defaults to positional indices.
    """
    values = compute_asset_values(balances, prices, decimals)
    return evaluate_drift_from_values(values, weights, threshold_percent, assets)


def plan_rebalance(
    report: DriftReport,
    prices: Sequence[NormalizedPrice],
    decimals: Sequence[int],
    max_swaps: int = DEFAULT_MAX_SWAPS,
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    min_swap_usd: int = DEFAULT_MIN_SWAP_USD_MICRO,
) -> SwapPlan:
    """Greedily match overweight assets against underweight ones.

    Excess assets are visited in report order and each is matched against
    deficit assets in report order, moving ``min(remaining excess, remaining
    deficit)`` USD per swap. Swaps worth ``min_swap_usd`` or less are skipped
    and the plan stops at ``max_swaps`` instructions.
    """
    if not report.needs_rebalance:
        return SwapPlan()

    entries = report.entries
    if not (len(entries) == len(prices) == len(decimals)):
        raise InvalidAsset("Drift report, prices and decimals must align")

    excess = [
        (i, e.current_usd - e.target_usd)
        for i, e in enumerate(entries)
        if e.current_usd > e.target_usd
    ]
    deficit_index = [i for i, e in enumerate(entries) if e.current_usd < e.target_usd]
    deficit_left = [entries[i].target_usd - entries[i].current_usd for i in deficit_index]

    instructions: list[SwapInstruction] = []
    for i, excess_usd in excess:
        remaining = excess_usd
        for k, j in enumerate(deficit_index):
            if len(instructions) >= max_swaps or remaining <= 0:
                break
            if deficit_left[k] <= 0:
                continue

            swap_usd = min(remaining, deficit_left[k])
            if swap_usd <= min_swap_usd:
                continue

            amount_in = usd_to_tokens(prices[i], swap_usd, decimals[i])
            if amount_in == 0:
                continue
            try:
                expected = calculate_swap_output(
                    amount_in, prices[i], prices[j], decimals[i], decimals[j]
                )
            except InvalidAmount:
                logger.debug(
                    "Skipping %s -> %s: %d units buy nothing",
                    entries[i].asset,
                    entries[j].asset,
                    amount_in,
                )
                continue
            min_out = (expected * (BPS_DENOMINATOR - slippage_bps)) // BPS_DENOMINATOR

            instructions.append(
                SwapInstruction(
                    from_asset=entries[i].asset,
                    to_asset=entries[j].asset,
                    amount_in=amount_in,
                    min_amount_out=min_out,
                    usd_value=swap_usd,
                    expected_amount_out=expected,
                )
            )
            remaining -= swap_usd
            deficit_left[k] -= swap_usd

        if len(instructions) >= max_swaps:
            break

    return SwapPlan(instructions=tuple(instructions))


def effective_balances(
    composition: VaultComposition,
    balances: Mapping[str, int],
    delegation: StrategyDelegation | None = None,
) -> list[int]:
    """Balances in composition order with the delegated position folded in."""
    result = []
    for allocation in composition.assets:
        balance = balances.get(allocation.asset, 0)
        if allocation.kind is AssetKind.DELEGATED and delegation is not None:
            balance = checked_add(balance, delegation.current_value)
        result.append(balance)
    return result


def compute_rebalancing(
    inputs: RebalancingInput,
    max_swaps: int = DEFAULT_MAX_SWAPS,
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    min_swap_usd: int = DEFAULT_MIN_SWAP_USD_MICRO,
) -> RebalancingResult:
    """Index-based rebalance decision over raw quotes."""
    prices = [
        normalize(mantissa, exponent)
        for mantissa, exponent in zip(inputs.price_mantissas, inputs.price_exponents)
    ]
    report = evaluate_drift(
        inputs.balances,
        prices,
        inputs.weights,
        inputs.decimals,
        inputs.threshold_percent,
    )
    plan = plan_rebalance(
        report,
        prices,
        inputs.decimals,
        max_swaps=max_swaps,
        slippage_bps=slippage_bps,
        min_swap_usd=min_swap_usd,
    )
    return RebalancingResult(
        needs_rebalance=report.needs_rebalance,
        current_weights=tuple(e.current_weight for e in report.entries),
        drifts=tuple(e.drift for e in report.entries),
        swap_from=tuple(int(s.from_asset) for s in plan),
        swap_to=tuple(int(s.to_asset) for s in plan),
        swap_amounts=tuple(s.amount_in for s in plan),
        swap_min_outs=tuple(s.min_amount_out for s in plan),
    )
