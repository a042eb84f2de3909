"""Drift rebalancing, optionally cross-checked by the confidential path."""

from __future__ import annotations

from collections import Counter

from ..adapters.confidential import decode_result, encode_input
from ..domain import RebalanceOutcome, RebalancingInput, RebalancingResult
from ..errors import ConfidentialMismatch, InsufficientBalance
from ..processors import (
    compute_rebalancing,
    effective_balances,
    evaluate_drift,
    plan_rebalance,
)
from ..state import AppState, VaultServices, VaultState
from .context import PipelineContext
from .pricing import price_assets, value_vault
from .swaps import execute_swaps


def build_rebalancing_input(ctx: PipelineContext) -> RebalancingInput:
    composition = ctx.vault.composition
    balances = effective_balances(
        composition, ctx.balances_required, ctx.delegation
    )
    prices = [ctx.prices_required[a] for a in composition.asset_ids]
    return RebalancingInput(
        balances=tuple(balances),
        price_mantissas=tuple(p.raw_price for p in prices),
        price_exponents=tuple(p.raw_exponent for p in prices),
        weights=tuple(composition.weights),
        decimals=tuple(composition.decimals),
        threshold_percent=ctx.state.settings.drift_threshold_percent,
    )


async def confidential_decision(
    ctx: PipelineContext, inputs: RebalancingInput
) -> RebalancingResult:
    """Obtain the confidential decision and check it against the plaintext one.

    Raises:
        ConfidentialMismatch: If the two paths disagree
    """
    s = ctx.state.settings
    rebalancer = ctx.services.confidential
    if rebalancer is None:
        raise ConfidentialMismatch("Confidential rebalancing enabled but no rebalancer set")

    payload = await rebalancer.compute(encode_input(inputs))
    remote = decode_result(payload)
    local = compute_rebalancing(
        inputs,
        max_swaps=s.max_swaps,
        slippage_bps=s.slippage_bps,
        min_swap_usd=s.min_swap_usd_micro,
    )
    if remote != local:
        raise ConfidentialMismatch(
            f"{rebalancer.name} decision differs from plaintext: {remote} != {local}"
        )
    ctx.state.logger.info("Confidential decision from %s matches", rebalancer.name)
    return remote


async def rebalance(
    state: AppState,
    vault: VaultState,
    services: VaultServices,
    now: int | None = None,
    execute: bool | None = None,
) -> RebalanceOutcome:
    """Evaluate drift and, when needed, plan and execute corrective swaps.

    ``execute`` defaults to ``not settings.dry_run``. Custody is only updated
    after every swap in the plan has succeeded.

    Raises:
        InsufficientBalance: Custody cannot fund the planned swaps
        ConfidentialMismatch: Confidential and plaintext decisions differ
        SwapFailed: A swap failed
    """
    s = state.settings
    log = state.logger
    if execute is None:
        execute = not s.dry_run

    async with vault.lock:
        ctx = PipelineContext(state=state, vault=vault, services=services, now=now)
        await price_assets(ctx)
        await value_vault(ctx)

        composition = vault.composition
        inputs = build_rebalancing_input(ctx)
        prices = [ctx.prices_required[a] for a in composition.asset_ids]
        report = evaluate_drift(
            inputs.balances,
            prices,
            composition.weights,
            composition.decimals,
            s.drift_threshold_percent,
            assets=composition.asset_ids,
        )
        plan = plan_rebalance(
            report,
            prices,
            composition.decimals,
            max_swaps=s.max_swaps,
            slippage_bps=s.slippage_bps,
            min_swap_usd=s.min_swap_usd_micro,
        )
        log.info(
            "Drift evaluated: needs_rebalance=%s, %d swap(s) planned",
            report.needs_rebalance,
            len(plan),
        )

        confidential = False
        if s.confidential_enabled:
            await confidential_decision(ctx, inputs)
            confidential = True

        if not execute or plan.is_empty:
            return RebalanceOutcome(
                report=report,
                plan=plan,
                snapshot=ctx.snapshot,
                confidential=confidential,
            )

        required: Counter[str] = Counter()
        for instruction in plan:
            required[instruction.from_asset] += instruction.amount_in
        for asset, amount in required.items():
            held = ctx.balances_required.get(asset, 0)
            if amount > held:
                raise InsufficientBalance(
                    f"Plan sells {amount} {asset} but custody holds {held}"
                )

        realized = await execute_swaps(ctx, list(plan))

        deltas: Counter[str] = Counter()
        for instruction, amount_out in zip(plan, realized):
            deltas[vault.custody_key(instruction.from_asset)] -= instruction.amount_in
            deltas[vault.custody_key(instruction.to_asset)] += amount_out
        services.custody.apply(deltas)
        vault.delegation = ctx.delegation

        log.info("Rebalance committed: %d swap(s) executed", len(realized))
        return RebalanceOutcome(
            report=report,
            plan=plan,
            snapshot=ctx.snapshot,
            realized_outputs=tuple(realized),
            executed=True,
            confidential=confidential,
        )
