"""Deposit: value, price, mint, allocate, commit."""

from __future__ import annotations

from collections import Counter

from ..domain import AllocationRoute, DepositPlan, SwapInstruction
from ..errors import StrategyFailed
from ..processors import StrategyLedger, plan_deposit, require_binding
from ..state import AppState, VaultServices, VaultState
from .context import PipelineContext
from .pricing import price_assets, value_vault
from .swaps import execute_swaps


def _strategy_ready(vault: VaultState, services: VaultServices) -> bool:
    return (
        services.strategy is not None
        and vault.composition.strategy_id is not None
        and vault.delegation is not None
    )


async def deposit(
    state: AppState,
    vault: VaultState,
    services: VaultServices,
    depositor: str,
    amount: int,
    now: int | None = None,
) -> DepositPlan:
    """Accept ``amount`` base units from ``depositor`` and mint shares.

    The vault is locked for the whole operation. Share supply, holder balances,
    custody and delegation are only written after every swap and stake call
    has succeeded.

    Raises:
        InvalidAmount: Deposit is not positive or mints no shares
        StaleQuote, InvalidPrice: Quotes could not be validated
        SwapFailed, StrategyFailed: A collaborator call failed
    """
    log = state.logger
    async with vault.lock:
        ctx = PipelineContext(state=state, vault=vault, services=services, now=now)
        await price_assets(ctx)
        await value_vault(ctx)

        composition = vault.composition
        strategy_enabled = _strategy_ready(vault, services)
        if strategy_enabled and ctx.delegation is not None:
            require_binding(composition, ctx.delegation)

        plan = plan_deposit(
            composition,
            depositor,
            amount,
            ctx.prices_required,
            ctx.snapshot_required,
            strategy_enabled=strategy_enabled,
            slippage_bps=state.settings.slippage_bps,
        )
        log.info(
            "Deposit of %d %s (%d USD-micro) mints %d shares at %d",
            amount,
            composition.base_asset,
            plan.deposit_usd,
            plan.shares_to_mint,
            plan.pre_share_price,
        )

        swap_allocations = [
            a for a in plan.routed(AllocationRoute.SWAP) if a.base_amount > 0
        ]
        realized = await execute_swaps(
            ctx,
            [
                SwapInstruction(
                    from_asset=composition.base_asset,
                    to_asset=a.asset,
                    amount_in=a.base_amount,
                    min_amount_out=a.min_amount_out,
                    usd_value=a.usd_value,
                    expected_amount_out=a.expected_amount_out,
                )
                for a in swap_allocations
            ],
        )

        delegation = ctx.delegation
        delegate_amount = sum(
            a.base_amount for a in plan.routed(AllocationRoute.DELEGATE)
        )
        if delegate_amount > 0:
            if services.strategy is None or delegation is None:
                raise StrategyFailed("Deposit routed to a strategy that is not attached")
            delegation = await StrategyLedger(services.strategy).delegate(
                delegation, delegate_amount
            )

        deltas: Counter[str] = Counter()
        for allocation, amount_out in zip(swap_allocations, realized):
            deltas[vault.custody_key(allocation.asset)] += amount_out
        for allocation in plan.routed(AllocationRoute.HOLD):
            deltas[vault.custody_key(allocation.asset)] += allocation.base_amount
        if plan.dust:
            deltas[vault.custody_key(composition.base_asset)] += plan.dust

        services.custody.apply(deltas)
        vault.total_shares = plan.post_total_shares
        vault.holders[depositor] = vault.shares_of(depositor) + plan.shares_to_mint
        vault.delegation = delegation

        log.info(
            "Deposit committed: %d shares outstanding, share price %d",
            vault.total_shares,
            plan.post_share_price,
        )
        return plan
