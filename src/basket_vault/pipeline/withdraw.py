"""Withdrawal: burn shares, release a proportional slice, settle in base."""

from __future__ import annotations

from ..constants import BPS_DENOMINATOR
from ..domain import AssetKind, SwapInstruction, WithdrawalReceipt
from ..errors import StrategyFailed
from ..processors import (
    StrategyLedger,
    calculate_swap_output,
    compute_yield,
    plan_withdrawal,
    require_binding,
)
from ..state import AppState, VaultServices, VaultState
from ..units import checked_add
from .context import PipelineContext
from .pricing import price_assets, value_vault
from .swaps import execute_swaps


async def withdraw(
    state: AppState,
    vault: VaultState,
    services: VaultServices,
    holder: str,
    shares: int,
    now: int | None = None,
) -> WithdrawalReceipt:
    """Redeem ``shares`` held by ``holder``.

    Swapped assets are sold back to the base currency, base holdings are paid
    out directly and the delegated position is unwound pro rata. State is only
    written once every collaborator call has succeeded.

    Raises:
        InvalidAmount: ``shares`` is not positive
        InsufficientShares: Burn exceeds holder balance or supply
        StaleQuote, InvalidPrice: Quotes could not be validated
        SwapFailed, StrategyFailed: A collaborator call failed
    """
    s = state.settings
    log = state.logger
    async with vault.lock:
        ctx = PipelineContext(state=state, vault=vault, services=services, now=now)
        await price_assets(ctx)
        await value_vault(ctx)

        composition = vault.composition
        delegation = ctx.delegation
        if delegation is not None:
            require_binding(composition, delegation)

        plan = plan_withdrawal(
            composition,
            holder,
            shares,
            vault.shares_of(holder),
            vault.total_shares,
            ctx.balances_required,
            ctx.prices_required,
            delegation,
        )
        log.info(
            "Withdrawing %d of %d shares (fraction %d/1e6) for %s",
            shares,
            vault.total_shares,
            plan.fraction,
            holder,
        )

        prices = ctx.prices_required
        base = composition.base_asset
        instructions = []
        direct_payout = 0
        for release in plan.releases:
            if release.amount == 0:
                continue
            allocation = composition.get_asset(release.asset)
            if allocation.kind is not AssetKind.SWAPPED:
                direct_payout = checked_add(direct_payout, release.amount)
                continue
            expected = calculate_swap_output(
                release.amount,
                prices[release.asset],
                prices[base],
                allocation.decimals,
                composition.base_decimals,
            )
            instructions.append(
                SwapInstruction(
                    from_asset=release.asset,
                    to_asset=base,
                    amount_in=release.amount,
                    min_amount_out=expected * (BPS_DENOMINATOR - s.slippage_bps)
                    // BPS_DENOMINATOR,
                    usd_value=release.usd_value,
                    expected_amount_out=expected,
                )
            )

        realized = await execute_swaps(ctx, instructions)

        received = 0
        yield_amount = 0
        if delegation is not None and (plan.strategy_unwind or plan.principal_reduction):
            if services.strategy is None:
                raise StrategyFailed(
                    f"Vault delegates to {delegation.strategy_id} but no strategy is attached"
                )
            principal = delegation.principal
            delegation, received = await StrategyLedger(services.strategy).undelegate(
                delegation, plan.fraction
            )
            yield_amount = compute_yield(received, principal, plan.fraction)
            log.info(
                "Strategy unwind returned %d (yield %d)", received, yield_amount
            )

        services.custody.apply(
            {
                vault.custody_key(r.asset): -r.amount
                for r in plan.releases
                if r.amount > 0
            }
        )
        vault.total_shares -= shares
        vault.holders[holder] = vault.shares_of(holder) - shares
        vault.delegation = delegation

        paid = checked_add(checked_add(direct_payout, sum(realized)), received)
        receipt = WithdrawalReceipt(
            plan=plan,
            strategy_received=received,
            yield_amount=yield_amount,
            settlement_amount=checked_add(plan.settlement_amount, received),
            paid_amount=paid,
            remaining_shares=vault.total_shares,
        )
        log.info(
            "Withdrawal committed: %s receives %d %s",
            holder,
            paid,
            base,
        )
        return receipt
