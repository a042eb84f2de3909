"""Share issuance on deposit and proportional redemption on withdrawal."""

from __future__ import annotations

from collections.abc import Mapping

from ..constants import (
    BPS_DENOMINATOR,
    DEFAULT_SLIPPAGE_BPS,
    FRACTION_SCALE,
    SHARE_PRECISION,
    SHARE_PRICE_DOWNSCALE,
    WEIGHT_TOTAL,
)
from ..domain import (
    AllocationRoute,
    AssetKind,
    AssetRelease,
    DepositAllocation,
    DepositPlan,
    StrategyDelegation,
    ValuationSnapshot,
    VaultComposition,
    WithdrawalPlan,
)
from ..errors import InsufficientShares, InvalidAmount, MathOverflow
from ..units import (
    I64,
    I128,
    U64,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    fit,
)
from .price_normalizer import (
    NormalizedPrice,
    calculate_swap_output,
    tokens_to_usd,
    usd_to_tokens,
)
from .valuation import compute_share_price


def shares_to_mint(deposit_usd: int, share_price: int) -> int:
    """Shares minted for ``deposit_usd`` at ``share_price``, truncating.

    Raises:
        MathOverflow: If the share price is not positive.
        InvalidAmount: If the deposit is too small to mint a single share unit.
    """
    if share_price <= 0:
        raise MathOverflow(f"Cannot mint against share price {share_price}")
    scaled = checked_mul(deposit_usd, SHARE_PRECISION, I128)
    shares = checked_div(
        checked_div(scaled, share_price, I128), SHARE_PRICE_DOWNSCALE, I128
    )
    if shares <= 0:
        raise InvalidAmount(f"Deposit of {deposit_usd} USD-micro mints no shares")
    return fit(shares, U64, "shares to mint")


def _proportional(amount: int, numerator: int, denominator: int) -> int:
    return fit(
        checked_div(checked_mul(amount, numerator, I128), denominator, I128),
        U64,
        "proportional amount",
    )


def allocate_deposit(
    composition: VaultComposition,
    deposit_amount: int,
    prices: Mapping[str, NormalizedPrice],
    strategy_enabled: bool = False,
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
) -> tuple[tuple[DepositAllocation, ...], int]:
    """Split a base-currency deposit across the basket by target weight.

    Returns the allocations in composition order and the truncation dust left
    unallocated. Dust stays with the base asset when the basket holds it;
    otherwise it is folded into the last slice so the whole deposit is
    allocated.
    """
    base_price = prices[composition.base_asset]
    base_amounts = [
        _proportional(deposit_amount, asset.weight, WEIGHT_TOTAL)
        for asset in composition.assets
    ]
    dust = checked_sub(deposit_amount, sum(base_amounts))
    if composition.base_asset not in composition.asset_ids:
        base_amounts[-1] = checked_add(base_amounts[-1], dust)
        dust = 0

    allocations = []
    for asset, base_amount in zip(composition.assets, base_amounts):
        usd_value = tokens_to_usd(base_price, base_amount, composition.base_decimals)

        if asset.kind is AssetKind.SWAPPED:
            expected = 0
            if base_amount > 0:
                expected = calculate_swap_output(
                    base_amount,
                    base_price,
                    prices[asset.asset],
                    composition.base_decimals,
                    asset.decimals,
                )
            allocations.append(
                DepositAllocation(
                    asset=asset.asset,
                    route=AllocationRoute.SWAP,
                    base_amount=base_amount,
                    usd_value=usd_value,
                    expected_amount_out=expected,
                    min_amount_out=(expected * (BPS_DENOMINATOR - slippage_bps))
                    // BPS_DENOMINATOR,
                )
            )
            continue

        route = AllocationRoute.HOLD
        if asset.kind is AssetKind.DELEGATED and strategy_enabled:
            route = AllocationRoute.DELEGATE
        allocations.append(
            DepositAllocation(
                asset=asset.asset,
                route=route,
                base_amount=base_amount,
                usd_value=usd_value,
                expected_amount_out=base_amount,
                min_amount_out=base_amount,
            )
        )

    return tuple(allocations), dust


def plan_deposit(
    composition: VaultComposition,
    depositor: str,
    deposit_amount: int,
    prices: Mapping[str, NormalizedPrice],
    snapshot: ValuationSnapshot,
    strategy_enabled: bool = False,
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
) -> DepositPlan:
    """Price a deposit against the current snapshot.

    Shares are minted at the pre-deposit share price on the USD value of the
    full deposit.

    Raises:
        InvalidAmount: Deposit is not positive or mints no shares.
        UndefinedSharePrice: Vault holds shares but no value.
    """
    if deposit_amount <= 0:
        raise InvalidAmount(f"Deposit amount must be positive, got {deposit_amount}")
    fit(deposit_amount, U64, "deposit amount")

    deposit_usd = tokens_to_usd(
        prices[composition.base_asset], deposit_amount, composition.base_decimals
    )
    minted = shares_to_mint(deposit_usd, snapshot.share_price)
    allocations, dust = allocate_deposit(
        composition, deposit_amount, prices, strategy_enabled, slippage_bps
    )

    post_tvl = checked_add(snapshot.tvl, deposit_usd)
    post_total_shares = fit(
        checked_add(snapshot.total_shares, minted, I128), U64, "total shares"
    )
    return DepositPlan(
        depositor=depositor,
        deposit_amount=deposit_amount,
        deposit_usd=deposit_usd,
        pre_share_price=snapshot.share_price,
        shares_to_mint=minted,
        allocations=allocations,
        dust=dust,
        post_tvl=post_tvl,
        post_total_shares=post_total_shares,
        post_share_price=compute_share_price(post_tvl, post_total_shares),
    )


def withdrawal_fraction(shares_to_burn: int, total_shares: int) -> int:
    """Share of the pool being redeemed, over ``FRACTION_SCALE``."""
    if total_shares <= 0:
        raise InsufficientShares("Vault has no shares outstanding")
    scaled = checked_mul(shares_to_burn, FRACTION_SCALE, I128)
    return fit(checked_div(scaled, total_shares, I128), I64, "withdrawal fraction")


def apply_fraction(amount: int, fraction: int) -> int:
    """``amount * fraction / FRACTION_SCALE``, truncating."""
    return _proportional(amount, fraction, FRACTION_SCALE)


def compute_yield(received: int, principal: int, fraction: int) -> int:
    """Proceeds above the principal share being unwound; may be negative."""
    return checked_sub(received, apply_fraction(principal, fraction))


def plan_withdrawal(
    composition: VaultComposition,
    holder: str,
    shares_to_burn: int,
    holder_balance: int,
    total_shares: int,
    balances: Mapping[str, int],
    prices: Mapping[str, NormalizedPrice],
    delegation: StrategyDelegation | None = None,
) -> WithdrawalPlan:
    """Release a proportional slice of every asset for ``shares_to_burn``.

    Raises:
        InvalidAmount: ``shares_to_burn`` is not positive.
        InsufficientShares: Burn exceeds the holder's balance or total supply.
    """
    if shares_to_burn <= 0:
        raise InvalidAmount(f"Shares to burn must be positive, got {shares_to_burn}")
    if shares_to_burn > total_shares:
        raise InsufficientShares(
            f"Cannot burn {shares_to_burn} shares: only {total_shares} outstanding"
        )
    if shares_to_burn > holder_balance:
        raise InsufficientShares(
            f"Cannot burn {shares_to_burn} shares: {holder} holds {holder_balance}"
        )

    fraction = withdrawal_fraction(shares_to_burn, total_shares)
    releases = []
    released_usd = 0
    for asset in composition.assets:
        amount = apply_fraction(balances.get(asset.asset, 0), fraction)
        usd_value = tokens_to_usd(prices[asset.asset], amount, asset.decimals)
        released_usd = checked_add(released_usd, usd_value)
        releases.append(AssetRelease(asset=asset.asset, amount=amount, usd_value=usd_value))

    settlement = usd_to_tokens(
        prices[composition.base_asset], released_usd, composition.base_decimals
    )

    unwind = 0
    principal_reduction = 0
    if delegation is not None:
        unwind = apply_fraction(delegation.current_value, fraction)
        principal_reduction = apply_fraction(delegation.principal, fraction)

    return WithdrawalPlan(
        holder=holder,
        shares_to_burn=shares_to_burn,
        total_shares=total_shares,
        fraction=fraction,
        releases=tuple(releases),
        released_usd=released_usd,
        settlement_amount=settlement,
        strategy_unwind=unwind,
        principal_reduction=principal_reduction,
    )
