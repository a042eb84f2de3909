from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..constants import BOOTSTRAP_SHARE_PRICE, SHARE_PRECISION, SHARE_PRICE_DOWNSCALE
from ..domain import StrategyDelegation, ValuationSnapshot, VaultComposition
from ..errors import InvalidAsset, UndefinedSharePrice
from ..units import I64, I128, U64, checked_add, checked_div, checked_mul, fit
from .price_normalizer import NormalizedPrice, tokens_to_usd


def _require_aligned(balances: Sequence, prices: Sequence, decimals: Sequence) -> None:
    if not (len(balances) == len(prices) == len(decimals)):
        raise InvalidAsset(
            f"Balances, prices and decimals must align: "
            f"{len(balances)}/{len(prices)}/{len(decimals)}"
        )


def compute_asset_values(
    balances: Sequence[int],
    prices: Sequence[NormalizedPrice],
    decimals: Sequence[int],
) -> list[int]:
    _require_aligned(balances, prices, decimals)
    return [
        tokens_to_usd(price, balance, dec)
        for balance, price, dec in zip(balances, prices, decimals)
    ]


def compute_tvl(
    balances: Sequence[int],
    prices: Sequence[NormalizedPrice],
    decimals: Sequence[int],
    strategy_value_usd: int = 0,
) -> int:
    """Total value locked in USD-micro, strategy value included.

    Raises:
        MathOverflow: If any conversion or the running sum leaves 64 bits.
    """
    total = 0
    for value in compute_asset_values(balances, prices, decimals):
        total = checked_add(total, value)
    return checked_add(total, strategy_value_usd)


def compute_share_price(tvl: int, total_shares: int) -> int:
    """USD-micro value of one whole share, truncating toward zero.

    Returns the bootstrap price of $1.00 when no shares exist.

    Raises:
        UndefinedSharePrice: If shares are outstanding but ``tvl`` is not positive.
    """
    fit(total_shares, U64, "total shares")
    if total_shares == 0:
        return BOOTSTRAP_SHARE_PRICE
    if tvl <= 0:
        raise UndefinedSharePrice(
            f"Share price undefined: TVL is {tvl} with {total_shares} shares outstanding"
        )
    scaled = checked_mul(tvl, SHARE_PRECISION, I128)
    per_share = checked_div(scaled, total_shares, I128)
    return fit(checked_div(per_share, SHARE_PRICE_DOWNSCALE, I128), I64, "share price")


def compute_strategy_value_usd(
    delegation: StrategyDelegation | None,
    base_price: NormalizedPrice,
    base_decimals: int,
) -> int:
    if delegation is None or delegation.current_value == 0:
        return 0
    return tokens_to_usd(base_price, delegation.current_value, base_decimals)


def build_snapshot(
    composition: VaultComposition,
    balances: Mapping[str, int],
    prices: Mapping[str, NormalizedPrice],
    total_shares: int,
    delegation: StrategyDelegation | None = None,
) -> ValuationSnapshot:
    """Value every basket member plus the delegated position.

    ``balances`` is keyed by asset id; missing balances count as zero.
    ``prices`` must cover every basket member and the base asset.
    """
    missing = set(composition.priced_assets()) - prices.keys()
    if missing:
        raise InvalidAsset(f"Prices missing for assets: {sorted(missing)}")

    asset_balances = [balances.get(a.asset, 0) for a in composition.assets]
    asset_prices = [prices[a.asset] for a in composition.assets]
    values = compute_asset_values(asset_balances, asset_prices, composition.decimals)

    strategy_value_usd = compute_strategy_value_usd(
        delegation, prices[composition.base_asset], composition.base_decimals
    )
    tvl = compute_tvl(
        asset_balances, asset_prices, composition.decimals, strategy_value_usd
    )
    return ValuationSnapshot(
        asset_values=dict(zip(composition.asset_ids, values)),
        strategy_value_usd=strategy_value_usd,
        tvl=tvl,
        total_shares=total_shares,
        share_price=compute_share_price(tvl, total_shares),
    )
