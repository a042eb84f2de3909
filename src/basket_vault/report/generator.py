from __future__ import annotations

from dataclasses import asdict, dataclass, field

from ..domain import RebalanceOutcome, VaultComposition
from ..processors.price_normalizer import NormalizedPrice


@dataclass
class AssetLine:
    asset: str
    kind: str
    balance: int
    decimals: int
    price_usd_micro: int
    value_usd_micro: int
    current_weight: int
    target_weight: int
    drift: int
    exceeds_threshold: bool


@dataclass
class SwapLine:
    from_asset: str
    to_asset: str
    amount_in: int
    min_amount_out: int
    expected_amount_out: int
    usd_value: int


@dataclass
class VaultReport:
    """Valuation, drift and rebalance plan of one vault at one instant."""

    vault_name: str
    base_asset: str
    price_source: str
    as_of: int
    tvl_usd_micro: int
    share_price_usd_micro: int
    total_shares: int
    strategy_value_usd_micro: int
    threshold_percent: int
    needs_rebalance: bool
    assets: list[AssetLine] = field(default_factory=list)
    swaps: list[SwapLine] = field(default_factory=list)
    confidential_verified: bool = False

    def to_dict(self) -> dict[str, object]:
        """Convert report to dictionary format."""
        return asdict(self)

    def valuation_dict(self) -> dict[str, object]:
        data = self.to_dict()
        for key in ("threshold_percent", "needs_rebalance", "swaps", "confidential_verified"):
            data.pop(key)
        for line in data["assets"]:  # type: ignore[union-attr]
            for key in ("current_weight", "target_weight", "drift", "exceeds_threshold"):
                line.pop(key)
        return data

    def drift_dict(self) -> dict[str, object]:
        return {
            "vault_name": self.vault_name,
            "as_of": self.as_of,
            "total_usd_micro": sum(a.value_usd_micro for a in self.assets),
            "threshold_percent": self.threshold_percent,
            "needs_rebalance": self.needs_rebalance,
            "entries": [
                {
                    "asset": a.asset,
                    "current_weight": a.current_weight,
                    "target_weight": a.target_weight,
                    "drift": a.drift,
                    "exceeds_threshold": a.exceeds_threshold,
                }
                for a in self.assets
            ],
        }

    def plan_dict(self) -> dict[str, object]:
        return {
            "vault_name": self.vault_name,
            "as_of": self.as_of,
            "needs_rebalance": self.needs_rebalance,
            "confidential_verified": self.confidential_verified,
            "swaps": [asdict(s) for s in self.swaps],
        }


def generate_report(
    composition: VaultComposition,
    outcome: RebalanceOutcome,
    balances: dict[str, int],
    prices: dict[str, NormalizedPrice],
    as_of: int,
) -> VaultReport:
    """Generate a vault report from a (non-executed) rebalance outcome.

    Args:
        composition: The vault basket
        outcome: Drift report and swap plan, with the valuation snapshot attached
        balances: Effective balances per asset, in native minor units
        prices: Normalized prices used for the valuation
        as_of: Reference time of the quotes

    Returns:
        Report ready for printing or JSON output
    """
    snapshot = outcome.snapshot
    if snapshot is None:
        raise ValueError("Rebalance outcome carries no valuation snapshot")

    entries = {e.asset: e for e in outcome.report.entries}
    lines = []
    for allocation in composition.assets:
        entry = entries[allocation.asset]
        lines.append(
            AssetLine(
                asset=allocation.asset,
                kind=allocation.kind.value,
                balance=balances.get(allocation.asset, 0),
                decimals=allocation.decimals,
                price_usd_micro=prices[allocation.asset].usd_micro,
                value_usd_micro=entry.current_usd,
                current_weight=entry.current_weight,
                target_weight=entry.target_weight,
                drift=entry.drift,
                exceeds_threshold=entry.exceeds_threshold,
            )
        )

    swaps = [
        SwapLine(
            from_asset=s.from_asset,
            to_asset=s.to_asset,
            amount_in=s.amount_in,
            min_amount_out=s.min_amount_out,
            expected_amount_out=s.expected_amount_out,
            usd_value=s.usd_value,
        )
        for s in outcome.plan
    ]

    return VaultReport(
        vault_name=composition.name,
        base_asset=composition.base_asset,
        price_source=composition.price_source.value,
        as_of=as_of,
        tvl_usd_micro=snapshot.tvl,
        share_price_usd_micro=snapshot.share_price,
        total_shares=snapshot.total_shares,
        strategy_value_usd_micro=snapshot.strategy_value_usd,
        threshold_percent=outcome.report.threshold_percent,
        needs_rebalance=outcome.report.needs_rebalance,
        assets=lines,
        swaps=swaps,
        confidential_verified=outcome.confidential,
    )
