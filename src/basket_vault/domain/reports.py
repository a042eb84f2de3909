"""Result records produced by the engine.

Every record is frozen: the engine computes them, the service layer commits
or reports them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ValuationSnapshot:
    """Point-in-time value of a vault in USD-micro."""

    asset_values: dict[str, int]
    strategy_value_usd: int
    tvl: int
    total_shares: int
    share_price: int  # USD-micro per whole share


@dataclass(frozen=True)
class DriftEntry:
    asset: str
    current_usd: int
    target_usd: int
    current_weight: int
    target_weight: int
    drift: int
    exceeds_threshold: bool


@dataclass(frozen=True)
class DriftReport:
    entries: tuple[DriftEntry, ...]
    total_usd: int
    threshold_percent: int
    needs_rebalance: bool

    @property
    def flagged_assets(self) -> list[str]:
        return [e.asset for e in self.entries if e.exceeds_threshold]


@dataclass(frozen=True)
class SwapInstruction:
    from_asset: str
    to_asset: str
    amount_in: int
    min_amount_out: int
    usd_value: int = 0
    expected_amount_out: int = 0


@dataclass(frozen=True)
class SwapPlan:
    instructions: tuple[SwapInstruction, ...] = ()

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self):
        return iter(self.instructions)

    @property
    def is_empty(self) -> bool:
        return not self.instructions


class AllocationRoute(str, Enum):
    SWAP = "swap"
    HOLD = "hold"
    DELEGATE = "delegate"


@dataclass(frozen=True)
class DepositAllocation:
    """Slice of a deposit assigned to one basket member."""

    asset: str
    route: AllocationRoute
    base_amount: int  # base-currency minor units
    usd_value: int
    expected_amount_out: int = 0  # native units of ``asset`` at oracle rates
    min_amount_out: int = 0


@dataclass(frozen=True)
class DepositPlan:
    depositor: str
    deposit_amount: int
    deposit_usd: int
    pre_share_price: int
    shares_to_mint: int
    allocations: tuple[DepositAllocation, ...]
    dust: int  # base units left unallocated by weight truncation
    post_tvl: int
    post_total_shares: int
    post_share_price: int

    def routed(self, route: AllocationRoute) -> list[DepositAllocation]:
        return [a for a in self.allocations if a.route is route]


@dataclass(frozen=True)
class AssetRelease:
    asset: str
    amount: int  # native units released from custody
    usd_value: int


@dataclass(frozen=True)
class WithdrawalPlan:
    holder: str
    shares_to_burn: int
    total_shares: int
    fraction: int  # over FRACTION_SCALE
    releases: tuple[AssetRelease, ...]
    released_usd: int
    settlement_amount: int  # base units from asset releases, strategy excluded
    strategy_unwind: int = 0  # base units requested from the strategy
    principal_reduction: int = 0


@dataclass(frozen=True)
class WithdrawalReceipt:
    plan: WithdrawalPlan
    strategy_received: int
    yield_amount: int  # may be negative
    settlement_amount: int  # valued settlement, strategy proceeds included
    paid_amount: int  # base units actually delivered to the holder
    remaining_shares: int


@dataclass(frozen=True)
class RebalanceOutcome:
    report: DriftReport
    plan: SwapPlan
    snapshot: ValuationSnapshot | None = None
    realized_outputs: tuple[int, ...] = ()
    executed: bool = False
    confidential: bool = False


@dataclass(frozen=True)
class RebalancingInput:
    """Plaintext inputs of a rebalance decision, in composition order."""

    balances: tuple[int, ...]
    price_mantissas: tuple[int, ...]
    price_exponents: tuple[int, ...]
    weights: tuple[int, ...]
    decimals: tuple[int, ...]
    threshold_percent: int


@dataclass(frozen=True)
class RebalancingResult:
    """Rebalance decision: drift report fields plus swaps by asset index."""

    needs_rebalance: bool
    current_weights: tuple[int, ...]
    drifts: tuple[int, ...]
    swap_from: tuple[int, ...] = ()
    swap_to: tuple[int, ...] = ()
    swap_amounts: tuple[int, ...] = ()
    swap_min_outs: tuple[int, ...] = ()
