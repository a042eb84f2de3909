from __future__ import annotations

from dataclasses import dataclass, field

from ..adapters.price_adapters.base import OracleQuote
from ..domain import StrategyDelegation, ValuationSnapshot
from ..processors.price_normalizer import NormalizedPrice
from ..state import AppState, VaultServices, VaultState


@dataclass
class PipelineContext:
    state: AppState
    vault: VaultState
    services: VaultServices
    now: int | None = None  # reference time for quote freshness; wall clock if unset
    quotes: dict[str, OracleQuote] = field(default_factory=dict)
    prices: dict[str, NormalizedPrice] | None = None
    balances: dict[str, int] | None = None
    snapshot: ValuationSnapshot | None = None
    delegation: StrategyDelegation | None = None  # as observed during this operation

    @property
    def prices_required(self) -> dict[str, NormalizedPrice]:
        if self.prices is None:
            raise RuntimeError(
                "Prices have not been set. Ensure price_assets() is called before accessing this property."
            )
        return self.prices

    @property
    def balances_required(self) -> dict[str, int]:
        if self.balances is None:
            raise RuntimeError(
                "Balances have not been set. Ensure value_vault() is called before accessing this property."
            )
        return self.balances

    @property
    def snapshot_required(self) -> ValuationSnapshot:
        if self.snapshot is None:
            raise RuntimeError(
                "Snapshot has not been set. Ensure value_vault() is called before accessing this property."
            )
        return self.snapshot
