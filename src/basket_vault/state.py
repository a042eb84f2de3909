"""Application and per-vault state containers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .adapters.balance_adapters import InMemoryCustody
from .adapters.confidential import BaseConfidentialRebalancer
from .adapters.price_adapters import BasePriceAdapter
from .adapters.strategy_adapters import BaseYieldStrategy
from .adapters.swap_adapters import BaseSwapExecutor
from .domain import StrategyDelegation, VaultComposition
from .settings import VaultSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed through the pipeline to avoid global state and enable testing.
    """

    settings: VaultSettings
    logger: logging.Logger


@dataclass
class VaultServices:
    """External collaborators serving one vault."""

    oracle: BasePriceAdapter
    custody: InMemoryCustody
    swaps: BaseSwapExecutor
    strategy: BaseYieldStrategy | None = None
    confidential: BaseConfidentialRebalancer | None = None


@dataclass
class VaultState:
    """Mutable ledger of one vault.

    Pipeline operations hold ``lock`` for their whole duration and only write
    these fields once every collaborator call has succeeded.
    """

    composition: VaultComposition
    total_shares: int = 0
    holders: dict[str, int] = field(default_factory=dict)
    delegation: StrategyDelegation | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def shares_of(self, holder: str) -> int:
        return self.holders.get(holder, 0)

    def custody_key(self, asset: str) -> str:
        """Custody handle for ``asset``; non-members are keyed by id."""
        for allocation in self.composition.assets:
            if allocation.asset == asset:
                return allocation.balance_handle
        return asset
