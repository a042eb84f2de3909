from __future__ import annotations

import logging
from collections.abc import Mapping

from ...errors import InsufficientBalance, InvalidAmount
from ...units import U64, fit
from .base import BaseBalanceStore

logger = logging.getLogger(__name__)


class InMemoryCustody(BaseBalanceStore):
    """Process-local custody ledger.

    Balance changes are applied as one batch: every delta is checked before
    any balance moves.
    """

    def __init__(self, balances: Mapping[str, int] | None = None):
        self._balances: dict[str, int] = {}
        for asset, amount in (balances or {}).items():
            self._balances[asset] = fit(amount, U64, f"{asset} balance")

    @property
    def name(self) -> str:
        return "in-memory custody"

    async def get_balance(self, asset: str) -> int:
        return self._balances.get(asset, 0)

    def snapshot(self) -> dict[str, int]:
        return dict(self._balances)

    def apply(self, deltas: Mapping[str, int]) -> None:
        """Apply signed balance deltas atomically.

        Raises:
            InsufficientBalance: A debit exceeds the available balance.
            MathOverflow: A credit pushes a balance past 64 bits.
        """
        updated = {}
        for asset, delta in deltas.items():
            current = self._balances.get(asset, 0)
            if current + delta < 0:
                raise InsufficientBalance(
                    f"Custody holds {current} {asset}, cannot release {-delta}"
                )
            updated[asset] = fit(current + delta, U64, f"{asset} balance")
        self._balances.update(updated)
        logger.debug("Custody applied %s", dict(deltas))

    def credit(self, asset: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Credit must not be negative, got {amount}")
        self.apply({asset: amount})

    def debit(self, asset: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Debit must not be negative, got {amount}")
        self.apply({asset: -amount})
