from __future__ import annotations

import logging
from collections.abc import Mapping

from ...constants import BPS_DENOMINATOR
from ...domain import SwapInstruction
from ...errors import InvalidAsset, SwapFailed
from ...processors.price_normalizer import NormalizedPrice, calculate_swap_output
from .base import BaseSwapExecutor

logger = logging.getLogger(__name__)


class MockSwapExecutor(BaseSwapExecutor):
    """Fills swaps at oracle rates, optionally shaved by ``fill_bps``."""

    def __init__(
        self,
        prices: Mapping[str, NormalizedPrice],
        decimals: Mapping[str, int],
        fill_bps: int = BPS_DENOMINATOR,
    ):
        self.prices = dict(prices)
        self.decimals = dict(decimals)
        self.fill_bps = fill_bps
        self.executed: list[tuple[SwapInstruction, int]] = []

    @property
    def name(self) -> str:
        return "mock swap"

    def update_prices(self, prices: Mapping[str, NormalizedPrice]) -> None:
        self.prices.update(prices)

    def _lookup(self, asset: str) -> tuple[NormalizedPrice, int]:
        if asset not in self.prices or asset not in self.decimals:
            raise InvalidAsset(f"Mock swap has no market for {asset}")
        return self.prices[asset], self.decimals[asset]

    async def execute(self, instruction: SwapInstruction) -> int:
        from_price, from_decimals = self._lookup(instruction.from_asset)
        to_price, to_decimals = self._lookup(instruction.to_asset)

        quoted = calculate_swap_output(
            instruction.amount_in, from_price, to_price, from_decimals, to_decimals
        )
        realized = quoted * self.fill_bps // BPS_DENOMINATOR
        if realized < instruction.min_amount_out:
            raise SwapFailed(
                f"Slippage exceeded swapping {instruction.from_asset}->"
                f"{instruction.to_asset}: {realized} < {instruction.min_amount_out}"
            )

        self.executed.append((instruction, realized))
        logger.info(
            "Swapped %d %s -> %d %s",
            instruction.amount_in,
            instruction.from_asset,
            realized,
            instruction.to_asset,
        )
        return realized
