from __future__ import annotations

import logging
import time

from ...constants import MOCK_ORACLE_PRICE_BOUND, USD_DECIMALS
from ...domain import PriceSource
from ...errors import InvalidAsset, InvalidPrice, Unauthorized
from ...settings import VaultSettings
from .base import BasePriceAdapter, OracleQuote

logger = logging.getLogger(__name__)


class MockOracleAdapter(BasePriceAdapter):
    """Admin-updated price board quoting USD-micro prices.

    Every update stamps a single ``last_update`` for the whole board, so all
    quotes age together.
    """

    source = PriceSource.MOCK_ORACLE

    def __init__(self, config: VaultSettings, authority: str | None = None):
        super().__init__(config)
        self.authority = authority or config.admin
        self.prices: dict[str, int] = {}
        self.last_update = 0
        if config.mock_oracle_prices:
            self.update_prices(self.authority, config.mock_oracle_prices)

    @property
    def adapter_name(self) -> str:
        return "mock_oracle"

    def update_prices(
        self, authority: str, prices: dict[str, int], now: int | None = None
    ) -> None:
        """Replace board prices; all-or-nothing.

        Raises:
            Unauthorized: ``authority`` does not own the board.
            InvalidPrice: A price is outside ``(0, 10_000_000_000_000)``.
        """
        if authority != self.authority:
            raise Unauthorized(f"{authority} may not update the mock oracle")
        out_of_bounds = {
            asset: price
            for asset, price in prices.items()
            if not (0 < price < MOCK_ORACLE_PRICE_BOUND)
        }
        if out_of_bounds:
            raise InvalidPrice(f"Mock oracle prices out of bounds: {out_of_bounds}")

        self.prices.update({asset.upper(): price for asset, price in prices.items()})
        self.last_update = int(time.time()) if now is None else now
        logger.info(
            "Mock oracle updated: %s",
            ", ".join(f"{a}=${p / 10**USD_DECIMALS:,.2f}" for a, p in prices.items()),
        )

    async def get_quote(self, asset: str) -> OracleQuote:
        price = self.prices.get(asset.upper())
        if price is None:
            raise InvalidAsset(f"Mock oracle has no price for {asset}")
        return OracleQuote(
            asset=asset,
            raw_price=price,
            raw_exponent=-USD_DECIMALS,
            observed_at=self.last_update,
            source=self.source,
        )
