from __future__ import annotations

import asyncio
import logging
import time
from decimal import ROUND_DOWN, Decimal, InvalidOperation

import requests

from ...constants import SWITCHBOARD_QUOTE_EXPONENT
from ...domain import PriceSource
from ...errors import InvalidAsset, InvalidPrice
from ...settings import VaultSettings
from .base import BasePriceAdapter, OracleQuote

logger = logging.getLogger(__name__)


class SwitchboardAdapter(BasePriceAdapter):
    """Adapter for Switchboard On-Demand feeds through the Crossbar gateway.

    Crossbar simulates each feed job and returns decimal results; the median
    result is rescaled to a fixed ``10**-8`` mantissa.
    """

    source = PriceSource.SWITCHBOARD

    def __init__(self, config: VaultSettings):
        super().__init__(config)
        self.crossbar_url = config.switchboard_crossbar_url.rstrip("/")
        self.feed_hashes = {k.upper(): v for k, v in config.switchboard_feed_hashes.items()}

    @property
    def adapter_name(self) -> str:
        return "switchboard"

    async def _http_get(self, url: str):
        return await asyncio.to_thread(
            lambda: requests.get(
                url, headers=self._headers(), timeout=self.config.http_timeout
            )
        )

    def _feed_hash(self, asset: str) -> str:
        feed_hash = self.feed_hashes.get(asset.upper())
        if not feed_hash:
            raise InvalidAsset(f"No Switchboard feed hash configured for {asset}")
        return feed_hash.removeprefix("0x")

    @staticmethod
    def _to_mantissa(value: object, asset: str) -> int:
        try:
            scaled = Decimal(str(value)).scaleb(-SWITCHBOARD_QUOTE_EXPONENT)
            return int(scaled.to_integral_value(ROUND_DOWN))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidPrice(f"Unparseable Switchboard result for {asset}: {value!r}") from exc

    def _quote_from_entry(self, asset: str, entry: dict) -> OracleQuote:
        results = entry.get("results") or []
        if not results:
            raise InvalidPrice(f"Switchboard returned no results for {asset}")
        mantissas = sorted(self._to_mantissa(r, asset) for r in results)
        median = mantissas[len(mantissas) // 2]
        return OracleQuote(
            asset=asset,
            raw_price=median,
            raw_exponent=SWITCHBOARD_QUOTE_EXPONENT,
            observed_at=int(time.time()),
            source=self.source,
        )

    async def _simulate(self, feed_hashes: list[str]) -> dict[str, dict]:
        url = f"{self.crossbar_url}/simulate/{','.join(feed_hashes)}"
        response = await self._http_get(url)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            raise InvalidPrice(f"Unexpected Crossbar payload: {type(payload).__name__}")
        logger.debug("Crossbar returned %d feed simulations", len(payload))
        return {
            str(entry.get("feedHash", "")).removeprefix("0x"): entry
            for entry in payload
            if isinstance(entry, dict)
        }

    async def get_quote(self, asset: str) -> OracleQuote:
        return (await self.get_quotes([asset]))[asset]

    async def get_quotes(self, assets: list[str]) -> dict[str, OracleQuote]:
        hashes = {asset: self._feed_hash(asset) for asset in assets}
        entries = await self._simulate(list(dict.fromkeys(hashes.values())))

        quotes: dict[str, OracleQuote] = {}
        for asset, feed_hash in hashes.items():
            entry = entries.get(feed_hash)
            if entry is None:
                raise InvalidPrice(f"Switchboard feed for {asset} not in Crossbar response")
            quotes[asset] = self._quote_from_entry(asset, entry)
            logger.debug(
                "%s/USD: %de%d", asset, quotes[asset].raw_price, SWITCHBOARD_QUOTE_EXPONENT
            )
        return quotes
