from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlencode

import requests

from ...constants import PYTH_PRICE_FEED_IDS
from ...domain import PriceSource
from ...errors import InvalidAsset, InvalidPrice
from ...settings import VaultSettings
from .base import BasePriceAdapter, OracleQuote

logger = logging.getLogger(__name__)


class PythAdapter(BasePriceAdapter):
    """Adapter for querying Pyth Network price feeds through Hermes."""

    source = PriceSource.PYTH

    def __init__(self, config: VaultSettings):
        super().__init__(config)
        self.hermes_endpoint = config.pyth_hermes_endpoint.rstrip("/")
        self.max_confidence_ratio = config.pyth_max_confidence_ratio
        self._feed_ids: dict[str, str] = {
            f"{symbol.upper()}/USD": feed_id
            for symbol, feed_id in config.pyth_feed_ids.items()
        }

    @property
    def adapter_name(self) -> str:
        return "pyth"

    async def _http_get(self, url: str, *, params: dict | None = None):
        return await asyncio.to_thread(
            lambda: requests.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.config.http_timeout,
            )
        )

    async def _resolve_feed_id(self, symbol: str) -> str | None:
        """Feed id for ``symbol``/USD: configured, then built-in, then searched."""
        pair = f"{symbol.upper()}/USD"
        feed_id = self._feed_ids.get(pair) or PYTH_PRICE_FEED_IDS.get(pair)
        if feed_id is None:
            feed_id = await self._search_feed(symbol.upper())
        if feed_id is not None:
            self._feed_ids[pair] = feed_id
        return feed_id

    async def _search_feed(self, symbol: str) -> str | None:
        try:
            response = await self._http_get(
                f"{self.hermes_endpoint}/v2/price_feeds",
                params={"query": symbol.lower(), "asset_type": "crypto"},
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Pyth feed search for %s failed: %s", symbol, exc)
            return None

        results = response.json()
        if not isinstance(results, list):
            return None

        candidates = []
        for feed in results:
            attributes = feed.get("attributes") or {}
            if (
                attributes.get("base", "").upper() != symbol
                or attributes.get("quote_currency", "").upper() != "USD"
            ):
                continue
            candidates.append(feed)
        if not candidates:
            logger.warning("Pyth has no %s/USD feed among %d results", symbol, len(results))
            return None

        # pythnet feeds are published directly; anything else is derived
        candidates.sort(key=lambda feed: (feed.get("type") or "").lower() != "pythnet")
        feed_id = f"0x{candidates[0]['id']}"
        logger.info("Resolved %s/USD to Pyth feed %s", symbol, feed_id)
        return feed_id

    def _check_confidence(self, price_obj: dict, symbol: str) -> None:
        price = int(price_obj.get("price", 0))
        if price <= 0:
            raise InvalidPrice(f"{symbol} price is not positive: {price}")
        conf_ratio = int(price_obj.get("conf", 0)) / price
        if conf_ratio > self.max_confidence_ratio:
            raise InvalidPrice(
                f"{symbol} confidence ratio {conf_ratio:.4f} exceeds maximum {self.max_confidence_ratio}"
            )

    async def get_quote(self, asset: str) -> OracleQuote:
        return (await self.get_quotes([asset]))[asset]

    async def get_quotes(self, assets: list[str]) -> dict[str, OracleQuote]:
        feed_ids = await asyncio.gather(*(self._resolve_feed_id(a) for a in assets))
        unresolved = [a for a, feed_id in zip(assets, feed_ids) if not feed_id]
        if unresolved:
            raise InvalidAsset(f"Pyth feed could not be resolved for: {unresolved}")

        query_string = urlencode(
            [("ids[]", feed_id) for feed_id in dict.fromkeys(feed_ids)]
            + [("parsed", "true")]
        )
        url = f"{self.hermes_endpoint}/v2/updates/price/latest?{query_string}"
        response = await self._http_get(url)
        response.raise_for_status()
        parsed_feeds = response.json().get("parsed", [])
        feeds_by_id = {feed.get("id"): feed for feed in parsed_feeds}
        logger.debug("Received %d price feeds", len(parsed_feeds))

        quotes: dict[str, OracleQuote] = {}
        for asset, feed_id in zip(assets, feed_ids):
            feed = feeds_by_id.get(str(feed_id).removeprefix("0x"))
            if not feed:
                raise InvalidPrice(f"{asset}/USD price feed not in Pyth response")

            price_obj = feed.get("price", {}) or {}
            self._check_confidence(price_obj, f"{asset}/USD")
            quotes[asset] = OracleQuote(
                asset=asset,
                raw_price=int(price_obj["price"]),
                raw_exponent=int(price_obj.get("expo", 0)),
                observed_at=int(price_obj.get("publish_time", 0)),
                source=self.source,
            )
            logger.debug(
                "%s/USD: %se%s", asset, price_obj["price"], price_obj.get("expo")
            )
        return quotes
