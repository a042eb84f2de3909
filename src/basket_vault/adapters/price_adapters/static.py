from __future__ import annotations

from ...domain import PriceSource
from ...errors import InvalidAsset
from ...settings import VaultSettings
from .base import BasePriceAdapter, OracleQuote


class StaticQuoteAdapter(BasePriceAdapter):
    """Serves a fixed set of quotes, e.g. those recorded in a snapshot file."""

    source = PriceSource.STATIC

    def __init__(self, config: VaultSettings, quotes: dict[str, OracleQuote] | None = None):
        super().__init__(config)
        self.quotes = dict(quotes or {})

    @property
    def adapter_name(self) -> str:
        return "static"

    async def get_quote(self, asset: str) -> OracleQuote:
        try:
            return self.quotes[asset]
        except KeyError:
            raise InvalidAsset(f"No recorded quote for {asset}") from None
