from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...domain import PriceSource
from ...settings import VaultSettings


@dataclass(frozen=True)
class OracleQuote:
    """Raw quote from an oracle: ``raw_price * 10**raw_exponent`` USD."""

    asset: str
    raw_price: int
    raw_exponent: int
    observed_at: int  # unix seconds
    source: PriceSource


class BasePriceAdapter(ABC):
    """Abstract base class for oracle price adapters."""

    source: PriceSource

    def __init__(self, config: VaultSettings):
        """Initialize the adapter with configuration."""
        self.config = config

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def get_quote(self, asset: str) -> OracleQuote:
        """Fetch the latest quote for ``asset``."""
        ...

    async def get_quotes(self, assets: list[str]) -> dict[str, OracleQuote]:
        """Fetch quotes for several assets concurrently."""
        quotes = await asyncio.gather(*(self.get_quote(asset) for asset in assets))
        return dict(zip(assets, quotes))

    def _headers(self) -> dict[str, str]:
        key = self.config.oracle_api_key
        if key is None:
            return {}
        return {"Authorization": f"Bearer {key.get_secret_value()}"}
