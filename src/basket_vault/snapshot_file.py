"""Recorded vault snapshots consumed by the offline CLI commands.

A snapshot file is a JSON document::

    {
      "as_of": 1700000000,
      "total_shares": 1000000000,
      "balances": {"BTC": 800000, "ETH": 120000000000000000, "SOL": 3000000000},
      "quotes": {"BTC": {"price": 5000000000000, "expo": -8}, ...},
      "strategy": {"strategy_id": "jito", "principal": 0, "current_value": 0}
    }

Quotes without ``observed_at`` are treated as observed at ``as_of``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .adapters.price_adapters.base import OracleQuote
from .domain import PriceSource, StrategyDelegation


class QuoteEntry(BaseModel):
    price: int
    expo: int
    observed_at: int | None = None

    model_config = ConfigDict(extra="forbid")


class StrategyEntry(BaseModel):
    strategy_id: str
    principal: int = Field(default=0, ge=0)
    current_value: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


class VaultSnapshotFile(BaseModel):
    as_of: int
    total_shares: int = Field(default=0, ge=0)
    balances: dict[str, int] = Field(default_factory=dict)
    quotes: dict[str, QuoteEntry]
    strategy: StrategyEntry | None = None

    model_config = ConfigDict(extra="forbid")

    def to_quotes(self) -> dict[str, OracleQuote]:
        return {
            asset: OracleQuote(
                asset=asset,
                raw_price=entry.price,
                raw_exponent=entry.expo,
                observed_at=entry.observed_at if entry.observed_at is not None else self.as_of,
                source=PriceSource.STATIC,
            )
            for asset, entry in self.quotes.items()
        }

    def to_delegation(self, vault_id: str) -> StrategyDelegation | None:
        if self.strategy is None:
            return None
        return StrategyDelegation(
            vault_id=vault_id,
            strategy_id=self.strategy.strategy_id,
            principal=self.strategy.principal,
            current_value=self.strategy.current_value,
        )


def load_snapshot_file(path: Path) -> VaultSnapshotFile:
    """Parse and validate a snapshot file.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        pydantic.ValidationError: If the document is malformed
    """
    return VaultSnapshotFile.model_validate_json(path.read_text())
