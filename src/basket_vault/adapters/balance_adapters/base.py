from __future__ import annotations

from abc import ABC, abstractmethod


class BaseBalanceStore(ABC):
    """Read access to the vault's per-asset custody balances."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def get_balance(self, asset: str) -> int:
        """Balance of ``asset`` in native minor units."""
        ...

    async def get_balances(self, assets: list[str]) -> dict[str, int]:
        return {asset: await self.get_balance(asset) for asset in assets}
