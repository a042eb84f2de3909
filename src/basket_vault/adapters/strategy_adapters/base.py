from __future__ import annotations

from abc import ABC, abstractmethod


class BaseYieldStrategy(ABC):
    """External yield strategy holding delegated base currency.

    All amounts are base-currency minor units.
    """

    def __init__(self, strategy_id: str):
        self.strategy_id = strategy_id

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def stake(self, amount: int) -> None:
        ...

    @abstractmethod
    async def unstake(self, amount: int) -> int:
        """Unwind positions worth ``amount`` and return what was received."""
        ...

    @abstractmethod
    async def current_value(self) -> int:
        ...
