from __future__ import annotations

from abc import ABC, abstractmethod

from ...domain import SwapInstruction


class BaseSwapExecutor(ABC):
    """Executes single swap instructions on behalf of the vault."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def execute(self, instruction: SwapInstruction) -> int:
        """Execute ``instruction`` and return the realized output amount.

        Implementations raise if the swap fails or fills below
        ``min_amount_out``.
        """
        ...
