from __future__ import annotations

from abc import ABC, abstractmethod


class BaseConfidentialRebalancer(ABC):
    """Co-processor computing a rebalance decision over an encoded snapshot.

    Payloads are produced by :mod:`basket_vault.adapters.confidential.codec`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def compute(self, payload: bytes) -> bytes:
        """Return the encoded ``RebalancingResult`` for an encoded input."""
        ...
