from __future__ import annotations

from .base import BaseBalanceStore
from .custody import InMemoryCustody

__all__ = ["BaseBalanceStore", "InMemoryCustody"]
