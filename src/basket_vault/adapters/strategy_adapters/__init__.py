from __future__ import annotations

from .base import BaseYieldStrategy
from .liquid_staking import LiquidStakingStrategy

__all__ = ["BaseYieldStrategy", "LiquidStakingStrategy"]
