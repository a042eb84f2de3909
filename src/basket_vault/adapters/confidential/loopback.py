from __future__ import annotations

import logging

from ...constants import (
    DEFAULT_MAX_SWAPS,
    DEFAULT_MIN_SWAP_USD_MICRO,
    DEFAULT_SLIPPAGE_BPS,
)
from ...processors.drift import compute_rebalancing
from .base import BaseConfidentialRebalancer
from .codec import decode_input, encode_result

logger = logging.getLogger(__name__)


class LoopbackConfidentialRebalancer(BaseConfidentialRebalancer):
    """Runs the rebalance circuit in-process over the encoded payload."""

    def __init__(
        self,
        max_swaps: int = DEFAULT_MAX_SWAPS,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        min_swap_usd: int = DEFAULT_MIN_SWAP_USD_MICRO,
    ):
        self.max_swaps = max_swaps
        self.slippage_bps = slippage_bps
        self.min_swap_usd = min_swap_usd

    @property
    def name(self) -> str:
        return "loopback"

    async def compute(self, payload: bytes) -> bytes:
        inputs = decode_input(payload)
        logger.debug("Loopback rebalancer received %d assets", len(inputs.balances))
        result = compute_rebalancing(
            inputs,
            max_swaps=self.max_swaps,
            slippage_bps=self.slippage_bps,
            min_swap_usd=self.min_swap_usd,
        )
        return encode_result(result)
