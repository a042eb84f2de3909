from __future__ import annotations

import logging

from ...constants import BPS_DENOMINATOR, EXCHANGE_RATE_PRECISION
from ...errors import InvalidAmount
from ...units import I128, U64, checked_div, checked_mul, fit
from .base import BaseYieldStrategy

logger = logging.getLogger(__name__)


class LiquidStakingStrategy(BaseYieldStrategy):
    """Liquid staking position valued through a token exchange rate.

    Staking mints pool tokens at ``exchange_rate`` base units per token
    (scaled by ``EXCHANGE_RATE_PRECISION``); yield accrues by raising the rate.
    """

    def __init__(
        self,
        strategy_id: str = "liquid-staking",
        exchange_rate: int = EXCHANGE_RATE_PRECISION,
        unstake_fee_bps: int = 0,
    ):
        super().__init__(strategy_id)
        if exchange_rate <= 0:
            raise InvalidAmount(f"Exchange rate must be positive, got {exchange_rate}")
        self.exchange_rate = exchange_rate
        self.unstake_fee_bps = unstake_fee_bps
        self.pool_tokens = 0
        self.total_staked = 0

    @property
    def name(self) -> str:
        return f"liquid staking ({self.strategy_id})"

    def _tokens_for(self, amount: int) -> int:
        scaled = checked_mul(amount, EXCHANGE_RATE_PRECISION, I128)
        return fit(checked_div(scaled, self.exchange_rate, I128), U64, "pool tokens")

    def _value_of(self, tokens: int) -> int:
        scaled = checked_mul(tokens, self.exchange_rate, I128)
        return fit(checked_div(scaled, EXCHANGE_RATE_PRECISION, I128), U64, "pool value")

    def set_exchange_rate(self, exchange_rate: int) -> None:
        if exchange_rate <= 0:
            raise InvalidAmount(f"Exchange rate must be positive, got {exchange_rate}")
        logger.debug("%s exchange rate %d -> %d", self.name, self.exchange_rate, exchange_rate)
        self.exchange_rate = exchange_rate

    async def stake(self, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Stake amount must be positive, got {amount}")
        minted = self._tokens_for(amount)
        self.pool_tokens = fit(self.pool_tokens + minted, U64, "pool tokens")
        self.total_staked = fit(self.total_staked + amount, U64, "total staked")
        logger.info("Staked %d, minted %d pool tokens", amount, minted)

    async def unstake(self, amount: int) -> int:
        if amount <= 0:
            raise InvalidAmount(f"Unstake amount must be positive, got {amount}")
        if amount >= self._value_of(self.pool_tokens):
            burned = self.pool_tokens
        else:
            burned = self._tokens_for(amount)
        gross = self._value_of(burned)
        fee = gross * self.unstake_fee_bps // BPS_DENOMINATOR
        self.pool_tokens -= burned
        logger.info("Burned %d pool tokens for %d (fee %d)", burned, gross - fee, fee)
        return gross - fee

    async def current_value(self) -> int:
        return self._value_of(self.pool_tokens)
