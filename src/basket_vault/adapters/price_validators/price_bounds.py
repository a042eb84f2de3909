from __future__ import annotations

import logging

from ...errors import InvalidPrice, VaultError
from ...processors.price_normalizer import normalize
from ..price_adapters.base import OracleQuote
from .base import BaseQuoteValidator, CheckResult

logger = logging.getLogger(__name__)


class PriceBoundsValidator(BaseQuoteValidator):
    """Rejects non-positive, unrepresentable or implausibly high prices."""

    error_class = InvalidPrice

    @property
    def name(self) -> str:
        return "Price Bounds Validator"

    async def validate_quotes(
        self, quotes: dict[str, OracleQuote], now: int
    ) -> CheckResult:
        ceiling = self.config.price_ceiling_usd_micro
        invalid = []
        for asset, quote in quotes.items():
            try:
                usd_micro = normalize(quote.raw_price, quote.raw_exponent).usd_micro
            except VaultError as exc:
                invalid.append(f"{asset}: {exc}")
                logger.error("Invalid price for %s: %s", asset, exc)
                continue
            if usd_micro > ceiling:
                invalid.append(f"{asset}: {usd_micro} above ceiling {ceiling}")
                logger.error("Implausible price for %s: %d", asset, usd_micro)

        if invalid:
            return CheckResult(
                passed=False,
                message=f"Found {len(invalid)} implausible price(s): {'; '.join(invalid)}",
                retry_recommended=True,
            )

        return CheckResult(
            passed=True,
            message=f"All {len(quotes)} prices are within bounds",
        )
