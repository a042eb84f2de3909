from __future__ import annotations

import logging

from ...errors import StaleQuote
from ..price_adapters.base import OracleQuote
from .base import BaseQuoteValidator, CheckResult

logger = logging.getLogger(__name__)


class StalenessValidator(BaseQuoteValidator):
    """Rejects quotes older than the maximum age of their source."""

    error_class = StaleQuote

    @property
    def name(self) -> str:
        return "Quote Staleness Validator"

    async def validate_quotes(
        self, quotes: dict[str, OracleQuote], now: int
    ) -> CheckResult:
        stale = []
        for asset, quote in quotes.items():
            age = now - quote.observed_at
            max_age = self.config.max_quote_age(quote.source)
            if age > max_age:
                stale.append(f"{asset} ({age}s > {max_age}s)")
                logger.error(
                    "Stale %s quote for %s: %ss old", quote.source.value, asset, age
                )

        if stale:
            return CheckResult(
                passed=False,
                message=f"Found {len(stale)} stale quote(s): {', '.join(stale)}",
                retry_recommended=True,
            )

        return CheckResult(
            passed=True,
            message=f"All {len(quotes)} quotes are fresh",
        )
