from __future__ import annotations

import asyncio
import logging

from ..adapters.price_adapters.base import OracleQuote
from ..adapters.price_validators import QUOTE_VALIDATORS, CheckResult
from ..errors import InvalidPrice, VaultError
from ..settings import VaultSettings

logger = logging.getLogger(__name__)


async def run_quote_validations(
    config: VaultSettings,
    quotes: dict[str, OracleQuote],
    now: int,
) -> None:
    """Run all quote validators against freshly fetched quotes.

    Args:
        config: Vault configuration
        quotes: Quotes keyed by asset id
        now: Reference unix time in seconds

    Raises:
        StaleQuote: If any quote is older than its source allows
        InvalidPrice: If any price is non-positive, unrepresentable or above
            the configured ceiling
    """
    logger.info("Running quote validations...")
    validators = [validator_cls(config) for validator_cls in QUOTE_VALIDATORS]

    results = await asyncio.gather(
        *[validator.validate_quotes(quotes, now) for validator in validators],
        return_exceptions=True,
    )

    failures: list[tuple[type[VaultError], str, bool]] = []
    for validator, result in zip(validators, results):
        if isinstance(result, Exception):
            logger.error("Validator '%s' raised exception: %s", validator.name, result)
            failures.append((InvalidPrice, f"{validator.name}: {result}", True))
            continue

        if isinstance(result, CheckResult):
            if result.passed:
                logger.info("✓ %s: %s", validator.name, result.message)
            else:
                logger.warning("✗ %s: %s", validator.name, result.message)
                failures.append(
                    (validator.error_class, result.message, result.retry_recommended)
                )

    if failures:
        error_class = failures[0][0]
        message = f"Quote validations failed: {'; '.join(f[1] for f in failures)}"
        raise error_class(message, retry_recommended=all(f[2] for f in failures))
