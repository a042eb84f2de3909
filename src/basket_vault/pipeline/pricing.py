"""Quote fetching, validation and vault valuation."""

from __future__ import annotations

import time
from typing import Any

import backoff

from ..checks.quote_checks import run_quote_validations
from ..errors import VaultError
from ..processors import StrategyLedger, build_snapshot, normalize
from .context import PipelineContext


async def price_assets(ctx: PipelineContext) -> None:
    """Fetch quotes for every priced asset, validate and normalize them.

    Fetch and validation are retried together while the failure recommends a
    retry (stale or implausible quotes); any other error aborts at once.

    Raises:
        StaleQuote: If quotes are still stale after the last attempt
        InvalidPrice: If prices are still implausible after the last attempt
    """
    s = ctx.state.settings
    log = ctx.state.logger
    composition = ctx.vault.composition
    oracle = ctx.services.oracle
    assets = composition.priced_assets()

    log.info(
        "Fetching %d quotes from %s (max retries: %d, interval: %.1fs)...",
        len(assets),
        oracle.adapter_name,
        s.quote_retries,
        s.quote_retry_interval,
    )

    def _should_giveup(exc: Exception) -> bool:
        return isinstance(exc, VaultError) and not exc.retry_recommended

    def _on_backoff(details: Any) -> None:
        log.warning(
            "Quote validation failed (attempt %d of %d): %s",
            details["tries"],
            s.quote_retries + 1,
            details.get("exception", details.get("value")),
        )

    def _on_giveup(details: Any) -> None:
        exc = details.get("exception", details.get("value"))
        if isinstance(exc, VaultError) and not exc.retry_recommended:
            log.error("Quote fetch failed (retry not recommended): %s", exc)
        else:
            log.error(
                "Quote validations failed after %d attempts: %s",
                details["tries"],
                exc,
            )

    @backoff.on_exception(
        backoff.constant,
        VaultError,
        max_tries=s.quote_retries + 1,
        interval=s.quote_retry_interval,
        giveup=_should_giveup,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
    )
    async def _fetch_and_validate() -> None:
        quotes = await oracle.get_quotes(assets)
        now = ctx.now if ctx.now is not None else int(time.time())
        await run_quote_validations(s, quotes, now)
        ctx.quotes = quotes

    await _fetch_and_validate()
    log.info("Quote validations passed successfully")

    ctx.prices = {
        asset: normalize(quote.raw_price, quote.raw_exponent)
        for asset, quote in ctx.quotes.items()
    }
    log.debug("Normalized prices: %s", {a: p.usd_micro for a, p in ctx.prices.items()})


async def value_vault(ctx: PipelineContext) -> None:
    """Read custody balances and value the vault at the fetched prices.

    When a strategy is attached the delegated position is re-observed first,
    so accrued yield is part of the valuation.
    """
    log = ctx.state.logger
    vault = ctx.vault
    composition = vault.composition

    balances = {}
    for allocation in composition.assets:
        balances[allocation.asset] = await ctx.services.custody.get_balance(
            allocation.balance_handle
        )
    ctx.balances = balances

    delegation = vault.delegation
    if delegation is not None and ctx.services.strategy is not None:
        delegation = await StrategyLedger(ctx.services.strategy).observe(delegation)
    ctx.delegation = delegation

    ctx.snapshot = build_snapshot(
        composition,
        balances,
        ctx.prices_required,
        vault.total_shares,
        delegation,
    )
    log.info(
        "Vault '%s' TVL: %d USD-micro, share price: %d",
        composition.name,
        ctx.snapshot.tvl,
        ctx.snapshot.share_price,
    )
