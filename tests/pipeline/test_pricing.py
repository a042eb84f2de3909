from unittest.mock import AsyncMock

import pytest
from vault_env import NOW, RAW_PRICES, make_env, make_quotes, make_settings

from basket_vault.domain import StrategyDelegation
from basket_vault.errors import InvalidAsset, InvalidPrice, StaleQuote
from basket_vault.pipeline.context import PipelineContext
from basket_vault.pipeline.pricing import price_assets, value_vault


def make_ctx(env, now=NOW):
    return PipelineContext(
        state=env.state, vault=env.vault, services=env.services, now=now
    )


@pytest.mark.asyncio
async def test_price_assets_normalizes_every_priced_asset(env):
    ctx = make_ctx(env)

    await price_assets(ctx)

    assert set(ctx.prices) == {"BTC", "ETH", "SOL"}
    assert ctx.prices["BTC"].usd_micro == 50_000_000_000
    assert ctx.prices["SOL"].usd_micro == 100_000_000
    assert ctx.quotes["ETH"].raw_price == RAW_PRICES["ETH"]


@pytest.mark.asyncio
async def test_stale_quotes_rejected_without_retries(env):
    env.oracle.quotes = make_quotes(RAW_PRICES, observed_at=NOW - 301)
    ctx = make_ctx(env)

    with pytest.raises(StaleQuote):
        await price_assets(ctx)
    assert ctx.prices is None


@pytest.mark.asyncio
async def test_quote_age_at_limit_is_accepted(env):
    env.oracle.quotes = make_quotes(RAW_PRICES, observed_at=NOW - 300)
    ctx = make_ctx(env)

    await price_assets(ctx)

    assert ctx.prices is not None


@pytest.mark.asyncio
async def test_stale_quotes_refetched_until_fresh():
    env = make_env(make_settings(quote_retries=2))
    env.oracle.get_quotes = AsyncMock(
        side_effect=[
            make_quotes(RAW_PRICES, observed_at=NOW - 1_000),
            make_quotes(RAW_PRICES, observed_at=NOW),
        ]
    )
    ctx = make_ctx(env)

    await price_assets(ctx)

    assert env.oracle.get_quotes.await_count == 2
    assert ctx.quotes["BTC"].observed_at == NOW


@pytest.mark.asyncio
async def test_retries_exhausted_raise_last_failure():
    env = make_env(make_settings(quote_retries=1))
    env.oracle.get_quotes = AsyncMock(
        return_value=make_quotes({**RAW_PRICES, "ETH": 0})
    )

    with pytest.raises(InvalidPrice):
        await price_assets(make_ctx(env))
    assert env.oracle.get_quotes.await_count == 2


@pytest.mark.asyncio
async def test_non_retryable_errors_abort_immediately():
    env = make_env(make_settings(quote_retries=3))
    env.oracle.get_quotes = AsyncMock(side_effect=InvalidAsset("no feed for SOL"))

    with pytest.raises(InvalidAsset):
        await price_assets(make_ctx(env))
    assert env.oracle.get_quotes.await_count == 1


@pytest.mark.asyncio
async def test_value_vault_reads_custody_by_handle(env):
    env.custody.apply({"BTC": 800_000, "ETH": 120_000_000_000_000_000})
    env.vault.total_shares = 700_000_000
    ctx = make_ctx(env)
    await price_assets(ctx)

    await value_vault(ctx)

    assert ctx.balances == {"BTC": 800_000, "ETH": 120_000_000_000_000_000, "SOL": 0}
    assert ctx.snapshot.asset_values == {
        "BTC": 400_000_000,
        "ETH": 300_000_000,
        "SOL": 0,
    }
    assert ctx.snapshot.tvl == 700_000_000
    assert ctx.snapshot.share_price == 1_000_000


@pytest.mark.asyncio
async def test_value_vault_observes_strategy_yield(delegated_env):
    env = delegated_env
    await env.strategy.stake(3_000_000_000)
    env.strategy.set_exchange_rate(1_100_000_000)
    env.vault.delegation = StrategyDelegation(
        env.vault.composition.vault_id, "jito", 3_000_000_000, 3_000_000_000
    )
    ctx = make_ctx(env)
    await price_assets(ctx)

    await value_vault(ctx)

    assert ctx.delegation.current_value == 3_300_000_000
    assert ctx.snapshot.strategy_value_usd == 330_000_000
    # the vault's record is only updated by a committing operation
    assert env.vault.delegation.current_value == 3_000_000_000
