import pytest

from basket_vault.adapters.strategy_adapters import LiquidStakingStrategy
from basket_vault.errors import InvalidAmount


@pytest.mark.asyncio
async def test_stake_mints_pool_tokens_at_rate():
    strategy = LiquidStakingStrategy("jito", exchange_rate=1_250_000_000)

    await strategy.stake(1_000_000_000)

    assert strategy.pool_tokens == 800_000_000
    assert strategy.total_staked == 1_000_000_000
    assert await strategy.current_value() == 1_000_000_000


@pytest.mark.asyncio
async def test_yield_accrues_through_exchange_rate():
    strategy = LiquidStakingStrategy()
    await strategy.stake(2_000_000_000)

    strategy.set_exchange_rate(1_050_000_000)

    assert await strategy.current_value() == 2_100_000_000


@pytest.mark.asyncio
async def test_partial_unstake_returns_requested_value():
    strategy = LiquidStakingStrategy()
    await strategy.stake(1_000_000_000)

    received = await strategy.unstake(400_000_000)

    assert received == 400_000_000
    assert await strategy.current_value() == 600_000_000


@pytest.mark.asyncio
async def test_full_unwind_burns_every_token():
    strategy = LiquidStakingStrategy(exchange_rate=1_000_000_000)
    await strategy.stake(1_000_000_000)
    strategy.set_exchange_rate(1_000_000_001)

    received = await strategy.unstake(10_000_000_000)

    assert received == 1_000_000_001
    assert strategy.pool_tokens == 0


@pytest.mark.asyncio
async def test_unstake_fee_is_deducted():
    strategy = LiquidStakingStrategy(unstake_fee_bps=30)
    await strategy.stake(1_000_000_000)

    assert await strategy.unstake(1_000_000_000) == 997_000_000


@pytest.mark.asyncio
async def test_invalid_amounts_rejected():
    strategy = LiquidStakingStrategy()
    with pytest.raises(InvalidAmount):
        await strategy.stake(0)
    with pytest.raises(InvalidAmount):
        await strategy.unstake(-1)
    with pytest.raises(InvalidAmount):
        strategy.set_exchange_rate(0)
    with pytest.raises(InvalidAmount):
        LiquidStakingStrategy(exchange_rate=0)
