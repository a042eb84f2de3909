import pytest

from basket_vault.adapters.swap_adapters import MockSwapExecutor
from basket_vault.domain import SwapInstruction
from basket_vault.errors import InvalidAsset, SwapFailed
from basket_vault.processors.price_normalizer import normalize

PRICES = {
    "BTC": normalize(5_000_000_000_000, -8),
    "SOL": normalize(10_000_000_000, -8),
}
DECIMALS = {"BTC": 8, "SOL": 9}


@pytest.mark.asyncio
async def test_fills_at_oracle_rate():
    executor = MockSwapExecutor(PRICES, DECIMALS)
    instruction = SwapInstruction("SOL", "BTC", 4_000_000_000, 792_000)

    assert await executor.execute(instruction) == 800_000
    assert executor.executed == [(instruction, 800_000)]


@pytest.mark.asyncio
async def test_shaved_fill_within_tolerance():
    executor = MockSwapExecutor(PRICES, DECIMALS, fill_bps=9_950)
    instruction = SwapInstruction("SOL", "BTC", 4_000_000_000, 792_000)

    assert await executor.execute(instruction) == 796_000


@pytest.mark.asyncio
async def test_slippage_beyond_minimum_fails():
    executor = MockSwapExecutor(PRICES, DECIMALS, fill_bps=9_800)
    instruction = SwapInstruction("SOL", "BTC", 4_000_000_000, 792_000)

    with pytest.raises(SwapFailed, match="Slippage"):
        await executor.execute(instruction)
    assert executor.executed == []


@pytest.mark.asyncio
async def test_price_update_moves_the_rate():
    executor = MockSwapExecutor(PRICES, DECIMALS)
    executor.update_prices({"BTC": normalize(10_000_000_000_000, -8)})

    out = await executor.execute(SwapInstruction("SOL", "BTC", 4_000_000_000, 0))
    assert out == 400_000


@pytest.mark.asyncio
async def test_unknown_market():
    executor = MockSwapExecutor(PRICES, DECIMALS)
    with pytest.raises(InvalidAsset):
        await executor.execute(SwapInstruction("SOL", "ETH", 1, 0))
