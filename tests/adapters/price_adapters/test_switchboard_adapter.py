from unittest.mock import AsyncMock, MagicMock

import pytest

from basket_vault.adapters.price_adapters import SwitchboardAdapter, get_price_adapter_class
from basket_vault.domain import PriceSource
from basket_vault.errors import InvalidAsset, InvalidPrice
from basket_vault.settings import VaultSettings


@pytest.fixture
def adapter():
    config = VaultSettings(
        switchboard_crossbar_url="https://crossbar.example/",
        switchboard_feed_hashes={"btc": "0xabc", "SOL": "def"},
    )
    return SwitchboardAdapter(config)


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def test_registry_serves_switchboard():
    assert get_price_adapter_class("switchboard") is SwitchboardAdapter
    with pytest.raises(ValueError, match="Unknown price source"):
        get_price_adapter_class("chainlink")


@pytest.mark.asyncio
async def test_median_result_is_scaled_to_fixed_exponent(adapter):
    adapter._http_get = AsyncMock(
        return_value=_response(
            [
                {"feedHash": "0xabc", "results": ["50010.5", "49990", "50000.123456789"]},
                {"feedHash": "def", "results": [100.25]},
            ]
        )
    )

    quotes = await adapter.get_quotes(["BTC", "SOL"])

    assert quotes["BTC"].raw_price == 5_000_012_345_678
    assert quotes["BTC"].raw_exponent == -8
    assert quotes["BTC"].source is PriceSource.SWITCHBOARD
    assert quotes["SOL"].raw_price == 10_025_000_000
    adapter._http_get.assert_awaited_once_with(
        "https://crossbar.example/simulate/abc,def"
    )


@pytest.mark.asyncio
async def test_unconfigured_feed_is_invalid_asset(adapter):
    with pytest.raises(InvalidAsset, match="ETH"):
        await adapter.get_quote("ETH")


@pytest.mark.asyncio
async def test_empty_results_are_invalid_price(adapter):
    adapter._http_get = AsyncMock(
        return_value=_response([{"feedHash": "abc", "results": []}])
    )
    with pytest.raises(InvalidPrice, match="no results"):
        await adapter.get_quote("BTC")


@pytest.mark.asyncio
async def test_garbage_result_is_invalid_price(adapter):
    adapter._http_get = AsyncMock(
        return_value=_response([{"feedHash": "abc", "results": ["n/a"]}])
    )
    with pytest.raises(InvalidPrice, match="Unparseable"):
        await adapter.get_quote("BTC")


@pytest.mark.asyncio
async def test_feed_missing_from_response(adapter):
    adapter._http_get = AsyncMock(return_value=_response([]))
    with pytest.raises(InvalidPrice, match="not in Crossbar response"):
        await adapter.get_quote("SOL")
