import asyncio
import logging
from unittest.mock import patch

import pytest
from vault_env import NOW, make_settings

from basket_vault.domain import PriceSource
from basket_vault.pipeline.run import build_preview_vault, run_preview
from basket_vault.snapshot_file import VaultSnapshotFile
from basket_vault.state import AppState


def make_snapshot(**overrides) -> VaultSnapshotFile:
    data = {
        "as_of": NOW,
        "total_shares": 1_000_000_000,
        "balances": {
            "BTC": 800_000,
            "ETH": 120_000_000_000_000_000,
            "SOL": 3_000_000_000,
        },
        "quotes": {
            "BTC": {"price": 10_000_000_000_000, "expo": -8},
            "ETH": {"price": 250_000_000_000, "expo": -8},
            "SOL": {"price": 10_000_000_000, "expo": -8},
        },
    }
    data.update(overrides)
    return VaultSnapshotFile.model_validate(data)


def make_state(**overrides) -> AppState:
    return AppState(settings=make_settings(**overrides), logger=logging.getLogger("test"))


@pytest.mark.asyncio
async def test_preview_values_and_plans_without_executing():
    state = make_state()

    report = await run_preview(state, make_snapshot())

    assert report.price_source == "static"
    assert report.tvl_usd_micro == 1_400_000_000
    assert report.share_price_usd_micro == 1_400_000
    assert report.needs_rebalance is True
    assert [a.current_weight for a in report.assets] == [57, 21, 21]
    assert [(s.from_asset, s.to_asset, s.amount_in) for s in report.swaps] == [
        ("BTC", "ETH", 120_000),
        ("BTC", "SOL", 120_000),
    ]
    assert report.swaps[0].expected_amount_out == 48_000_000_000_000_000


@pytest.mark.asyncio
async def test_preview_with_recorded_strategy():
    state = make_state(
        assets=[
            {"asset": "BTC", "weight": 40, "decimals": 8},
            {"asset": "ETH", "weight": 30, "decimals": 18},
            {"asset": "SOL", "weight": 30, "decimals": 9, "kind": "delegated"},
        ]
    )
    snapshot = make_snapshot(
        balances={"BTC": 800_000, "ETH": 120_000_000_000_000_000},
        quotes={
            "BTC": {"price": 5_000_000_000_000, "expo": -8},
            "ETH": {"price": 250_000_000_000, "expo": -8},
            "SOL": {"price": 10_000_000_000, "expo": -8},
        },
        strategy={
            "strategy_id": "jito",
            "principal": 3_000_000_000,
            "current_value": 3_000_000_000,
        },
    )

    report = await run_preview(state, snapshot)

    assert report.strategy_value_usd_micro == 300_000_000
    assert report.tvl_usd_micro == 1_000_000_000
    assert report.assets[2].balance == 3_000_000_000
    assert report.needs_rebalance is False
    assert report.swaps == []


def test_preview_vault_is_priced_from_the_snapshot():
    state = make_state()
    vault, services = build_preview_vault(state, make_snapshot())

    assert vault.composition.price_source is PriceSource.STATIC
    assert vault.total_shares == 1_000_000_000
    assert services.oracle.quotes["BTC"].observed_at == NOW
    assert services.confidential is None


def test_preview_vault_binds_recorded_strategy():
    state = make_state()
    snapshot = make_snapshot(strategy={"strategy_id": "jito"})

    vault, _ = build_preview_vault(state, snapshot)

    assert vault.composition.strategy_id == "jito"
    assert vault.delegation.vault_id == vault.composition.vault_id


@pytest.mark.asyncio
async def test_preview_confidential_cross_check():
    state = make_state(confidential_enabled=True)

    report = await run_preview(state, make_snapshot())

    assert report.confidential_verified is True


@pytest.mark.asyncio
async def test_preview_times_out():
    state = make_state(global_timeout_seconds=0.01)

    async def slow(*args, **kwargs):
        await asyncio.sleep(5)

    with patch("basket_vault.pipeline.run.rebalance", side_effect=slow):
        with pytest.raises(asyncio.TimeoutError, match="global_timeout_seconds"):
            await run_preview(state, make_snapshot())
