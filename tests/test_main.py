"""Tests for the command line interface."""

from __future__ import annotations

import json
import os

import pytest
from typer.testing import CliRunner

from basket_vault.main import app

runner = CliRunner()

SNAPSHOT = {
    "as_of": 1_700_000_000,
    "total_shares": 1_000_000_000,
    "balances": {"BTC": 800_000, "ETH": 120_000_000_000_000_000, "SOL": 3_000_000_000},
    "quotes": {
        "BTC": {"price": 10_000_000_000_000, "expo": -8},
        "ETH": {"price": 250_000_000_000, "expo": -8},
        "SOL": {"price": 10_000_000_000, "expo": -8},
    },
}


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ):
        if key.startswith("BASKET_VAULT_"):
            monkeypatch.delenv(key)
    # the CLI exports --config through this variable
    monkeypatch.setenv("BASKET_VAULT_CONFIG", str(tmp_path / "missing.toml"))


@pytest.fixture
def snapshot_path(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT))
    return path


def invoke(*args):
    return runner.invoke(app, ["--log-level", "ERROR", *args])


def test_value_json(snapshot_path):
    result = invoke("value", str(snapshot_path), "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["tvl_usd_micro"] == 1_400_000_000
    assert data["share_price_usd_micro"] == 1_400_000
    assert [a["value_usd_micro"] for a in data["assets"]] == [
        800_000_000,
        300_000_000,
        300_000_000,
    ]
    assert "drift" not in data["assets"][0]


def test_drift_json_honours_threshold_override(snapshot_path):
    result = invoke("--threshold", "20", "drift", str(snapshot_path), "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["threshold_percent"] == 20
    assert data["needs_rebalance"] is False
    assert [e["drift"] for e in data["entries"]] == [17, -9, -9]


def test_plan_json(snapshot_path):
    result = invoke("plan", str(snapshot_path), "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["needs_rebalance"] is True
    assert [(s["from_asset"], s["to_asset"]) for s in data["swaps"]] == [
        ("BTC", "ETH"),
        ("BTC", "SOL"),
    ]


def test_plan_with_confidential_cross_check(snapshot_path):
    result = invoke("--confidential", "plan", str(snapshot_path), "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["confidential_verified"] is True


def test_plan_dashboard(snapshot_path):
    result = invoke("plan", str(snapshot_path))

    assert result.exit_code == 0, result.output
    assert "Rebalance Plan" in result.stdout
    assert "Rebalance needed" in result.stdout


def test_stale_snapshot_exits_with_error(snapshot_path, tmp_path):
    stale = dict(SNAPSHOT)
    stale["quotes"] = {
        asset: {**quote, "observed_at": SNAPSHOT["as_of"] - 3_600}
        for asset, quote in SNAPSHOT["quotes"].items()
    }
    path = tmp_path / "stale.json"
    path.write_text(json.dumps(stale))
    config = tmp_path / "fast.toml"
    config.write_text("[basket_vault]\nquote_retries = 0\n")

    result = invoke("--config", str(config), "value", str(path))

    assert result.exit_code == 1


def test_malformed_snapshot_is_a_usage_error(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"as_of": 1, "quotes": {}, "unexpected": True}))

    result = invoke("value", str(path))

    assert result.exit_code == 2


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("BASKET_VAULT_ORACLE_API_KEY", "hunter2")

    result = invoke("--show-config")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["oracle_api_key"] == "***redacted***"
    assert "hunter2" not in result.stdout


def test_invalid_override_is_rejected():
    result = invoke("--max-swaps", "0", "--show-config")

    assert result.exit_code == 2


def test_options_without_command_print_help():
    result = invoke()

    assert result.exit_code == 0
    assert "value" in result.output
    assert "plan" in result.output
