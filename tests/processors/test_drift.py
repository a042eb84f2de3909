import pytest

from basket_vault.domain import (
    AssetAllocation,
    AssetKind,
    RebalancingInput,
    StrategyDelegation,
    VaultComposition,
)
from basket_vault.errors import InvalidAsset
from basket_vault.processors.drift import (
    compute_rebalancing,
    effective_balances,
    evaluate_drift,
    evaluate_drift_from_values,
    plan_rebalance,
)
from basket_vault.processors.price_normalizer import normalize

DOLLAR = normalize(1_000_000, -6)


class TestEvaluateDrift:
    def test_empty_pool_reports_zeros(self):
        report = evaluate_drift_from_values([0, 0, 0], [40, 30, 30], 5)

        assert report.total_usd == 0
        assert report.needs_rebalance is False
        assert [e.current_weight for e in report.entries] == [0, 0, 0]
        assert [e.drift for e in report.entries] == [0, 0, 0]
        assert [e.target_usd for e in report.entries] == [0, 0, 0]

    def test_drift_at_threshold_is_not_flagged(self):
        report = evaluate_drift_from_values(
            [45_000_000, 55_000_000], [40, 60], 5, assets=["BTC", "SOL"]
        )

        btc = report.entries[0]
        assert btc.current_weight == 45
        assert btc.drift == 5
        assert btc.exceeds_threshold is False
        assert report.needs_rebalance is False

    def test_drift_beyond_threshold_is_flagged(self):
        report = evaluate_drift_from_values(
            [46_000_000, 54_000_000], [40, 60], 5, assets=["BTC", "SOL"]
        )

        assert [e.drift for e in report.entries] == [6, -6]
        assert report.flagged_assets == ["BTC", "SOL"]
        assert report.needs_rebalance is True

    def test_weights_truncate(self):
        report = evaluate_drift_from_values([1, 1, 1], [34, 33, 33], 50)
        assert [e.current_weight for e in report.entries] == [33, 33, 33]

    def test_labels_default_to_indices(self):
        report = evaluate_drift_from_values([10, 10], [50, 50], 5)
        assert [e.asset for e in report.entries] == ["0", "1"]

    def test_misaligned_inputs_rejected(self):
        with pytest.raises(InvalidAsset):
            evaluate_drift_from_values([1, 2], [100], 5)
        with pytest.raises(InvalidAsset):
            evaluate_drift_from_values([1, 2], [50, 50], 5, assets=["A"])

    def test_values_come_from_balances(self):
        report = evaluate_drift(
            [60_000_000, 40_000_000], [DOLLAR, DOLLAR], [50, 50], [6, 6], 5
        )
        assert report.total_usd == 100_000_000
        assert [e.current_weight for e in report.entries] == [60, 40]


def _skewed_report():
    return evaluate_drift(
        [60_000_000, 40_000_000],
        [DOLLAR, DOLLAR],
        [50, 50],
        [6, 6],
        5,
        assets=["USDC", "USDT"],
    )


class TestPlanRebalance:
    def test_no_plan_without_drift(self):
        report = evaluate_drift_from_values([50, 50], [50, 50], 5)
        assert plan_rebalance(report, [DOLLAR, DOLLAR], [6, 6]).is_empty

    def test_moves_excess_to_deficit(self):
        plan = plan_rebalance(_skewed_report(), [DOLLAR, DOLLAR], [6, 6])

        assert len(plan) == 1
        swap = plan.instructions[0]
        assert (swap.from_asset, swap.to_asset) == ("USDC", "USDT")
        assert swap.amount_in == 10_000_000
        assert swap.expected_amount_out == 10_000_000
        assert swap.min_amount_out == 9_900_000
        assert swap.usd_value == 10_000_000

    def test_slippage_is_applied(self):
        plan = plan_rebalance(
            _skewed_report(), [DOLLAR, DOLLAR], [6, 6], slippage_bps=50
        )
        assert plan.instructions[0].min_amount_out == 9_950_000

    def test_swaps_at_or_below_floor_are_skipped(self):
        plan = plan_rebalance(
            _skewed_report(), [DOLLAR, DOLLAR], [6, 6], min_swap_usd=10_000_000
        )
        assert plan.is_empty

    def test_greedy_matching_in_report_order(self):
        report = evaluate_drift_from_values(
            [70_000_000, 30_000_000, 0, 0],
            [25, 25, 25, 25],
            5,
            assets=["A", "B", "C", "D"],
        )
        prices = [DOLLAR] * 4
        plan = plan_rebalance(report, prices, [6] * 4)

        assert [(s.from_asset, s.to_asset, s.usd_value) for s in plan] == [
            ("A", "C", 25_000_000),
            ("A", "D", 20_000_000),
            ("B", "D", 5_000_000),
        ]

    def test_max_swaps_caps_the_plan(self):
        report = evaluate_drift_from_values(
            [70_000_000, 30_000_000, 0, 0],
            [25, 25, 25, 25],
            5,
            assets=["A", "B", "C", "D"],
        )
        plan = plan_rebalance(report, [DOLLAR] * 4, [6] * 4, max_swaps=2)
        assert len(plan) == 2

    def test_unbuyable_output_is_skipped(self):
        # 10 units of a 0-decimal $1 token buy nothing of a $1M token
        whale = normalize(1_000_000_000_000, -6)
        report = evaluate_drift_from_values(
            [30_000_000, 10_000_000], [50, 50], 5, assets=["CHEAP", "WHALE"]
        )
        plan = plan_rebalance(report, [DOLLAR, whale], [0, 0])
        assert plan.is_empty

    def test_plan_is_deterministic(self):
        first = plan_rebalance(_skewed_report(), [DOLLAR, DOLLAR], [6, 6])
        second = plan_rebalance(_skewed_report(), [DOLLAR, DOLLAR], [6, 6])
        assert first == second


def test_effective_balances_fold_in_strategy():
    composition = VaultComposition(
        admin="admin",
        name="basket",
        assets=(
            AssetAllocation("BTC", 50, 8),
            AssetAllocation("SOL", 50, 9, kind=AssetKind.DELEGATED),
        ),
        share_mint="shares",
        base_asset="SOL",
        base_decimals=9,
    )
    delegation = StrategyDelegation(composition.vault_id, "jito", 5, 7)

    assert effective_balances(composition, {"BTC": 1, "SOL": 2}) == [1, 2]
    assert effective_balances(composition, {"BTC": 1, "SOL": 2}, delegation) == [1, 9]


def test_compute_rebalancing_matches_named_plan():
    inputs = RebalancingInput(
        balances=(60_000_000, 40_000_000),
        price_mantissas=(100_000_000, 100_000_000),
        price_exponents=(-8, -8),
        weights=(50, 50),
        decimals=(6, 6),
        threshold_percent=5,
    )

    result = compute_rebalancing(inputs)

    assert result.needs_rebalance is True
    assert result.current_weights == (60, 40)
    assert result.drifts == (10, -10)
    assert result.swap_from == (0,)
    assert result.swap_to == (1,)
    assert result.swap_amounts == (10_000_000,)
    assert result.swap_min_outs == (9_900_000,)
