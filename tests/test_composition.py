import pytest

from basket_vault.domain import (
    AssetAllocation,
    AssetKind,
    PriceSource,
    VaultComposition,
)
from basket_vault.errors import (
    InvalidAsset,
    InvalidAssetCount,
    InvalidName,
    InvalidWeights,
    Unauthorized,
)


def make_composition(**overrides) -> VaultComposition:
    kwargs = dict(
        admin="admin",
        name="basket",
        assets=(
            AssetAllocation("BTC", 40, 8),
            AssetAllocation("ETH", 30, 18),
            AssetAllocation("SOL", 30, 9, kind=AssetKind.BASE),
        ),
        share_mint="basket-shares",
        base_asset="SOL",
        base_decimals=9,
    )
    kwargs.update(overrides)
    return VaultComposition(**kwargs)


def test_valid_composition_helpers():
    composition = make_composition()

    assert composition.vault_id == "admin:basket"
    assert composition.asset_ids == ["BTC", "ETH", "SOL"]
    assert composition.weights == [40, 30, 30]
    assert composition.decimals == [8, 18, 9]
    assert composition.index_of("ETH") == 1
    assert composition.delegated_asset is None
    assert composition.priced_assets() == ["BTC", "ETH", "SOL"]


def test_priced_assets_include_base_outside_basket():
    composition = make_composition(
        assets=(AssetAllocation("BTC", 60, 8), AssetAllocation("ETH", 40, 18))
    )
    assert composition.priced_assets() == ["BTC", "ETH", "SOL"]


@pytest.mark.parametrize("name", ["", "x" * 33])
def test_name_length_is_validated(name):
    with pytest.raises(InvalidName):
        make_composition(name=name)


def test_name_of_32_characters_is_accepted():
    assert make_composition(name="x" * 32).name == "x" * 32


def test_asset_count_is_validated():
    with pytest.raises(InvalidAssetCount):
        make_composition(assets=())

    eleven = tuple(AssetAllocation(f"A{i}", 10, 6) for i in range(11))
    with pytest.raises(InvalidAssetCount):
        make_composition(assets=eleven)


def test_ten_assets_are_accepted():
    ten = tuple(AssetAllocation(f"A{i}", 10, 6) for i in range(10))
    assert len(make_composition(assets=ten).assets) == 10


def test_weights_must_sum_to_100():
    with pytest.raises(InvalidWeights, match="sum"):
        make_composition(
            assets=(AssetAllocation("BTC", 50, 8), AssetAllocation("ETH", 49, 18))
        )


def test_weights_must_be_positive():
    with pytest.raises(InvalidWeights, match="positive"):
        make_composition(
            assets=(
                AssetAllocation("BTC", 100, 8),
                AssetAllocation("ETH", 0, 18),
            )
        )


def test_count_checked_before_weights():
    eleven = tuple(AssetAllocation(f"A{i}", 1, 6) for i in range(11))
    with pytest.raises(InvalidAssetCount):
        make_composition(assets=eleven)


def test_duplicate_assets_rejected():
    with pytest.raises(InvalidAsset, match="Duplicate"):
        make_composition(
            assets=(AssetAllocation("BTC", 50, 8), AssetAllocation("BTC", 50, 8))
        )


def test_decimals_out_of_range_rejected():
    with pytest.raises(InvalidAsset):
        make_composition(
            assets=(AssetAllocation("BTC", 50, 19), AssetAllocation("ETH", 50, 18))
        )


def test_non_swapped_slot_must_be_base_asset():
    with pytest.raises(InvalidAsset, match="must be the base"):
        make_composition(
            assets=(
                AssetAllocation("BTC", 50, 8, kind=AssetKind.DELEGATED),
                AssetAllocation("SOL", 50, 9),
            )
        )


def test_unknown_asset_lookup_raises():
    composition = make_composition()
    with pytest.raises(InvalidAsset):
        composition.get_asset("DOGE")
    with pytest.raises(InvalidAsset):
        composition.index_of("DOGE")


def test_admin_reconfiguration():
    composition = make_composition()

    updated = composition.with_price_source("admin", PriceSource.PYTH)
    assert updated.price_source is PriceSource.PYTH
    assert composition.price_source is PriceSource.SWITCHBOARD

    with pytest.raises(Unauthorized):
        composition.with_price_source("mallory", PriceSource.PYTH)
    with pytest.raises(Unauthorized):
        composition.with_strategy("mallory", "jito")
