"""Vault composition and delegation records."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from ..constants import (
    MAX_ASSETS,
    MAX_NAME_LENGTH,
    MAX_TOKEN_DECIMALS,
    MIN_ASSETS,
    WEIGHT_TOTAL,
)
from ..errors import (
    InvalidAsset,
    InvalidAssetCount,
    InvalidName,
    InvalidWeights,
    Unauthorized,
)


class PriceSource(str, Enum):
    SWITCHBOARD = "switchboard"
    PYTH = "pyth"
    MOCK_ORACLE = "mock_oracle"
    STATIC = "static"


class AssetKind(str, Enum):
    """How the vault acquires and holds an asset."""

    SWAPPED = "swapped"  # bought from the base currency through the swap executor
    BASE = "base"  # held as the base currency itself
    DELEGATED = "delegated"  # base currency routed to the yield strategy


@dataclass(frozen=True)
class AssetAllocation:
    """One basket member and its target weight."""

    asset: str
    weight: int  # integer percent
    decimals: int
    kind: AssetKind = AssetKind.SWAPPED
    balance_account: str | None = None

    @property
    def balance_handle(self) -> str:
        """Key used against the balance store."""
        return self.balance_account or self.asset


@dataclass(frozen=True)
class VaultComposition:
    """Immutable description of a vault basket.

    Construction validates every composition invariant, so an instance that
    exists is always a valid basket.
    """

    admin: str
    name: str
    assets: tuple[AssetAllocation, ...]
    share_mint: str
    base_asset: str
    base_decimals: int
    price_source: PriceSource = PriceSource.SWITCHBOARD
    strategy_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "assets", tuple(self.assets))
        validate_composition(self)

    @property
    def vault_id(self) -> str:
        """Identity binding delegations to this vault (admin + name)."""
        return f"{self.admin}:{self.name}"

    @property
    def asset_ids(self) -> list[str]:
        return [a.asset for a in self.assets]

    @property
    def weights(self) -> list[int]:
        return [a.weight for a in self.assets]

    @property
    def decimals(self) -> list[int]:
        return [a.decimals for a in self.assets]

    @property
    def delegated_asset(self) -> AssetAllocation | None:
        for allocation in self.assets:
            if allocation.kind is AssetKind.DELEGATED:
                return allocation
        return None

    def get_asset(self, asset: str) -> AssetAllocation:
        for allocation in self.assets:
            if allocation.asset == asset:
                return allocation
        raise InvalidAsset(f"Asset {asset} not found in vault composition")

    def index_of(self, asset: str) -> int:
        for i, allocation in enumerate(self.assets):
            if allocation.asset == asset:
                return i
        raise InvalidAsset(f"Asset {asset} not found in vault composition")

    def priced_assets(self) -> list[str]:
        """Every asset that needs a quote, base asset included."""
        ids = self.asset_ids
        if self.base_asset not in ids:
            ids.append(self.base_asset)
        return ids

    def require_admin(self, authority: str) -> None:
        if authority != self.admin:
            raise Unauthorized(
                f"Unauthorized: {authority} is not the admin of vault '{self.name}'"
            )

    def with_price_source(self, authority: str, source: PriceSource) -> VaultComposition:
        self.require_admin(authority)
        return replace(self, price_source=source)

    def with_strategy(self, authority: str, strategy_id: str | None) -> VaultComposition:
        self.require_admin(authority)
        return replace(self, strategy_id=strategy_id)


def validate_composition(composition: VaultComposition) -> None:
    """Check composition invariants in creation order.

    Raises:
        InvalidName: Name empty or longer than 32 characters.
        InvalidAssetCount: Fewer than 1 or more than 10 assets.
        InvalidWeights: Weights do not sum to 100 or any weight is not positive.
        InvalidAsset: Duplicate ids, bad decimals, or a base/delegated slot
            that is not the base asset.
    """
    name = composition.name
    if not (0 < len(name) <= MAX_NAME_LENGTH):
        raise InvalidName(f"Vault name must be 1-{MAX_NAME_LENGTH} characters, got {name!r}")

    assets = composition.assets
    if not (MIN_ASSETS <= len(assets) <= MAX_ASSETS):
        raise InvalidAssetCount(
            f"Asset count must be {MIN_ASSETS}-{MAX_ASSETS}, got {len(assets)}"
        )

    total_weight = sum(a.weight for a in assets)
    if total_weight != WEIGHT_TOTAL:
        raise InvalidWeights(
            f"Sum of asset weights must equal {WEIGHT_TOTAL}, got {total_weight}"
        )
    non_positive = [a.asset for a in assets if a.weight <= 0]
    if non_positive:
        raise InvalidWeights(f"Asset weights must be positive: {non_positive}")

    seen: set[str] = set()
    for allocation in assets:
        if allocation.asset in seen:
            raise InvalidAsset(f"Duplicate asset in composition: {allocation.asset}")
        seen.add(allocation.asset)
        if not (0 <= allocation.decimals <= MAX_TOKEN_DECIMALS):
            raise InvalidAsset(
                f"{allocation.asset} decimals must be 0-{MAX_TOKEN_DECIMALS}, "
                f"got {allocation.decimals}"
            )

    if not (0 <= composition.base_decimals <= MAX_TOKEN_DECIMALS):
        raise InvalidAsset(f"Base asset decimals out of range: {composition.base_decimals}")

    for allocation in assets:
        if allocation.kind is not AssetKind.SWAPPED and (
            allocation.asset != composition.base_asset
            or allocation.decimals != composition.base_decimals
        ):
            raise InvalidAsset(
                f"{allocation.kind.value} asset {allocation.asset} must be the base "
                f"asset {composition.base_asset} with {composition.base_decimals} decimals"
            )


@dataclass(frozen=True)
class StrategyDelegation:
    """Principal and observed value held by the vault's yield strategy.

    Amounts are in base-currency minor units. ``vault_id`` binds the record to
    exactly one vault.
    """

    vault_id: str
    strategy_id: str
    principal: int = 0
    current_value: int = 0

    @property
    def unrealized_yield(self) -> int:
        return self.current_value - self.principal
