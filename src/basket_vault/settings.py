"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    BPS_DENOMINATOR,
    DEFAULT_DRIFT_THRESHOLD_PERCENT,
    DEFAULT_MAX_SWAPS,
    DEFAULT_MIN_SWAP_USD_MICRO,
    DEFAULT_PRICE_CEILING_USD_MICRO,
    DEFAULT_PYTH_HERMES_ENDPOINT,
    DEFAULT_SLIPPAGE_BPS,
    DEFAULT_SWITCHBOARD_CROSSBAR_URL,
    MOCK_ORACLE_MAX_QUOTE_AGE,
    PYTH_MAX_QUOTE_AGE,
    SWITCHBOARD_MAX_QUOTE_AGE,
)
from .domain import AssetAllocation, AssetKind, PriceSource, VaultComposition

load_dotenv()

SECRET_FIELDS = {"oracle_api_key"}


class AssetSettings(BaseModel):
    """One ``[[assets]]`` entry of the config file."""

    asset: str
    weight: int
    decimals: int
    kind: AssetKind = AssetKind.SWAPPED
    balance_account: str | None = None

    model_config = ConfigDict(extra="ignore")

    def to_allocation(self) -> AssetAllocation:
        return AssetAllocation(
            asset=self.asset,
            weight=self.weight,
            decimals=self.decimals,
            kind=self.kind,
            balance_account=self.balance_account,
        )


def _default_assets() -> list[AssetSettings]:
    return [
        AssetSettings(asset="BTC", weight=40, decimals=8),
        AssetSettings(asset="ETH", weight=30, decimals=18),
        AssetSettings(asset="SOL", weight=30, decimals=9, kind=AssetKind.DELEGATED),
    ]


class VaultSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with BASKET_VAULT_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- global toggles ---
    dry_run: bool = True

    # --- vault identity ---
    vault_name: str = "basket"
    admin: str = "admin"
    share_mint: str = "basket-shares"
    base_asset: str = "SOL"
    base_decimals: int = 9
    assets: list[AssetSettings] = Field(default_factory=_default_assets)
    strategy_id: str | None = None

    # --- pricing ---
    price_source: PriceSource = PriceSource.SWITCHBOARD
    switchboard_max_quote_age: int = Field(default=SWITCHBOARD_MAX_QUOTE_AGE, gt=0)
    pyth_max_quote_age: int = Field(default=PYTH_MAX_QUOTE_AGE, gt=0)
    mock_oracle_max_quote_age: int = Field(default=MOCK_ORACLE_MAX_QUOTE_AGE, gt=0)
    static_max_quote_age: int = Field(default=MOCK_ORACLE_MAX_QUOTE_AGE, gt=0)
    price_ceiling_usd_micro: int = Field(default=DEFAULT_PRICE_CEILING_USD_MICRO, gt=0)
    quote_retries: int = Field(default=3, ge=0)
    quote_retry_interval: float = Field(default=2.0, ge=0)

    # Switchboard-specific settings
    switchboard_crossbar_url: str = DEFAULT_SWITCHBOARD_CROSSBAR_URL
    switchboard_feed_hashes: dict[str, str] = Field(default_factory=dict)

    # Pyth-specific settings
    pyth_hermes_endpoint: str = DEFAULT_PYTH_HERMES_ENDPOINT
    pyth_feed_ids: dict[str, str] = Field(default_factory=dict)
    pyth_max_confidence_ratio: float = 0.03

    # Mock oracle seed prices (USD-micro per whole token)
    mock_oracle_prices: dict[str, int] = Field(default_factory=dict)

    oracle_api_key: SecretStr | None = None
    http_timeout: float = 5.0

    # --- rebalancing policy ---
    drift_threshold_percent: int = Field(
        default=DEFAULT_DRIFT_THRESHOLD_PERCENT,
        ge=0,
        le=100,
        description="Drift tolerated before an asset is flagged (strict comparison).",
    )
    max_swaps: int = Field(default=DEFAULT_MAX_SWAPS, gt=0)
    slippage_bps: int = Field(
        default=DEFAULT_SLIPPAGE_BPS,
        ge=0,
        lt=BPS_DENOMINATOR,
        description="Slippage tolerance applied to expected swap output.",
    )
    min_swap_usd_micro: int = Field(default=DEFAULT_MIN_SWAP_USD_MICRO, ge=0)

    # --- confidential rebalancing ---
    confidential_enabled: bool = False

    # --- timeouts ---
    global_timeout_seconds: float | None = 120.0

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="BASKET_VAULT_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("oracle_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_asset_weights(self) -> "VaultSettings":
        """Fail early on a basket whose weights cannot form a composition."""
        total = sum(a.weight for a in self.assets)
        if self.assets and total != 100:
            raise ValueError(f"Asset weights must sum to 100, got {total}")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("BASKET_VAULT_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("basket-vault.toml")
                    user_config = (
                        Path.home() / ".config" / "basket-vault" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [basket_vault]
                body = data.get("basket_vault", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    def max_quote_age(self, source: PriceSource) -> int:
        return {
            PriceSource.SWITCHBOARD: self.switchboard_max_quote_age,
            PriceSource.PYTH: self.pyth_max_quote_age,
            PriceSource.MOCK_ORACLE: self.mock_oracle_max_quote_age,
            PriceSource.STATIC: self.static_max_quote_age,
        }[source]

    def to_composition(self) -> VaultComposition:
        """Build the validated vault composition described by this config.

        Raises:
            VaultError: If the basket violates a composition invariant.
        """
        return VaultComposition(
            admin=self.admin,
            name=self.vault_name,
            assets=tuple(a.to_allocation() for a in self.assets),
            share_mint=self.share_mint,
            base_asset=self.base_asset,
            base_decimals=self.base_decimals,
            price_source=self.price_source,
            strategy_id=self.strategy_id,
        )
