from __future__ import annotations

import logging
from dataclasses import dataclass

from basket_vault.adapters.balance_adapters import InMemoryCustody
from basket_vault.adapters.price_adapters import StaticQuoteAdapter
from basket_vault.adapters.price_adapters.base import OracleQuote
from basket_vault.adapters.strategy_adapters import LiquidStakingStrategy
from basket_vault.adapters.swap_adapters import MockSwapExecutor
from basket_vault.domain import PriceSource, StrategyDelegation
from basket_vault.processors import normalize
from basket_vault.settings import VaultSettings
from basket_vault.state import AppState, VaultServices, VaultState

NOW = 1_700_000_000
TEN_SOL = 10_000_000_000

# raw quotes at 10**-8: BTC $50,000, ETH $2,500, SOL $100, USDC $1
RAW_PRICES = {
    "BTC": 5_000_000_000_000,
    "ETH": 250_000_000_000,
    "SOL": 10_000_000_000,
    "USDC": 100_000_000,
}
DECIMALS = {"BTC": 8, "ETH": 18, "SOL": 9, "USDC": 6}


def make_quotes(prices: dict[str, int], observed_at: int = NOW) -> dict[str, OracleQuote]:
    return {
        asset: OracleQuote(asset, price, -8, observed_at, PriceSource.STATIC)
        for asset, price in prices.items()
    }


@dataclass
class VaultEnv:
    state: AppState
    vault: VaultState
    services: VaultServices
    oracle: StaticQuoteAdapter
    swaps: MockSwapExecutor
    custody: InMemoryCustody
    strategy: LiquidStakingStrategy | None = None

    def set_prices(self, **raw: int) -> None:
        prices = {**{a: q.raw_price for a, q in self.oracle.quotes.items()}, **raw}
        self.oracle.quotes = make_quotes(prices)
        self.swaps.update_prices({a: normalize(p, -8) for a, p in prices.items()})


def make_settings(sol_kind: str = "base", **overrides) -> VaultSettings:
    kwargs = dict(
        assets=[
            {"asset": "BTC", "weight": 40, "decimals": 8},
            {"asset": "ETH", "weight": 30, "decimals": 18},
            {"asset": "SOL", "weight": 30, "decimals": 9, "kind": sol_kind},
        ],
        base_asset="SOL",
        base_decimals=9,
        quote_retries=0,
        quote_retry_interval=0,
    )
    kwargs.update(overrides)
    return VaultSettings(**kwargs)


def make_env(
    settings: VaultSettings | None = None,
    delegated: bool = False,
    fill_bps: int = 10_000,
) -> VaultEnv:
    if settings is None:
        settings = make_settings(
            "delegated" if delegated else "base",
            strategy_id="jito" if delegated else None,
        )
    state = AppState(settings=settings, logger=logging.getLogger("test"))
    composition = settings.to_composition()

    strategy = None
    delegation = None
    if delegated:
        strategy = LiquidStakingStrategy("jito")
        delegation = StrategyDelegation(composition.vault_id, "jito")

    oracle = StaticQuoteAdapter(settings, make_quotes(RAW_PRICES))
    swaps = MockSwapExecutor(
        {a: normalize(p, -8) for a, p in RAW_PRICES.items()}, DECIMALS, fill_bps
    )
    custody = InMemoryCustody()
    vault = VaultState(composition=composition, delegation=delegation)
    services = VaultServices(
        oracle=oracle, custody=custody, swaps=swaps, strategy=strategy
    )
    return VaultEnv(state, vault, services, oracle, swaps, custody, strategy)
