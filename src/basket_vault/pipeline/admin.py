"""Admin-only vault reconfiguration."""

from __future__ import annotations

from ..domain import PriceSource
from ..processors import attach_strategy as attach, detach_strategy as detach
from ..state import AppState, VaultState


async def set_price_source(
    state: AppState, vault: VaultState, authority: str, source: PriceSource
) -> None:
    async with vault.lock:
        vault.composition = vault.composition.with_price_source(authority, source)
        state.logger.info(
            "Vault '%s' now priced by %s", vault.composition.name, source.value
        )


async def attach_strategy(
    state: AppState, vault: VaultState, authority: str, strategy_id: str
) -> None:
    """Bind a yield strategy and start an empty delegation record."""
    async with vault.lock:
        composition, delegation = attach(
            vault.composition, authority, strategy_id, vault.delegation
        )
        vault.composition = composition
        vault.delegation = delegation
        state.logger.info(
            "Strategy %s attached to vault '%s'", strategy_id, composition.name
        )


async def detach_strategy(state: AppState, vault: VaultState, authority: str) -> None:
    """Unbind the strategy; its position must already be unwound."""
    async with vault.lock:
        vault.composition = detach(vault.composition, authority, vault.delegation)
        vault.delegation = None
        state.logger.info("Strategy detached from vault '%s'", vault.composition.name)
