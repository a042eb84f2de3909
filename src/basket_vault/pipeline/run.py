"""Offline preview of a recorded vault snapshot."""

from __future__ import annotations

import asyncio

from ..adapters.balance_adapters import InMemoryCustody
from ..adapters.confidential import LoopbackConfidentialRebalancer
from ..adapters.price_adapters.static import StaticQuoteAdapter
from ..adapters.swap_adapters import MockSwapExecutor
from ..domain import PriceSource
from ..processors import effective_balances, normalize
from ..report import VaultReport, generate_report
from ..snapshot_file import VaultSnapshotFile
from ..state import AppState, VaultServices, VaultState
from .rebalance import rebalance


def build_preview_vault(
    state: AppState, snapshot: VaultSnapshotFile
) -> tuple[VaultState, VaultServices]:
    """Assemble a vault and its services from the configured basket and a snapshot.

    Quotes come from the snapshot, so the vault is always priced from the
    static source. A strategy recorded in the snapshot is bound to the vault.
    """
    s = state.settings
    composition = s.to_composition().with_price_source(s.admin, PriceSource.STATIC)
    if snapshot.strategy is not None and composition.strategy_id is None:
        composition = composition.with_strategy(
            s.admin, snapshot.strategy.strategy_id
        )

    vault = VaultState(
        composition=composition,
        total_shares=snapshot.total_shares,
        delegation=snapshot.to_delegation(composition.vault_id),
    )
    custody = InMemoryCustody(
        {vault.custody_key(asset): amount for asset, amount in snapshot.balances.items()}
    )
    confidential = None
    if s.confidential_enabled:
        confidential = LoopbackConfidentialRebalancer(
            max_swaps=s.max_swaps,
            slippage_bps=s.slippage_bps,
            min_swap_usd=s.min_swap_usd_micro,
        )
    services = VaultServices(
        oracle=StaticQuoteAdapter(s, snapshot.to_quotes()),
        custody=custody,
        swaps=MockSwapExecutor({}, {}),
        confidential=confidential,
    )
    return vault, services


async def run_preview(state: AppState, snapshot: VaultSnapshotFile) -> VaultReport:
    """Value a snapshot, evaluate drift and plan a rebalance without executing it.

    Raises:
        asyncio.TimeoutError: If the preview exceeds ``global_timeout_seconds``
    """
    s = state.settings
    log = state.logger
    vault, services = build_preview_vault(state, snapshot)
    composition = vault.composition

    log.info(
        "Starting preview",
        extra={"vault": composition.name, "as_of": snapshot.as_of},
    )

    timeout_s = s.global_timeout_seconds
    try:
        async with asyncio.timeout(
            timeout_s if timeout_s is not None and timeout_s > 0 else None
        ):
            outcome = await rebalance(
                state, vault, services, now=snapshot.as_of, execute=False
            )
    except TimeoutError as exc:
        log.error(
            "Preview timed out",
            extra={"vault": composition.name, "timeout_seconds": timeout_s},
        )
        raise asyncio.TimeoutError(
            f"Preview exceeded global timeout {timeout_s}s (vault={composition.name})\n"
            " N.B. This can be changed via `global_timeout_seconds`."
        ) from exc

    prices = {
        asset: normalize(q.raw_price, q.raw_exponent)
        for asset, q in snapshot.to_quotes().items()
        if asset in composition.asset_ids
    }
    balances = {
        allocation.asset: await services.custody.get_balance(allocation.balance_handle)
        for allocation in composition.assets
    }
    effective = effective_balances(composition, balances, vault.delegation)

    log.info("Preview completed", extra={"vault": composition.name})
    return generate_report(
        composition,
        outcome,
        dict(zip(composition.asset_ids, effective)),
        prices,
        snapshot.as_of,
    )
