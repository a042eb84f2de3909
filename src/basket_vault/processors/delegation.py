"""Strategy delegation ledger.

Records are immutable: every operation returns a new
:class:`StrategyDelegation` that the caller commits once the surrounding
operation has fully succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from ..domain import StrategyDelegation, VaultComposition
from ..errors import InvalidAmount, StrategyFailed, Unauthorized, VaultError
from ..units import U64, checked_add, checked_sub, fit
from .issuance import apply_fraction

if TYPE_CHECKING:
    from ..adapters.strategy_adapters.base import BaseYieldStrategy

logger = logging.getLogger(__name__)


def require_binding(
    composition: VaultComposition, delegation: StrategyDelegation
) -> None:
    """Reject a delegation record that belongs to another vault or strategy."""
    if delegation.vault_id != composition.vault_id:
        raise Unauthorized(
            f"Delegation bound to {delegation.vault_id}, not {composition.vault_id}"
        )
    if composition.strategy_id is not None and (
        delegation.strategy_id != composition.strategy_id
    ):
        raise Unauthorized(
            f"Delegation targets strategy {delegation.strategy_id}, vault uses "
            f"{composition.strategy_id}"
        )


def attach_strategy(
    composition: VaultComposition,
    authority: str,
    strategy_id: str,
    existing: StrategyDelegation | None = None,
) -> tuple[VaultComposition, StrategyDelegation]:
    """Bind a yield strategy to the vault with an empty delegation record."""
    composition.require_admin(authority)
    if existing is not None and existing.current_value > 0:
        raise InvalidAmount(
            f"Strategy {existing.strategy_id} still holds {existing.current_value}; "
            f"unwind it before attaching {strategy_id}"
        )
    updated = composition.with_strategy(authority, strategy_id)
    return updated, StrategyDelegation(
        vault_id=updated.vault_id, strategy_id=strategy_id
    )


def detach_strategy(
    composition: VaultComposition,
    authority: str,
    delegation: StrategyDelegation | None,
) -> VaultComposition:
    """Unbind the strategy once its position has been fully unwound."""
    composition.require_admin(authority)
    if delegation is not None:
        require_binding(composition, delegation)
        if delegation.current_value > 0:
            raise InvalidAmount(
                f"Strategy {delegation.strategy_id} still holds "
                f"{delegation.current_value}; unwind it first"
            )
    return composition.with_strategy(authority, None)


def record_delegation(
    delegation: StrategyDelegation, amount: int, observed_value: int
) -> StrategyDelegation:
    if amount <= 0:
        raise InvalidAmount(f"Delegated amount must be positive, got {amount}")
    return replace(
        delegation,
        principal=checked_add(delegation.principal, amount),
        current_value=fit(observed_value, U64, "strategy value"),
    )


def record_observation(
    delegation: StrategyDelegation, observed_value: int
) -> StrategyDelegation:
    return replace(
        delegation, current_value=fit(observed_value, U64, "strategy value")
    )


def record_undelegation(
    delegation: StrategyDelegation, fraction: int, observed_value: int
) -> StrategyDelegation:
    """Reduce principal pro rata; retained yield stays in ``current_value``."""
    reduction = apply_fraction(delegation.principal, fraction)
    return replace(
        delegation,
        principal=checked_sub(delegation.principal, reduction),
        current_value=fit(observed_value, U64, "strategy value"),
    )


class StrategyLedger:
    """Drives a yield strategy and produces updated delegation records."""

    def __init__(self, strategy: BaseYieldStrategy):
        self.strategy = strategy

    async def observe(self, delegation: StrategyDelegation) -> StrategyDelegation:
        """Refresh the recorded value of the position from the strategy."""
        try:
            observed = await self.strategy.current_value()
        except VaultError:
            raise
        except Exception as exc:
            raise StrategyFailed(
                f"{self.strategy.name} valuation failed: {exc}"
            ) from exc
        if observed != delegation.current_value:
            logger.debug(
                "%s position moved from %d to %d",
                self.strategy.name,
                delegation.current_value,
                observed,
            )
        return record_observation(delegation, observed)

    async def delegate(
        self, delegation: StrategyDelegation, amount: int
    ) -> StrategyDelegation:
        """Stake ``amount`` and record the value observed afterwards."""
        if amount <= 0:
            raise InvalidAmount(f"Delegated amount must be positive, got {amount}")
        checked_add(delegation.principal, amount)
        try:
            await self.strategy.stake(amount)
            observed = await self.strategy.current_value()
        except VaultError:
            raise
        except Exception as exc:
            raise StrategyFailed(
                f"{self.strategy.name} stake of {amount} failed: {exc}"
            ) from exc
        logger.debug(
            "Delegated %d to %s, position now worth %d",
            amount,
            self.strategy.name,
            observed,
        )
        return record_delegation(delegation, amount, observed)

    async def undelegate(
        self, delegation: StrategyDelegation, fraction: int
    ) -> tuple[StrategyDelegation, int]:
        """Unwind ``fraction`` of the position.

        Returns the updated record and the amount received from the strategy.
        """
        amount = apply_fraction(delegation.current_value, fraction)
        if amount == 0:
            return record_undelegation(delegation, fraction, delegation.current_value), 0
        try:
            received = await self.strategy.unstake(amount)
            observed = await self.strategy.current_value()
        except VaultError:
            raise
        except Exception as exc:
            raise StrategyFailed(
                f"{self.strategy.name} unstake of {amount} failed: {exc}"
            ) from exc
        logger.debug(
            "Unwound %d from %s, received %d, position now worth %d",
            amount,
            self.strategy.name,
            received,
            observed,
        )
        return record_undelegation(delegation, fraction, observed), received
