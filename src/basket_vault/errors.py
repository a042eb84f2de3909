"""Exception taxonomy for the vault engine."""

from __future__ import annotations


class VaultError(Exception):
    """Base class for every error raised by the engine.

    ``retry_recommended`` tells the calling service whether refreshing its
    inputs (typically oracle quotes) and trying again can succeed. The engine
    itself never retries.
    """

    retry_recommended: bool = False

    def __init__(self, message: str, retry_recommended: bool | None = None):
        super().__init__(message)
        if retry_recommended is not None:
            self.retry_recommended = retry_recommended


class MathOverflow(VaultError):
    """Checked arithmetic overflowed its width or divided by zero."""


class InvalidPrice(VaultError):
    """Price is non-positive, implausible, or cannot be represented."""

    retry_recommended = True


class StaleQuote(VaultError):
    """Oracle quote is older than the configured maximum age."""

    retry_recommended = True


class InvalidAmount(VaultError):
    """Amount is zero, negative, or too small to produce a result."""


class InsufficientShares(VaultError):
    """Burn request exceeds the holder's or the vault's share supply."""


class InsufficientBalance(VaultError):
    """Vault custody cannot cover the requested release."""


class InvalidWeights(VaultError):
    """Target weights are non-positive or do not sum to 100."""


class InvalidAssetCount(VaultError):
    """Composition holds fewer than 1 or more than 10 assets."""


class InvalidName(VaultError):
    """Vault name is empty or longer than 32 characters."""


class InvalidAsset(VaultError):
    """Asset is unknown, duplicated, or has an unsupported configuration."""


class Unauthorized(VaultError):
    """Caller is not the vault admin, or a record is bound to another vault."""


class UndefinedSharePrice(VaultError):
    """Shares are outstanding while total value is zero or negative."""


class SwapFailed(VaultError):
    """The swap executor rejected or failed an instruction."""


class StrategyFailed(VaultError):
    """The yield strategy failed a stake or unstake request."""


class ConfidentialMismatch(VaultError):
    """Confidential and plaintext rebalancing produced different decisions."""
