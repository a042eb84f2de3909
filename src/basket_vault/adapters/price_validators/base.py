"""Base class for quote validators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...errors import VaultError
from ...settings import VaultSettings
from ..price_adapters.base import OracleQuote


@dataclass
class CheckResult:
    """Result from a validator."""

    passed: bool
    message: str
    retry_recommended: bool = False


class BaseQuoteValidator(ABC):
    """Base class for all quote validators."""

    # Raised by the check runner when this validator fails
    error_class: type[VaultError] = VaultError

    def __init__(self, config: VaultSettings):
        """Initialize the validator with configuration."""
        self.config = config

    @abstractmethod
    async def validate_quotes(
        self, quotes: dict[str, OracleQuote], now: int
    ) -> CheckResult:
        """Validate quotes and return result.

        Args:
            quotes: Quotes keyed by asset id
            now: Reference unix time in seconds

        Returns:
            CheckResult indicating if validation passed
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this validator."""
        pass
