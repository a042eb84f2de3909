"""Quote validators registry."""

from .base import BaseQuoteValidator, CheckResult
from .price_bounds import PriceBoundsValidator
from .staleness import StalenessValidator

QUOTE_VALIDATORS: list[type[BaseQuoteValidator]] = [
    StalenessValidator,
    PriceBoundsValidator,
]

__all__ = [
    "QUOTE_VALIDATORS",
    "BaseQuoteValidator",
    "CheckResult",
    "PriceBoundsValidator",
    "StalenessValidator",
]
