from __future__ import annotations

from .price_adapters import PRICE_ADAPTERS, get_price_adapter_class
from .price_validators import QUOTE_VALIDATORS

__all__ = ["PRICE_ADAPTERS", "QUOTE_VALIDATORS", "get_price_adapter_class"]
