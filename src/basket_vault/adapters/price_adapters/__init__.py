from __future__ import annotations

from ...domain import PriceSource
from .base import BasePriceAdapter, OracleQuote
from .mock_oracle import MockOracleAdapter
from .pyth import PythAdapter
from .static import StaticQuoteAdapter
from .switchboard import SwitchboardAdapter

PRICE_ADAPTERS: dict[PriceSource, type[BasePriceAdapter]] = {
    PriceSource.SWITCHBOARD: SwitchboardAdapter,
    PriceSource.PYTH: PythAdapter,
    PriceSource.MOCK_ORACLE: MockOracleAdapter,
    PriceSource.STATIC: StaticQuoteAdapter,
}


def get_price_adapter_class(source: PriceSource | str) -> type[BasePriceAdapter]:
    """Get the adapter class serving a price source.

    Raises:
        ValueError: If the source is not recognized
    """
    try:
        return PRICE_ADAPTERS[PriceSource(source)]
    except ValueError:
        raise ValueError(
            f"Unknown price source '{source}'. "
            f"Available: {', '.join(s.value for s in PRICE_ADAPTERS)}"
        ) from None


__all__ = [
    "PRICE_ADAPTERS",
    "BasePriceAdapter",
    "MockOracleAdapter",
    "OracleQuote",
    "PythAdapter",
    "StaticQuoteAdapter",
    "SwitchboardAdapter",
    "get_price_adapter_class",
]
