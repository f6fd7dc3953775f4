"""Market data providers for the DCA backtester."""

from .prices import (
    CRYPTO_SYMBOLS,
    fetch_price_history,
    fetch_vix_history,
    is_crypto,
    resolve_symbol,
)

__all__ = [
    "CRYPTO_SYMBOLS",
    "fetch_price_history",
    "fetch_vix_history",
    "is_crypto",
    "resolve_symbol",
]
