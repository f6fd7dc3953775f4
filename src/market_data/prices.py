"""Daily price and VIX history from Yahoo Finance."""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

import pandas as pd
import yfinance as yf

from src.dca.models import PricePoint

logger = logging.getLogger(__name__)


# Short crypto tickers -> Yahoo Finance symbols
CRYPTO_SYMBOLS: dict[str, str] = {
    "BTC": "BTC-USD",
    "ETH": "ETH-USD",
    "SOL": "SOL-USD",
    "ADA": "ADA-USD",
    "TAO": "TAO22974-USD",
    "SUI": "SUI20947-USD",
    "ONDO": "ONDO-USD",
    "LINK": "LINK-USD",
    "AAVE": "AAVE-USD",
    "RNDR": "RNDR-USD",
}

VIX_SYMBOL = "^VIX"


def _base_ticker(ticker: str) -> str:
    upper = ticker.upper()
    return upper[:-4] if upper.endswith("-USD") else upper


def is_crypto(ticker: str) -> bool:
    """True for the supported crypto assets (with or without -USD suffix)."""
    return _base_ticker(ticker) in CRYPTO_SYMBOLS


def resolve_symbol(ticker: str) -> str:
    """Yahoo Finance symbol for a user ticker."""
    return CRYPTO_SYMBOLS.get(_base_ticker(ticker), ticker.upper())


def _history_closes(symbol: str, start: date, end: Optional[date]) -> pd.Series:
    # yfinance's end bound is exclusive
    end = (end or date.today()) + timedelta(days=1)
    hist = yf.Ticker(symbol).history(start=start.isoformat(), end=end.isoformat())
    if hist.empty or "Close" not in hist.columns:
        return pd.Series(dtype=float)
    return hist["Close"].dropna()


def fetch_price_history(
    ticker: str,
    start: date,
    end: Optional[date] = None,
) -> List[PricePoint]:
    """
    Fetch daily closes for a ticker.

    Args:
        ticker: Stock/ETF ticker or short crypto ticker (BTC, ETH, ...)
        start: First date to fetch
        end: Last date to fetch (default: today)

    Returns:
        Ascending PricePoints, one per trading day; empty if unavailable
    """
    symbol = resolve_symbol(ticker)
    try:
        closes = _history_closes(symbol, start, end)
    except Exception as e:
        logger.error(f"Error fetching prices for {ticker} ({symbol}): {e}")
        return []

    if closes.empty:
        logger.warning(f"No price data for {ticker} ({symbol}) since {start}")
        return []

    # One close per calendar day, last one wins (intraday duplicates)
    by_day: Dict[date, float] = {}
    for ts, close in closes.items():
        if close > 0:
            by_day[ts.date()] = float(close)

    points = [PricePoint(date=d, price=p) for d, p in sorted(by_day.items())]
    logger.info(f"Fetched {len(points)} daily prices for {ticker} ({symbol})")
    return points


def fetch_vix_history(start: date, end: Optional[date] = None) -> Dict[date, float]:
    """
    Fetch daily VIX closes.

    VIX is optional for the backtest, so failures only log a warning.

    Returns:
        Mapping date -> VIX close; empty if unavailable
    """
    try:
        closes = _history_closes(VIX_SYMBOL, start, end)
    except Exception as e:
        logger.warning(f"VIX data not available: {e}")
        return {}

    return {ts.date(): float(v) for ts, v in closes.items() if v > 0}
