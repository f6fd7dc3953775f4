"""Price caching utilities for backtesting.

Stores fetched daily closes in the database so that repeated backtests over
the same window do not hit the provider again.
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from src.db.models.price_cache import PriceCache
from src.dca.models import PricePoint

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str, date, Optional[date]], List[PricePoint]]

# Weekends/holidays: largest calendar gap tolerated at the window edges and between cached closes
_WINDOW_SLACK_DAYS = 5


def get_cached_prices(
    session: Session,
    ticker: str,
    start_date: date,
    end_date: Optional[date] = None,
) -> List[PricePoint]:
    """
    Read cached closes for a ticker.

    Args:
        session: Database session
        ticker: Ticker symbol
        start_date: First date (inclusive)
        end_date: Last date (inclusive), open-ended if None

    Returns:
        Ascending PricePoints found in the cache
    """
    query = session.query(PriceCache.price_date, PriceCache.close_price).filter(
        PriceCache.ticker == ticker.upper(),
        PriceCache.price_date >= start_date,
    )
    if end_date is not None:
        query = query.filter(PriceCache.price_date <= end_date)

    rows = query.order_by(PriceCache.price_date).all()
    return [PricePoint(date=d, price=float(p)) for d, p in rows]


def cache_prices(
    session: Session,
    ticker: str,
    prices: Sequence[PricePoint],
    commit: bool = True,
) -> int:
    """
    Store prices in cache, overwriting existing closes.

    Args:
        session: Database session
        ticker: Ticker symbol
        prices: Daily closes to store
        commit: Whether to commit transaction

    Returns:
        Number of prices cached
    """
    count = 0
    for point in prices:
        session.merge(
            PriceCache(
                ticker=ticker.upper(),
                price_date=point.date,
                close_price=point.price,
                source="yfinance",
            )
        )
        count += 1

    if commit:
        session.commit()

    return count


def _covers_window(
    cached: Sequence[PricePoint],
    start_date: date,
    end_date: date,
) -> bool:
    """True when the cached closes span the window without a hole."""
    if (cached[0].date - start_date).days > _WINDOW_SLACK_DAYS:
        return False
    if (end_date - cached[-1].date).days > _WINDOW_SLACK_DAYS:
        return False
    for prev, curr in zip(cached, cached[1:]):
        if (curr.date - prev.date).days > _WINDOW_SLACK_DAYS:
            logger.info(f"Cache gap between {prev.date} and {curr.date}")
            return False
    return True


def fetch_with_cache(
    session: Session,
    ticker: str,
    start_date: date,
    end_date: Optional[date],
    fetcher: PriceFetcher,
) -> List[PricePoint]:
    """
    Return closes for the window, calling ``fetcher`` only on a cache miss.

    The cache is considered to cover the window when its first close is
    within a few days of ``start_date``, its last close is within a few days
    of ``end_date`` and no two consecutive closes are further apart than
    that. Open-ended windows always refresh so the latest closes are included.
    A miss re-fetches the whole window and merges it into the cache.
    """
    cached = get_cached_prices(session, ticker, start_date, end_date)
    if cached and end_date is not None and _covers_window(cached, start_date, end_date):
        logger.info(f"Using {len(cached)} cached prices for {ticker}")
        return cached

    prices = fetcher(ticker, start_date, end_date)
    if prices:
        cache_prices(session, ticker, prices)
        logger.info(f"Cached {len(prices)} prices for {ticker}")
    return prices
