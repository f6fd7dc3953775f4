"""Build indicator-enriched market data for the simulation window."""

import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from src.config.settings import (
    LOOKBACK_DAYS_CRYPTO_DAILY,
    LOOKBACK_DAYS_CRYPTO_MAX,
    LOOKBACK_DAYS_DAILY,
    LOOKBACK_DAYS_MONTHLY,
    LOOKBACK_DAYS_WEEKLY,
    RSI_NEUTRAL,
    RSI_PERIOD,
    SMA_WINDOWS,
)

from .indicators import calculate_rsi, calculate_sma
from .models import IndicatorTimeframe, MarketDataPoint, PricePoint
from .resample import carry_forward, resample

logger = logging.getLogger(__name__)


def compute_lookback_days(timeframe: IndicatorTimeframe, is_crypto: bool = False) -> int:
    """
    Calendar days of history to fetch before the start date.

    Covers 200 periods of the selected timeframe so SMA-200 is warm on the
    first simulated day. Crypto providers keep a shorter history.
    """
    timeframe = IndicatorTimeframe(timeframe)
    if is_crypto:
        if timeframe == IndicatorTimeframe.DAILY:
            return LOOKBACK_DAYS_CRYPTO_DAILY
        return LOOKBACK_DAYS_CRYPTO_MAX
    if timeframe == IndicatorTimeframe.MONTHLY:
        return LOOKBACK_DAYS_MONTHLY
    if timeframe == IndicatorTimeframe.WEEKLY:
        return LOOKBACK_DAYS_WEEKLY
    return LOOKBACK_DAYS_DAILY


def compute_sma_maps(
    all_prices: Sequence[PricePoint],
    timeframe: IndicatorTimeframe,
) -> Dict[int, Dict[date, float]]:
    """
    SMA value per daily date for every tracked window.

    Weekly and monthly SMAs are computed on period closes and carried forward
    onto the daily dates, starting from the first daily price.
    """
    timeframe = IndicatorTimeframe(timeframe)
    daily_dates = [p.date for p in all_prices]
    sampled = resample(all_prices, timeframe)
    sampled_prices = [p.price for p in sampled]

    sma_maps: Dict[int, Dict[date, float]] = {}
    for window in SMA_WINDOWS:
        values = dict(zip((p.date for p in sampled), calculate_sma(sampled_prices, window)))
        if timeframe == IndicatorTimeframe.DAILY:
            sma_maps[window] = values
        else:
            sma_maps[window] = carry_forward(values, daily_dates, all_prices[0].price)
    return sma_maps


def compute_weekly_rsi_map(all_prices: Sequence[PricePoint]) -> Dict[date, float]:
    """Weekly RSI-14 carried forward onto every daily date."""
    weekly = resample(all_prices, IndicatorTimeframe.WEEKLY)
    rsi_values = calculate_rsi([w.price for w in weekly], RSI_PERIOD)
    weekly_rsi = dict(zip((w.date for w in weekly), rsi_values))
    return carry_forward(weekly_rsi, [p.date for p in all_prices], RSI_NEUTRAL)


def build_market_data(
    all_prices: Sequence[PricePoint],
    start_date: date,
    timeframe: IndicatorTimeframe = IndicatorTimeframe.DAILY,
    vix_by_date: Optional[Mapping[date, float]] = None,
) -> List[MarketDataPoint]:
    """
    Enrich the requested window with SMA, weekly RSI and VIX values.

    Indicators are computed once over the full lookback series so early
    dates of the window already have meaningful trailing averages; only the
    dates on or after ``start_date`` are returned.

    Args:
        all_prices: Daily prices including the lookback period, ascending
        start_date: First date of the simulation window
        timeframe: Granularity of the SMA computation
        vix_by_date: Optional VIX close per date

    Returns:
        One MarketDataPoint per trading day of the window
    """
    if not all_prices:
        return []

    timeframe = IndicatorTimeframe(timeframe)
    vix_by_date = vix_by_date or {}
    sma_maps = compute_sma_maps(all_prices, timeframe)
    rsi_map = compute_weekly_rsi_map(all_prices)

    data: List[MarketDataPoint] = []
    for point in all_prices:
        if point.date < start_date:
            continue
        smas = {
            f"sma{window}": sma_maps[window].get(point.date) or point.price
            for window in SMA_WINDOWS
        }
        vix = vix_by_date.get(point.date)
        data.append(
            MarketDataPoint(
                date=point.date,
                price=point.price,
                rsi_weekly=rsi_map[point.date],
                vix=vix if vix else None,
                **smas,
            )
        )

    logger.info(
        f"Enriched {len(data)} market days from {len(all_prices)} daily prices "
        f"({timeframe.value} SMA)"
    )
    return data
