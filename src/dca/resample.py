"""Period-close resampling of daily price series."""

import logging
from datetime import date
from typing import Dict, List, Sequence

import pandas as pd

from .models import IndicatorTimeframe, PricePoint

logger = logging.getLogger(__name__)

# pandas period aliases; "W-SUN" weeks run Monday..Sunday
_PERIOD_FREQ: Dict[IndicatorTimeframe, str] = {
    IndicatorTimeframe.WEEKLY: "W-SUN",
    IndicatorTimeframe.MONTHLY: "M",
}


def resample(
    series: Sequence[PricePoint],
    granularity: IndicatorTimeframe,
) -> List[PricePoint]:
    """
    Resample an ascending daily series to one point per week or month.

    Each period keeps the last observation it contains (date and price),
    i.e. period-close semantics. Missing days are not interpolated.

    Args:
        series: Daily prices in ascending date order
        granularity: Target granularity; DAILY returns the input unchanged

    Returns:
        Ascending list with one PricePoint per non-empty period
    """
    if not series:
        return []

    granularity = IndicatorTimeframe(granularity)
    if granularity == IndicatorTimeframe.DAILY:
        return list(series)

    index = pd.DatetimeIndex([pd.Timestamp(p.date) for p in series])
    frame = pd.DataFrame({"price": [p.price for p in series]}, index=index)

    periods = frame.index.to_period(_PERIOD_FREQ[granularity])
    closes = frame.groupby(periods).tail(1)

    return [
        PricePoint(date=ts.date(), price=float(price))
        for ts, price in closes["price"].items()
    ]


def carry_forward(
    values_by_date: Dict[date, float],
    dates: Sequence[date],
    initial: float,
) -> Dict[date, float]:
    """
    Map sparse (e.g. weekly) values back onto daily dates.

    Each day receives the latest value dated on or before it; days before the
    first value receive ``initial``.
    """
    result: Dict[date, float] = {}
    last = initial
    for day in dates:
        if day in values_by_date:
            last = values_by_date[day]
        result[day] = last
    return result
