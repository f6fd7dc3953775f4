"""
Technical indicators used by the Smart DCA rules.

All functions take plain price sequences and return lists of the same
length, so results can be zipped back onto the dates they came from.
"""

import logging
from typing import List, Sequence

import numpy as np
import pandas as pd

from src.config.settings import RSI_NEUTRAL, RSI_PERIOD

logger = logging.getLogger(__name__)


def calculate_sma(prices: Sequence[float], period: int = 100) -> List[float]:
    """
    Simple moving average.

    While fewer than ``period`` values are available the average of all
    values seen so far is used instead of leaving a gap.

    Args:
        prices: Price series
        period: Window length

    Returns:
        SMA values, same length as ``prices``
    """
    if len(prices) == 0:
        return []
    series = pd.Series(prices, dtype=float)
    return series.rolling(window=period, min_periods=1).mean().tolist()


def calculate_ema(prices: Sequence[float], period: int) -> List[float]:
    """
    Exponential moving average seeded with the first price.

    ema[i] = price[i] * k + ema[i-1] * (1 - k), with k = 2 / (period + 1)
    """
    if len(prices) == 0:
        return []
    series = pd.Series(prices, dtype=float)
    return series.ewm(span=period, adjust=False).mean().tolist()


def calculate_rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> List[float]:
    """
    Relative Strength Index with Wilder's smoothing.

    The first ``period`` values are neutral (50). When the average loss is
    exactly zero RS is capped at 100, which saturates RSI just below 100.

    Args:
        prices: Closing prices
        period: RSI period (default 14)

    Returns:
        RSI values in [0, 100], same length as ``prices``
    """
    n = len(prices)
    if n < period + 1:
        return [RSI_NEUTRAL] * n

    deltas = np.diff(np.asarray(prices, dtype=float))
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())

    rsi: List[float] = [RSI_NEUTRAL] * period
    for i in range(period, n):
        if i > period:
            avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period

        rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
        rsi.append(float(100.0 - 100.0 / (1.0 + rs)))

    return rsi
