"""
Backtest configuration constants.

Central place for the market conventions and rule thresholds shared by the
indicator, metrics and simulation modules.
"""

import os
from typing import Tuple

# Trading calendar
TRADING_DAYS_YEAR: int = 252
DAYS_PER_YEAR: float = 365.25

# Annual risk-free rate used by the Sharpe ratio (percent)
DEFAULT_RISK_FREE_RATE: float = 2.0

# Moving averages tracked for every market data point
SMA_WINDOWS: Tuple[int, ...] = (20, 50, 100, 200)

# Weekly RSI rule
RSI_PERIOD: int = 14
RSI_NEUTRAL: float = 50.0
RSI_OVERBOUGHT: float = 70.0
RSI_OVERSOLD: float = 30.0

# "Sell in May": calendar months skipped (May to August inclusive)
SUMMER_MONTHS: Tuple[int, ...] = (5, 6, 7, 8)

# Scheduled dates for monthly/quarterly plans must fall on day <= this
SCHEDULE_MAX_DAY_OF_MONTH: int = 3
QUARTER_START_MONTHS: Tuple[int, ...] = (1, 4, 7, 10)

# Calendar-day lookback fetched before the user start date so that SMA-200
# is warm at the selected indicator timeframe
LOOKBACK_DAYS_DAILY: int = 290
LOOKBACK_DAYS_WEEKLY: int = 200 * 7
LOOKBACK_DAYS_MONTHLY: int = 200 * 31
# Crypto providers keep a shorter history
LOOKBACK_DAYS_CRYPTO_MAX: int = 365 * 2
LOOKBACK_DAYS_CRYPTO_DAILY: int = 200

# XIRR Newton-Raphson parameters
XIRR_MAX_ITERATIONS: int = 100
XIRR_TOLERANCE: float = 1e-7
XIRR_MIN_DERIVATIVE: float = 1e-10
XIRR_MIN_RATE: float = -0.99
XIRR_MAX_RATE: float = 10.0

# Portfolio ledger / price cache database
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///portfolio.db")
