"""
Risk and return metrics for DCA backtests.

Percent-valued metrics (CAGR, volatility, drawdown, monthly returns) are
returned as percentages, e.g. 12.5 for 12.5%. Degenerate inputs return 0
instead of NaN or infinity.
"""

import logging
from datetime import date
from typing import List, Sequence, Tuple

import numpy as np

from src.config.settings import DEFAULT_RISK_FREE_RATE, TRADING_DAYS_YEAR

from ..models import DcaTransaction, DrawdownPoint, DrawdownResult, MonthlyReturn

logger = logging.getLogger(__name__)


# =============================================================================
# Basic Metrics
# =============================================================================

def calculate_cagr(start_value: float, end_value: float, years: float) -> float:
    """
    Compound Annual Growth Rate: (end / start) ^ (1 / years) - 1.

    Args:
        start_value: Initial value
        end_value: Final value
        years: Holding period in years

    Returns:
        CAGR in percent; 0 for a non-positive start or period, -100 when
        the end value is wiped out
    """
    if start_value <= 0 or years <= 0:
        return 0.0
    if end_value <= 0:
        return -100.0
    return ((end_value / start_value) ** (1.0 / years) - 1.0) * 100.0


def calculate_total_return(start_value: float, end_value: float) -> float:
    """Total return in percent."""
    if start_value <= 0:
        return 0.0
    return (end_value - start_value) / start_value * 100.0


# =============================================================================
# Risk Metrics
# =============================================================================

def calculate_daily_returns(values: Sequence[float]) -> np.ndarray:
    """
    Simple period-over-period returns (decimal).

    Steps whose prior value is zero are skipped.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return np.array([], dtype=float)
    prior = arr[:-1]
    current = arr[1:]
    valid = prior != 0
    return (current[valid] - prior[valid]) / prior[valid]


def _annualized_volatility(returns: np.ndarray) -> float:
    # Sample standard deviation (n - 1), scaled to a trading year
    return float(np.std(returns, ddof=1) * np.sqrt(TRADING_DAYS_YEAR))


def calculate_volatility(values: Sequence[float]) -> float:
    """
    Annualized volatility of a value series, in percent.

    Uses the Bessel-corrected standard deviation of daily returns scaled by
    sqrt(252).
    """
    returns = calculate_daily_returns(values)
    if returns.size < 2:
        return 0.0
    return _annualized_volatility(returns) * 100.0


def calculate_sharpe_ratio(
    annualized_return: float,
    annualized_volatility: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE / 100.0,
) -> float:
    """
    Sharpe ratio from annualized figures (all decimals).

    Returns 0 when volatility is zero.
    """
    if annualized_volatility == 0:
        return 0.0
    return (annualized_return - risk_free_rate) / annualized_volatility


def calculate_sharpe_from_values(
    values: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Sharpe ratio computed directly from a value series.

    Args:
        values: Price or portfolio value series
        risk_free_rate: Annual risk-free rate in percent (2 = 2%)

    Returns:
        Sharpe ratio; 0 with fewer than two returns or zero volatility
    """
    if len(values) < 2:
        return 0.0

    returns = calculate_daily_returns(values)
    if returns.size < 2:
        return 0.0

    annualized_return = float(np.mean(returns)) * TRADING_DAYS_YEAR
    annualized_vol = _annualized_volatility(returns)

    return calculate_sharpe_ratio(annualized_return, annualized_vol, risk_free_rate / 100.0)


# =============================================================================
# Drawdown Analysis
# =============================================================================

def calculate_max_drawdown(values: Sequence[Tuple[date, float]]) -> DrawdownResult:
    """
    Maximum peak-to-trough decline of a dated value series.

    Single forward pass over the series tracking the running peak. The peak
    and trough dates identify the worst drawdown encountered, and the full
    drawdown series (percent) is returned for charting.

    Args:
        values: (date, value) pairs in ascending date order

    Returns:
        DrawdownResult with percentages and dates
    """
    if not values:
        return DrawdownResult(max_drawdown=0.0)

    first_date, peak = values[0]
    peak_date = first_date
    max_drawdown = 0.0
    max_peak_date = first_date
    max_trough_date = first_date
    drawdown = 0.0

    series: List[DrawdownPoint] = []
    for day, value in values:
        if value > peak:
            peak = value
            peak_date = day

        # No drawdown can be measured before the first positive value
        drawdown = (peak - value) / peak if peak > 0 else 0.0
        series.append(DrawdownPoint(date=day, drawdown=drawdown * 100.0))

        if drawdown > max_drawdown:
            max_drawdown = drawdown
            max_peak_date = peak_date
            max_trough_date = day

    return DrawdownResult(
        max_drawdown=max_drawdown * 100.0,
        max_drawdown_peak_date=max_peak_date,
        max_drawdown_trough_date=max_trough_date,
        current_drawdown=drawdown * 100.0,
        drawdown_series=series,
    )


# =============================================================================
# DCA-Specific Metrics
# =============================================================================

def calculate_average_purchase_price(transactions: Sequence[DcaTransaction]) -> float:
    """Cost basis per share: total invested / final accumulated shares."""
    if not transactions:
        return 0.0
    shares = transactions[-1].accumulated_shares
    if shares == 0:
        return 0.0
    total_invested = sum(tx.invested_amount for tx in transactions)
    return total_invested / shares


def calculate_monthly_returns(transactions: Sequence[DcaTransaction]) -> List[MonthlyReturn]:
    """
    Portfolio value change per calendar month of the ledger.

    A month's return compares its last transaction value with the last value
    of the previous month (the first transaction value for the first month).
    Months measured against a zero value are left out.
    """
    if len(transactions) < 2:
        return []

    monthly: List[MonthlyReturn] = []

    def _close_month(month: str, base: float, value: float) -> None:
        if base > 0:
            monthly.append(MonthlyReturn(date=month, return_pct=(value - base) / base * 100.0))
        else:
            logger.debug(f"Skipping month {month}: no portfolio value to compare against")

    prev_month_value = transactions[0].portfolio_value
    current_month = transactions[0].date.strftime("%Y-%m")

    for i in range(1, len(transactions)):
        tx_month = transactions[i].date.strftime("%Y-%m")
        if tx_month != current_month:
            month_close = transactions[i - 1].portfolio_value
            _close_month(current_month, prev_month_value, month_close)
            prev_month_value = month_close
            current_month = tx_month

    _close_month(current_month, prev_month_value, transactions[-1].portfolio_value)
    return monthly


def calculate_best_worst_months(
    transactions: Sequence[DcaTransaction],
) -> Tuple[MonthlyReturn, MonthlyReturn]:
    """
    Best and worst calendar month of the ledger.

    Ties resolve through a stable descending sort: the earliest month wins
    "best", the latest tied month is reported as "worst".
    """
    monthly = calculate_monthly_returns(transactions)
    if not monthly:
        empty = MonthlyReturn(date="", return_pct=0.0)
        return empty, empty

    ranked = sorted(monthly, key=lambda m: m.return_pct, reverse=True)
    return ranked[0], ranked[-1]
