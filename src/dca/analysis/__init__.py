"""Performance analysis for DCA ledgers."""

from .metrics import (
    calculate_average_purchase_price,
    calculate_best_worst_months,
    calculate_cagr,
    calculate_daily_returns,
    calculate_max_drawdown,
    calculate_monthly_returns,
    calculate_sharpe_from_values,
    calculate_sharpe_ratio,
    calculate_total_return,
    calculate_volatility,
)
from .xirr import build_cash_flows, calculate_xirr

__all__ = [
    "calculate_average_purchase_price",
    "calculate_best_worst_months",
    "calculate_cagr",
    "calculate_daily_returns",
    "calculate_max_drawdown",
    "calculate_monthly_returns",
    "calculate_sharpe_from_values",
    "calculate_sharpe_ratio",
    "calculate_total_return",
    "calculate_volatility",
    "build_cash_flows",
    "calculate_xirr",
]
