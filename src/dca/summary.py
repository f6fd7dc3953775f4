"""Aggregate a finished ledger into the extended summary."""

import logging
from typing import List, Sequence, Tuple

from src.config.settings import DAYS_PER_YEAR, DEFAULT_RISK_FREE_RATE

from .analysis import (
    build_cash_flows,
    calculate_average_purchase_price,
    calculate_best_worst_months,
    calculate_cagr,
    calculate_max_drawdown,
    calculate_sharpe_from_values,
    calculate_volatility,
    calculate_xirr,
)
from .models import DcaExtendedSummary, DcaTransaction, DrawdownPoint

logger = logging.getLogger(__name__)


def build_summary(
    transactions: Sequence[DcaTransaction],
    data_source: str = "yahoo",
) -> Tuple[DcaExtendedSummary, List[DrawdownPoint]]:
    """
    Compute the performance statistics of a ledger.

    Drawdown, volatility and Sharpe are measured on the portfolio value
    series, not on the raw price series.

    Args:
        transactions: Finished ledger in date order
        data_source: Provider label carried into the summary

    Returns:
        Tuple of (summary, drawdown series for charting)

    Raises:
        ValueError: If the ledger is empty
    """
    if not transactions:
        raise ValueError("No transaction generated: cannot summarize an empty ledger")

    last = transactions[-1]
    total_invested = sum(tx.invested_amount for tx in transactions)
    current_value = last.portfolio_value
    profit_percent = (
        (current_value - total_invested) / total_invested * 100.0 if total_invested > 0 else 0.0
    )

    years = (last.date - transactions[0].date).days / DAYS_PER_YEAR
    cagr = calculate_cagr(total_invested, current_value, years)
    xirr = calculate_xirr(build_cash_flows(transactions, current_value))

    drawdown = calculate_max_drawdown([(tx.date, tx.portfolio_value) for tx in transactions])
    values = [tx.portfolio_value for tx in transactions]
    best, worst = calculate_best_worst_months(transactions)

    summary = DcaExtendedSummary(
        total_invested=total_invested,
        current_value=current_value,
        profit_percent=profit_percent,
        cagr=cagr,
        shares=last.accumulated_shares,
        xirr=xirr,
        sharpe_ratio=calculate_sharpe_from_values(values, DEFAULT_RISK_FREE_RATE),
        max_drawdown=drawdown.max_drawdown,
        max_drawdown_peak_date=drawdown.max_drawdown_peak_date,
        max_drawdown_trough_date=drawdown.max_drawdown_trough_date,
        volatility=calculate_volatility(values),
        avg_buy_price=calculate_average_purchase_price(transactions),
        best_month=best,
        worst_month=worst,
        data_source=data_source,
    )

    logger.info(
        f"Summary: invested {total_invested:.2f}, value {current_value:.2f} "
        f"({profit_percent:+.2f}%), XIRR {xirr:.2f}%, max drawdown {drawdown.max_drawdown:.2f}%"
    )
    return summary, drawdown.drawdown_series
