"""XIRR (extended internal rate of return) for irregular cash flows."""

import logging
from typing import List, Sequence

import numpy as np

from src.config.settings import (
    DAYS_PER_YEAR,
    XIRR_MAX_ITERATIONS,
    XIRR_MAX_RATE,
    XIRR_MIN_DERIVATIVE,
    XIRR_MIN_RATE,
    XIRR_TOLERANCE,
)

from ..models import CashFlow, DcaTransaction

logger = logging.getLogger(__name__)


def calculate_xirr(cash_flows: Sequence[CashFlow], guess: float = 0.1) -> float:
    """
    Annualized rate r solving sum(CF_i / (1 + r) ^ t_i) = 0.

    t_i is the Actual/365.25 year fraction since the earliest cash flow.
    Solved with Newton-Raphson; the rate is clamped to [-99%, 1000%] after
    every step. When the method does not converge (or the derivative
    flattens out) the last estimate is returned.

    Args:
        cash_flows: Dated flows, negative = investment, positive = proceeds
        guess: Starting rate (decimal)

    Returns:
        XIRR in percent, 0 with fewer than two cash flows or without both
        an outflow and an inflow
    """
    if len(cash_flows) < 2:
        return 0.0

    # No root exists unless money goes both in and out
    if not any(cf.amount < 0 for cf in cash_flows) or not any(cf.amount > 0 for cf in cash_flows):
        return 0.0

    first = min(cf.date for cf in cash_flows)
    years = np.array([(cf.date - first).days / DAYS_PER_YEAR for cf in cash_flows])
    amounts = np.array([cf.amount for cf in cash_flows], dtype=float)

    rate = guess
    for iteration in range(XIRR_MAX_ITERATIONS):
        factors = np.power(1.0 + rate, years)
        npv = float(np.sum(amounts / factors))
        dnpv = float(-np.sum(years * amounts / (factors * (1.0 + rate))))

        if abs(dnpv) < XIRR_MIN_DERIVATIVE:
            logger.debug(f"XIRR derivative vanished at iteration {iteration}, rate={rate:.6f}")
            break

        new_rate = rate - npv / dnpv
        converged = abs(new_rate - rate) < XIRR_TOLERANCE

        rate = min(max(new_rate, XIRR_MIN_RATE), XIRR_MAX_RATE)
        if converged:
            return rate * 100.0
    else:
        logger.debug(f"XIRR did not converge after {XIRR_MAX_ITERATIONS} iterations")

    return rate * 100.0


def build_cash_flows(
    transactions: Sequence[DcaTransaction],
    final_value: float,
) -> List[CashFlow]:
    """
    Cash flows of a ledger for XIRR.

    Every transaction is an outflow of its invested amount; the final
    portfolio value is a single inflow on the last transaction date.
    """
    flows = [CashFlow(date=tx.date, amount=-tx.invested_amount) for tx in transactions]
    if transactions:
        flows.append(CashFlow(date=transactions[-1].date, amount=final_value))
    return flows
