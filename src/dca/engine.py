"""
DCA simulation engine.

Turns enriched market data and a RuleConfig into a transaction ledger. The
engine is pure: it performs no I/O and every run owns its SimulationState,
so independent runs can execute in parallel.

Rule priority for each scheduled date (earlier rules return early):
1. Strict DCA: invest the base amount, nothing else
2. Sell in May, summer month: skip
3. Debt balancing: waive the base amount while over-spend is outstanding
4. Sell in May, winter month: add the redistributed summer savings
5. Nothing left to invest: skip
6. RSI: skip and save when overbought, deploy savings when oversold
7. SMA-20/50/100/200 fresh downward crossings: boost the multiplier
8. VIX spike since the previous date: boost the multiplier
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from src.config.settings import (
    QUARTER_START_MONTHS,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    SCHEDULE_MAX_DAY_OF_MONTH,
    SMA_WINDOWS,
    SUMMER_MONTHS,
)

from .models import (
    DcaFrequency,
    DcaTransaction,
    MarketDataPoint,
    PortfolioEntry,
    RuleConfig,
)

logger = logging.getLogger(__name__)

PORTFOLIO_IMPORT_REASON = "Portfolio import"


@dataclass
class SimulationState:
    """Mutable per-run state threaded through the scheduled dates."""

    total_shares: float = 0.0
    total_invested: float = 0.0
    budget_debt: float = 0.0
    saved_cash: float = 0.0


@dataclass(frozen=True)
class RulePrecomputation:
    """Lookups derived once from the full daily series before the loop."""

    # window -> date -> was the previous day's price >= its SMA
    prev_above_sma: Dict[int, Dict[date, bool]] = field(default_factory=dict)
    max_vix_since_previous: Dict[date, float] = field(default_factory=dict)
    summer_savings: float = 0.0
    sell_in_may_bonus: float = 0.0


# =============================================================================
# Schedule
# =============================================================================

def is_summer_month(day: date) -> bool:
    return day.month in SUMMER_MONTHS


def select_schedule(
    data: Sequence[MarketDataPoint],
    frequency: DcaFrequency,
) -> List[MarketDataPoint]:
    """
    Pick the investment dates out of the market series.

    - daily: every trading day
    - weekly: every Monday
    - monthly: first trading day of each month falling on day 1-3
    - quarterly: same as monthly, restricted to January/April/July/October
    """
    frequency = DcaFrequency(frequency)
    if frequency == DcaFrequency.DAILY:
        return list(data)
    if frequency == DcaFrequency.WEEKLY:
        return [p for p in data if p.date.weekday() == 0]

    allowed_months = QUARTER_START_MONTHS if frequency == DcaFrequency.QUARTERLY else None
    seen: set = set()
    schedule: List[MarketDataPoint] = []
    for point in data:
        if point.date.day > SCHEDULE_MAX_DAY_OF_MONTH:
            continue
        if allowed_months is not None and point.date.month not in allowed_months:
            continue
        month_key = (point.date.year, point.date.month)
        if month_key in seen:
            continue
        seen.add(month_key)
        schedule.append(point)
    return schedule


# =============================================================================
# Pre-computation
# =============================================================================

def build_prev_above_sma_maps(data: Sequence[MarketDataPoint]) -> Dict[int, Dict[date, bool]]:
    """For every day, whether the previous trading day closed at or above each SMA."""
    maps: Dict[int, Dict[date, bool]] = {window: {} for window in SMA_WINDOWS}
    for prev, today in zip(data, data[1:]):
        for window in SMA_WINDOWS:
            sma = prev.sma(window)
            if sma:
                maps[window][today.date] = prev.price >= sma
    return maps


def build_max_vix_since_previous(
    data: Sequence[MarketDataPoint],
    schedule: Sequence[MarketDataPoint],
) -> Dict[date, float]:
    """
    Highest VIX observed since the previous scheduled date.

    The window runs from the day after the previous scheduled date (or the
    start of the series) up to and including the scheduled date itself.
    """
    scheduled = {p.date for p in schedule}
    result: Dict[date, float] = {}
    running_max = 0.0
    for point in data:
        if point.vix and point.vix > running_max:
            running_max = point.vix
        if point.date in scheduled:
            result[point.date] = running_max
            running_max = 0.0
    return result


def compute_sell_in_may_bonus(
    schedule: Sequence[MarketDataPoint],
    base_amount: float,
) -> Tuple[float, float]:
    """
    Summer savings and the per-date bonus spread over winter dates.

    Returns:
        (total skipped over May-August, bonus added to each Sept-April date)
    """
    summer = sum(1 for p in schedule if is_summer_month(p.date))
    winter = len(schedule) - summer
    summer_savings = summer * base_amount
    bonus = summer_savings / winter if winter > 0 else 0.0
    return summer_savings, bonus


def precompute_rules(
    data: Sequence[MarketDataPoint],
    schedule: Sequence[MarketDataPoint],
    base_amount: float,
) -> RulePrecomputation:
    summer_savings, bonus = compute_sell_in_may_bonus(schedule, base_amount)
    return RulePrecomputation(
        prev_above_sma=build_prev_above_sma_maps(data),
        max_vix_since_previous=build_max_vix_since_previous(data, schedule),
        summer_savings=summer_savings,
        sell_in_may_bonus=bonus,
    )


# =============================================================================
# Per-date evaluation
# =============================================================================

def _record(
    point: MarketDataPoint,
    state: SimulationState,
    invested: float,
    multiplier: float,
    reasons: Sequence[str] = (),
) -> DcaTransaction:
    shares = invested / point.price if invested > 0 else 0.0
    state.total_shares += shares
    state.total_invested += invested
    return DcaTransaction(
        date=point.date,
        price=point.price,
        invested_amount=invested if invested > 0 else 0.0,
        shares_bought=shares,
        accumulated_shares=state.total_shares,
        portfolio_value=state.total_shares * point.price,
        multiplier_applied=multiplier,
        reason=", ".join(reasons),
    )


def evaluate_date(
    point: MarketDataPoint,
    config: RuleConfig,
    rules: RulePrecomputation,
    state: SimulationState,
) -> DcaTransaction:
    """Apply the rule chain to one scheduled date and update ``state``."""
    base_amount = config.base_amount

    if config.use_strict:
        return _record(point, state, base_amount, 1.0)

    summer = is_summer_month(point.date)
    if config.use_sell_in_may and summer:
        return _record(
            point, state, 0.0, 0.0,
            [f"Sell in May (total saved: {rules.summer_savings:.0f})"],
        )

    reasons: List[str] = []

    effective_base = base_amount
    if state.budget_debt >= base_amount:
        state.budget_debt -= base_amount
        effective_base = 0.0
        reasons.append(f"Debt balancing (remaining: {state.budget_debt:.0f})")

    # Summer savings are paid back, not borrowed: they never count as debt
    bonus = 0.0
    if config.use_sell_in_may and rules.sell_in_may_bonus > 0:
        bonus = rules.sell_in_may_bonus
        reasons.append(f"Sell in May bonus +{bonus:.0f}")
    amount = effective_base + bonus

    if amount <= 0:
        return _record(point, state, 0.0, 0.0, reasons)

    if config.use_rsi and point.rsi_weekly:
        if point.rsi_weekly > RSI_OVERBOUGHT:
            state.saved_cash += base_amount
            return _record(
                point, state, 0.0, 0.0,
                [f"RSI {point.rsi_weekly:.0f} > {RSI_OVERBOUGHT:.0f} (saved: {state.saved_cash:.0f})"],
            )
        if point.rsi_weekly < RSI_OVERSOLD and state.saved_cash > 0:
            amount += state.saved_cash
            reasons.append(f"RSI < {RSI_OVERSOLD:.0f} (deployed: {state.saved_cash:.0f})")
            state.saved_cash = 0.0

    multiplier = 1.0
    for window, enabled, window_multiplier in config.sma_rules():
        if not enabled:
            continue
        sma = point.sma(window)
        below_now = bool(sma) and point.price < sma
        # Only a fresh crossing counts, not a continued stay below the average
        was_above = rules.prev_above_sma.get(window, {}).get(point.date, True)
        if below_now and was_above:
            multiplier += window_multiplier - 1
            reasons.append(f"SMA{window} cross x{window_multiplier:g}")

    if config.use_vix:
        max_vix = rules.max_vix_since_previous.get(point.date) or point.vix or 0.0
        if max_vix > config.vix_threshold:
            multiplier += config.vix_multiplier - 1
            reasons.append(
                f"VIX > {config.vix_threshold:g} (max: {max_vix:.0f}) x{config.vix_multiplier:g}"
            )

    final_amount = amount * multiplier
    extra_spent = final_amount - (base_amount + bonus)
    if extra_spent > 0:
        state.budget_debt += extra_spent

    transaction = _record(point, state, final_amount, multiplier, reasons)
    if multiplier > 1:
        logger.debug(f"{point.date}: invested {final_amount:.2f} ({transaction.reason})")
    return transaction


# =============================================================================
# Entry points
# =============================================================================

def simulate_dca(
    data: Sequence[MarketDataPoint],
    config: RuleConfig,
) -> List[DcaTransaction]:
    """
    Simulate a (Smart) DCA plan over the market data.

    Args:
        data: Enriched daily market data of the simulation window, ascending
        config: Rule configuration

    Returns:
        One transaction per scheduled date, in date order

    Raises:
        ValueError: If there is no market data or no date gets scheduled
    """
    if not data:
        raise ValueError("No market data found for the requested period")

    schedule = select_schedule(data, config.frequency)
    rules = precompute_rules(data, schedule, config.base_amount)
    state = SimulationState()

    ledger = [evaluate_date(point, config, rules, state) for point in schedule]
    if not ledger:
        raise ValueError(
            f"No transaction generated for {config.frequency.value} schedule "
            f"between {data[0].date} and {data[-1].date}"
        )

    logger.info(
        f"Simulated {len(ledger)} {config.frequency.value} dates: "
        f"invested {state.total_invested:.2f}, shares {state.total_shares:.4f}, "
        f"outstanding debt {state.budget_debt:.2f}, saved cash {state.saved_cash:.2f}"
    )
    return ledger


def replay_portfolio(
    data: Sequence[MarketDataPoint],
    entries: Sequence[PortfolioEntry],
) -> List[DcaTransaction]:
    """
    Turn an imported brokerage ledger into DCA transactions.

    Entries are trusted as-is; only the running share count and the
    portfolio value are recomputed. Each entry is valued at the market close
    on its date, or the closest earlier one (the first close when the entry
    predates the series). The nearest later close is deliberately never
    used, so an entry is not valued with a price that did not exist yet.

    Raises:
        ValueError: If there is no market data or no entry
    """
    if not data:
        raise ValueError("No market data found for the requested period")
    if not entries:
        raise ValueError("No transaction generated: the portfolio ledger is empty")

    dates = [p.date for p in data]
    total_shares = 0.0
    ledger: List[DcaTransaction] = []
    for entry in sorted(entries, key=lambda e: e.date):
        index = max(bisect_right(dates, entry.date) - 1, 0)
        market = data[index]
        total_shares += entry.quantity
        ledger.append(
            DcaTransaction(
                date=entry.date,
                price=market.price,
                invested_amount=entry.invested_amount,
                shares_bought=entry.quantity,
                accumulated_shares=total_shares,
                portfolio_value=total_shares * market.price,
                multiplier_applied=1.0,
                reason=PORTFOLIO_IMPORT_REASON,
            )
        )

    logger.info(f"Replayed {len(ledger)} portfolio transactions ({total_shares:.4f} shares)")
    return ledger


def build_ledger(
    data: Sequence[MarketDataPoint],
    config: RuleConfig,
    portfolio: Optional[Sequence[PortfolioEntry]] = None,
) -> List[DcaTransaction]:
    """Replay ``portfolio`` when given, otherwise simulate ``config``."""
    if portfolio:
        return replay_portfolio(data, portfolio)
    return simulate_dca(data, config)
