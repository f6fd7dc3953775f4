"""Pydantic models for the DCA backtest module."""

from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class DcaFrequency(str, Enum):
    """How often the recurring investment is scheduled."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class IndicatorTimeframe(str, Enum):
    """Granularity the moving averages are computed on."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PricePoint(BaseModel):
    """Closing price of one trading day."""

    date: date
    price: float = Field(gt=0)

    class Config:
        """Pydantic config."""

        frozen = True


class MarketDataPoint(PricePoint):
    """Daily price enriched with the indicators the Smart DCA rules read."""

    sma20: Optional[float] = None
    sma50: Optional[float] = None
    sma100: Optional[float] = None
    sma200: Optional[float] = None
    rsi_weekly: Optional[float] = Field(default=None, ge=0, le=100)
    vix: Optional[float] = Field(default=None, gt=0)

    def sma(self, window: int) -> Optional[float]:
        return getattr(self, f"sma{window}")


class RuleConfig(BaseModel):
    """Configuration snapshot for one simulation run."""

    frequency: DcaFrequency = DcaFrequency.MONTHLY
    base_amount: float = Field(default=100.0, gt=0, description="Recurring contribution")

    use_strict: bool = Field(default=False, description="Plain DCA, every rule disabled")
    use_sma20: bool = False
    use_sma50: bool = False
    use_sma100: bool = True
    use_sma200: bool = True
    use_rsi: bool = Field(default=False, description="Skip when weekly RSI > 70, deploy savings < 30")
    use_vix: bool = False
    use_sell_in_may: bool = Field(
        default=False,
        description="Skip May-August and redistribute the savings over September-April"
    )

    sma20_multiplier: float = Field(default=2.0, ge=1)
    sma50_multiplier: float = Field(default=2.0, ge=1)
    sma100_multiplier: float = Field(default=2.0, ge=1)
    sma200_multiplier: float = Field(default=2.0, ge=1)
    vix_multiplier: float = Field(default=3.0, ge=1)
    vix_threshold: float = Field(default=40.0, description="VIX level that triggers the boost")

    indicator_timeframe: IndicatorTimeframe = IndicatorTimeframe.DAILY

    class Config:
        """Pydantic config."""

        frozen = True

    def sma_rules(self) -> List[Tuple[int, bool, float]]:
        """(window, enabled, multiplier) for every SMA rule, shortest window first."""
        return [
            (20, self.use_sma20, self.sma20_multiplier),
            (50, self.use_sma50, self.sma50_multiplier),
            (100, self.use_sma100, self.sma100_multiplier),
            (200, self.use_sma200, self.sma200_multiplier),
        ]


class DcaTransaction(BaseModel):
    """One scheduled purchase (or skip) of the ledger."""

    date: date
    price: float
    invested_amount: float = Field(ge=0, description="0 means the date was skipped")
    shares_bought: float = Field(ge=0)
    accumulated_shares: float = Field(ge=0, description="Running sum of shares_bought")
    portfolio_value: float = Field(description="accumulated_shares * price")
    multiplier_applied: float = Field(description="0 = skip, 1 = baseline, >1 = boosted")
    reason: str = ""


class PortfolioEntry(BaseModel):
    """A purchase imported from a real brokerage ledger."""

    date: date
    quantity: float
    unit_price: float
    invested_amount: float
    fees: float = 0.0


class CashFlow(BaseModel):
    """Dated cash flow; negative amounts are investments."""

    date: date
    amount: float


class DrawdownPoint(BaseModel):
    date: date
    drawdown: float = Field(description="Decline from running peak, in percent")


class DrawdownResult(BaseModel):
    """Maximum drawdown analysis of a value series."""

    max_drawdown: float = Field(description="Largest peak-to-trough decline, in percent")
    max_drawdown_peak_date: Optional[date] = None
    max_drawdown_trough_date: Optional[date] = None
    current_drawdown: float = 0.0
    drawdown_series: List[DrawdownPoint] = Field(default_factory=list)


class MonthlyReturn(BaseModel):
    date: str = Field(description="Calendar month as YYYY-MM ('' when unavailable)")
    return_pct: float = Field(serialization_alias="return")


class DcaExtendedSummary(BaseModel):
    """Performance statistics of a finished ledger."""

    total_invested: float
    current_value: float
    profit_percent: float
    cagr: float
    shares: float

    xirr: float
    sharpe_ratio: float
    max_drawdown: float
    max_drawdown_peak_date: Optional[date] = None
    max_drawdown_trough_date: Optional[date] = None
    volatility: float
    avg_buy_price: float
    best_month: MonthlyReturn
    worst_month: MonthlyReturn
    data_source: str = "yahoo"


class BacktestRequest(BaseModel):
    """Everything needed to run one backtest end to end."""

    ticker: str
    start_date: date
    end_date: Optional[date] = None
    rules: RuleConfig = Field(default_factory=RuleConfig)
    use_portfolio: bool = Field(
        default=False,
        description="Replay the imported portfolio ledger instead of simulating"
    )

    class Config:
        """Pydantic config."""

        frozen = True


class BacktestResult(BaseModel):
    """Output of a backtest run."""

    ticker: str
    data_source: str
    market_data: List[MarketDataPoint] = Field(default_factory=list)
    transactions: List[DcaTransaction] = Field(default_factory=list)
    summary: DcaExtendedSummary
    drawdown_series: List[DrawdownPoint] = Field(default_factory=list)
