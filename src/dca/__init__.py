"""DCA module - Smart Dollar-Cost-Averaging backtest engine."""

from .models import (
    DcaExtendedSummary,
    DcaFrequency,
    DcaTransaction,
    IndicatorTimeframe,
    MarketDataPoint,
    PortfolioEntry,
    PricePoint,
    RuleConfig,
)
from .engine import build_ledger, replay_portfolio, simulate_dca
from .enrichment import build_market_data, compute_lookback_days
from .summary import build_summary

__all__ = [
    "DcaExtendedSummary",
    "DcaFrequency",
    "DcaTransaction",
    "IndicatorTimeframe",
    "MarketDataPoint",
    "PortfolioEntry",
    "PricePoint",
    "RuleConfig",
    "build_ledger",
    "replay_portfolio",
    "simulate_dca",
    "build_market_data",
    "compute_lookback_days",
    "build_summary",
]
