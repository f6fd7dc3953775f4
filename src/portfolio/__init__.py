"""Portfolio module - brokerage ledger used by the backtest import mode."""

from .repository import PortfolioRepository

__all__ = ["PortfolioRepository"]
