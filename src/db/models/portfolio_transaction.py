"""Portfolio ledger model: real purchases imported into backtests."""

from sqlalchemy import Column, Integer, String, Date, Float, DateTime, Index, func
from ..base import Base


class PortfolioTransaction(Base):
    """A purchase recorded in the brokerage portfolio.

    ``total_cost`` is quantity * unit_price + fees and is what the backtest
    treats as the invested amount.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    action = Column(String(20), nullable=False, default="BUY")
    ticker = Column(String(20), nullable=False, default="UNKNOWN")
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    fees = Column(Float, nullable=False, default=0.0)
    total_cost = Column(Float, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_transactions_ticker_date', 'ticker', 'date'),
    )
