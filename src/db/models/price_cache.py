"""Daily close cache shared by every backtest run."""

from sqlalchemy import Column, String, Date, Float, DateTime, Index, func
from ..base import Base


class PriceCache(Base):
    """One cached daily close per (ticker, date).

    Keyed on the upper-cased user ticker, not the resolved Yahoo symbol.
    """
    __tablename__ = "price_cache"

    ticker = Column(String(20), primary_key=True)
    price_date = Column(Date, primary_key=True)
    close_price = Column(Float, nullable=False)

    fetched_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    source = Column(String(50), nullable=False, default="yfinance")

    __table_args__ = (
        Index('idx_price_cache_ticker_date', 'ticker', 'price_date'),
    )

    def __repr__(self) -> str:
        return f"<PriceCache {self.ticker} {self.price_date} {self.close_price}>"
