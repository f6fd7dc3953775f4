"""PortfolioRepository - read and edit the imported brokerage ledger."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.db.models.portfolio_transaction import PortfolioTransaction
from src.dca.models import PortfolioEntry

logger = logging.getLogger(__name__)


def _total_cost(quantity: float, unit_price: float, fees: float) -> float:
    return quantity * unit_price + fees


class PortfolioRepository:
    """
    Access to the portfolio ledger table.

    The ledger feeds the backtest's import mode: each row becomes a
    PortfolioEntry whose invested amount is the recorded total cost.
    """

    def __init__(self, session: Session):
        """
        Initialize PortfolioRepository.

        Args:
            session: SQLAlchemy session for database access
        """
        self.session = session

    def list_entries(self, ticker: Optional[str] = None) -> List[PortfolioEntry]:
        """Ledger entries in date order, optionally for a single ticker."""
        query = self.session.query(PortfolioTransaction)
        if ticker:
            query = query.filter(PortfolioTransaction.ticker == ticker.upper())
        rows = query.order_by(PortfolioTransaction.date, PortfolioTransaction.id).all()

        return [
            PortfolioEntry(
                date=row.date,
                quantity=row.quantity,
                unit_price=row.unit_price,
                invested_amount=row.total_cost,
                fees=row.fees,
            )
            for row in rows
        ]

    def add_entry(
        self,
        entry_date: date,
        quantity: float,
        unit_price: float,
        fees: float = 0.0,
        ticker: str = "UNKNOWN",
    ) -> int:
        """
        Record a purchase.

        Returns:
            Id of the new ledger row

        Raises:
            ValueError: If quantity or unit price is not positive
        """
        if quantity <= 0 or unit_price <= 0:
            raise ValueError("Quantity and unit price must be positive")

        row = PortfolioTransaction(
            date=entry_date,
            action="BUY",
            ticker=ticker.upper(),
            quantity=quantity,
            unit_price=unit_price,
            fees=fees,
            total_cost=_total_cost(quantity, unit_price, fees),
        )
        self.session.add(row)
        self.session.commit()
        logger.info(f"Added {quantity} {row.ticker} @ {unit_price} on {entry_date}")
        return row.id

    def update_entry(
        self,
        entry_id: int,
        quantity: Optional[float] = None,
        unit_price: Optional[float] = None,
        fees: Optional[float] = None,
    ) -> PortfolioEntry:
        """
        Edit a purchase and recompute its total cost.

        Raises:
            ValueError: If no field is given or the entry does not exist
        """
        if quantity is None and unit_price is None and fees is None:
            raise ValueError("Provide at least one field to update: quantity, unit_price, fees")

        row = self.session.get(PortfolioTransaction, entry_id)
        if row is None:
            raise ValueError(f"Transaction not found: {entry_id}")

        if quantity is not None:
            row.quantity = quantity
        if unit_price is not None:
            row.unit_price = unit_price
        if fees is not None:
            row.fees = fees
        row.total_cost = _total_cost(row.quantity, row.unit_price, row.fees)
        self.session.commit()

        return PortfolioEntry(
            date=row.date,
            quantity=row.quantity,
            unit_price=row.unit_price,
            invested_amount=row.total_cost,
            fees=row.fees,
        )

    def set_ticker(self, ticker: str) -> int:
        """Assign one ticker to every ledger row. Returns the number of rows updated."""
        updated = self.session.query(PortfolioTransaction).update(
            {PortfolioTransaction.ticker: ticker.upper()}
        )
        self.session.commit()
        logger.info(f"Updated {updated} transactions with ticker {ticker.upper()}")
        return updated

    def summary(self) -> List[Dict[str, Any]]:
        """Per-ticker totals of the ledger."""
        rows = (
            self.session.query(
                PortfolioTransaction.ticker,
                func.count(PortfolioTransaction.id),
                func.sum(PortfolioTransaction.quantity),
                func.sum(PortfolioTransaction.total_cost),
                func.sum(PortfolioTransaction.fees),
                func.min(PortfolioTransaction.date),
                func.max(PortfolioTransaction.date),
            )
            .group_by(PortfolioTransaction.ticker)
            .all()
        )

        result = []
        for ticker, count, shares, invested, fees, first, last in rows:
            result.append({
                "ticker": ticker,
                "transaction_count": count,
                "total_shares": float(shares or 0.0),
                "total_invested": float(invested or 0.0),
                "total_fees": float(fees or 0.0),
                "avg_purchase_price": float(invested / shares) if shares else 0.0,
                "first_date": first,
                "last_date": last,
            })
        return result
