"""CSV export of DCA ledgers."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

from .models import DcaTransaction

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "Date",
    "Price",
    "Invested Amount",
    "Shares Bought",
    "Accumulated Shares",
    "Portfolio Value",
    "Multiplier",
    "Reason",
]


def transactions_to_frame(transactions: Sequence[DcaTransaction]) -> pd.DataFrame:
    """Ledger as a DataFrame with display rounding (2 decimals, 4 for shares)."""
    rows = [
        {
            "Date": tx.date.isoformat(),
            "Price": round(tx.price, 2),
            "Invested Amount": round(tx.invested_amount, 2),
            "Shares Bought": round(tx.shares_bought, 4),
            "Accumulated Shares": round(tx.accumulated_shares, 4),
            "Portfolio Value": round(tx.portfolio_value, 2),
            "Multiplier": tx.multiplier_applied,
            "Reason": tx.reason,
        }
        for tx in transactions
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def default_export_filename(ticker: str, on: Optional[date] = None) -> str:
    """backtest_<TICKER>_<YYYY-MM-DD>.csv"""
    on = on or date.today()
    return f"backtest_{ticker.upper()}_{on.isoformat()}.csv"


def export_transactions_csv(
    transactions: Sequence[DcaTransaction],
    path: Optional[Union[str, Path]] = None,
) -> str:
    """
    Serialize a ledger to CSV.

    Args:
        transactions: Ledger to export
        path: Optional file to write; the CSV text is returned either way

    Returns:
        CSV content
    """
    content = transactions_to_frame(transactions).to_csv(index=False)
    if path is not None:
        Path(path).write_text(content, encoding="utf-8")
        logger.info(f"Exported {len(transactions)} transactions to {path}")
    return content
