#!/usr/bin/env python
"""Run a (Smart) DCA backtest for one ticker.

Usage:
    python scripts/run_dca_backtest.py CW8.PA --start 2023-05-01 --amount 100

This script:
1. Fetches daily prices (with indicator lookback) and VIX from Yahoo Finance
2. Simulates the DCA plan with the selected rules, or replays the portfolio ledger
3. Prints the performance summary and optionally exports the ledger to CSV
"""

import argparse
import logging
import sys
import os
from datetime import date, datetime

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.db.session import SessionLocal, init_db
from src.dca.export import default_export_filename, export_transactions_csv
from src.dca.models import BacktestRequest, DcaFrequency, IndicatorTimeframe, RuleConfig
from src.dca.service import DcaBacktestService
from src.portfolio.repository import PortfolioRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format."""
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Backtest a Dollar-Cost-Averaging plan with optional Smart DCA rules"
    )
    parser.add_argument("ticker", type=str, help="Ticker (e.g. CW8.PA, SPY, BTC)")
    parser.add_argument(
        "--start",
        type=parse_date,
        default=date(2023, 5, 1),
        help="Start date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--end",
        type=parse_date,
        default=None,
        help="End date (YYYY-MM-DD, default: today)",
    )
    parser.add_argument(
        "--frequency",
        choices=[f.value for f in DcaFrequency],
        default=DcaFrequency.MONTHLY.value,
        help="Investment frequency (default: monthly)",
    )
    parser.add_argument("--amount", type=float, default=100.0, help="Base amount per date")
    parser.add_argument(
        "--timeframe",
        choices=[t.value for t in IndicatorTimeframe],
        default=IndicatorTimeframe.DAILY.value,
        help="Timeframe of the SMA indicators (default: daily)",
    )

    rules = parser.add_argument_group("rules")
    rules.add_argument("--strict", action="store_true", help="Plain DCA, ignore every rule")
    rules.add_argument("--sma20", action="store_true", help="Boost on SMA-20 downward cross")
    rules.add_argument("--sma50", action="store_true", help="Boost on SMA-50 downward cross")
    rules.add_argument("--no-sma100", action="store_true", help="Disable the SMA-100 rule")
    rules.add_argument("--no-sma200", action="store_true", help="Disable the SMA-200 rule")
    rules.add_argument("--rsi", action="store_true", help="Weekly RSI save/deploy rule")
    rules.add_argument("--vix", action="store_true", help="Boost when VIX spikes above threshold")
    rules.add_argument("--sell-in-may", action="store_true", help="Skip May-August, invest more Sept-April")
    for window in (20, 50, 100, 200):
        rules.add_argument(
            f"--sma{window}-multiplier", type=float, default=2.0,
            help=f"Multiplier of the SMA-{window} rule (default: 2)",
        )
    rules.add_argument("--vix-multiplier", type=float, default=3.0, help="Multiplier of the VIX rule")
    rules.add_argument("--vix-threshold", type=float, default=40.0, help="VIX threshold (default: 40)")

    parser.add_argument(
        "--portfolio",
        action="store_true",
        help="Replay the portfolio ledger from the database instead of simulating",
    )
    parser.add_argument(
        "--csv",
        type=str,
        nargs="?",
        const="",
        default=None,
        help="Export the ledger to CSV (default file name if no path is given)",
    )
    return parser


def main() -> None:
    """Run the backtest."""
    args = build_parser().parse_args()

    rules = RuleConfig(
        frequency=args.frequency,
        base_amount=args.amount,
        use_strict=args.strict,
        use_sma20=args.sma20,
        use_sma50=args.sma50,
        use_sma100=not args.no_sma100,
        use_sma200=not args.no_sma200,
        use_rsi=args.rsi,
        use_vix=args.vix,
        use_sell_in_may=args.sell_in_may,
        sma20_multiplier=args.sma20_multiplier,
        sma50_multiplier=args.sma50_multiplier,
        sma100_multiplier=args.sma100_multiplier,
        sma200_multiplier=args.sma200_multiplier,
        vix_multiplier=args.vix_multiplier,
        vix_threshold=args.vix_threshold,
        indicator_timeframe=args.timeframe,
    )
    request = BacktestRequest(
        ticker=args.ticker,
        start_date=args.start,
        end_date=args.end,
        rules=rules,
        use_portfolio=args.portfolio,
    )

    logger.info("=" * 60)
    logger.info("DCA BACKTEST CONFIGURATION")
    logger.info("=" * 60)
    logger.info(f"  Ticker:      {request.ticker}")
    logger.info(f"  Date range:  {request.start_date} to {request.end_date or 'today'}")
    logger.info(f"  Plan:        {rules.frequency.value} x {rules.base_amount:g}")
    logger.info(f"  Timeframe:   {rules.indicator_timeframe.value}")
    logger.info(f"  Strict:      {rules.use_strict}")
    logger.info("=" * 60)

    init_db()
    session = SessionLocal()
    try:
        portfolio = None
        if request.use_portfolio:
            portfolio = PortfolioRepository(session).list_entries(request.ticker)

        service = DcaBacktestService(session=session)
        try:
            result = service.run(request, portfolio=portfolio)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

        s = result.summary
        print("\n" + "=" * 60)
        print(f"DCA BACKTEST RESULTS - {result.ticker}")
        print("=" * 60)
        print(f"  Transactions:    {len(result.transactions)}")
        print(f"  Total invested:  {s.total_invested:,.2f}")
        print(f"  Current value:   {s.current_value:,.2f}")
        print(f"  Profit:          {s.profit_percent:+.2f}%")
        print(f"  CAGR:            {s.cagr:+.2f}%")
        print(f"  XIRR:            {s.xirr:+.2f}%")
        print(f"  Shares:          {s.shares:.4f}")
        print(f"  Avg buy price:   {s.avg_buy_price:,.2f}")

        print("\n" + "-" * 60)
        print("RISK")
        print("-" * 60)
        print(f"  Volatility:      {s.volatility:.2f}%")
        print(f"  Sharpe ratio:    {s.sharpe_ratio:.2f}")
        print(f"  Max drawdown:    {s.max_drawdown:.2f}% "
              f"({s.max_drawdown_peak_date} -> {s.max_drawdown_trough_date})")
        if s.best_month.date:
            print(f"  Best month:      {s.best_month.date} ({s.best_month.return_pct:+.2f}%)")
            print(f"  Worst month:     {s.worst_month.date} ({s.worst_month.return_pct:+.2f}%)")

        boosted = [tx for tx in result.transactions if tx.multiplier_applied > 1]
        skipped = [tx for tx in result.transactions if tx.multiplier_applied == 0]
        print(f"\n  Boosted dates:   {len(boosted)}")
        print(f"  Skipped dates:   {len(skipped)}")
        print("=" * 60)

        if args.csv is not None:
            path = args.csv or default_export_filename(result.ticker)
            export_transactions_csv(result.transactions, path)
            print(f"\nLedger exported to {path}")

    finally:
        session.close()


if __name__ == "__main__":
    main()
