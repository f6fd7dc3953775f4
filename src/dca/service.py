"""DcaBacktestService - orchestrates a DCA backtest from fetch to summary."""

import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from src.market_data.price_cache import fetch_with_cache
from src.market_data.prices import fetch_price_history, fetch_vix_history, is_crypto

from .engine import build_ledger
from .enrichment import build_market_data, compute_lookback_days
from .models import BacktestRequest, BacktestResult, PortfolioEntry, PricePoint
from .summary import build_summary

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str, date, Optional[date]], List[PricePoint]]
VixFetcher = Callable[[date, Optional[date]], Dict[date, float]]

DATA_SOURCE = "yahoo"


class DcaBacktestService:
    """Run Smart DCA backtests.

    This service:
    1. Fetches daily prices including an indicator warm-up lookback
    2. Enriches the requested window with SMA, weekly RSI and VIX
    3. Simulates the DCA plan (or replays the imported portfolio)
    4. Summarizes the ledger
    """

    def __init__(
        self,
        price_fetcher: PriceFetcher = fetch_price_history,
        vix_fetcher: VixFetcher = fetch_vix_history,
        session: Optional[Session] = None,
    ):
        """
        Initialize DcaBacktestService.

        Args:
            price_fetcher: Callable (ticker, start, end) -> daily PricePoints
            vix_fetcher: Callable (start, end) -> {date: VIX close}
            session: Optional SQLAlchemy session enabling the price cache
        """
        self.price_fetcher = price_fetcher
        self.vix_fetcher = vix_fetcher
        self.session = session

    def run(
        self,
        request: BacktestRequest,
        portfolio: Optional[Sequence[PortfolioEntry]] = None,
    ) -> BacktestResult:
        """
        Run one backtest.

        Args:
            request: Ticker, window and rule configuration
            portfolio: Imported ledger, replayed when request.use_portfolio is set

        Returns:
            BacktestResult with market data, ledger, summary and drawdowns

        Raises:
            ValueError: If no price data is found or no transaction is generated
        """
        rules = request.rules
        lookback = compute_lookback_days(rules.indicator_timeframe, is_crypto(request.ticker))
        history_start = request.start_date - timedelta(days=lookback)

        logger.info(
            f"Starting backtest: {request.ticker} from {request.start_date} "
            f"(history from {history_start}, {rules.frequency.value} x {rules.base_amount:g})"
        )

        all_prices = self._fetch_prices(request.ticker, history_start, request.end_date)
        if not all_prices:
            raise ValueError(f"No data found for {request.ticker}")

        vix_by_date = self.vix_fetcher(request.start_date, request.end_date) if rules.use_vix else {}

        market_data = build_market_data(
            all_prices,
            request.start_date,
            rules.indicator_timeframe,
            vix_by_date,
        )
        if not market_data:
            raise ValueError(f"No data found for {request.ticker} since {request.start_date}")

        use_portfolio = request.use_portfolio and bool(portfolio)
        if request.use_portfolio and not portfolio:
            logger.warning("Portfolio mode requested but the ledger is empty, simulating instead")

        transactions = build_ledger(market_data, rules, portfolio if use_portfolio else None)
        summary, drawdown_series = build_summary(transactions, data_source=DATA_SOURCE)

        return BacktestResult(
            ticker=request.ticker.upper(),
            data_source=DATA_SOURCE,
            market_data=market_data,
            transactions=transactions,
            summary=summary,
            drawdown_series=drawdown_series,
        )

    def _fetch_prices(
        self,
        ticker: str,
        start: date,
        end: Optional[date],
    ) -> List[PricePoint]:
        if self.session is not None:
            return fetch_with_cache(self.session, ticker, start, end, self.price_fetcher)
        return self.price_fetcher(ticker, start, end)
