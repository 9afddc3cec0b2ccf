"""Portfolio analytics engine - the single entry point used by the API and CLI.

Validates caller input, pulls transactions from the store, fans out price
requests and hands the results to the individual calculators.  Every method
returns a JSON-ready dict (or list) with camelCase keys.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

from etf_tracker.config import Analytics, Fetch
from etf_tracker.data_sources.batch import fetch_histories
from etf_tracker.data_sources.price_source import PriceSourceClient
from etf_tracker.errors import (
    InvalidInputError,
    parse_days,
    parse_portfolio_id,
    parse_risk_free_rate,
    parse_target_allocations,
)
from etf_tracker.models import local_today
from etf_tracker.resolver import normalize_ticker
from etf_tracker.store.transactions import TransactionStore
from etf_tracker.analysis import correlation as corr
from etf_tracker.analysis import rebalance as rebal
from etf_tracker.analysis import risk
from etf_tracker.analysis.alignment import TimeSeriesAligner
from etf_tracker.analysis.valuation import ValuationCalculator
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("engine")

MIN_CORRELATION_TICKERS = "At least 2 ETFs are required for correlation analysis"
NO_CORRELATION_DATA = "Insufficient historical data for correlation analysis"


class PortfolioAnalyticsEngine:
    """Facade over alignment, valuation, risk, correlation and rebalancing."""

    def __init__(
        self,
        store: TransactionStore | None = None,
        client: PriceSourceClient | None = None,
        today: Callable[[], date] = local_today,
        timeout: float = Fetch.JOIN_TIMEOUT,
        max_workers: int = Fetch.MAX_WORKERS,
    ):
        self.store = store or TransactionStore()
        self.client = client or PriceSourceClient()
        self.today = today
        self.timeout = timeout
        self.max_workers = max_workers
        self.aligner = TimeSeriesAligner(self.store, self.client, today=today,
                                         timeout=timeout, max_workers=max_workers)
        self.valuator = ValuationCalculator(self.store, self.client,
                                            timeout=timeout, max_workers=max_workers)

    # ------------------------------------------------------------------
    #  Historical value curve
    # ------------------------------------------------------------------
    def historical(self, portfolio_id, days=None) -> dict:
        pid = parse_portfolio_id(portfolio_id)
        window = self.aligner.resolve_window(pid, parse_days(days, Analytics.HISTORY_DAYS))
        aligned = self.aligner.align(pid, window)
        result = aligned.to_dict()
        result["days"] = window
        result["simulatedTickers"] = aligned.simulated_tickers
        result["anchorAppended"] = aligned.anchor_appended
        return result

    # ------------------------------------------------------------------
    #  Snapshot valuation
    # ------------------------------------------------------------------
    def valuation(self, portfolio_id) -> dict:
        return self.valuator.valuation(parse_portfolio_id(portfolio_id))

    def positions(self, portfolio_id) -> list[dict]:
        return self.valuator.positions(parse_portfolio_id(portfolio_id))

    def purchase_history(self, portfolio_id, ticker) -> list[dict]:
        pid = parse_portfolio_id(portfolio_id)
        t = normalize_ticker(ticker)
        if not t:
            raise InvalidInputError("Ticker is required")
        return self.valuator.purchase_history(pid, t)

    # ------------------------------------------------------------------
    #  Risk
    # ------------------------------------------------------------------
    def volatility(self, portfolio_id, days=None) -> dict:
        pid = parse_portfolio_id(portfolio_id)
        aligned = self.aligner.align(pid, parse_days(days, Analytics.TRADING_DAYS))
        result = risk.volatility_metrics(aligned.values, Analytics.RISK_FREE_RATE)
        result["simulatedTickers"] = aligned.simulated_tickers
        return result

    def risk_metrics(self, portfolio_id, days=None, risk_free_rate=None) -> dict:
        pid = parse_portfolio_id(portfolio_id)
        window = parse_days(days, Analytics.TRADING_DAYS)
        rf = parse_risk_free_rate(risk_free_rate, Analytics.RISK_FREE_RATE)
        aligned = self.aligner.align(pid, window)
        result = risk.risk_metrics(aligned.values, rf)
        result["simulatedTickers"] = aligned.simulated_tickers
        return result

    # ------------------------------------------------------------------
    #  Correlation
    # ------------------------------------------------------------------
    def correlation(self, portfolio_id, days=None) -> dict:
        pid = parse_portfolio_id(portfolio_id)
        window = min(parse_days(days, Analytics.CORRELATION_DAYS), Analytics.MAX_DAYS)

        tickers = self.store.get_distinct_tickers(pid)
        if len(tickers) < 2:
            return {"correlationMatrix": {}, "tickers": [], "message": MIN_CORRELATION_TICKERS}

        today = self.today()
        fetched = fetch_histories(
            self.client, tickers, today - timedelta(days=window), today,
            timeout=self.timeout, max_workers=self.max_workers,
        )
        # Simulated series would only correlate noise, so real data only
        series = {t: r.value for t, r in fetched.items() if r.ok}
        skipped = sorted(set(tickers) - set(series))
        if skipped:
            logger.warning("Correlation for portfolio %d skips %s (no data)", pid, ", ".join(skipped))
        if len(series) < 2:
            return {"correlationMatrix": {}, "tickers": [], "message": NO_CORRELATION_DATA}

        matrix = corr.correlation_matrix(series)
        ordered = list(series)
        return {
            "correlationMatrix": matrix,
            "tickers": ordered,
            "analysis": corr.analyze_matrix(matrix, ordered),
        }

    # ------------------------------------------------------------------
    #  Rebalancing
    # ------------------------------------------------------------------
    def rebalance(self, portfolio_id, target_allocations=None) -> dict:
        pid = parse_portfolio_id(portfolio_id)
        targets = parse_target_allocations(target_allocations)

        snapshot = self.valuator.valuation(pid)
        current = {
            a["ticker"]: a["allocation"]
            for a in snapshot["allocations"]
            if a["allocation"] is not None
        }
        return rebal.recommend(current, snapshot["totalValue"], targets or None)
