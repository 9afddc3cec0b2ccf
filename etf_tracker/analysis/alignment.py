"""Time-series alignment - merge per-ticker price histories into one
portfolio value curve on a common calendar axis.

For every axis date the portfolio value is the sum over tickers of
(shares held as of that date) x (close on that date).  A ticker without a
close on a given date is left out of that date's sum; prices are never
interpolated or carried forward.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

import numpy as np
import pandas as pd

from etf_tracker.config import Analytics, Fetch
from etf_tracker.data_sources.batch import fetch_current_prices, fetch_histories
from etf_tracker.models import AlignedSeries, PriceSeries, Transaction, local_today
from etf_tracker.analysis.simulation import simulate
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("alignment")


def _price_frame(series_by_ticker: dict[str, PriceSeries]) -> pd.DataFrame:
    """One column per ticker, indexed by the sorted union of all dates."""
    columns = {}
    for ticker, s in series_by_ticker.items():
        if s.empty:
            continue
        col = pd.Series(s.values, index=pd.Index(s.dates), dtype=float)
        columns[ticker] = col[~col.index.duplicated(keep="last")]
    if not columns:
        return pd.DataFrame()
    return pd.concat(columns, axis=1).sort_index()


def _holdings_frame(transactions: list[Transaction], axis: list[date], tickers: list[str]) -> pd.DataFrame:
    """Shares held per ticker at each axis date (buys on or before the date)."""
    held = pd.DataFrame(0.0, index=pd.Index(axis), columns=tickers)
    days = np.array(axis, dtype=object)
    for tx in transactions:
        if tx.ticker not in held.columns:
            continue
        held.loc[days >= tx.buy_date, tx.ticker] += tx.shares
    return held


def _invested_by_date(transactions: list[Transaction], axis: list[date]) -> list[float]:
    return [
        float(sum(tx.cost for tx in transactions if tx.buy_date <= d))
        for d in axis
    ]


class TimeSeriesAligner:
    """Build a portfolio's historical value and invested-capital curves."""

    def __init__(
        self,
        store,
        client,
        today: Callable[[], date] = local_today,
        timeout: float = Fetch.JOIN_TIMEOUT,
        max_workers: int = Fetch.MAX_WORKERS,
    ):
        self.store = store
        self.client = client
        self.today = today
        self.timeout = timeout
        self.max_workers = max_workers

    def resolve_window(self, portfolio_id: int, requested_days: int) -> int:
        """Clamp a requested window; anything past a year is 'MAX' mode.

        MAX mode reaches back to the first purchase (plus padding) and is
        capped at the global maximum.
        """
        if requested_days <= Analytics.MAX_MODE_THRESHOLD:
            return min(max(Analytics.MIN_DAYS, requested_days), Analytics.MAX_MODE_THRESHOLD)

        first_buy = self.store.get_first_buy_date(portfolio_id)
        if first_buy is None:
            return Analytics.MAX_DAYS
        since_first = (self.today() - first_buy).days
        return min(max(since_first + Analytics.MAX_MODE_PADDING, requested_days), Analytics.MAX_DAYS)

    def align(self, portfolio_id: int, days: int) -> AlignedSeries:
        days = self.resolve_window(portfolio_id, days)
        transactions = self.store.get_raw_transactions(portfolio_id)
        if not transactions:
            return AlignedSeries()

        positions = {p.ticker: p for p in self.store.get_aggregated_positions(portfolio_id)}
        tickers = sorted(positions)
        today = self.today()
        from_date = today - timedelta(days=days)

        logger.info("Aligning portfolio %d over %d days (%d tickers)", portfolio_id, days, len(tickers))
        fetched = fetch_histories(
            self.client, tickers, from_date, today,
            timeout=self.timeout, max_workers=self.max_workers,
        )

        series_by_ticker: dict[str, PriceSeries] = {}
        for ticker in tickers:
            result = fetched.get(ticker)
            if result is not None and result.ok:
                series_by_ticker[ticker] = result.value
            else:
                reason = result.error if result is not None else "not fetched"
                logger.warning("Using simulated series for %s (%s)", ticker, reason)
                series_by_ticker[ticker] = simulate(
                    ticker, days, positions[ticker].weighted_avg_buy_price, today,
                )

        frame = _price_frame(series_by_ticker)
        axis = list(frame.index)
        held = _holdings_frame(transactions, axis, tickers)
        # NaN prices drop out of the row sum
        values = (frame.reindex(columns=tickers) * held).sum(axis=1, skipna=True)

        aligned = AlignedSeries(
            dates=axis,
            values=[float(v) for v in values],
            invested_values=_invested_by_date(transactions, axis),
            sources={t: s.source for t, s in series_by_ticker.items()},
        )
        return self._append_anchor(aligned, transactions, tickers, today)

    def _append_anchor(
        self,
        aligned: AlignedSeries,
        transactions: list[Transaction],
        tickers: list[str],
        today: date,
    ) -> AlignedSeries:
        """Close the curve on today's live valuation when history lags."""
        if aligned.dates and aligned.dates[-1] >= today:
            return aligned

        prices = fetch_current_prices(
            self.client, tickers, timeout=self.timeout, max_workers=self.max_workers,
        )
        known = {t: p for t, p in prices.items() if p is not None}
        if not known:
            logger.warning("No current prices available, anchor point for %s skipped", today)
            return aligned

        shares_today: dict[str, float] = {}
        for tx in transactions:
            if tx.buy_date <= today:
                shares_today[tx.ticker] = shares_today.get(tx.ticker, 0.0) + tx.shares

        value = sum(shares_today.get(t, 0.0) * p for t, p in known.items())
        invested = sum(tx.cost for tx in transactions if tx.buy_date <= today)

        aligned.dates.append(today)
        aligned.values.append(float(value))
        aligned.invested_values.append(float(invested))
        aligned.anchor_appended = True
        return aligned
