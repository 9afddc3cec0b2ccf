"""Shared pytest fixtures for the ETF Tracker test suite.

Provides a throwaway SQLite store, a fixed "today" and an in-memory price
client.  Nothing here touches the network.
"""

from datetime import date, timedelta

import pytest

from etf_tracker.models import PriceSeries
from etf_tracker.store.transactions import TransactionStore

TODAY = date(2024, 6, 10)


class FakePriceClient:
    """Stands in for PriceSourceClient with canned series and quotes."""

    def __init__(self, histories=None, prices=None, fail=()):
        self.histories = histories or {}
        self.prices = prices or {}
        self.fail = set(fail)
        self.history_calls = []
        self.price_calls = []

    def get_historical_series(self, ticker, from_date, to_date):
        self.history_calls.append((ticker, from_date, to_date))
        if ticker in self.fail:
            raise RuntimeError(f"upstream error for {ticker}")
        series = self.histories.get(ticker)
        if series is None:
            return None
        pairs = [(d, v) for d, v in zip(series.dates, series.values) if from_date <= d <= to_date]
        return PriceSeries(ticker, [d for d, _ in pairs], [v for _, v in pairs])

    def get_current_price(self, ticker):
        self.price_calls.append(ticker)
        if ticker in self.fail:
            raise RuntimeError(f"upstream error for {ticker}")
        return self.prices.get(ticker)


def daily_series(ticker, start, values):
    """Consecutive calendar-day series starting at *start*."""
    dates = [start + timedelta(days=i) for i in range(len(values))]
    return PriceSeries(ticker, dates, [float(v) for v in values])


# ---------------------------------------------------------------------------
# 1. Store fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path):
    """Empty transaction store backed by a temporary SQLite file."""
    return TransactionStore(tmp_path / "portfolio.db")


@pytest.fixture
def portfolio_id(store):
    return store.create_portfolio("Test", "fixture portfolio")


# ---------------------------------------------------------------------------
# 2. Clock / price fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_client():
    return FakePriceClient
