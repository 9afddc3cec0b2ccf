"""Deterministic stand-in price series for tickers with no market data.

The series hovers within +/-10% of the anchor price, with the band
narrowing to zero on the last day so the curve always lands on the anchor.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from etf_tracker.models import PriceSeries
from etf_tracker.resolver import normalize_ticker
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("simulation")


def _pseudo_random(seed: int) -> float:
    """Fractional part of sin(seed) * 10000, always in [0, 1)."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def simulate(ticker: str, days: int, anchor_price: float, today: date) -> PriceSeries:
    """Build a ``days + 1`` point series ending on *today* at *anchor_price*."""
    t = normalize_ticker(ticker)
    days = max(0, int(days))
    char_sum = sum(ord(c) for c in t)

    dates: list[date] = []
    values: list[float] = []
    for i in range(days, -1, -1):
        pseudo = _pseudo_random(char_sum + i)
        drift = (i / days) if days else 0.0
        variance = 1 + (pseudo * 0.2 - 0.1) * drift
        dates.append(today - timedelta(days=i))
        values.append(anchor_price * variance)

    logger.info("Simulated %d days for %s around %.4f", days, t, anchor_price)
    return PriceSeries(ticker=t, dates=dates, values=values, source="simulated")
