"""Fan-out / fan-in fetching of per-ticker price data.

Each ticker runs as an independent task on a thread pool.  The join is
bounded by a timeout and always yields one ``FetchResult`` per ticker, so a
single slow or failing ticker never sinks the batch.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout, as_completed
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Generic, TypeVar

from etf_tracker.config import Fetch
from etf_tracker.models import PriceSeries
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("batch")

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one ticker's fetch: a value, or the reason there is none."""

    ticker: str
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


def fan_out(
    tickers: list[str],
    fetch: Callable[[str], Any],
    timeout: float = Fetch.JOIN_TIMEOUT,
    max_workers: int = Fetch.MAX_WORKERS,
) -> dict[str, FetchResult]:
    """Run ``fetch(ticker)`` for every ticker concurrently and collect results."""
    unique = list(dict.fromkeys(tickers))
    if not unique:
        return {}

    results: dict[str, FetchResult] = {}
    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(unique))))
    futures = {executor.submit(fetch, t): t for t in unique}
    try:
        for future in as_completed(futures, timeout=timeout):
            ticker = futures[future]
            try:
                value = future.result()
            except Exception as exc:
                logger.warning("Fetch failed for %s: %s", ticker, exc)
                results[ticker] = FetchResult(ticker, error=str(exc) or exc.__class__.__name__)
                continue
            if value is None:
                results[ticker] = FetchResult(ticker, error="no data")
            else:
                results[ticker] = FetchResult(ticker, value=value)
    except FuturesTimeout:
        logger.warning("Fetch timed out after %.1fs for %d ticker(s)",
                       timeout, len(unique) - len(results))
    finally:
        # Stragglers are abandoned, not awaited
        for future, ticker in futures.items():
            if ticker not in results:
                future.cancel()
                results[ticker] = FetchResult(ticker, error="timeout")
        executor.shutdown(wait=False, cancel_futures=True)

    return {t: results[t] for t in unique}


def fetch_histories(
    client,
    tickers: list[str],
    from_date: date,
    to_date: date,
    timeout: float = Fetch.JOIN_TIMEOUT,
    max_workers: int = Fetch.MAX_WORKERS,
) -> dict[str, FetchResult[PriceSeries]]:
    """Historical series per ticker; empty series count as failures."""

    def _fetch(ticker: str) -> PriceSeries | None:
        series = client.get_historical_series(ticker, from_date, to_date)
        if series is None or series.empty:
            return None
        return series

    return fan_out(tickers, _fetch, timeout=timeout, max_workers=max_workers)


def fetch_current_prices(
    client,
    tickers: list[str],
    timeout: float = Fetch.JOIN_TIMEOUT,
    max_workers: int = Fetch.MAX_WORKERS,
) -> dict[str, float | None]:
    """Current price per ticker, ``None`` where unavailable."""
    results = fan_out(tickers, client.get_current_price, timeout=timeout, max_workers=max_workers)
    return {t: (r.value if r.ok else None) for t, r in results.items()}
