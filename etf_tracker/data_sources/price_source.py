"""ETF price source - current quotes and daily history.

Primary: yfinance | Fallback: JustETF performance-chart API (by ISIN)

Every public method resolves to ``None`` on failure.  Transport and parse
errors are logged here and never reach the analytics engine.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

import pandas as pd
import requests
import yfinance as yf
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from etf_tracker.config import Fetch, SETTINGS
from etf_tracker.models import PriceSeries, local_today
from etf_tracker.resolver import TickerResolver, normalize_ticker
from etf_tracker.utils.cache import MemoryCache
from etf_tracker.utils.logger import setup_logger
from etf_tracker.utils.rate_limiter import RateLimiter

logger = setup_logger("price_source")

_MARKET = SETTINGS.get("market", {})
JUSTETF_URL = _MARKET.get("justetf_url", "https://www.justetf.com/api/etfs/{isin}/performance-chart")

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

# Days of history scanned when a live quote is unavailable
_QUOTE_FALLBACK_DAYS = 7


def build_session(retries: int = Fetch.RETRIES, backoff_factor: float = Fetch.BACKOFF_FACTOR) -> requests.Session:
    """HTTP session with bounded retries on timeouts and 5xx responses."""
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = _USER_AGENT
    return session


def _clean_price(value) -> float | None:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def _series_from_frame(ticker: str, df: pd.DataFrame) -> PriceSeries | None:
    """Turn a yfinance OHLCV frame into a de-duplicated daily close series."""
    if df is None or df.empty or "Close" not in df.columns:
        return None
    closes = pd.to_numeric(df["Close"], errors="coerce").dropna()
    closes = closes[closes > 0]
    if closes.empty:
        return None
    days = pd.Index(pd.DatetimeIndex(closes.index).date)
    closes = pd.Series(closes.values, index=days)
    closes = closes[~closes.index.duplicated(keep="last")].sort_index()
    return PriceSeries(
        ticker=ticker,
        dates=list(closes.index),
        values=[float(v) for v in closes.values],
    )


class PriceSourceClient:
    """Fetch current prices and historical closes for ETFs."""

    def __init__(
        self,
        quote_cache=None,
        history_cache=None,
        resolver: TickerResolver | None = None,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
        timeout: float = Fetch.TIMEOUT,
    ):
        self.quote_cache = quote_cache if quote_cache is not None else MemoryCache.for_category("price_current")
        self.history_cache = history_cache if history_cache is not None else MemoryCache.for_category("price_history")
        self.resolver = resolver or TickerResolver()
        self.session = session or build_session()
        self.rate_limiter = rate_limiter or RateLimiter(Fetch.REQUESTS_PER_MINUTE)
        self.timeout = timeout

    # ------------------------------------------------------------------
    #  Current price
    # ------------------------------------------------------------------
    def get_current_price(self, ticker: str) -> float | None:
        """Latest price for *ticker*, or None when no source has one."""
        t = normalize_ticker(ticker)
        if not t:
            return None

        cache_key = f"quote:{t}"
        cached = self.quote_cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit: %s", cache_key)
            return float(cached)

        price = self._yahoo_quote(t)
        if price is None:
            today = local_today()
            series = self._justetf_history(t, today - timedelta(days=_QUOTE_FALLBACK_DAYS), today)
            if series is not None and not series.empty:
                price = series.values[-1]
                logger.info("Quote fallback for %s: last JustETF close %.4f", t, price)

        if price is None:
            logger.warning("No current price found for %s", t)
            return None

        self.quote_cache.set(cache_key, price)
        return price

    def _yahoo_quote(self, ticker: str) -> float | None:
        symbol = self.resolver.yahoo_symbol(ticker)
        if symbol is None:
            return None
        try:
            self.rate_limiter.wait()
            info = yf.Ticker(symbol).fast_info
            return _clean_price(info.last_price)
        except Exception as e:
            logger.warning("yfinance quote failed for %s (%s): %s", ticker, symbol, e)
            return None

    # ------------------------------------------------------------------
    #  Historical series
    # ------------------------------------------------------------------
    def get_historical_series(self, ticker: str, from_date: date, to_date: date) -> PriceSeries | None:
        """Daily closes for *ticker* between the two dates (inclusive)."""
        t = normalize_ticker(ticker)
        if not t or from_date > to_date:
            return None

        cache_key = f"history:{t}:{from_date.isoformat()}:{to_date.isoformat()}"
        cached = self.history_cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit: %s", cache_key)
            return PriceSeries.from_dict(cached)

        series = self._yahoo_history(t, from_date, to_date)
        if series is None:
            series = self._justetf_history(t, from_date, to_date)

        if series is None or series.empty:
            logger.warning("No historical data for %s (%s -> %s)", t, from_date, to_date)
            return None

        self.history_cache.set(cache_key, series.to_dict())
        return series

    def _yahoo_history(self, ticker: str, from_date: date, to_date: date) -> PriceSeries | None:
        symbol = self.resolver.yahoo_symbol(ticker)
        if symbol is None:
            return None
        logger.info("Fetching price history: %s (%s -> %s)", symbol, from_date, to_date)
        try:
            self.rate_limiter.wait()
            df = yf.Ticker(symbol).history(
                start=from_date.isoformat(),
                end=(to_date + timedelta(days=1)).isoformat(),
                interval="1d",
                auto_adjust=False,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning("yfinance history failed for %s: %s", symbol, e)
            return None
        return _series_from_frame(ticker, df)

    def _justetf_history(self, ticker: str, from_date: date, to_date: date) -> PriceSeries | None:
        """Fetch market values from JustETF (fallback when Yahoo has nothing)."""
        isin = self.resolver.isin(ticker)
        if not isin:
            logger.debug("No ISIN for %s, skipping JustETF fallback", ticker)
            return None

        try:
            logger.info("JustETF fallback: %s (ISIN %s)", ticker, isin)
            self.rate_limiter.wait()
            resp = self.session.get(
                JUSTETF_URL.format(isin=isin),
                params={
                    "locale": _MARKET.get("justetf_locale", "it"),
                    "currency": _MARKET.get("currency", "EUR"),
                    "valuesType": "MARKET_VALUE",
                    "reduceData": "false",
                    "includeDividends": "false",
                    "dateFrom": from_date.isoformat(),
                    "dateTo": to_date.isoformat(),
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("JustETF fetch failed for %s (ISIN %s): %s", ticker, isin, e)
            return None

        points: dict[date, float] = {}
        for item in payload.get("series") or []:
            try:
                day = date.fromisoformat(str(item["date"])[:10])
                value = item["value"]
                price = _clean_price(value.get("raw") if isinstance(value, dict) else value)
            except (KeyError, TypeError, ValueError):
                continue
            if price is not None and from_date <= day <= to_date:
                points[day] = price

        if not points:
            logger.warning("JustETF response for %s contains no data in series", ticker)
            return None

        ordered = sorted(points)
        logger.info("JustETF: got %d rows for %s", len(ordered), ticker)
        return PriceSeries(ticker=ticker, dates=ordered, values=[points[d] for d in ordered])
