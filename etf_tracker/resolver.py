"""Ticker, ISIN and Yahoo symbol resolution."""

from __future__ import annotations

import re
from pathlib import Path

import yaml

from etf_tracker.config import Paths, SETTINGS
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("resolver")

_ISIN_RE = re.compile(r"^[A-Z]{2}[A-Z0-9]{9}[0-9]$")


def _load_isin_map(path: Path | None = None) -> dict[str, str]:
    path = path or Paths.ISIN_MAP
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return {str(k).strip().upper(): str(v).strip().upper() for k, v in data.items()}


def normalize_ticker(raw: str) -> str:
    return (raw or "").strip().upper()


def is_isin(value: str) -> bool:
    return bool(_ISIN_RE.match(normalize_ticker(value)))


class TickerResolver:
    """Map user tickers like 'vwce' to the identifiers each price source wants."""

    def __init__(self, isin_map: dict[str, str] | None = None, yahoo_suffix: str | None = None):
        self._isin_map = isin_map if isin_map is not None else _load_isin_map()
        if yahoo_suffix is None:
            yahoo_suffix = SETTINGS.get("market", {}).get("yahoo_suffix", "")
        self.yahoo_suffix = yahoo_suffix

    def isin(self, ticker: str) -> str | None:
        """ISIN for *ticker*; a ticker that already is an ISIN resolves to itself."""
        t = normalize_ticker(ticker)
        if not t:
            return None
        if is_isin(t):
            return t
        isin = self._isin_map.get(t)
        if isin is None:
            logger.debug("No ISIN mapping for %s", t)
        return isin

    def yahoo_symbol(self, ticker: str) -> str | None:
        """Exchange-qualified Yahoo Finance symbol, or None for bare ISINs."""
        t = normalize_ticker(ticker)
        if not t or is_isin(t):
            return None
        if "." in t or not self.yahoo_suffix:
            return t
        return f"{t}{self.yahoo_suffix}"
