"""Central configuration loader for ETF Tracker."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the etf_tracker/ directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings() -> dict:
    """Load settings from configs/settings.yaml."""
    settings_path = PROJECT_ROOT / "configs" / "settings.yaml"
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()

_APP = SETTINGS.get("app", {})
_ANALYTICS = SETTINGS.get("analytics", {})
_FETCH = SETTINGS.get("fetch", {})


# --- Runtime ---
LOG_LEVEL = os.getenv("ETF_TRACKER_LOG_LEVEL", _APP.get("log_level", "INFO"))
TIMEZONE = os.getenv("ETF_TRACKER_TZ", _APP.get("timezone", "Europe/Rome"))
DATE_FORMAT = _APP.get("date_format", "%d/%m/%Y")


# --- Paths ---
class Paths:
    ROOT = PROJECT_ROOT
    DATA = PROJECT_ROOT / "data"
    DATA_CACHE = PROJECT_ROOT / "data" / "cache"
    DB = Path(os.getenv(
        "ETF_TRACKER_DB",
        PROJECT_ROOT / SETTINGS.get("database", {}).get("path", "data/portfolio.db"),
    ))
    ISIN_MAP = PROJECT_ROOT / "configs" / "isin_map.yaml"


# --- Analytics constants ---
class Analytics:
    TRADING_DAYS = int(_ANALYTICS.get("trading_days", 252))
    RISK_FREE_RATE = float(_ANALYTICS.get("risk_free_rate", 0.02))
    MIN_DAYS = int(_ANALYTICS.get("min_days", 7))
    MAX_DAYS = int(_ANALYTICS.get("max_days", 3650))
    MAX_MODE_THRESHOLD = int(_ANALYTICS.get("max_mode_threshold", 365))
    MAX_MODE_PADDING = int(_ANALYTICS.get("max_mode_padding_days", 30))
    HISTORY_DAYS = int(_ANALYTICS.get("default_history_days", 30))
    CORRELATION_DAYS = int(_ANALYTICS.get("default_correlation_days", 90))
    REBALANCE_MIN_DIFF = float(_ANALYTICS.get("rebalance", {}).get("min_difference", 1.0))
    REBALANCE_HIGH_DIFF = float(_ANALYTICS.get("rebalance", {}).get("high_priority_difference", 5.0))


# --- External fetch policy ---
def chain_timeout(request_timeout: float, retries: int, backoff_factor: float) -> float:
    """Worst-case wall time of one ticker's fetch chain.

    One primary request, then the fallback with its own retries, plus the
    retry backoff sleeps in between.
    """
    attempts = 1 + (1 + retries)
    backoff = sum(backoff_factor * 2 ** i for i in range(retries))
    return request_timeout * attempts + backoff


class Fetch:
    TIMEOUT = float(_FETCH.get("timeout_seconds", 10))
    RETRIES = int(_FETCH.get("retries", 2))
    BACKOFF_FACTOR = float(_FETCH.get("backoff_factor", 0.5))
    # Fan-out join: covers the whole per-ticker chain, not a single request
    JOIN_TIMEOUT = float(_FETCH.get(
        "join_timeout_seconds", chain_timeout(TIMEOUT, RETRIES, BACKOFF_FACTOR),
    ))
    MAX_WORKERS = int(_FETCH.get("max_workers", 8))
    REQUESTS_PER_MINUTE = int(_FETCH.get("requests_per_minute", 120))
