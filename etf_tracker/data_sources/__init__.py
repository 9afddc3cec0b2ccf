"""Price data sources and concurrent fetch helpers."""

from .price_source import PriceSourceClient
from .batch import FetchResult, fan_out, fetch_current_prices, fetch_histories
