"""Portfolio analytics: alignment, valuation, risk, correlation, rebalancing."""

from .engine import PortfolioAnalyticsEngine
from .alignment import TimeSeriesAligner
from .valuation import ValuationCalculator, diversification_index
from .simulation import simulate
