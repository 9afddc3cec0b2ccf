"""Risk & return statistics on a portfolio value curve.

Volatility, VaR, drawdown and the Sharpe / Sortino / Calmar ratios, all
derived from simple daily returns of the aligned value series.
"""

from __future__ import annotations

import math

import numpy as np

from etf_tracker.config import Analytics
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("risk")

INSUFFICIENT_VOLATILITY = "Insufficient data for volatility analysis"
INSUFFICIENT_RISK = "Insufficient data for risk metrics"


# ------------------------------------------------------------------
#  Building blocks
# ------------------------------------------------------------------
def compute_returns(values: list[float]) -> list[float]:
    """Simple relative differences; a step from a non-positive value is dropped."""
    returns = []
    for i in range(1, len(values)):
        prev = values[i - 1]
        if prev <= 0:
            logger.debug("Dropping return at index %d: previous value %.4f", i, prev)
            continue
        returns.append((values[i] - prev) / prev)
    return returns


def max_drawdown(values: list[float]) -> tuple[float, int]:
    """Largest peak-to-trough decline as a fraction, and periods since that peak."""
    if not values:
        return 0.0, 0
    worst, worst_periods = 0.0, 0
    peak, peak_idx = values[0], 0
    for i in range(1, len(values)):
        if values[i] > peak:
            peak, peak_idx = values[i], i
        elif peak > 0:
            drawdown = (peak - values[i]) / peak
            if drawdown > worst:
                worst, worst_periods = drawdown, i - peak_idx
    return worst, worst_periods


def value_at_risk(returns: list[float], confidence: float = 0.95) -> float:
    """Historical VaR: the return at the (1 - confidence) quantile position."""
    ordered = sorted(returns)
    tail = round(1 - confidence, 10)
    return ordered[math.floor(len(ordered) * tail)]


def sharpe_ratio(annualized_return: float, annualized_volatility: float, risk_free_rate: float) -> float:
    if annualized_volatility <= 0:
        return 0.0
    return (annualized_return - risk_free_rate) / annualized_volatility


def downside_deviation(returns: list[float]) -> float:
    """Annualized root-mean-square of the negative returns."""
    negative = np.array([r for r in returns if r < 0])
    if negative.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(negative ** 2)) * np.sqrt(Analytics.TRADING_DAYS))


def sortino_ratio(returns: list[float], annualized_return: float, risk_free_rate: float) -> float:
    downside = downside_deviation(returns)
    if downside <= 0:
        return 0.0
    return (annualized_return - risk_free_rate) / downside


def calmar_ratio(annualized_return: float, drawdown: float) -> float:
    if drawdown == 0:
        return 0.0
    return annualized_return / abs(drawdown)


# ------------------------------------------------------------------
#  Interpretation labels
# ------------------------------------------------------------------
def interpret_sharpe(ratio: float) -> str:
    if ratio > 2:
        return "Excellent - Return much higher than risk"
    if ratio > 1:
        return "Good - Return higher than risk"
    if ratio > 0.5:
        return "Acceptable - Moderate return vs risk"
    if ratio > 0:
        return "Low - Minimal return vs risk"
    return "Negative - Return below risk-free rate"


def interpret_sortino(ratio: float) -> str:
    if ratio > 2:
        return "Excellent downside risk control"
    if ratio > 1:
        return "Good downside risk control"
    if ratio > 0.5:
        return "Moderate downside risk control"
    return "Limited downside risk control"


def interpret_volatility(volatility: float) -> str:
    if volatility < 0.10:
        return "Very Low - Stable portfolio"
    if volatility < 0.15:
        return "Low - Relatively stable portfolio"
    if volatility < 0.25:
        return "Moderate - Normal ETF volatility"
    if volatility < 0.35:
        return "High - Quite volatile portfolio"
    return "Very High - Very volatile portfolio"


# ------------------------------------------------------------------
#  Composite results
# ------------------------------------------------------------------
def volatility_metrics(values: list[float], risk_free_rate: float = Analytics.RISK_FREE_RATE) -> dict:
    """Volatility analysis of a value curve, or ``{"message": ...}`` if too short."""
    if len(values) < 2:
        return {"message": INSUFFICIENT_VOLATILITY}
    returns = compute_returns(values)
    if not returns:
        return {"message": INSUFFICIENT_VOLATILITY}

    arr = np.asarray(returns, dtype=float)
    avg_return = float(arr.mean())
    daily_vol = float(arr.std(ddof=0))
    annualized_return = avg_return * Analytics.TRADING_DAYS
    annualized_vol = daily_vol * math.sqrt(Analytics.TRADING_DAYS)
    drawdown, drawdown_days = max_drawdown(values)
    sharpe = sharpe_ratio(annualized_return, annualized_vol, risk_free_rate)

    return {
        "dailyVolatility": daily_vol,
        "annualizedVolatility": annualized_vol,
        "annualizedReturn": annualized_return,
        "sharpeRatio": sharpe,
        "valueAtRisk95": value_at_risk(returns, 0.95),
        "maxDrawdown": drawdown,
        "maxDrawdownDays": drawdown_days,
        "totalReturns": len(returns),
        "positiveReturns": int((arr > 0).sum()),
        "negativeReturns": int((arr < 0).sum()),
        "averageDailyReturn": avg_return,
        "interpretation": {
            "volatility": interpret_volatility(annualized_vol),
            "sharpe": interpret_sharpe(sharpe),
        },
    }


def risk_metrics(values: list[float], risk_free_rate: float = Analytics.RISK_FREE_RATE) -> dict:
    """Volatility analysis extended with Sortino, Calmar and rating flags."""
    vol = volatility_metrics(values, risk_free_rate)
    if "message" in vol:
        return {"message": INSUFFICIENT_RISK}

    returns = compute_returns(values)
    annualized_return = vol["annualizedReturn"]
    sharpe = sharpe_ratio(annualized_return, vol["annualizedVolatility"], risk_free_rate)
    sortino = sortino_ratio(returns, annualized_return, risk_free_rate)
    calmar = calmar_ratio(annualized_return, vol["maxDrawdown"])

    return {
        **vol,
        "sharpeRatio": sharpe,
        "sortinoRatio": sortino,
        "calmarRatio": calmar,
        "riskFreeRate": risk_free_rate,
        "riskMetrics": {
            "excellent": sharpe > 2,
            "good": sharpe > 1,
            "acceptable": sharpe > 0.5,
            "poor": sharpe <= 0.5,
        },
        "interpretation": {
            "sharpe": interpret_sharpe(sharpe),
            "sortino": interpret_sortino(sortino),
            "volatility": interpret_volatility(vol["annualizedVolatility"]),
        },
    }
