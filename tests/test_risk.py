"""Tests for etf_tracker.analysis.risk -- returns, drawdown, VaR, ratios, interpretation."""

import math

import numpy as np
import pytest

from etf_tracker.analysis import risk
from etf_tracker.analysis.risk import (
    INSUFFICIENT_RISK,
    INSUFFICIENT_VOLATILITY,
    calmar_ratio,
    compute_returns,
    max_drawdown,
    risk_metrics,
    sharpe_ratio,
    sortino_ratio,
    value_at_risk,
    volatility_metrics,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_value_curve(start=10_000.0, mean=0.0004, std=0.012, n=252, seed=42):
    """Portfolio value curve from log-normal daily returns."""
    np.random.seed(seed)
    returns = np.random.normal(mean, std, n)
    return list(start * np.exp(np.cumsum(returns)))


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------

class TestComputeReturns:

    def test_simple_relative_differences(self):
        assert compute_returns([100, 110, 99]) == [pytest.approx(0.1), pytest.approx(-0.1)]

    def test_drops_step_from_zero(self):
        assert compute_returns([0, 10, 11]) == [pytest.approx(0.1)]

    def test_single_value(self):
        assert compute_returns([100]) == []


# ---------------------------------------------------------------------------
# Drawdown / VaR
# ---------------------------------------------------------------------------

class TestMaxDrawdown:

    def test_known_drawdown_and_duration(self):
        dd, periods = max_drawdown([100, 120, 90, 130, 117])
        assert dd == pytest.approx(0.25)
        assert periods == 1

    def test_duration_counts_since_peak(self):
        dd, periods = max_drawdown([100, 95, 90, 80, 85])
        assert dd == pytest.approx(0.2)
        assert periods == 3

    def test_monotonic_rise_has_no_drawdown(self):
        assert max_drawdown([1, 2, 3, 4]) == (0.0, 0)

    def test_empty(self):
        assert max_drawdown([]) == (0.0, 0)

    def test_bounded(self):
        dd, _ = max_drawdown(_make_value_curve(std=0.03, seed=7))
        assert 0.0 <= dd < 1.0


class TestValueAtRisk:

    def test_picks_floor_index(self):
        returns = [i / 100 for i in range(-10, 10)]  # 20 returns
        assert value_at_risk(returns) == pytest.approx(-0.09)

    def test_small_sample_uses_worst(self):
        assert value_at_risk([0.02, -0.03, 0.01]) == pytest.approx(-0.03)


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------

class TestRatios:

    def test_sharpe_zero_volatility_is_zero(self):
        assert sharpe_ratio(0.1, 0.0, 0.02) == 0.0

    def test_sharpe_formula(self):
        assert sharpe_ratio(0.12, 0.2, 0.02) == pytest.approx(0.5)

    def test_sortino_without_negative_returns(self):
        assert sortino_ratio([0.01, 0.02], 0.1, 0.02) == 0.0

    def test_sortino_formula(self):
        downside = math.sqrt(0.01) * math.sqrt(252)
        assert sortino_ratio([0.1, -0.1], 0.0, 0.02) == pytest.approx(-0.02 / downside)

    def test_calmar_zero_drawdown(self):
        assert calmar_ratio(0.1, 0.0) == 0.0

    def test_calmar_formula(self):
        assert calmar_ratio(0.1, 0.25) == pytest.approx(0.4)


# ---------------------------------------------------------------------------
# Volatility analysis
# ---------------------------------------------------------------------------

class TestVolatilityMetrics:

    def test_insufficient_data(self):
        assert volatility_metrics([]) == {"message": INSUFFICIENT_VOLATILITY}
        assert volatility_metrics([100]) == {"message": INSUFFICIENT_VOLATILITY}

    def test_no_defined_returns_is_insufficient(self):
        assert volatility_metrics([0, 0, 0]) == {"message": INSUFFICIENT_VOLATILITY}

    def test_known_values(self):
        result = volatility_metrics([100, 110, 99])
        assert result["averageDailyReturn"] == pytest.approx(0.0)
        assert result["dailyVolatility"] == pytest.approx(0.1)
        assert result["annualizedVolatility"] == pytest.approx(0.1 * math.sqrt(252))
        assert result["annualizedReturn"] == pytest.approx(0.0)
        assert result["valueAtRisk95"] == pytest.approx(-0.1)
        assert result["maxDrawdown"] == pytest.approx(0.1)
        assert result["maxDrawdownDays"] == 1
        assert result["totalReturns"] == 2
        assert result["positiveReturns"] == 1
        assert result["negativeReturns"] == 1

    def test_population_std(self):
        values = _make_value_curve()
        returns = np.diff(values) / np.array(values[:-1])
        result = volatility_metrics(values)
        assert result["dailyVolatility"] == pytest.approx(float(np.std(returns, ddof=0)))

    def test_flat_curve_zero_volatility(self):
        result = volatility_metrics([100.0] * 10)
        assert result["dailyVolatility"] == 0.0
        assert result["sharpeRatio"] == 0.0
        assert result["maxDrawdown"] == 0.0

    def test_interpretation_labels(self):
        result = volatility_metrics([100.0] * 10)
        assert result["interpretation"]["volatility"].startswith("Very Low")
        assert result["interpretation"]["sharpe"].startswith("Negative")


# ---------------------------------------------------------------------------
# Risk metrics
# ---------------------------------------------------------------------------

class TestRiskMetrics:

    def test_insufficient_data(self):
        assert risk_metrics([100]) == {"message": INSUFFICIENT_RISK}

    def test_uses_given_risk_free_rate(self):
        values = _make_value_curve()
        low = risk_metrics(values, 0.0)
        high = risk_metrics(values, 0.05)
        assert low["riskFreeRate"] == 0.0
        assert high["riskFreeRate"] == 0.05
        assert low["sharpeRatio"] > high["sharpeRatio"]
        assert low["annualizedVolatility"] == pytest.approx(high["annualizedVolatility"])

    def test_known_values(self):
        result = risk_metrics([100, 110, 99], 0.02)
        downside = 0.1 * math.sqrt(252)
        assert result["sortinoRatio"] == pytest.approx(-0.02 / downside)
        assert result["calmarRatio"] == pytest.approx(0.0)
        assert result["sharpeRatio"] == pytest.approx(-0.02 / (0.1 * math.sqrt(252)))

    def test_flat_curve_ratios_are_zero(self):
        result = risk_metrics([50.0] * 20, 0.02)
        assert result["sharpeRatio"] == 0.0
        assert result["sortinoRatio"] == 0.0
        assert result["calmarRatio"] == 0.0

    def test_rating_flags(self):
        result = risk_metrics([100.0] * 5, 0.02)
        assert result["riskMetrics"] == {
            "excellent": False, "good": False, "acceptable": False, "poor": True,
        }
        assert set(result["interpretation"]) == {"sharpe", "sortino", "volatility"}

    def test_includes_volatility_fields(self):
        result = risk_metrics(_make_value_curve(), 0.02)
        for key in ("dailyVolatility", "valueAtRisk95", "maxDrawdown", "maxDrawdownDays", "totalReturns"):
            assert key in result


# ---------------------------------------------------------------------------
# Interpretation bands
# ---------------------------------------------------------------------------

class TestInterpretation:

    @pytest.mark.parametrize("ratio,prefix", [
        (2.5, "Excellent"), (1.5, "Good"), (0.7, "Acceptable"), (0.1, "Low"), (-0.3, "Negative"),
    ])
    def test_sharpe_bands(self, ratio, prefix):
        assert risk.interpret_sharpe(ratio).startswith(prefix)

    @pytest.mark.parametrize("ratio,prefix", [
        (3, "Excellent"), (1.2, "Good"), (0.6, "Moderate"), (0.1, "Limited"),
    ])
    def test_sortino_bands(self, ratio, prefix):
        assert risk.interpret_sortino(ratio).startswith(prefix)

    @pytest.mark.parametrize("vol,prefix", [
        (0.05, "Very Low"), (0.12, "Low"), (0.2, "Moderate"), (0.3, "High"), (0.5, "Very High"),
    ])
    def test_volatility_bands(self, vol, prefix):
        assert risk.interpret_volatility(vol).startswith(prefix)
