"""Tests for etf_tracker.analysis.simulation -- deterministic placeholder series."""

from datetime import date, timedelta

import pytest

from etf_tracker.analysis.simulation import _pseudo_random, simulate

TODAY = date(2024, 6, 10)


class TestPseudoRandom:

    def test_in_unit_interval(self):
        for seed in range(0, 500, 7):
            assert 0.0 <= _pseudo_random(seed) < 1.0

    def test_same_seed_same_value(self):
        assert _pseudo_random(1234) == _pseudo_random(1234)


class TestSimulate:

    def test_deterministic(self):
        a = simulate("VWCE", 30, 100.0, TODAY)
        b = simulate("VWCE", 30, 100.0, TODAY)
        assert a.dates == b.dates
        assert a.values == b.values

    def test_length_and_dates(self):
        s = simulate("VWCE", 30, 100.0, TODAY)
        assert len(s) == 31
        assert s.dates[0] == TODAY - timedelta(days=30)
        assert s.dates[-1] == TODAY
        assert all(b > a for a, b in zip(s.dates, s.dates[1:]))

    def test_converges_to_anchor(self):
        s = simulate("SWDA", 90, 82.5, TODAY)
        assert s.values[-1] == pytest.approx(82.5)

    def test_within_ten_percent_band(self):
        s = simulate("EIMI", 365, 30.0, TODAY)
        assert all(27.0 <= v <= 33.0 for v in s.values)

    def test_tagged_simulated(self):
        assert simulate("VWCE", 7, 100.0, TODAY).source == "simulated"

    def test_ticker_is_normalized(self):
        assert simulate(" vwce ", 10, 100.0, TODAY).values == simulate("VWCE", 10, 100.0, TODAY).values

    def test_different_tickers_differ(self):
        a = simulate("VWCE", 30, 100.0, TODAY)
        b = simulate("SWDA", 30, 100.0, TODAY)
        assert a.values != b.values

    def test_zero_days_single_anchor_point(self):
        s = simulate("VWCE", 0, 100.0, TODAY)
        assert s.dates == [TODAY]
        assert s.values == [pytest.approx(100.0)]
