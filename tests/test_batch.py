"""Tests for etf_tracker.data_sources.batch -- concurrent fan-out / fan-in."""

import threading
from datetime import date

from conftest import daily_series
from etf_tracker.data_sources.batch import FetchResult, fan_out, fetch_current_prices, fetch_histories


class TestFanOut:

    def test_results_in_input_order(self):
        results = fan_out(["C", "A", "B"], lambda t: t.lower())
        assert list(results) == ["C", "A", "B"]
        assert all(r.ok for r in results.values())
        assert results["A"].value == "a"

    def test_duplicates_fetched_once(self):
        calls = []

        def fetch(t):
            calls.append(t)
            return 1

        results = fan_out(["A", "A", "B"], fetch)
        assert sorted(calls) == ["A", "B"]
        assert list(results) == ["A", "B"]

    def test_partial_failure(self):
        def fetch(t):
            if t == "BAD":
                raise ConnectionError("refused")
            return 10.0

        results = fan_out(["GOOD", "BAD"], fetch)
        assert results["GOOD"] == FetchResult("GOOD", value=10.0)
        assert not results["BAD"].ok
        assert results["BAD"].error == "refused"

    def test_none_means_no_data(self):
        results = fan_out(["A"], lambda t: None)
        assert results["A"].error == "no data"
        assert not results["A"].ok

    def test_straggler_reported_as_timeout(self):
        release = threading.Event()

        def fetch(t):
            if t == "SLOW":
                release.wait(5)
            return 1.0

        try:
            results = fan_out(["FAST", "SLOW"], fetch, timeout=0.2)
        finally:
            release.set()
        assert results["FAST"].ok
        assert results["SLOW"].error == "timeout"

    def test_empty(self):
        assert fan_out([], lambda t: 1) == {}


class TestFetchHelpers:

    def test_fetch_current_prices(self, make_client):
        client = make_client(prices={"A": 10.0}, fail={"C"})
        prices = fetch_current_prices(client, ["A", "B", "C"])
        assert prices == {"A": 10.0, "B": None, "C": None}

    def test_fetch_histories_empty_series_is_failure(self, make_client):
        client = make_client(histories={
            "A": daily_series("A", date(2024, 6, 1), [1, 2, 3]),
            "B": daily_series("B", date(2023, 1, 1), [1, 2, 3]),
        })
        results = fetch_histories(client, ["A", "B"], date(2024, 5, 1), date(2024, 6, 10))
        assert results["A"].ok
        assert len(results["A"].value) == 3
        assert results["B"].error == "no data"
        assert {c[1:] for c in client.history_calls} == {(date(2024, 5, 1), date(2024, 6, 10))}
