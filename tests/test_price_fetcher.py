"""Tests for minvar.data_sources.price_fetcher -- caching, backoff, failure wrapping."""

import pytest

from conftest import FakeChartSource, rate_limited
from minvar.data_sources.price_fetcher import PriceFetcher, validate_window
from minvar.errors import (
    FetchError,
    InsufficientDataError,
    InvalidWindowError,
    RetryExhaustedError,
    UpstreamError,
)
from minvar.utils.cache import PriceCache
from minvar.utils.retry import RetryPolicy

PRICES = [100.0, 101.0, 99.5, 102.0]


def _fetcher(source, clock, sleeps, max_attempts=4):
    return PriceFetcher(
        source,
        PriceCache(ttl_seconds=300, clock=clock),
        RetryPolicy(max_attempts=max_attempts, base=2),
        sleep=sleeps.append,
    )


class TestCaching:

    def test_cache_hit_skips_network(self, clock, sleeps):
        source = FakeChartSource({"bitcoin": [PRICES]})
        fetcher = _fetcher(source, clock, sleeps)

        first = fetcher.fetch("bitcoin", 30)
        clock.advance(120)
        second = fetcher.fetch("bitcoin", 30)

        assert first == second == PRICES
        assert source.calls == [("bitcoin", 30)]

    def test_expired_entry_refetches(self, clock, sleeps):
        source = FakeChartSource({"bitcoin": [PRICES, [1.0, 2.0]]})
        fetcher = _fetcher(source, clock, sleeps)

        fetcher.fetch("bitcoin", 30)
        clock.advance(301)
        assert fetcher.fetch("bitcoin", 30) == [1.0, 2.0]
        assert len(source.calls) == 2

    def test_different_window_is_a_different_key(self, clock, sleeps):
        source = FakeChartSource({"bitcoin": [PRICES]})
        fetcher = _fetcher(source, clock, sleeps)
        fetcher.fetch("bitcoin", 30)
        fetcher.fetch("bitcoin", 90)
        assert source.calls == [("bitcoin", 30), ("bitcoin", 90)]


class TestRetry:

    def test_rate_limit_then_success(self, clock, sleeps):
        source = FakeChartSource({"bitcoin": [rate_limited(), rate_limited(), PRICES]})
        fetcher = _fetcher(source, clock, sleeps)

        assert fetcher.fetch("bitcoin", 30) == PRICES
        assert sleeps == [2.0, 4.0]
        assert sum(sleeps) == 6.0
        assert len(source.calls) == 3

    def test_retried_result_matches_immediate_result(self, clock, sleeps):
        slow = _fetcher(FakeChartSource({"a": [rate_limited(), rate_limited(), PRICES]}), clock, sleeps)
        fast = _fetcher(FakeChartSource({"a": [PRICES]}), clock, [])
        assert slow.fetch("a", 30) == fast.fetch("a", 30)

    def test_retries_exhausted(self, clock, sleeps):
        source = FakeChartSource({"bitcoin": [rate_limited()]})
        fetcher = _fetcher(source, clock, sleeps, max_attempts=4)

        with pytest.raises(RetryExhaustedError) as exc:
            fetcher.fetch("bitcoin", 30)
        assert exc.value.asset_id == "bitcoin"
        assert exc.value.attempts == 4
        assert len(source.calls) == 4
        # no wait after the final attempt
        assert sleeps == [2.0, 4.0, 8.0]
        assert len(fetcher.cache) == 0

    def test_other_upstream_errors_are_not_retried(self, clock, sleeps):
        cause = UpstreamError("HTTP 404", status_code=404)
        source = FakeChartSource({"nope": [cause]})
        fetcher = _fetcher(source, clock, sleeps)

        with pytest.raises(FetchError) as exc:
            fetcher.fetch("nope", 30)
        assert not isinstance(exc.value, RetryExhaustedError)
        assert exc.value.cause is cause
        assert exc.value.window_days == 30
        assert len(source.calls) == 1
        assert sleeps == []


class TestValidation:

    def test_single_point_is_insufficient(self, clock, sleeps):
        fetcher = _fetcher(FakeChartSource({"new-coin": [[42.0]]}), clock, sleeps)
        with pytest.raises(InsufficientDataError) as exc:
            fetcher.fetch("new-coin", 30)
        assert exc.value.points == 1
        assert len(fetcher.cache) == 0

    @pytest.mark.parametrize("days", [6, 2001, 0])
    def test_window_out_of_range(self, days):
        with pytest.raises(InvalidWindowError):
            validate_window(days)

    @pytest.mark.parametrize("days", [7, 30, 2000])
    def test_window_in_range(self, days):
        assert validate_window(days) == days


class TestFetchAll:

    def test_returns_series_in_request_order(self, clock, sleeps):
        source = FakeChartSource({"b": [[1.0, 2.0]], "a": [[3.0, 4.0]]})
        fetcher = _fetcher(source, clock, sleeps)
        result = fetcher.fetch_all(["b", "a"], 30)
        assert list(result) == ["b", "a"]

    def test_first_failure_aborts_batch(self, clock, sleeps):
        source = FakeChartSource({
            "a": [[1.0, 2.0]],
            "b": [UpstreamError("HTTP 500", status_code=500)],
            "c": [[5.0, 6.0]],
        })
        fetcher = _fetcher(source, clock, sleeps)
        with pytest.raises(FetchError) as exc:
            fetcher.fetch_all(["a", "b", "c"], 30)
        assert exc.value.asset_id == "b"
        assert ("c", 30) not in source.calls

    def test_invalid_window_makes_no_calls(self, clock, sleeps):
        source = FakeChartSource({"a": [[1.0, 2.0]]})
        fetcher = _fetcher(source, clock, sleeps)
        with pytest.raises(InvalidWindowError):
            fetcher.fetch_all(["a"], 3)
        assert source.calls == []
