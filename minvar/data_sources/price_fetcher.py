"""Historical price acquisition with TTL caching and rate-limit retry."""

from __future__ import annotations

import time
from typing import Callable, Protocol

from minvar.config import MAX_WINDOW_DAYS, MIN_WINDOW_DAYS
from minvar.errors import (
    FetchError,
    InsufficientDataError,
    InvalidWindowError,
    RateLimitedError,
    RetryExhaustedError,
    UpstreamError,
)
from minvar.utils.cache import PriceCache
from minvar.utils.logger import setup_logger
from minvar.utils.retry import RetryPolicy

logger = setup_logger("price_fetcher")


class MarketChartSource(Protocol):
    def get_market_chart(self, asset_id: str, days: int) -> list[float]: ...


def validate_window(window_days: int) -> int:
    """Return ``window_days`` if it lies in the accepted range, else raise."""
    if not MIN_WINDOW_DAYS <= window_days <= MAX_WINDOW_DAYS:
        raise InvalidWindowError(window_days, MIN_WINDOW_DAYS, MAX_WINDOW_DAYS)
    return window_days


class PriceFetcher:
    """Fetch price series per asset, sequentially, through a shared cache."""

    def __init__(
        self,
        source: MarketChartSource,
        cache: PriceCache,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.source = source
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self._sleep = sleep

    def fetch(self, asset_id: str, window_days: int) -> list[float]:
        """Return the price series for one asset, from cache when fresh."""
        cached = self.cache.get(asset_id, window_days)
        if cached is not None:
            logger.info("Cache hit: %s (%dd)", asset_id, window_days)
            return cached
        if self.cache.entry(asset_id, window_days) is not None:
            logger.info("Cache stale: %s (%dd), refetching", asset_id, window_days)

        policy = self.retry_policy
        for attempt in range(1, policy.max_attempts + 1):
            try:
                logger.info(
                    "Fetching market chart: %s (%dd, attempt %d/%d)",
                    asset_id, window_days, attempt, policy.max_attempts,
                )
                series = self.source.get_market_chart(asset_id, window_days)
            except RateLimitedError:
                if attempt == policy.max_attempts:
                    break
                delay = policy.delay(attempt)
                logger.warning("Rate limited on %s, retrying in %.0fs", asset_id, delay)
                self._sleep(delay)
                continue
            except UpstreamError as e:
                logger.error("Fetch failed for %s: %s", asset_id, e)
                raise FetchError(asset_id, e, window_days) from e

            if len(series) < 2:
                raise InsufficientDataError(asset_id, len(series), window_days)
            self.cache.set(asset_id, window_days, series)
            logger.info("Got %d prices for %s", len(series), asset_id)
            return list(series)

        logger.error("Retries exhausted for %s after %d attempts", asset_id, policy.max_attempts)
        raise RetryExhaustedError(asset_id, policy.max_attempts, window_days)

    def fetch_all(self, asset_ids: list[str], window_days: int) -> dict[str, list[float]]:
        """Fetch every asset in order; the first unrecoverable failure aborts the batch."""
        validate_window(window_days)
        results: dict[str, list[float]] = {}
        for asset_id in asset_ids:
            results[asset_id] = self.fetch(asset_id, window_days)
        return results
