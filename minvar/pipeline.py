"""Minimum-variance pipeline: resolve -> fetch -> returns -> optimize."""

from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd

from minvar.analysis.optimizer import covariance_matrix, min_variance_weights, portfolio_variance
from minvar.analysis.returns import compute_returns
from minvar.catalog import AssetCatalog
from minvar.config import SETTINGS
from minvar.data_sources.coingecko import CoinGeckoClient
from minvar.data_sources.price_fetcher import PriceFetcher, validate_window
from minvar.errors import SingularCovarianceError
from minvar.resolver import TickerResolver
from minvar.utils.cache import PriceCache
from minvar.utils.logger import setup_logger
from minvar.utils.retry import RetryPolicy

logger = setup_logger("pipeline")


def _to_float(val) -> float:
    """Coerce numpy/pandas scalar to plain float for JSON serialization."""
    return round(float(val), 6)


@dataclass
class PortfolioResult:
    """Weights paired with the resolved asset-id order."""

    tickers: list[str]
    asset_ids: list[str]
    weights: pd.Series
    window_days: int
    observations: int
    variance: float

    @property
    def volatility(self) -> float:
        return math.sqrt(max(self.variance, 0.0))

    def as_dict(self) -> dict:
        return {
            "tickers": self.tickers,
            "asset_ids": self.asset_ids,
            "weights": {k: _to_float(v) for k, v in self.weights.items()},
            "window_days": self.window_days,
            "observations": self.observations,
            "variance": _to_float(self.variance),
            "volatility": _to_float(self.volatility),
        }


class MinVariancePipeline:
    """Runs one request end to end against shared catalog and cache."""

    def __init__(
        self,
        catalog: AssetCatalog,
        fetcher: PriceFetcher,
        resolver: TickerResolver | None = None,
        default_window_days: int | None = None,
    ):
        self.catalog = catalog
        self.fetcher = fetcher
        self.resolver = resolver or TickerResolver(catalog)
        self.default_window_days = default_window_days or SETTINGS.get("app", {}).get(
            "default_window_days", 30
        )

    @classmethod
    def from_settings(cls) -> MinVariancePipeline:
        """Wire the CoinGecko-backed pipeline and load the catalog."""
        client = CoinGeckoClient()
        catalog = AssetCatalog(source=client)
        catalog.refresh()
        fetcher = PriceFetcher(client, PriceCache(), RetryPolicy.from_settings())
        return cls(catalog, fetcher)

    def run(self, tickers: list[str], window_days: int | None = None) -> PortfolioResult:
        window_days = validate_window(
            self.default_window_days if window_days is None else window_days
        )
        logger.info("Pipeline started: tickers=%s window=%dd", tickers, window_days)

        self.catalog.refresh_if_stale()

        logger.info("[1/4] Resolving %d tickers", len(tickers))
        asset_ids = self.resolver.resolve(tickers)
        duplicates = sorted({a for a in asset_ids if asset_ids.count(a) > 1})
        if duplicates:
            raise SingularCovarianceError(
                f"Assets requested more than once: {', '.join(duplicates)}"
            )

        logger.info("[2/4] Fetching prices: %s", asset_ids)
        prices = self.fetcher.fetch_all(asset_ids, window_days)

        logger.info("[3/4] Computing log returns")
        returns = compute_returns(prices)

        logger.info("[4/4] Optimizing over %d observations", len(returns))
        cov = covariance_matrix(returns)
        weights = min_variance_weights(cov)

        result = PortfolioResult(
            tickers=[t.strip() for t in tickers if t.strip()],
            asset_ids=list(asset_ids),
            weights=weights,
            window_days=window_days,
            observations=len(returns),
            variance=portfolio_variance(weights, cov),
        )
        logger.info("Pipeline finished: volatility=%.6f", result.volatility)
        return result
