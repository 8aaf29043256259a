"""Upstream data sources and the cached price fetcher."""

from .coingecko import CoinGeckoClient
from .price_fetcher import PriceFetcher, validate_window
