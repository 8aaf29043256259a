"""Shared pytest fixtures for the minvar test suite.

Provides a static asset catalog, scriptable fake upstream sources, a manual
clock and synthetic price histories with a fixed random seed. All fixtures
are independent of external APIs.
"""

import numpy as np
import pytest

from minvar.catalog import Asset, AssetCatalog
from minvar.errors import RateLimitedError


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced clock usable wherever time.time is injected."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChartSource:
    """Market-chart source returning scripted responses per asset.

    ``responses[asset_id]`` is a list consumed one item per call; an item is
    either a price list or an exception instance to raise. Once a script is
    exhausted the last item is repeated.
    """

    def __init__(self, responses: dict):
        self.responses = {k: list(v) for k, v in responses.items()}
        self.calls: list[tuple[str, int]] = []

    def get_market_chart(self, asset_id: str, days: int) -> list[float]:
        self.calls.append((asset_id, days))
        script = self.responses[asset_id]
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, Exception):
            raise item
        return list(item)


class FakeMarketsSource:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.calls = 0

    def list_markets(self, pages: int = 1) -> list[dict]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.rows)


def rate_limited():
    return RateLimitedError("rate limited", status_code=429)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    """List that records every requested sleep duration."""
    return []


@pytest.fixture
def catalog():
    """Static catalog with a duplicated symbol and an id/symbol collision."""
    return AssetCatalog.from_assets([
        Asset("bitcoin", "btc", 1),
        Asset("ethereum", "eth", 2),
        Asset("solana", "sol", 5),
        Asset("batcat", "btc", 2400),
        Asset("ethereum-wormhole", "eth", 900),
        Asset("sol-token", "sol", None),
        # symbol equal to another asset's id
        Asset("bitcoin-bep2", "bitcoin", 300),
        Asset("unranked-a", "dup", None),
        Asset("unranked-b", "dup", None),
    ])


@pytest.fixture
def sample_prices():
    """Three correlated-but-distinct GBM price paths of 61 points, seeded at 42."""
    np.random.seed(42)
    n = 60
    common = np.random.normal(0.0, 0.02, n)
    paths = {}
    for asset_id, start, beta, vol in [
        ("bitcoin", 30_000.0, 1.0, 0.010),
        ("ethereum", 2_000.0, 1.3, 0.020),
        ("solana", 40.0, 1.6, 0.035),
    ]:
        log_returns = beta * common + np.random.normal(0.0005, vol, n)
        prices = start * np.exp(np.concatenate([[0.0], np.cumsum(log_returns)]))
        paths[asset_id] = prices.tolist()
    return paths
