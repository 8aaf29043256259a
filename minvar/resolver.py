"""Ticker resolution: user symbols -> canonical asset ids."""

from __future__ import annotations

import yaml

from minvar.catalog import Asset, AssetCatalog
from minvar.config import Paths
from minvar.errors import ResolutionError
from minvar.utils.logger import setup_logger

logger = setup_logger("resolver")


def _load_aliases() -> dict[str, str]:
    path = Paths.CONFIGS / "aliases.yaml"
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return {str(k).lower(): str(v).lower() for k, v in data.items()}


def _rank_key(asset: Asset) -> tuple[bool, int]:
    # Unranked assets sort after every ranked one
    rank = asset.market_cap_rank
    return (rank is None, rank if rank is not None else 0)


class TickerResolver:
    """Resolve user input like 'BTC' or 'bitcoin' to catalog asset ids.

    Lookup order: exact asset id, alias, then symbol. When several assets
    share a symbol the best-ranked (largest market cap) wins.
    """

    def __init__(self, catalog: AssetCatalog, aliases: dict[str, str] | None = None):
        self.catalog = catalog
        self._aliases = _load_aliases() if aliases is None else {
            k.lower(): v.lower() for k, v in aliases.items()
        }

    def resolve_one(self, ticker: str) -> str | None:
        key = ticker.strip().lower()
        if not key:
            return None
        if key in self.catalog:
            return key

        alias = self._aliases.get(key)
        if alias and alias in self.catalog:
            logger.info("Resolved alias '%s' -> '%s'", ticker, alias)
            return alias

        candidates = self.catalog.with_symbol(key)
        if not candidates:
            return None
        best = min(candidates, key=_rank_key)
        if len(candidates) > 1:
            logger.info(
                "Symbol '%s' matches %d assets, picked '%s' (rank %s)",
                ticker, len(candidates), best.id, best.market_cap_rank,
            )
        return best.id

    def resolve(self, tickers: list[str]) -> list[str]:
        """Resolve every ticker, reporting all misses in one ResolutionError."""
        resolved: list[str] = []
        missing: list[str] = []
        for ticker in tickers:
            if not ticker.strip():
                continue
            asset_id = self.resolve_one(ticker)
            if asset_id is None:
                missing.append(ticker.strip())
            else:
                resolved.append(asset_id)
        if missing:
            raise ResolutionError(missing)
        return resolved
