"""In-memory snapshot of known assets (id, symbol, market-cap rank)."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Protocol

from minvar.config import SETTINGS
from minvar.errors import CatalogUnavailableError, UpstreamError
from minvar.utils.logger import setup_logger

logger = setup_logger("catalog")


@dataclass(frozen=True)
class Asset:
    id: str
    symbol: str
    market_cap_rank: int | None = None


class MarketsSource(Protocol):
    def list_markets(self, pages: int = 1) -> list[dict]: ...


@dataclass(frozen=True)
class _Snapshot:
    assets: tuple[Asset, ...] = ()
    by_id: dict[str, Asset] = field(default_factory=dict)
    by_symbol: dict[str, tuple[Asset, ...]] = field(default_factory=dict)
    loaded_at: float = 0.0


def _build_snapshot(assets: Iterable[Asset], loaded_at: float) -> _Snapshot:
    ordered: list[Asset] = []
    by_id: dict[str, Asset] = {}
    by_symbol: dict[str, list[Asset]] = {}
    for asset in assets:
        # ids and symbols are matched case-insensitively
        asset = replace(asset, id=asset.id.lower(), symbol=asset.symbol.lower())
        if asset.id in by_id:
            continue
        ordered.append(asset)
        by_id[asset.id] = asset
        by_symbol.setdefault(asset.symbol, []).append(asset)
    return _Snapshot(
        assets=tuple(ordered),
        by_id=by_id,
        by_symbol={k: tuple(v) for k, v in by_symbol.items()},
        loaded_at=loaded_at,
    )


def _to_asset(row: dict) -> Asset:
    rank = row.get("market_cap_rank")
    return Asset(
        id=str(row["id"]),
        symbol=str(row.get("symbol") or ""),
        market_cap_rank=int(rank) if rank is not None else None,
    )


class AssetCatalog:
    """Read-mostly asset store.

    A refresh builds a complete new snapshot and swaps it in with a single
    assignment; readers holding the old snapshot are never affected.
    """

    def __init__(
        self,
        source: MarketsSource | None = None,
        pages: int | None = None,
        refresh_minutes: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.pages = pages or SETTINGS.get("coingecko", {}).get("catalog_pages", 4)
        if refresh_minutes is None:
            refresh_minutes = SETTINGS.get("catalog", {}).get("refresh_minutes", 0)
        self.refresh_seconds = refresh_minutes * 60
        self._clock = clock
        self._snapshot = _Snapshot()

    @classmethod
    def from_assets(cls, assets: Iterable[Asset]) -> AssetCatalog:
        """Build a static catalog (no upstream source)."""
        catalog = cls(source=None, refresh_minutes=0)
        catalog.replace(assets)
        return catalog

    def replace(self, assets: Iterable[Asset]) -> None:
        self._snapshot = _build_snapshot(assets, self._clock())

    def refresh(self) -> bool:
        """Reload the full catalog from the source.

        Returns True on success. If loading fails while a previous snapshot
        exists, the old snapshot stays in place and False is returned; with
        no previous snapshot CatalogUnavailableError is raised.
        """
        if self.source is None:
            raise CatalogUnavailableError("Catalog has no upstream source to refresh from")
        try:
            rows = self.source.list_markets(pages=self.pages)
            assets = [_to_asset(row) for row in rows]
        except (UpstreamError, KeyError, TypeError, ValueError) as e:
            if not self._snapshot.assets:
                raise CatalogUnavailableError(f"Could not load asset catalog: {e}") from e
            logger.warning("Catalog refresh failed, keeping %d cached assets: %s", len(self), e)
            return False
        self.replace(assets)
        logger.info("Catalog refreshed: %d assets", len(self))
        return True

    def refresh_if_stale(self) -> bool:
        """Refresh when the snapshot is older than the configured interval."""
        if self.source is None:
            return False
        if self._snapshot.assets and (
            not self.refresh_seconds
            or self._clock() - self._snapshot.loaded_at < self.refresh_seconds
        ):
            return False
        return self.refresh()

    def get(self, asset_id: str) -> Asset | None:
        return self._snapshot.by_id.get(asset_id)

    def with_symbol(self, symbol: str) -> tuple[Asset, ...]:
        """Assets sharing ``symbol``, in catalog order."""
        return self._snapshot.by_symbol.get(symbol, ())

    @property
    def assets(self) -> tuple[Asset, ...]:
        return self._snapshot.assets

    def __len__(self) -> int:
        return len(self._snapshot.assets)

    def __contains__(self, asset_id: str) -> bool:
        return asset_id in self._snapshot.by_id
