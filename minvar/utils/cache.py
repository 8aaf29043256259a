"""In-memory TTL cache for historical price series."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from minvar.config import SETTINGS

CacheKey = tuple[str, int]


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    series: tuple[float, ...]
    fetched_at: float


class PriceCache:
    """Process-lifetime cache keyed by (asset_id, window_days).

    Entries are immutable and replaced wholesale on insert, so concurrent
    readers see either the old or the new entry. Stale entries are not
    removed; they are ignored on lookup and overwritten by the next fetch.
    """

    def __init__(
        self,
        category: str = "price_history",
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds is None:
            ttl_config = SETTINGS.get("cache", {}).get("ttl_seconds", {})
            ttl_seconds = ttl_config.get(category, 300)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._write_lock = threading.Lock()

    def get(self, asset_id: str, window_days: int) -> list[float] | None:
        """Return the cached series if present and fresh, else None."""
        entry = self._entries.get((asset_id, window_days))
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return list(entry.series)

    def set(self, asset_id: str, window_days: int, series: list[float]) -> CacheEntry:
        """Store a series, overwriting any prior entry for the key."""
        key = (asset_id, window_days)
        entry = CacheEntry(key=key, series=tuple(series), fetched_at=self._clock())
        with self._write_lock:
            self._entries[key] = entry
        return entry

    def entry(self, asset_id: str, window_days: int) -> CacheEntry | None:
        """Raw entry lookup, ignoring staleness."""
        return self._entries.get((asset_id, window_days))

    def __len__(self) -> int:
        return len(self._entries)
