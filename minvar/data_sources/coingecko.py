"""CoinGecko REST client - asset markets and historical market charts.

Only two endpoints are used:
    /coins/markets               -> catalog snapshot (id, symbol, market cap rank)
    /coins/{id}/market_chart     -> USD price history over N days

HTTP 429 is raised as RateLimitedError so callers can back off and retry;
every other failure (error status, transport error, malformed payload) is
raised as UpstreamError.
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter

from minvar.config import SETTINGS, Keys
from minvar.errors import RateLimitedError, UpstreamError
from minvar.utils.logger import setup_logger
from minvar.utils.rate_limiter import RateLimiter

logger = setup_logger("coingecko")

_MARKETS_PAGE_SIZE = 250


class CoinGeckoClient:
    """Thin wrapper over the CoinGecko public API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        cfg = SETTINGS.get("coingecko", {})
        self.base_url = (base_url or cfg.get("base_url", "https://api.coingecko.com/api/v3")).rstrip("/")
        self.timeout = timeout or cfg.get("timeout", 30)
        self.rate_limiter = rate_limiter or RateLimiter(cfg.get("calls_per_minute", 25))

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session
        self.session.headers.update({"Accept": "application/json", "User-Agent": "minvar/1.0"})

        api_key = Keys.COINGECKO if api_key is None else api_key
        if api_key:
            self.session.headers["x-cg-demo-api-key"] = api_key

    def _get(self, path: str, params: dict) -> object:
        url = f"{self.base_url}{path}"
        self.rate_limiter.wait()
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"GET {path} failed: {e}") from e

        if resp.status_code == 429:
            logger.warning("Rate limited by CoinGecko on %s", path)
            raise RateLimitedError(f"GET {path} rate limited", status_code=429)
        if resp.status_code >= 400:
            raise UpstreamError(
                f"GET {path} returned HTTP {resp.status_code}", status_code=resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"GET {path} returned invalid JSON") from e

    def list_markets(self, pages: int = 1, vs_currency: str = "usd") -> list[dict]:
        """List known assets ordered by market cap.

        Returns dicts with ``id``, ``symbol`` and ``market_cap_rank`` keys.
        """
        rows: list[dict] = []
        for page in range(1, pages + 1):
            data = self._get(
                "/coins/markets",
                {
                    "vs_currency": vs_currency,
                    "order": "market_cap_desc",
                    "per_page": _MARKETS_PAGE_SIZE,
                    "page": page,
                },
            )
            if not isinstance(data, list):
                raise UpstreamError("/coins/markets returned an unexpected payload")
            for item in data:
                if not isinstance(item, dict) or not item.get("id"):
                    continue
                rows.append({
                    "id": item["id"],
                    "symbol": item.get("symbol") or "",
                    "market_cap_rank": item.get("market_cap_rank"),
                })
            if len(data) < _MARKETS_PAGE_SIZE:
                break
        logger.info("Loaded %d markets from CoinGecko", len(rows))
        return rows

    def get_market_chart(self, asset_id: str, days: int, vs_currency: str = "usd") -> list[float]:
        """Chronologically ordered USD prices for ``asset_id`` over ``days``."""
        data = self._get(
            f"/coins/{asset_id}/market_chart",
            {"vs_currency": vs_currency, "days": days},
        )
        if not isinstance(data, dict) or not isinstance(data.get("prices"), list):
            raise UpstreamError(f"market_chart for {asset_id} has no price list")
        try:
            return [float(point[1]) for point in data["prices"]]
        except (TypeError, ValueError, IndexError) as e:
            raise UpstreamError(f"market_chart for {asset_id} has malformed points") from e
