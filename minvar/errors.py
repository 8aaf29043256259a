"""Typed errors raised by the minimum-variance pipeline.

Every stage raises a subclass of ``MinVarError`` carrying enough context
(asset id, window) for the front end to build an actionable message.
"""

from __future__ import annotations


class MinVarError(Exception):
    """Base class for all pipeline errors."""


class InvalidWindowError(MinVarError, ValueError):
    def __init__(self, window_days: int, low: int, high: int):
        self.window_days = window_days
        self.low = low
        self.high = high
        super().__init__(f"Lookback window {window_days} is outside [{low}, {high}] days")


# --- Catalog / resolution ---------------------------------------------------

class CatalogUnavailableError(MinVarError):
    """The asset catalog could not be loaded and no previous snapshot exists."""


class ResolutionError(MinVarError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Unknown tickers: {', '.join(self.missing)}")


# --- Upstream ---------------------------------------------------------------

class UpstreamError(MinVarError):
    """The upstream price source failed or returned an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(UpstreamError):
    """HTTP 429 from the upstream source; safe to retry after a delay."""


# --- Fetching ---------------------------------------------------------------

class FetchError(MinVarError):
    def __init__(self, asset_id: str, cause: object = None, window_days: int | None = None):
        self.asset_id = asset_id
        self.cause = cause
        self.window_days = window_days
        super().__init__(self._describe())

    def _describe(self) -> str:
        window = f" ({self.window_days}d)" if self.window_days is not None else ""
        return f"Failed to fetch prices for {self.asset_id}{window}: {self.cause}"


class RetryExhaustedError(FetchError):
    def __init__(self, asset_id: str, attempts: int, window_days: int | None = None):
        self.attempts = attempts
        super().__init__(asset_id, f"still rate-limited after {attempts} attempts", window_days)


class InsufficientDataError(FetchError):
    def __init__(self, asset_id: str, points: int, window_days: int | None = None):
        self.points = points
        super().__init__(asset_id, f"only {points} price point(s) returned, need at least 2", window_days)


# --- Returns ----------------------------------------------------------------

class EmptyInputError(MinVarError):
    """No price series were supplied."""


class InsufficientHistoryError(MinVarError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Common price history has {length} point(s), need at least 2")


class InvalidPriceError(MinVarError):
    def __init__(self, asset_id: str, value: float):
        self.asset_id = asset_id
        self.value = value
        super().__init__(f"Non-positive or non-finite price {value!r} for {asset_id}")


# --- Optimization -----------------------------------------------------------

class EmptyReturnsError(MinVarError):
    """The return matrix has no rows."""


class SingularCovarianceError(MinVarError):
    """Covariance matrix is singular or too ill-conditioned to invert."""
