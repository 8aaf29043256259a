"""Parsing of chat requests and formatting of replies."""

from __future__ import annotations

import re

from minvar.config import MAX_WINDOW_DAYS, MIN_WINDOW_DAYS
from minvar.errors import (
    CatalogUnavailableError,
    EmptyInputError,
    EmptyReturnsError,
    FetchError,
    InsufficientDataError,
    InsufficientHistoryError,
    InvalidPriceError,
    InvalidWindowError,
    MinVarError,
    ResolutionError,
    RetryExhaustedError,
    SingularCovarianceError,
)
from minvar.pipeline import PortfolioResult

HELP_TEXT = (
    "Send a list of coins separated by commas or spaces, e.g.\n"
    "  bitcoin, ethereum, solana\n"
    "  BTC ETH SOL days=90\n"
    f"Optional lookback: days=N or a trailing number ({MIN_WINDOW_DAYS}-{MAX_WINDOW_DAYS})."
)

_SPLIT_RE = re.compile(r"[,\s]+")
_DAYS_RE = re.compile(r"^days=(\d+)$", re.IGNORECASE)


def parse_request(text: str) -> tuple[list[str], int | None]:
    """Split a message into tickers and an optional lookback override.

    The window is validated here so out-of-range values never reach the
    pipeline.
    """
    tokens = [t for t in _SPLIT_RE.split(text.strip()) if t]
    window: int | None = None
    tickers: list[str] = []
    for i, token in enumerate(tokens):
        match = _DAYS_RE.match(token)
        if match:
            window = int(match.group(1))
        elif token.isdigit() and i == len(tokens) - 1 and tickers:
            window = int(token)
        else:
            tickers.append(token)
    if window is not None and not MIN_WINDOW_DAYS <= window <= MAX_WINDOW_DAYS:
        raise InvalidWindowError(window, MIN_WINDOW_DAYS, MAX_WINDOW_DAYS)
    return tickers, window


def format_result(result: PortfolioResult) -> str:
    lines = [f"Minimum-variance allocation ({result.window_days}d, {result.observations} returns):", ""]
    for asset_id, weight in result.weights.items():
        lines.append(f"{asset_id}: {weight * 100:.2f}%")
    lines.append("")
    lines.append(f"Volatility per period: {result.volatility * 100:.3f}%")
    return "\n".join(lines)


def format_error(err: MinVarError) -> str:
    if isinstance(err, ResolutionError):
        return f"Unknown coins: {', '.join(err.missing)}"
    if isinstance(err, InvalidWindowError):
        return f"Lookback must be between {err.low} and {err.high} days (got {err.window_days})."
    if isinstance(err, RetryExhaustedError):
        return f"Price source is rate limiting us ({err.asset_id}). Try again in a minute."
    if isinstance(err, InsufficientDataError):
        return f"Not enough price history for {err.asset_id}."
    if isinstance(err, FetchError):
        return f"Could not load prices for {err.asset_id}."
    if isinstance(err, (EmptyInputError, EmptyReturnsError)):
        return "No coins given.\n\n" + HELP_TEXT
    if isinstance(err, (InsufficientHistoryError, InvalidPriceError)):
        return f"Price history is unusable: {err}"
    if isinstance(err, SingularCovarianceError):
        return (
            "These coins move too closely together (or the window is too short) "
            "to compute a minimum-variance mix. Try fewer coins or a longer window."
        )
    if isinstance(err, CatalogUnavailableError):
        return "Coin list is unavailable right now. Try again later."
    return f"Calculation failed: {err}"
