"""Log-return computation over aligned price histories."""

from __future__ import annotations

import numpy as np
import pandas as pd

from minvar.errors import EmptyInputError, InsufficientHistoryError, InvalidPriceError


def align_prices(prices: dict[str, list[float]]) -> pd.DataFrame:
    """Trim every series to the common length, keeping the most recent points.

    Columns follow the mapping's insertion order.
    """
    if not prices:
        raise EmptyInputError("No price series supplied")

    min_length = min(len(series) for series in prices.values())
    if min_length < 2:
        raise InsufficientHistoryError(min_length)

    columns = {}
    for asset_id, series in prices.items():
        tail = np.asarray(series[len(series) - min_length:], dtype=float)
        bad = ~np.isfinite(tail) | (tail <= 0)
        if bad.any():
            raise InvalidPriceError(asset_id, float(tail[bad][0]))
        columns[asset_id] = tail
    return pd.DataFrame(columns, columns=list(prices.keys()))


def compute_returns(prices: dict[str, list[float]]) -> pd.DataFrame:
    """Log returns ln(p[i] / p[i-1]); one row per step, one column per asset."""
    aligned = align_prices(prices)
    values = aligned.to_numpy()
    log_returns = np.log(values[1:] / values[:-1])
    return pd.DataFrame(log_returns, columns=aligned.columns)
