"""Sample covariance and the closed-form global minimum-variance portfolio.

For returns R (N rows, k assets) with sample covariance S, the weights
minimising w'Sw subject to sum(w) = 1 are

    w = S^-1 1 / (1' S^-1 1)

No bounds are imposed, so weights may be negative (short positions).
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from minvar.config import SETTINGS
from minvar.errors import EmptyReturnsError, SingularCovarianceError
from minvar.utils.logger import setup_logger

logger = setup_logger("optimizer")

_DEFAULT_MAX_CONDITION = 1e12


def _max_condition() -> float:
    return float(SETTINGS.get("optimizer", {}).get("max_condition", _DEFAULT_MAX_CONDITION))


def covariance_matrix(returns: pd.DataFrame) -> pd.DataFrame:
    """Sample covariance with Bessel's correction (divide by N - 1)."""
    n = len(returns)
    if n == 0:
        raise EmptyReturnsError("Return matrix has no rows")
    if n < 2:
        raise SingularCovarianceError("Covariance needs at least 2 return observations")

    values = returns.to_numpy(dtype=float)
    demeaned = values - values.mean(axis=0)
    cov = demeaned.T @ demeaned / (n - 1)
    return pd.DataFrame(cov, index=returns.columns, columns=returns.columns)


def _invert(cov: np.ndarray, max_condition: float) -> np.ndarray:
    """Invert ``cov`` or raise SingularCovarianceError."""
    if not np.all(np.isfinite(cov)):
        raise SingularCovarianceError("Covariance matrix contains non-finite values")
    cond = np.linalg.cond(cov)
    if not np.isfinite(cond) or cond > max_condition:
        raise SingularCovarianceError(
            f"Covariance matrix is singular or ill-conditioned (condition number {cond:.3g})"
        )
    try:
        return np.linalg.inv(cov)
    except np.linalg.LinAlgError as e:
        raise SingularCovarianceError(f"Covariance matrix is not invertible: {e}") from e


def min_variance_weights(cov: pd.DataFrame, max_condition: float | None = None) -> pd.Series:
    """Global minimum-variance weights for a covariance matrix."""
    if max_condition is None:
        max_condition = _max_condition()
    cov_inv = _invert(cov.to_numpy(dtype=float), max_condition)

    ones = np.ones(cov_inv.shape[0])
    numerator = cov_inv @ ones
    denominator = float(ones @ cov_inv @ ones)
    if not np.isfinite(denominator) or denominator <= 0:
        raise SingularCovarianceError(
            f"Degenerate covariance inverse (1' S^-1 1 = {denominator:.3g})"
        )

    weights = numerator / denominator
    if not np.all(np.isfinite(weights)):
        raise SingularCovarianceError("Optimisation produced non-finite weights")
    return pd.Series(weights, index=cov.columns, name="weight")


def optimize(returns: pd.DataFrame, max_condition: float | None = None) -> pd.Series:
    """Minimum-variance weight vector, indexed by the return matrix columns."""
    cov = covariance_matrix(returns)
    weights = min_variance_weights(cov, max_condition=max_condition)
    logger.info(
        "Min-variance weights over %d observations: %s",
        len(returns), ", ".join(f"{k}={v:.4f}" for k, v in weights.items()),
    )
    return weights


def portfolio_variance(weights: pd.Series, cov: pd.DataFrame) -> float:
    """w' S w for aligned weights and covariance."""
    w = weights.reindex(cov.columns).to_numpy(dtype=float)
    return float(w @ cov.to_numpy(dtype=float) @ w)
