from .returns import align_prices, compute_returns
from .optimizer import covariance_matrix, min_variance_weights, optimize, portfolio_variance
