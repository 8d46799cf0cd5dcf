from __future__ import annotations

import numpy as np
from scipy.stats import binom


def binom_loglik(prob, *, y, n):
    """Binomial(n, prob) contributions; -inf for prob outside [0, 1]."""
    p = float(np.asarray(prob, dtype=float).reshape(-1)[0])
    if p < 0.0 or p > 1.0:
        return -np.inf
    return binom.logpmf(np.asarray(y), np.asarray(n), p)


def binom_alg_deriv(prob, *, y, n):
    """Derivatives of the contributions with respect to prob, shape (n_obs, 1)."""
    p = float(np.asarray(prob, dtype=float).reshape(-1)[0])
    y = np.asarray(y, dtype=float)
    n = np.asarray(n, dtype=float)
    return (y / p - (n - y) / (1.0 - p))[:, None]


def binom_alg_hess(prob, *, y, n):
    p = float(np.asarray(prob, dtype=float).reshape(-1)[0])
    y = np.asarray(y, dtype=float)
    n = np.asarray(n, dtype=float)
    return np.array([[-np.sum(y) / p**2 - np.sum(n - y) / (1.0 - p) ** 2]])
