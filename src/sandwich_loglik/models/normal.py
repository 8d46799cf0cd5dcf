from __future__ import annotations

import numpy as np
from scipy.stats import norm


def normal_loglik(pars, *, y):
    """Normal(mu, sigma) contributions, pars = (mu, sigma); -inf unless sigma > 0."""
    mu, sigma = np.asarray(pars, dtype=float).reshape(-1)
    if sigma <= 0.0:
        return -np.inf
    return norm.logpdf(np.asarray(y, dtype=float), loc=mu, scale=sigma)
