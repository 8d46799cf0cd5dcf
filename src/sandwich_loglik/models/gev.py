from __future__ import annotations

import numpy as np
from scipy.stats import genextreme


def gev_loglik(pars, *, y):
    """GEV(mu, sigma, xi) contributions; -inf outside the support or for sigma <= 0.

    xi > 0 is the heavy-tailed (Frechet) case. scipy's genextreme uses c = -xi.
    """
    mu, sigma, xi = np.asarray(pars, dtype=float).reshape(-1)
    if sigma <= 0.0:
        return -np.inf
    return genextreme.logpdf(np.asarray(y, dtype=float), -xi, loc=mu, scale=sigma)


def two_site_gev_loglik(pars, *, data):
    """Joint GEV contributions for two sites observed in the same years.

    pars = (mu0, mu1, sigma0, sigma1, xi0, xi1): site A uses the sums
    (mu0 + mu1, ...) and site B the differences (mu0 - mu1, ...), so the
    '1' parameters measure the difference between the sites. data has one
    row per year and one column per site.
    """
    pars = np.asarray(pars, dtype=float).reshape(-1)
    data = np.asarray(data, dtype=float)
    a_pars = pars[[0, 2, 4]] + pars[[1, 3, 5]]
    b_pars = pars[[0, 2, 4]] - pars[[1, 3, 5]]
    a = np.atleast_1d(gev_loglik(a_pars, y=data[:, 0]))
    b = np.atleast_1d(gev_loglik(b_pars, y=data[:, 1]))
    return a + b
