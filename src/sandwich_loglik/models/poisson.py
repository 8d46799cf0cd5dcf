from __future__ import annotations

import numpy as np
from scipy.stats import poisson


def _mu(pars, x):
    pars = np.asarray(pars, dtype=float).reshape(-1)
    return np.exp(pars[0] + pars[1] * x + pars[2] * x**2)


def pois_glm_loglik(pars, *, y, x):
    """Poisson GLM with log link and a quadratic predictor: alpha + beta x + gamma x^2."""
    x = np.asarray(x, dtype=float)
    return poisson.logpmf(np.asarray(y), _mu(pars, x))


def pois_glm_alg_deriv(pars, *, y, x):
    x = np.asarray(x, dtype=float)
    resid = np.asarray(y, dtype=float) - _mu(pars, x)
    return np.column_stack([resid, x * resid, x**2 * resid])


def pois_glm_alg_hess(pars, *, y, x):
    x = np.asarray(x, dtype=float)
    mu = _mu(pars, x)
    m = [np.sum(x**k * mu) for k in range(5)]
    return -np.array(
        [
            [m[0], m[1], m[2]],
            [m[1], m[2], m[3]],
            [m[2], m[3], m[4]],
        ]
    )
