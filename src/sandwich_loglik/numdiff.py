"""Numerical differentiation service (numdifftools)."""

from __future__ import annotations

from typing import Callable

import numdifftools as nd
import numpy as np

# Largest step, relative to |x|, taken by the central differences.
BASE_STEP = 1e-4
# Floor on the step scale, for coordinates at or near zero.
MIN_STEP_SCALE = 1e-2


def _steps(x: np.ndarray) -> nd.MinStepGenerator:
    """Central-difference steps of at most BASE_STEP * max(|x_i|, MIN_STEP_SCALE)."""
    return nd.MinStepGenerator(
        base_step=BASE_STEP, step_nom=np.maximum(np.abs(x), MIN_STEP_SCALE)
    )


def jacobian(func: Callable[[np.ndarray], np.ndarray], x: np.ndarray) -> np.ndarray:
    """Jacobian of a vector-valued function at x, shape (len(func(x)), len(x)).

    A length-1 result (a bare -inf) is broadcast to the length of func(x).
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    m = np.asarray(func(x), dtype=float).reshape(-1).shape[0]

    def _f(v):
        out = np.asarray(func(np.atleast_1d(np.asarray(v, dtype=float))), dtype=float).reshape(-1)
        if out.shape[0] == 1 and m > 1:
            out = np.broadcast_to(out, (m,))
        return out

    jac = nd.Jacobian(_f, step=_steps(x), method="central")(x)
    return np.asarray(jac, dtype=float).reshape((m, x.shape[0]))


def hessian(func: Callable[[np.ndarray], float], x: np.ndarray) -> np.ndarray:
    """Hessian of a scalar function at x, shape (len(x), len(x))."""
    x = np.asarray(x, dtype=float).reshape(-1)
    n = x.shape[0]

    def _f(v):
        return float(func(np.atleast_1d(np.asarray(v, dtype=float))))

    hess = np.asarray(nd.Hessian(_f, step=_steps(x), method="central")(x), dtype=float)
    hess = hess.reshape((n, n))
    return 0.5 * (hess + hess.T)
