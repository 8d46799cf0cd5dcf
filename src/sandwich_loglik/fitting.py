from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional
from warnings import warn

import numpy as np

from .backends import get_backend
from .loglik import RestrictedLoglik
from .numdiff import hessian
from .util import as_square

DEFAULT_METHOD = "BFGS"

# Methods that cannot cope with inf/nan objective values.
NONFINITE_INTOLERANT = frozenset({"L-BFGS-B", "TNC", "Brent"})


@dataclass(frozen=True)
class IndependenceFit:
    """Maximum of the independence loglikelihood and its curvature there."""

    mle: np.ndarray  # free parameters
    res_mle: np.ndarray  # full parameter vector, fixed values inserted
    max_loglik: float
    HI: np.ndarray  # Hessian of the loglikelihood (not its negation), free block
    stats: Dict[str, Any] = field(default_factory=dict)


def resolve_method(options: Mapping[str, Any], n_free: int) -> str:
    """Optimiser method, defaulting to BFGS.

    1-D Nelder-Mead is unreliable, so it is replaced by BFGS for a single free
    parameter.
    """
    method = options.get("method", None) or DEFAULT_METHOD
    method = str(method)
    if n_free == 1 and method == "Nelder-Mead":
        method = DEFAULT_METHOD
    return method


def check_finite_at(restricted: RestrictedLoglik, x: np.ndarray) -> np.ndarray:
    """Loglikelihood contributions at x, which must all be finite."""
    vals = restricted.contributions(x)
    if not np.all(np.isfinite(vals)):
        raise ValueError("The loglikelihood is not finite at init.")
    return vals


def fit_independence(
    restricted: RestrictedLoglik,
    init: np.ndarray,
    *,
    backend: str = "scipy.minimize",
    backend_options: Optional[Mapping[str, Any]] = None,
    mle: Optional[np.ndarray] = None,
    H: Any = None,
    alg_hess: Optional[Callable[..., Any]] = None,
) -> IndependenceFit:
    """Find (or accept) the MLE and the independence Hessian HI.

    If `mle` is None the optimiser backend minimises the negated
    loglikelihood and reports its Hessian at the minimum. Otherwise the
    Hessian comes from `H` (the Hessian of the loglikelihood) or is estimated
    numerically at `mle`. An algebraic Hessian `alg_hess` takes precedence over
    both.
    """
    layout = restricted.layout
    n_free = layout.p_current
    options = dict(backend_options or {})
    # The Hessian at the optimum is always computed.
    options.pop("hessian", None)
    method = resolve_method(options, n_free)

    if method in NONFINITE_INTOLERANT:
        objective = restricted.neg_total_finite
    else:
        objective = restricted.neg_total

    stats: Dict[str, Any] = {"backend": backend, "method": method}

    if mle is None:
        res = get_backend(backend).minimize(
            objective,
            np.asarray(init, dtype=float),
            method=method,
            bounds=options.get("bounds", None),
            options=options,
        )
        if not res.success:
            warn(f"Optimisation may not have converged: {res.message}", UserWarning)
        stats.update(res.stats)
        stats["success"] = bool(res.success)
        stats["message"] = str(res.message)
        mle_free = np.asarray(res.x, dtype=float).reshape(-1)
        max_loglik = -float(res.fun)
        neg_hess = res.hessian
    else:
        stats["method"] = "supplied"
        mle_free = np.asarray(mle, dtype=float).reshape(-1)
        max_loglik = -float(objective(mle_free))
        if alg_hess is not None:
            neg_hess = None
        elif H is None:
            neg_hess = hessian(objective, mle_free)
        else:
            neg_hess = -as_square(H, n_free, what="H")

    res_mle = np.array(layout.expand(mle_free), dtype=float)
    if alg_hess is None:
        HI = -np.asarray(neg_hess, dtype=float).reshape((n_free, n_free))
    else:
        full_hess = as_square(
            restricted.call_full(alg_hess, res_mle), layout.p_full, what="alg_hess(...)"
        )
        free = list(layout.free_pars)
        HI = full_hess[np.ix_(free, free)]

    return IndependenceFit(
        mle=mle_free,
        res_mle=res_mle,
        max_loglik=max_loglik,
        HI=HI,
        stats=stats,
    )
