from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import numpy as np

from .params import ParameterLayout

# Stand-in for a non-finite objective, for optimisers that cannot handle inf/nan.
BIG_FINITE_VALUE = 1e10


@dataclass(frozen=True)
class RestrictedLoglik:
    """Loglikelihood of the free parameters, with fixed values substituted.

    Immutable context shared by the objective handed to the optimiser, the
    cluster aggregation used for the score and the adjusted evaluator.
    """

    loglik: Callable[..., Any]
    layout: ParameterLayout
    loglik_args: Mapping[str, Any] = field(default_factory=dict)

    def call_full(self, func: Callable[..., Any], full: np.ndarray) -> Any:
        """Call loglik (or alg_deriv/alg_hess) at a full parameter vector."""
        return func(full, **self.loglik_args)

    def contributions(self, x: np.ndarray) -> np.ndarray:
        """Per-observation loglikelihood contributions at free parameters x."""
        full = self.layout.expand(x)
        vals = self.call_full(self.loglik, full)
        return np.atleast_1d(np.asarray(vals, dtype=float)).reshape(-1)

    def total(self, x: np.ndarray) -> float:
        """Independence loglikelihood at free parameters x."""
        return float(np.sum(self.contributions(x)))

    def neg_total(self, x: np.ndarray) -> float:
        return -self.total(x)

    def neg_total_finite(self, x: np.ndarray) -> float:
        """Negated loglikelihood, with non-finite values replaced by BIG_FINITE_VALUE."""
        val = -self.total(x)
        if not np.isfinite(val):
            return BIG_FINITE_VALUE
        return val

    def cluster_totals(self, x: np.ndarray, inverse: np.ndarray, n_clusters: int) -> np.ndarray:
        """Loglikelihood contributions summed within each cluster."""
        vals = self.contributions(x)
        if vals.shape[0] == 1:
            # loglik returned a bare -inf for out-of-bounds parameters
            vals = np.broadcast_to(vals, inverse.shape)
        return np.bincount(inverse, weights=vals, minlength=n_clusters)
