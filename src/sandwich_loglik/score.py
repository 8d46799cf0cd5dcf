from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from .loglik import RestrictedLoglik
from .numdiff import jacobian
from .util import as_square


@dataclass(frozen=True)
class ScoreInfo:
    """Variability of the score: either the cluster score matrix U or a supplied V.

    U has shape (n_clusters, n_free); row k holds the derivatives of the
    loglikelihood contributions of cluster k. V is the (n_free, n_free)
    covariance of the score vector. Exactly one of them is set.
    """

    U: Optional[np.ndarray] = None
    V: Optional[np.ndarray] = None


def cluster_sums(rows: np.ndarray, inverse: np.ndarray, n_clusters: int) -> np.ndarray:
    """Sum the rows of an (n_obs, p) matrix within each cluster -> (n_clusters, p)."""
    rows = np.asarray(rows, dtype=float)
    if rows.ndim == 1:
        rows = rows[:, None]
    if rows.shape[0] != inverse.shape[0]:
        raise ValueError(
            f"alg_deriv must return one row per observation ({rows.shape[0]} != {inverse.shape[0]})."
        )
    out = np.zeros((n_clusters, rows.shape[1]), dtype=float)
    np.add.at(out, inverse, rows)
    return out


def score_info(
    restricted: RestrictedLoglik,
    mle: np.ndarray,
    inverse: np.ndarray,
    n_clusters: int,
    *,
    alg_deriv: Optional[Callable[..., Any]] = None,
    V: Any = None,
) -> ScoreInfo:
    """Estimate the cluster score matrix U at the MLE, or pass through a supplied V."""
    layout = restricted.layout
    if V is not None:
        return ScoreInfo(V=as_square(V, layout.p_current, what="V"))

    if alg_deriv is None:
        U = jacobian(
            lambda x: restricted.cluster_totals(x, inverse, n_clusters),
            np.asarray(mle, dtype=float),
        )
        return ScoreInfo(U=U)

    derivs = np.asarray(restricted.call_full(alg_deriv, layout.expand(mle)), dtype=float)
    if derivs.ndim == 1:
        derivs = derivs[:, None]
    if derivs.shape[1] != layout.p_full:
        raise ValueError(
            f"alg_deriv must return a matrix with p = {layout.p_full} columns, "
            f"got shape {derivs.shape}."
        )
    U = cluster_sums(derivs, inverse, n_clusters)
    return ScoreInfo(U=U[:, list(layout.free_pars)])
