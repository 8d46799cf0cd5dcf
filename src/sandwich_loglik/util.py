from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

import numpy as np

# Relative/absolute tolerance for treating a point as the MLE (sqrt of machine eps).
MLE_RTOL = 1.5e-8
MLE_ATOL = 1.5e-8


def as_points(x: Any, n_pars: int) -> np.ndarray:
    """Coerce evaluator input to a (rows, n_pars) matrix.

    Conventions:
    - a bare vector of length n_pars is one point
    - if n_pars == 1, a vector of any length is a column of points
    - a single-column matrix is transposed when n_pars > 1
    """
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape((1, 1))
    elif arr.ndim == 1:
        arr = arr[:, None] if n_pars == 1 else arr[None, :]
    elif arr.ndim != 2:
        raise ValueError(f"x must be a vector or a matrix, got shape {arr.shape}.")

    if n_pars > 1 and arr.shape[1] == 1:
        arr = arr.T
    if arr.shape[1] != n_pars:
        raise ValueError(
            f"x does not have the correct dimensions: expected {n_pars} column(s), "
            f"got {arr.shape[1]}."
        )
    return arr


def same_point(x: np.ndarray, mle: np.ndarray) -> bool:
    """True if x equals mle within MLE_RTOL/MLE_ATOL."""
    return bool(np.allclose(x, mle, rtol=MLE_RTOL, atol=MLE_ATOL))


def cluster_index(cluster: Any, n_obs: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return (labels, inverse) for a cluster vector, validating it.

    `cluster=None` puts every observation in its own cluster.
    """
    if cluster is None:
        labels = np.arange(n_obs)
        return labels, labels.copy()

    arr = np.asarray(cluster)
    if arr.ndim != 1:
        raise ValueError("cluster must be a one-dimensional vector.")
    labels, inverse = np.unique(arr, return_inverse=True)
    if labels.size < 2:
        raise ValueError("There must be more than one cluster.")
    if arr.shape[0] != n_obs:
        raise ValueError(
            "cluster must have the same length as the vector returned by loglik "
            f"({arr.shape[0]} != {n_obs})."
        )
    return labels, inverse.reshape(-1)


def as_square(
    mat: Any, n: int, *, what: str
) -> np.ndarray:
    """Return mat as an (n, n) float matrix; a scalar is accepted when n == 1."""
    a = np.asarray(mat, dtype=float)
    if a.ndim == 0 and n == 1:
        a = a.reshape((1, 1))
    if a.shape != (n, n):
        raise ValueError(f"{what} must be a {n} by {n} matrix, got shape {a.shape}.")
    return a


def label(names: Optional[Sequence[str]], index: int) -> str:
    """Name of parameter `index`, or a positional label when names are absent."""
    if names is None:
        return f"theta[{index}]"
    return str(names[index])
