"""Sandwich adjustment of the independence loglikelihood.

Given the Hessian HI of the independence loglikelihood at its maximum and the
variability of the score, the adjusted Hessian is

    HA = -(HIinv V HIinv)^{-1},    V = U^T U,

and two matrices C with C^T HI C = HA are built for the horizontal
adjustments, from Cholesky and symmetric (spectral) square roots of -HI and
-HA. See Chandler and Bate (2007), Biometrika 94(1), 167-183.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.linalg import cho_solve, cholesky, eigh, solve_triangular

from .score import ScoreInfo


@dataclass(frozen=True)
class Adjustment:
    HI: np.ndarray
    HA: np.ndarray
    HIinv: np.ndarray
    HAinv: np.ndarray
    VC: np.ndarray  # unadjusted covariance, -HIinv
    adjVC: np.ndarray  # adjusted covariance, -HAinv
    SE: np.ndarray
    adjSE: np.ndarray
    C_cholesky: np.ndarray
    C_spectral: np.ndarray


def _chol_inv(upper: np.ndarray) -> np.ndarray:
    """Inverse of R^T R given its upper Cholesky factor R."""
    n = upper.shape[0]
    return cho_solve((upper, False), np.eye(n))


def _sym_sqrt(a: np.ndarray) -> np.ndarray:
    """Symmetric square root Q sqrt(L) Q^T of a symmetric positive definite matrix."""
    vals, vecs = eigh(a)
    n = a.shape[0]
    # explicit shape keeps the one-parameter case a 1x1 matrix
    root = np.diag(np.sqrt(vals)).reshape((n, n))
    return vecs @ root @ vecs.T


def build_adjustment(HI: np.ndarray, score: ScoreInfo) -> Adjustment:
    """Adjusted Hessian, covariances and the horizontal adjustment matrices.

    Raises numpy.linalg.LinAlgError if -HI or -HAinv is not positive definite.
    """
    HI = np.asarray(HI, dtype=float)
    n = HI.shape[0]

    MI = cholesky(-HI, lower=False)
    HIinv = -_chol_inv(MI)
    VC = -HIinv
    SE = np.sqrt(np.diag(VC))

    if score.V is not None:
        HAinv = -HIinv @ score.V @ HIinv
    else:
        UHIinv = score.U @ HIinv
        HAinv = -UHIinv.T @ UHIinv
    HAinv = 0.5 * (HAinv + HAinv.T)

    HA = -_chol_inv(cholesky(-HAinv, lower=False))
    HA = 0.5 * (HA + HA.T)
    adjVC = -HAinv
    adjSE = np.sqrt(np.diag(adjVC))

    MA = cholesky(-HA, lower=False)
    C_cholesky = solve_triangular(MI, MA, lower=False)

    MI_sym = _sym_sqrt(-HI)
    MA_sym = _sym_sqrt(-HA)
    C_spectral = np.linalg.solve(MI_sym, MA_sym)

    return Adjustment(
        HI=HI.reshape((n, n)),
        HA=HA,
        HIinv=HIinv,
        HAinv=HAinv,
        VC=VC,
        adjVC=adjVC,
        SE=SE,
        adjSE=adjSE,
        C_cholesky=C_cholesky,
        C_spectral=C_spectral,
    )
