import numpy as np
import pytest

from sandwich_loglik.adjustment import build_adjustment
from sandwich_loglik.score import ScoreInfo, cluster_sums


def _problem(seed=0, n=3, k=40):
    rng = np.random.default_rng(seed)
    A = rng.normal(size=(n, n))
    HI = -(A @ A.T + n * np.eye(n))
    U = rng.normal(size=(k, n)) * np.array([1.0, 3.0, 0.5])[:n]
    return HI, U


def test_curvature_matching_for_both_square_roots():
    HI, U = _problem()
    adj = build_adjustment(HI, ScoreInfo(U=U))

    for C in (adj.C_cholesky, adj.C_spectral):
        np.testing.assert_allclose(C.T @ adj.HI @ C, adj.HA, rtol=1e-8, atol=1e-10)

    # The two reparameterisations are genuinely different matrices.
    assert not np.allclose(adj.C_cholesky, adj.C_spectral)
    # Cholesky version is upper triangular.
    np.testing.assert_allclose(np.tril(adj.C_cholesky, -1), 0.0, atol=1e-12)


def test_covariances_are_negated_inverse_hessians():
    HI, U = _problem(seed=1)
    adj = build_adjustment(HI, ScoreInfo(U=U))

    np.testing.assert_allclose(adj.VC, -np.linalg.inv(HI), rtol=1e-10)
    np.testing.assert_allclose(adj.VC, -adj.HIinv)
    np.testing.assert_allclose(adj.adjVC, -adj.HAinv)
    np.testing.assert_allclose(adj.HA, np.linalg.inv(adj.HAinv), rtol=1e-8)
    np.testing.assert_allclose(adj.SE, np.sqrt(np.diag(adj.VC)))
    np.testing.assert_allclose(adj.adjSE, np.sqrt(np.diag(adj.adjVC)))

    for m in (adj.VC, adj.adjVC):
        np.testing.assert_allclose(m, m.T, atol=1e-12)
        assert np.all(np.linalg.eigvalsh(m) > 0)


def test_sandwich_formula_matches_supplied_score_covariance():
    HI, U = _problem(seed=2)
    from_u = build_adjustment(HI, ScoreInfo(U=U))
    from_v = build_adjustment(HI, ScoreInfo(V=U.T @ U))

    HIinv = np.linalg.inv(HI)
    np.testing.assert_allclose(from_u.adjVC, HIinv @ (U.T @ U) @ HIinv, rtol=1e-8)
    for attr in ("HA", "adjVC", "C_cholesky", "C_spectral"):
        np.testing.assert_allclose(getattr(from_u, attr), getattr(from_v, attr), rtol=1e-8)


def test_single_parameter():
    HI = np.array([[-4.0]])
    U = np.array([[1.0], [-2.0], [3.0]])
    adj = build_adjustment(HI, ScoreInfo(U=U))

    assert adj.C_cholesky.shape == (1, 1)
    assert adj.C_spectral.shape == (1, 1)
    # V = 14, adjVC = 14 / 16
    np.testing.assert_allclose(adj.adjVC, [[14.0 / 16.0]])
    np.testing.assert_allclose(adj.HA, [[-16.0 / 14.0]])
    expected = np.sqrt(adj.HA[0, 0] / HI[0, 0])
    np.testing.assert_allclose(adj.C_cholesky, [[expected]])
    np.testing.assert_allclose(adj.C_spectral, [[expected]])


def test_not_positive_definite_raises():
    with pytest.raises(np.linalg.LinAlgError):
        build_adjustment(np.eye(2), ScoreInfo(V=np.eye(2)))


def test_cluster_sums_aggregates_rows():
    rows = np.arange(12, dtype=float).reshape(6, 2)
    inverse = np.array([0, 1, 0, 2, 1, 0])
    out = cluster_sums(rows, inverse, 3)
    np.testing.assert_allclose(out, [[0 + 4 + 10, 1 + 5 + 11], [2 + 8, 3 + 9], [6, 7]])
