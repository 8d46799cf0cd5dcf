import numpy as np

from sandwich_loglik.models import binom_loglik, normal_loglik
from sandwich_loglik.numdiff import hessian, jacobian


def _narrow_normal(seed=4, n=200, scale=0.01):
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, scale, size=n)


def test_hessian_stays_inside_small_scale_parameter_space():
    y = _narrow_normal()
    mle = np.array([np.mean(y), np.std(y)])
    s, n = mle[1], y.size

    hess = hessian(lambda v: -np.sum(normal_loglik(v, y=y)), mle)

    assert np.all(np.isfinite(hess))
    np.testing.assert_allclose(
        hess, [[n / s**2, 0.0], [0.0, 2 * n / s**2]], rtol=1e-5, atol=1e-3 * n / s**2
    )


def test_hessian_near_zero_coordinate():
    hess = hessian(lambda v: float(np.sum(v**2) + v[0] * v[1]), np.array([0.0, 1e-3]))
    np.testing.assert_allclose(hess, [[2.0, 1.0], [1.0, 2.0]], atol=1e-6)


def test_jacobian_close_to_probability_bound():
    y = np.array([0, 1, 0, 0, 2])
    n = np.full(5, 3)
    p = np.array([0.002])

    jac = jacobian(lambda v: binom_loglik(v, y=y, n=n), p)

    assert jac.shape == (5, 1)
    expected = y / p[0] - (n - y) / (1.0 - p[0])
    np.testing.assert_allclose(jac[:, 0], expected, rtol=1e-5)


def test_jacobian_broadcasts_bare_minus_inf():
    def contributions(v):
        if v[0] > 1.0:
            return -np.inf
        return np.array([1.0, 2.0, 3.0]) * v[0]

    # central differences at the bound straddle the -inf region
    jac = jacobian(contributions, np.array([1.0]))
    assert jac.shape == (3, 1)
