import numpy as np
import pytest

from sandwich_loglik.loglik import BIG_FINITE_VALUE, RestrictedLoglik
from sandwich_loglik.models import normal_loglik
from sandwich_loglik.params import resolve_layout
from sandwich_loglik.util import as_points, cluster_index, same_point

Y = np.array([1.0, 2.0, 4.0, 3.0, 0.5, 2.5])


def _restricted(**kwargs):
    layout, init = resolve_layout(par_names=["mu", "sigma"], **kwargs)
    return RestrictedLoglik(loglik=normal_loglik, layout=layout, loglik_args={"y": Y}), init


def test_fixed_values_are_inserted():
    restricted, init = _restricted(fixed_pars="sigma", fixed_at=1.5)
    np.testing.assert_allclose(init, [0.1])
    np.testing.assert_allclose(
        restricted.contributions(np.array([2.0])), normal_loglik([2.0, 1.5], y=Y)
    )
    assert restricted.total(np.array([2.0])) == pytest.approx(
        float(np.sum(normal_loglik([2.0, 1.5], y=Y)))
    )


def test_nonfinite_objective_sentinel():
    restricted, _ = _restricted()
    bad = np.array([1.0, -1.0])
    assert restricted.neg_total(bad) == np.inf
    assert restricted.neg_total_finite(bad) == BIG_FINITE_VALUE
    good = np.array([2.0, 1.0])
    assert restricted.neg_total_finite(good) == restricted.neg_total(good)


def test_cluster_totals():
    restricted, _ = _restricted()
    _, inverse = cluster_index(["b", "a", "b", "c", "a", "c"], Y.size)
    x = np.array([2.0, 1.0])
    vals = normal_loglik(x, y=Y)

    totals = restricted.cluster_totals(x, inverse, 3)
    np.testing.assert_allclose(
        totals, [vals[1] + vals[4], vals[0] + vals[2], vals[3] + vals[5]]
    )
    # A bare -inf (out-of-bounds parameters) gives -inf for every cluster.
    assert np.all(restricted.cluster_totals(np.array([2.0, -1.0]), inverse, 3) == -np.inf)


def test_cluster_index_default_is_one_per_observation():
    labels, inverse = cluster_index(None, 4)
    np.testing.assert_array_equal(labels, np.arange(4))
    np.testing.assert_array_equal(inverse, np.arange(4))


def test_as_points_conventions():
    assert as_points(0.5, 1).shape == (1, 1)
    assert as_points([1.0, 2.0, 3.0], 1).shape == (3, 1)
    assert as_points([1.0, 2.0], 2).shape == (1, 2)
    assert as_points([[1.0], [2.0]], 2).shape == (1, 2)
    assert as_points(np.zeros((4, 2)), 2).shape == (4, 2)
    with pytest.raises(ValueError, match="correct dimensions"):
        as_points(np.zeros((4, 3)), 2)


def test_same_point_tolerance():
    mle = np.array([1.0, 100.0])
    assert same_point(mle.copy(), mle)
    assert same_point(mle * (1 + 1e-9), mle)
    assert not same_point(mle + 1e-4, mle)
