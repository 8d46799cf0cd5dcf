import numpy as np
import pytest

from sandwich_loglik.params import ParameterLayout, resolve_layout


def test_dimension_from_any_single_source():
    layout, init = resolve_layout(p=3)
    assert layout.p_full == 3
    np.testing.assert_allclose(init, [0.1, 0.1, 0.1])

    layout, init = resolve_layout(init=[1.0, 2.0])
    assert layout.p_full == 2
    np.testing.assert_allclose(init, [1.0, 2.0])

    layout, _ = resolve_layout(par_names="p")
    assert layout.p_full == 1
    assert layout.full_par_names == ("p",)


def test_dimension_must_be_set():
    with pytest.raises(ValueError, match="has not been set"):
        resolve_layout()


def test_inconsistent_dimensions_name_the_conflict():
    with pytest.raises(ValueError, match="p and init are not consistent"):
        resolve_layout(p=2, init=[0.0, 0.0, 0.0])
    with pytest.raises(ValueError, match="init and par_names are not consistent"):
        resolve_layout(init=[0.0, 0.0], par_names=["a"])
    with pytest.raises(ValueError, match="p and init and par_names are not consistent"):
        resolve_layout(p=2, init=[0.0, 0.0], par_names=["a", "b", "c"])


def test_fixed_by_name_is_sorted_with_values():
    layout, init = resolve_layout(
        init=[1.0, 2.0, 3.0],
        par_names=["a", "b", "c"],
        fixed_pars=["c", "a"],
        fixed_at=[30.0, 10.0],
    )
    assert layout.fixed_pars == (0, 2)
    assert layout.fixed_at == (10.0, 30.0)
    assert layout.free_pars == (1,)
    assert layout.par_names == ("b",)
    assert layout.fixed_names == ("a", "c")
    np.testing.assert_allclose(init, [2.0])
    np.testing.assert_allclose(layout.expand([5.0]), [10.0, 5.0, 30.0])


def test_fixed_by_index_broadcasts_fixed_at():
    layout, _ = resolve_layout(p=4, fixed_pars=[3, 1], fixed_at=7.0)
    assert layout.fixed_pars == (1, 3)
    assert layout.fixed_at == (7.0, 7.0)
    assert layout.free_pars == (0, 2)
    assert layout.p_current == 2
    assert layout.par_names is None


def test_fixed_names_need_par_names():
    with pytest.raises(ValueError, match="only if par_names is supplied"):
        resolve_layout(p=2, fixed_pars="a")


def test_fixed_names_must_be_known():
    with pytest.raises(ValueError, match="not a subset"):
        resolve_layout(par_names=["a", "b"], fixed_pars=["z"])


def test_too_many_fixed_parameters():
    with pytest.raises(ValueError, match="smaller than p"):
        resolve_layout(p=2, fixed_pars=[0, 1])


def test_fixed_at_length_must_match():
    with pytest.raises(ValueError, match="not compatible"):
        resolve_layout(p=3, fixed_pars=[0, 1], fixed_at=[1.0, 2.0, 3.0])


def test_fixed_index_out_of_range():
    with pytest.raises(ValueError, match="out of range"):
        resolve_layout(p=2, fixed_pars=[2])


def test_fixed_pars_mixed_kinds():
    with pytest.raises(TypeError):
        resolve_layout(par_names=["a", "b", "c"], fixed_pars=["a", 1])


def test_layout_without_fixed_expand_is_identity():
    layout = ParameterLayout(p_full=2, free_pars=(0, 1))
    assert not layout.has_fixed
    np.testing.assert_allclose(layout.expand([1.5, -2.0]), [1.5, -2.0])
    np.testing.assert_allclose(layout.restrict([1.5, -2.0]), [1.5, -2.0])
