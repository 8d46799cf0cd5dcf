from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from warnings import warn

import numpy as np

try:
    import uncertainties
    from uncertainties import unumpy as unp
except Exception:  # pragma: no cover - optional at import time
    uncertainties = None
    unp = None


__all__ = [
    "ParameterLayout",
    "resolve_layout",
    "resolve_nested_layout",
    "ParamView",
    "ParamsView",
    "MultiParamView",
]

DEFAULT_INIT = 0.1


@dataclass(frozen=True)
class ParameterLayout:
    """Which components of the full parameter vector are free and which are fixed.

    Indices are 0-based positions in the full parameter vector. `fixed_pars` is
    sorted and `fixed_at[i]` is the value of component `fixed_pars[i]`.
    """

    p_full: int
    free_pars: Tuple[int, ...]
    fixed_pars: Tuple[int, ...] = ()
    fixed_at: Tuple[float, ...] = ()
    full_par_names: Optional[Tuple[str, ...]] = None

    @property
    def p_current(self) -> int:
        return len(self.free_pars)

    @property
    def has_fixed(self) -> bool:
        return len(self.fixed_pars) > 0

    @property
    def par_names(self) -> Optional[Tuple[str, ...]]:
        """Names of the free parameters (None if the full model is unnamed)."""
        if self.full_par_names is None:
            return None
        return tuple(self.full_par_names[i] for i in self.free_pars)

    @property
    def fixed_names(self) -> Optional[Tuple[str, ...]]:
        if self.full_par_names is None:
            return None
        return tuple(self.full_par_names[i] for i in self.fixed_pars)

    def expand(self, x: np.ndarray) -> np.ndarray:
        """Full parameter vector with fixed values re-inserted at their positions."""
        x = np.asarray(x, dtype=float).reshape(-1)
        if not self.has_fixed:
            return x
        full = np.empty(self.p_full, dtype=float)
        full[list(self.fixed_pars)] = self.fixed_at
        full[list(self.free_pars)] = x
        return full

    def restrict(self, full: np.ndarray) -> np.ndarray:
        """Free components of a full-length vector."""
        full = np.asarray(full, dtype=float).reshape(-1)
        return full[list(self.free_pars)]


def resolve_layout(
    *,
    p: Optional[int] = None,
    init: Any = None,
    par_names: Optional[Sequence[str]] = None,
    fixed_pars: Any = None,
    fixed_at: Any = 0.0,
) -> Tuple[ParameterLayout, np.ndarray]:
    """Reconcile p/init/par_names and resolve a fixed-parameter constraint.

    Returns the layout and the initial values of the free parameters.
    """
    given = []
    if p is not None:
        given.append(("p", int(p)))
    if init is not None:
        init = np.atleast_1d(np.asarray(init, dtype=float)).reshape(-1)
        given.append(("init", int(init.shape[0])))
    if par_names is not None:
        if isinstance(par_names, str):
            par_names = [par_names]
        par_names = tuple(str(n) for n in par_names)
        given.append(("par_names", len(par_names)))

    if not given:
        raise ValueError("The dimension of the full parameter vector has not been set.")
    if len({n for _, n in given}) > 1:
        raise ValueError(" and ".join(lab for lab, _ in given) + " are not consistent.")

    p_full = given[0][1]
    if p_full < 1:
        raise ValueError("The model must have at least one parameter.")
    if init is None:
        init = np.full(p_full, DEFAULT_INIT, dtype=float)

    fixed_idx, fixed_vals = _resolve_fixed(
        fixed_pars,
        fixed_at,
        p_full,
        par_names,
        names_hint="fixed_pars can be character only if par_names is supplied.",
    )
    layout = _make_layout(p_full, fixed_idx, fixed_vals, par_names)
    return layout, layout.restrict(init)


def resolve_nested_layout(
    larger: Any,
    *,
    fixed_pars: Any,
    fixed_at: Any = 0.0,
    init: Any = None,
) -> Tuple[ParameterLayout, np.ndarray]:
    """Layout of a sub-model derived from a fitted model `larger`.

    Dimension and names come from `larger`; only `init` (full length) may be
    overridden, otherwise the residual MLE of `larger` is used.
    """
    if fixed_pars is None:
        raise ValueError("If larger is supplied then fixed_pars must also be supplied.")

    parent: ParameterLayout = larger.layout
    fixed_idx, fixed_vals = _resolve_fixed(
        fixed_pars,
        fixed_at,
        parent.p_full,
        parent.full_par_names,
        names_hint="fixed_pars can be character only if larger has full_par_names.",
    )
    if not set(parent.fixed_pars) <= set(fixed_idx):
        warn("Model not nested in larger but the results may still be OK", UserWarning)

    layout = _make_layout(parent.p_full, fixed_idx, fixed_vals, parent.full_par_names)

    if init is None:
        full_init = np.asarray(larger.res_mle, dtype=float)
    else:
        full_init = np.atleast_1d(np.asarray(init, dtype=float)).reshape(-1)
        if full_init.shape[0] != parent.p_full:
            raise ValueError(
                f"init must have length p_full = {parent.p_full} when larger is supplied."
            )
    return layout, layout.restrict(full_init)


def _make_layout(
    p_full: int,
    fixed_idx: Sequence[int],
    fixed_vals: Sequence[float],
    names: Optional[Sequence[str]],
) -> ParameterLayout:
    fixed_set = set(fixed_idx)
    free = tuple(i for i in range(p_full) if i not in fixed_set)
    return ParameterLayout(
        p_full=int(p_full),
        free_pars=free,
        fixed_pars=tuple(int(i) for i in fixed_idx),
        fixed_at=tuple(float(v) for v in fixed_vals),
        full_par_names=None if names is None else tuple(names),
    )


def _resolve_fixed(
    fixed_pars: Any,
    fixed_at: Any,
    p_full: int,
    names: Optional[Sequence[str]],
    *,
    names_hint: str,
) -> Tuple[Tuple[int, ...], Tuple[float, ...]]:
    """Resolve fixed_pars (names or 0-based indices) to sorted indices + values."""
    if fixed_pars is None:
        return (), ()

    if isinstance(fixed_pars, (str, int, np.integer)):
        items = [fixed_pars]
    else:
        items = list(fixed_pars)
    if not items:
        return (), ()

    if all(isinstance(v, str) for v in items):
        if names is None:
            raise ValueError(names_hint)
        missing = [v for v in items if v not in names]
        if missing:
            raise ValueError(f"fixed_pars is not a subset of {list(names)!r}.")
        idx = [list(names).index(v) for v in items]
    elif all(isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in items):
        idx = [int(v) for v in items]
        bad = [i for i in idx if i < 0 or i >= p_full]
        if bad:
            raise ValueError(
                f"fixed_pars indices {bad} are out of range for p = {p_full} (0-based)."
            )
    else:
        raise TypeError("fixed_pars must be all parameter names or all integer indices.")

    if len(set(idx)) != len(idx):
        raise ValueError("fixed_pars contains duplicate parameters.")

    q = len(idx)
    if q >= p_full:
        raise ValueError("The number of fixed parameters must be smaller than p.")

    vals = np.atleast_1d(np.asarray(fixed_at, dtype=float)).reshape(-1)
    if vals.shape[0] not in (1, q):
        raise ValueError("the lengths of 'fixed_pars' and 'fixed_at' are not compatible.")
    vals = np.broadcast_to(vals, (q,))

    order = np.argsort(idx, kind="stable")
    return (
        tuple(int(idx[k]) for k in order),
        tuple(float(vals[k]) for k in order),
    )


# ---- result views -----------------------------------------------------------


@dataclass
class _UncContext:
    values: Mapping[str, float]
    cov: Optional[np.ndarray]
    free_names: Tuple[str, ...]
    _cache: Optional[Dict[str, Any]] = field(default=None, init=False, repr=False)

    def _build_cache(self) -> None:
        if self._cache is not None or uncertainties is None or self.cov is None:
            return
        cov_arr = np.asarray(self.cov, dtype=float)
        if cov_arr.shape != (len(self.free_names), len(self.free_names)):
            return
        vals = [float(self.values[n]) for n in self.free_names]
        try:
            corr = uncertainties.correlated_values(vals, cov_arr)
        except Exception:
            return
        self._cache = dict(zip(self.free_names, corr))

    def u_for(self, name: str) -> Optional[Any]:
        if name not in self.free_names:
            return None
        self._build_cache()
        if self._cache is None:
            return None
        return self._cache.get(name)

    def u_for_many(self, names: Sequence[str]) -> Optional[np.ndarray]:
        if any(n not in self.free_names for n in names):
            return None
        self._build_cache()
        if self._cache is None:
            return None
        return np.array([self._cache[n] for n in names], dtype=object)


@dataclass(frozen=True)
class ParamView:
    """A single parameter of a fitted model.

    `stderr` is the adjusted (sandwich) standard error and `unadj_stderr` the
    naive one from the independence loglikelihood. Both are None for fixed
    parameters.
    """

    name: str
    value: float
    stderr: Optional[float] = None
    unadj_stderr: Optional[float] = None
    fixed: bool = False
    _context: Optional[_UncContext] = field(default=None, repr=False, compare=False)

    @property
    def u(self):
        """Return an uncertainties ufloat, correlated through the adjusted covariance."""
        if self.stderr is None:
            raise ValueError(f"No stderr available for parameter {self.name!r}.")
        if unp is None:
            raise RuntimeError("uncertainties package is not available.")
        if not np.isfinite(self.stderr):
            raise ValueError(f"stderr for {self.name!r} is not finite.")
        if self._context is not None:
            correlated = self._context.u_for(self.name)
            if correlated is not None:
                return correlated
        return uncertainties.ufloat(self.value, self.stderr)

    def __getitem__(self, key: str) -> Any:
        if key == "value":
            return self.value
        if key in ("error", "stderr"):
            return self.stderr
        if key == "unadj_stderr":
            return self.unadj_stderr
        if key == "fixed":
            return self.fixed
        raise KeyError(key)


@dataclass(frozen=True)
class MultiParamView:
    """View over several parameters at once; value and stderr have shape (len(names),)."""

    names: Tuple[str, ...]
    value: np.ndarray
    stderr: Optional[np.ndarray] = None
    _context: Optional[_UncContext] = field(default=None, repr=False, compare=False)

    @property
    def u(self):
        if self.stderr is None:
            raise ValueError("No stderr available for MultiParamView.u.")
        if unp is None:
            raise RuntimeError("uncertainties package is not available.")
        if self._context is not None:
            correlated = self._context.u_for_many(self.names)
            if correlated is not None:
                return correlated
        return unp.uarray(self.value, self.stderr)


class ParamsView(Mapping[str, ParamView]):
    """Mapping name -> ParamView, with rich indexing."""

    def __init__(
        self,
        items: Mapping[str, ParamView],
        *,
        _context: Optional[_UncContext] = None,
    ):
        self._items = dict(items)
        self._names = tuple(self._items.keys())
        self._context = _context

    def __getitem__(self, key):  # type: ignore[override]
        if isinstance(key, str):
            return self._items[key]

        # Multi-param by names: ("mu", "sigma") or ["mu", "sigma"]
        if (
            isinstance(key, (tuple, list))
            and key
            and all(isinstance(k, str) for k in key)
        ):
            return self._multi_by_names(tuple(key))

        if isinstance(key, (int, np.integer)):
            return self._items[self._names[int(key)]]

        if isinstance(key, slice):
            return self._multi_by_names(self._names[key])

        if (
            isinstance(key, (tuple, list))
            and key
            and all(isinstance(k, (int, np.integer)) for k in key)
        ):
            return self._multi_by_names(tuple(self._names[int(i)] for i in key))

        raise KeyError(key)

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def as_dict(self) -> Dict[str, float]:
        """Return name->value."""
        return {k: v.value for k, v in self._items.items()}

    def _multi_by_names(self, names: Sequence[str]) -> MultiParamView:
        names = tuple(names)
        if not names:
            raise ValueError("MultiParamView requires at least one parameter name.")
        views = [self._items[n] for n in names]
        value = np.array([pv.value for pv in views], dtype=float)
        stderr = None
        if all(pv.stderr is not None for pv in views):
            stderr = np.array([pv.stderr for pv in views], dtype=float)
        return MultiParamView(names=names, value=value, stderr=stderr, _context=self._context)
