from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import numpy as np

from .adjustment import build_adjustment
from .fitting import check_finite_at, fit_independence
from .loglik import RestrictedLoglik
from .params import (
    ParameterLayout,
    ParamView,
    ParamsView,
    _UncContext,
    resolve_layout,
    resolve_nested_layout,
)
from .score import score_info
from .util import as_points, cluster_index, label, same_point


class AdjustmentType(str, Enum):
    """Which loglikelihood an AdjustedLoglik evaluates."""

    VERTICAL = "vertical"
    CHOLESKY = "cholesky"
    SPECTRAL = "spectral"
    NONE = "none"

    @classmethod
    def coerce(cls, value: Union[str, "AdjustmentType"]) -> "AdjustmentType":
        try:
            return cls(value)
        except ValueError as e:
            raise ValueError(
                f"Unknown adjustment type {value!r}. Available: {tuple(t.value for t in cls)}"
            ) from e


@dataclass(frozen=True)
class AdjustedLoglik:
    """An independence loglikelihood adjusted for cluster dependence.

    Built by `adjust_loglik`. Call `evaluate(x, type)` (or the object itself)
    to evaluate the vertically adjusted, Cholesky or spectral horizontally
    adjusted, or unadjusted ("none") loglikelihood at one or more points of
    the free parameters. All fields are read-only.
    """

    name: str
    restricted: RestrictedLoglik = field(repr=False)
    cluster: np.ndarray = field(repr=False)
    mle: np.ndarray
    res_mle: np.ndarray
    max_loglik: float
    HI: np.ndarray
    HA: np.ndarray
    VC: np.ndarray
    adjVC: np.ndarray
    SE: np.ndarray
    adjSE: np.ndarray
    C_cholesky: np.ndarray
    C_spectral: np.ndarray
    loglik_vec_mle: np.ndarray = field(repr=False)
    alg_deriv: Optional[Callable[..., Any]] = field(default=None, repr=False)
    alg_hess: Optional[Callable[..., Any]] = field(default=None, repr=False)
    backend_stats: Dict[str, Any] = field(default_factory=dict, repr=False)

    # ---- layout ----
    @property
    def layout(self) -> ParameterLayout:
        return self.restricted.layout

    @property
    def p_full(self) -> int:
        return self.layout.p_full

    @property
    def p_current(self) -> int:
        return self.layout.p_current

    @property
    def free_pars(self) -> Tuple[int, ...]:
        return self.layout.free_pars

    @property
    def fixed_pars(self) -> Tuple[int, ...]:
        return self.layout.fixed_pars

    @property
    def fixed_at(self) -> Tuple[float, ...]:
        return self.layout.fixed_at

    @property
    def par_names(self) -> Optional[Tuple[str, ...]]:
        return self.layout.par_names

    @property
    def full_par_names(self) -> Optional[Tuple[str, ...]]:
        return self.layout.full_par_names

    @property
    def loglik(self) -> Callable[..., Any]:
        return self.restricted.loglik

    @property
    def loglik_args(self) -> Mapping[str, Any]:
        return self.restricted.loglik_args

    @property
    def nobs(self) -> int:
        return int(self.loglik_vec_mle.shape[0])

    # ---- evaluation ----
    def evaluate(
        self, x: Any, type: Union[str, AdjustmentType] = AdjustmentType.VERTICAL
    ) -> np.ndarray:
        """Evaluate a loglikelihood at each row of x, returning one value per row.

        At the MLE every type returns max_loglik.
        """
        kind = AdjustmentType.coerce(type)
        points = as_points(x, self.p_current)
        if kind is AdjustmentType.VERTICAL:
            one = self._vertical
        elif kind is AdjustmentType.CHOLESKY:
            one = lambda row: self._horizontal(row, self.C_cholesky)  # noqa: E731
        elif kind is AdjustmentType.SPECTRAL:
            one = lambda row: self._horizontal(row, self.C_spectral)  # noqa: E731
        else:
            one = self._unadjusted

        out = np.empty(points.shape[0], dtype=float)
        for i, row in enumerate(points):
            out[i] = self.max_loglik if same_point(row, self.mle) else one(row)
        return out

    __call__ = evaluate

    def _unadjusted(self, x: np.ndarray) -> float:
        return self.restricted.total(x)

    def _vertical(self, x: np.ndarray) -> float:
        d = x - self.mle
        s = float(d @ self.HA @ d) / float(d @ self.HI @ d)
        return self.max_loglik + s * (self.restricted.total(x) - self.max_loglik)

    def _horizontal(self, x: np.ndarray, C: np.ndarray) -> float:
        x_star = self.mle + C @ (x - self.mle)
        return self.restricted.total(x_star)

    # ---- nested models ----
    def fix(
        self,
        fixed_pars: Any,
        fixed_at: Any = 0.0,
        *,
        init: Any = None,
        name: Optional[str] = None,
    ) -> "AdjustedLoglik":
        """Adjust the loglikelihood of the sub-model with fixed_pars fixed at fixed_at."""
        return adjust_loglik(
            larger=self, fixed_pars=fixed_pars, fixed_at=fixed_at, init=init, name=name
        )

    # ---- queries ----
    def coef(self) -> Dict[str, float]:
        """MLE of the free parameters, by name."""
        return {label(self.par_names, j): float(v) for j, v in enumerate(self.mle)}

    def vcov(self, adjusted: bool = True) -> np.ndarray:
        return self.adjVC if adjusted else self.VC

    def stderr(self, adjusted: bool = True) -> np.ndarray:
        return self.adjSE if adjusted else self.SE

    @property
    def params(self) -> ParamsView:
        """All p_full parameters; fixed ones carry their fixed value and no stderr."""
        names = self.full_par_names
        free_labels = tuple(label(names, i) for i in self.free_pars)
        values: Dict[str, float] = {}
        ctx = _UncContext(values=values, cov=self.adjVC, free_names=free_labels)

        free_pos = {i: j for j, i in enumerate(self.free_pars)}
        items: Dict[str, ParamView] = {}
        for i in range(self.p_full):
            n = label(names, i)
            values[n] = float(self.res_mle[i])
            j = free_pos.get(i)
            if j is None:
                items[n] = ParamView(name=n, value=float(self.res_mle[i]), fixed=True)
            else:
                items[n] = ParamView(
                    name=n,
                    value=float(self.mle[j]),
                    stderr=float(self.adjSE[j]),
                    unadj_stderr=float(self.SE[j]),
                    _context=ctx,
                )
        return ParamsView(items, _context=ctx)


def adjust_loglik(
    loglik: Optional[Callable[..., Any]] = None,
    *,
    loglik_args: Optional[Mapping[str, Any]] = None,
    cluster: Any = None,
    p: Optional[int] = None,
    init: Any = None,
    par_names: Any = None,
    fixed_pars: Any = None,
    fixed_at: Any = 0.0,
    name: Optional[str] = None,
    larger: Optional[AdjustedLoglik] = None,
    alg_deriv: Optional[Callable[..., Any]] = None,
    alg_hess: Optional[Callable[..., Any]] = None,
    mle: Any = None,
    H: Any = None,
    V: Any = None,
    backend: str = "scipy.minimize",
    backend_options: Optional[Dict[str, Any]] = None,
) -> AdjustedLoglik:
    """Adjust an independence loglikelihood for cluster dependence.

    `loglik(params, **loglik_args)` must return the loglikelihood contributions
    of the individual observations, with at least one -inf for out-of-bounds
    parameters. The dimension of the full parameter vector is taken from `p`,
    `init` or `par_names` (which must agree), or from `larger`.

    Parameters
    ----------
    cluster : array-like, optional
        Cluster membership of each observation. Default: one cluster per
        observation.
    fixed_pars, fixed_at :
        Parameters (0-based indices or names) of a sub-model and the value(s)
        they are fixed at. `fixed_at` has length 1 or len(fixed_pars).
    larger : AdjustedLoglik, optional
        A fitted model in which the sub-model given by `fixed_pars` is nested.
        Its loglik, loglik_args, cluster, p, names and algebraic derivatives
        are reused; `init` (full length) defaults to its residual MLE.
    alg_deriv, alg_hess : callable, optional
        Algebraic (n_obs, p) matrix of derivatives of the contributions and
        (p, p) Hessian of the loglikelihood, called like `loglik`.
    mle, H, V :
        A known MLE, and optionally the Hessian H of the loglikelihood and the
        covariance V of the score at it. Not compatible with `fixed_pars`.
    backend, backend_options :
        Optimiser backend name and options: method (default "BFGS"), bounds,
        options (forwarded to scipy), jac.

    Returns
    -------
    AdjustedLoglik
    """
    if mle is not None:
        if fixed_pars is not None:
            raise ValueError("'mle' cannot be supplied when 'fixed_pars' is also supplied.")
        init = mle
    if V is not None and mle is None:
        raise ValueError("'V' can only be supplied if 'mle' is also supplied.")
    if H is not None and mle is None:
        raise ValueError("'H' can only be supplied if 'mle' is also supplied.")
    if V is not None and alg_deriv is not None:
        raise ValueError("Only one of 'V' and 'alg_deriv' can be supplied.")
    if H is not None and alg_hess is not None:
        raise ValueError("Only one of 'H' and 'alg_hess' can be supplied.")
    if loglik is None and larger is None:
        raise ValueError("If loglik is None then larger (and fixed_pars) must be supplied.")

    if larger is None:
        if not callable(loglik):
            raise TypeError("loglik must be callable.")
        if name is None:
            name = getattr(loglik, "__name__", "loglik")
        layout, init_free = resolve_layout(
            p=p, init=init, par_names=par_names, fixed_pars=fixed_pars, fixed_at=fixed_at
        )
        restricted = RestrictedLoglik(
            loglik=loglik, layout=layout, loglik_args=dict(loglik_args or {})
        )
    else:
        if not isinstance(larger, AdjustedLoglik):
            raise TypeError("larger must be an AdjustedLoglik object.")
        if name is None:
            name = larger.name
        layout, init_free = resolve_nested_layout(
            larger, fixed_pars=fixed_pars, fixed_at=fixed_at, init=init
        )
        restricted = RestrictedLoglik(
            loglik=larger.loglik, layout=layout, loglik_args=larger.loglik_args
        )
        cluster = larger.cluster
        alg_deriv = larger.alg_deriv
        alg_hess = larger.alg_hess

    check_vals = check_finite_at(restricted, init_free)
    n_obs = int(check_vals.shape[0])
    if n_obs == 1:
        raise ValueError("There must be more than one cluster.")
    labels, inverse = cluster_index(cluster, n_obs)
    cluster_vec = np.arange(n_obs) if cluster is None else np.asarray(cluster)

    fit = fit_independence(
        restricted,
        init_free,
        backend=backend,
        backend_options=backend_options,
        mle=None if mle is None else init_free,
        H=H,
        alg_hess=alg_hess,
    )
    score = score_info(
        restricted,
        fit.mle,
        inverse,
        int(labels.shape[0]),
        alg_deriv=alg_deriv,
        V=V,
    )
    adj = build_adjustment(fit.HI, score)

    return AdjustedLoglik(
        name=str(name),
        restricted=restricted,
        cluster=np.asarray(cluster_vec),
        mle=fit.mle,
        res_mle=fit.res_mle,
        max_loglik=fit.max_loglik,
        HI=adj.HI,
        HA=adj.HA,
        VC=adj.VC,
        adjVC=adj.adjVC,
        SE=adj.SE,
        adjSE=adj.adjSE,
        C_cholesky=adj.C_cholesky,
        C_spectral=adj.C_spectral,
        loglik_vec_mle=restricted.contributions(fit.mle),
        alg_deriv=alg_deriv,
        alg_hess=alg_hess,
        backend_stats=dict(fit.stats),
    )
