from __future__ import annotations

from typing import Any, Callable, Dict

import numpy as np
from scipy.optimize import minimize, minimize_scalar

from ..numdiff import hessian
from .common import Bounds, OptimResult, normalize_bounds


class ScipyMinimizeBackend:
    name = "scipy.minimize"

    def minimize(
        self,
        objective: Callable[[np.ndarray], float],
        x0: np.ndarray,
        *,
        method: str,
        bounds: Bounds,
        options: dict[str, Any],
    ) -> OptimResult:
        """Minimise using scipy.optimize.minimize.

        Backend options:
        - options: dict forwarded to scipy.optimize.minimize (or minimize_scalar)
        - jac: gradient of the objective, forwarded to scipy.optimize.minimize

        method="Brent" is a bounded 1-D search via scipy.optimize.minimize_scalar
        and needs finite bounds for the single free parameter.
        """
        x0 = np.asarray(x0, dtype=float).reshape(-1)
        scipy_bounds = normalize_bounds(bounds, x0.shape[0])
        scipy_opts: Dict[str, Any] = dict(options.get("options", None) or {})

        if method == "Brent":
            if x0.shape[0] != 1:
                raise ValueError("method='Brent' is only available for one free parameter.")
            if scipy_bounds is None or None in scipy_bounds[0]:
                raise ValueError("method='Brent' requires finite bounds.")
            res = minimize_scalar(
                lambda t: float(objective(np.array([t], dtype=float))),
                bounds=scipy_bounds[0],
                method="bounded",
                options=scipy_opts,
            )
            theta = np.atleast_1d(np.asarray(res.x, dtype=float))
            nit = int(getattr(res, "nit", 0) or 0)
        else:
            kwargs: Dict[str, Any] = {}
            if scipy_bounds is not None:
                kwargs["bounds"] = scipy_bounds
            if options.get("jac", None) is not None:
                kwargs["jac"] = options["jac"]
            res = minimize(
                lambda v: float(objective(np.asarray(v, dtype=float))),
                x0,
                method=method,
                options=scipy_opts,
                **kwargs,
            )
            theta = np.asarray(res.x, dtype=float).reshape(-1)
            nit = int(getattr(res, "nit", 0) or 0)

        return OptimResult(
            x=theta,
            fun=float(objective(theta)),
            hessian=hessian(objective, theta),
            success=bool(res.success),
            message=str(res.message),
            stats={
                "backend": self.name,
                "method": method,
                "nfev": int(getattr(res, "nfev", 0) or 0),
                "nit": nit,
            },
        )
