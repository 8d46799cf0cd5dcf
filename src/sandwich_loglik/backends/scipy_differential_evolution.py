from __future__ import annotations

from typing import Any, Callable, Dict

import numpy as np
from scipy.optimize import differential_evolution

from ..numdiff import hessian
from .common import Bounds, OptimResult, normalize_bounds


class ScipyDifferentialEvolutionBackend:
    name = "scipy.differential_evolution"

    def minimize(
        self,
        objective: Callable[[np.ndarray], float],
        x0: np.ndarray,
        *,
        method: str,
        bounds: Bounds,
        options: dict[str, Any],
    ) -> OptimResult:
        """Minimise using scipy.optimize.differential_evolution (global optimisation).

        Notes:
        - Requires finite bounds for *all* free parameters.
        - `method` is ignored; x0 seeds the population.
        - polish=True (default) refines the best member with L-BFGS-B, so the
          Hessian is taken at a local minimum.

        Backend options (subset of scipy.optimize.differential_evolution):
        - maxiter (int, default: 200)
        - popsize (int, default: 15)
        - tol (float, default: 0.01)
        - strategy (str, default: "best1bin")
        - mutation, recombination, seed, polish, disp, init, atol, updating
        """
        x0 = np.asarray(x0, dtype=float).reshape(-1)
        de_bounds = normalize_bounds(bounds, x0.shape[0]) if bounds is not None else None
        if de_bounds is None or any(lo is None or hi is None for lo, hi in de_bounds):
            raise ValueError(
                "scipy.differential_evolution requires finite bounds for all free parameters."
            )
        if any(hi <= lo for lo, hi in de_bounds):
            raise ValueError("Invalid bounds: require hi > lo for all parameters.")

        de_kwargs: Dict[str, Any] = {}
        de_kwargs["maxiter"] = int(options.get("maxiter", 200))
        de_kwargs["popsize"] = int(options.get("popsize", 15))
        de_kwargs["tol"] = float(options.get("tol", 0.01))
        de_kwargs["strategy"] = str(options.get("strategy", "best1bin"))

        for k in (
            "mutation",
            "recombination",
            "seed",
            "polish",
            "disp",
            "init",
            "atol",
            "updating",
        ):
            if k in options:
                de_kwargs[k] = options[k]

        res = differential_evolution(
            lambda v: float(objective(np.asarray(v, dtype=float))),
            de_bounds,
            x0=x0,
            **de_kwargs,
        )
        theta = np.asarray(res.x, dtype=float).reshape(-1)

        return OptimResult(
            x=theta,
            fun=float(objective(theta)),
            hessian=hessian(objective, theta),
            success=bool(res.success),
            message=str(res.message),
            stats={
                "backend": self.name,
                "nfev": int(getattr(res, "nfev", 0) or 0),
                "nit": int(getattr(res, "nit", 0) or 0),
            },
        )
