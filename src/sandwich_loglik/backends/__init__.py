"""Optimiser backends for the independence fit.

- "scipy.minimize": local search (BFGS by default, bounded Brent for one
  free parameter)
- "scipy.differential_evolution": global search within finite bounds

Each backend minimises the negated loglikelihood and returns its Hessian at
the minimum, from which the independence Hessian HI is taken.
"""

from __future__ import annotations

from typing import Dict

from .common import Backend, OptimResult
from .scipy_differential_evolution import ScipyDifferentialEvolutionBackend
from .scipy_minimize import ScipyMinimizeBackend

_BACKENDS: Dict[str, Backend] = {
    "scipy.differential_evolution": ScipyDifferentialEvolutionBackend(),
    "scipy.minimize": ScipyMinimizeBackend(),
}


def get_backend(name: str) -> Backend:
    """Return the backend registered under `name` (see AVAILABLE_BACKENDS)."""
    try:
        return _BACKENDS[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown backend {name!r}. Available: {tuple(_BACKENDS.keys())}"
        ) from e


AVAILABLE_BACKENDS = tuple(_BACKENDS.keys())

__all__ = ["AVAILABLE_BACKENDS", "Backend", "OptimResult", "get_backend"]
