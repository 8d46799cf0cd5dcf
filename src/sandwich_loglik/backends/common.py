from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple

import numpy as np

Bounds = Optional[Sequence[Tuple[Optional[float], Optional[float]]]]


@dataclass(frozen=True)
class OptimResult:
    """Normalized result returned by any optimiser backend."""

    x: np.ndarray  # minimiser over the free parameters, shape (P,)
    fun: float  # objective value at x
    hessian: np.ndarray  # Hessian of the objective at x, (P,P)
    success: bool = True
    message: str = ""
    stats: Dict[str, Any] = field(default_factory=dict)


class Backend(Protocol):
    """Backend protocol: minimise one objective and report its Hessian at the minimum."""

    name: str

    def minimize(
        self,
        objective: Callable[[np.ndarray], float],
        x0: np.ndarray,
        *,
        method: str,
        bounds: Bounds,
        options: dict[str, Any],
    ) -> OptimResult: ...


def normalize_bounds(bounds: Bounds, n: int) -> Optional[list]:
    """Return scipy-style bounds [(lo|None, hi|None), ...] or None.

    Infinite limits are mapped to None.
    """
    if bounds is None:
        return None
    out = []
    for b in bounds:
        lo, hi = b
        lo_b = None if (lo is None or not np.isfinite(float(lo))) else float(lo)
        hi_b = None if (hi is None or not np.isfinite(float(hi))) else float(hi)
        out.append((lo_b, hi_b))
    if len(out) != n:
        raise ValueError(f"bounds must have one (lo, hi) pair per free parameter ({n}).")
    return out
