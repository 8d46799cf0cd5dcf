"""sandwich_loglik public API."""
from .model import AdjustedLoglik, AdjustmentType, adjust_loglik
from .params import ParamView, ParamsView
from . import models

__all__ = [
    "AdjustedLoglik",
    "AdjustmentType",
    "ParamView",
    "ParamsView",
    "adjust_loglik",
    "models",
]
