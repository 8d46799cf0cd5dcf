"""Ready-made loglikelihood-contribution functions."""

from .binomial import binom_alg_deriv, binom_alg_hess, binom_loglik
from .gev import gev_loglik, two_site_gev_loglik
from .normal import normal_loglik
from .poisson import pois_glm_alg_deriv, pois_glm_alg_hess, pois_glm_loglik

__all__ = [
    "binom_loglik",
    "binom_alg_deriv",
    "binom_alg_hess",
    "gev_loglik",
    "two_site_gev_loglik",
    "normal_loglik",
    "pois_glm_loglik",
    "pois_glm_alg_deriv",
    "pois_glm_alg_hess",
]
