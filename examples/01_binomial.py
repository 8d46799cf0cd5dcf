import numpy as np

from sandwich_loglik import adjust_loglik
from sandwich_loglik.models import binom_alg_deriv, binom_alg_hess, binom_loglik

# Tumour counts in litters of rats: animals in the same litter share a
# litter-level probability, so the litters are the clusters.
rng = np.random.default_rng(0)
n_litters = 70
n = rng.integers(4, 12, size=n_litters)
litter_p = rng.beta(2.0, 12.0, size=n_litters)
y = rng.binomial(n, litter_p)

model = adjust_loglik(
    binom_loglik,
    loglik_args={"y": y, "n": n},
    par_names="prob",
    init=0.5,
    backend_options={"method": "Brent", "bounds": [(0.0, 1.0)]},
)

print(model.params["prob"].value, "±", model.params["prob"].stderr)
print("unadjusted stderr:", model.params["prob"].unadj_stderr)

# The same with algebraic derivatives
alg = adjust_loglik(
    binom_loglik,
    loglik_args={"y": y, "n": n},
    par_names="prob",
    init=0.5,
    alg_deriv=binom_alg_deriv,
    alg_hess=binom_alg_hess,
    backend_options={"method": "Brent", "bounds": [(0.0, 1.0)]},
)
print("algebraic:", alg.mle, alg.adjSE)

grid = np.linspace(0.08, 0.25, 7)
for kind in ("none", "vertical", "cholesky", "spectral"):
    print(f"{kind:>9}", np.round(model(grid, kind) - model.max_loglik, 2))
