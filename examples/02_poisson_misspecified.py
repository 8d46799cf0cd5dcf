import numpy as np

from sandwich_loglik import adjust_loglik
from sandwich_loglik.models import pois_glm_alg_deriv, pois_glm_alg_hess, pois_glm_loglik

# Overdispersed counts fitted with a Poisson GLM: each observation is its own
# cluster and the adjustment corrects for the misspecified variance.
rng = np.random.default_rng(1)
x = rng.normal(size=200)
mu = np.exp(1.0 + 0.5 * x)
y = rng.negative_binomial(1, 1.0 / (1.0 + mu))

model = adjust_loglik(
    pois_glm_loglik,
    loglik_args={"y": y, "x": x},
    par_names=["alpha", "beta", "gamma"],
    init=[0.5, 0.5, 0.0],
    alg_deriv=pois_glm_alg_deriv,
    alg_hess=pois_glm_alg_hess,
)

for name, p in model.params.items():
    print(f"{name:>6} {p.value: .4f}  se {p.unadj_stderr:.4f} -> adjusted {p.stderr:.4f}")

print("coef:", model.coef())
print("adjusted vcov:\n", model.vcov())

# Sub-model without the quadratic term, derived from the full model
linear = model.fix("gamma", 0.0)
print(linear.name, linear.par_names, linear.mle)

# Correlated uncertainties (via the uncertainties package) follow the adjusted covariance
beta = model.params["beta"].u
gamma = model.params["gamma"].u
print("beta + gamma =", beta + gamma)
