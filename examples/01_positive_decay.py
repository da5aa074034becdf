import jax.numpy as jnp
import numpy as np
import matplotlib.pyplot as plt
from inverse_modeling import Fixed, Positive, create_forward, loss, optimize_model

rng = np.random.default_rng(0)
x = np.linspace(0, 5, 60)
y = 3.0 * np.exp(-x / 1.7) + 0.2 + rng.normal(0, 0.05, size=x.size)


def decay(g):
    return g("amplitude") * jnp.exp(-x / g("tau")) + g("offset")


# amplitude and tau can never go negative; the offset is known.
params = {"amplitude": Positive(1.0), "tau": Positive(1.0), "offset": Fixed(0.2)}
fit_params, fixed_params, forward, backward, get_fit_results = create_forward(decay, params)

print("optimizer sees:", fit_params)
print("starting point:", backward(fit_params))

res = optimize_model(loss(y, forward), fit_params, iterations=200)
bare, fitted = get_fit_results(res)

print(res.message)
print(fitted)

plt.plot(x, y, ".", label="data")
plt.plot(x, forward(bare), "-", label="fit")
plt.legend()
plt.show()
