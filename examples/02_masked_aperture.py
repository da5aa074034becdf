import jax.numpy as jnp
import numpy as np
import matplotlib.pyplot as plt
from inverse_modeling import Fixed, MaskEmbedding, Positive, fit, into_mask

# Recover a real, non-negative object from noisy Fourier data,
# optimizing only the pixels inside a circular support.
n = 32
yy, xx = np.mgrid[-n // 2 : n // 2, -n // 2 : n // 2]
support = xx ** 2 + yy ** 2 <= 8 ** 2
# build the operator once; the model below runs it every iteration
embed = MaskEmbedding(support)

rng = np.random.default_rng(1)
obj = np.asarray(into_mask(rng.uniform(0.0, 1.0, size=int(support.sum())), support))
noise = rng.normal(0, 0.5, size=(n, n)) + 1j * rng.normal(0, 0.5, size=(n, n))
data = np.fft.fft2(obj) + noise


def model(g):
    img = embed(g("pixels"), jnp.zeros((n, n), dtype=jnp.complex128))
    return g("scale") * jnp.fft.fft2(img)


out = fit(
    model,
    {"pixels": Positive(np.full(int(support.sum()), 0.5)), "scale": Fixed(1.0)},
    data,
    iterations=300,
)

print(out.message)
print("min pixel:", out["pixels"].min())
print("rms error:", np.sqrt(np.mean((out["pixels"] - obj[support]) ** 2)))

fig, (ax0, ax1) = plt.subplots(1, 2)
ax0.imshow(obj)
ax0.set_title("truth")
ax1.imshow(np.asarray(into_mask(out["pixels"], support)))
ax1.set_title("fit")
plt.show()
