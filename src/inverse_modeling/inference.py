from __future__ import annotations

from typing import Any, Callable, Dict, Union

import jax.numpy as jnp


Norm = Callable[[Any, Any], Any]


def gaussian_norm(data: Any, fwd: Any) -> Any:
    """Sum of squared residuals, sum |fwd - data|^2. Complex model output is fine."""
    r = jnp.asarray(fwd) - jnp.asarray(data)
    return jnp.sum(jnp.real(r * jnp.conj(r)))


def poisson_norm(data: Any, fwd: Any) -> Any:
    """Negative Poisson log-likelihood up to a data-only constant.

    The model prediction is clamped to >= 1e-12 so empty bins and
    non-positive predictions stay finite.
    """
    eps = 1e-12
    mu = jnp.maximum(jnp.asarray(fwd), eps)
    return jnp.sum(mu - jnp.asarray(data) * jnp.log(mu))


NORMS: Dict[str, Norm] = {
    "gaussian": gaussian_norm,
    "poisson": poisson_norm,
}


def get_norm(name: str) -> Norm:
    """Return a norm by name."""
    try:
        return NORMS[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown norm {name!r}. Available: {tuple(NORMS.keys())}"
        ) from e


def loss(data: Any, forward: Callable[[Any], Any], norm: Union[str, Norm] = gaussian_norm):
    """Return `params -> norm(data, forward(params))`.

    `data` is converted once; the returned function keeps no other state and
    can be evaluated with any number of parameter vectors.
    """
    if isinstance(norm, str):
        norm = get_norm(norm)
    if not callable(norm):
        raise TypeError("norm must be callable or the name of a registered norm.")
    data = jnp.asarray(data)

    def loss_fn(params: Any) -> Any:
        return norm(data, forward(params))

    return loss_fn
