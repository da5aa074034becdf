from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple
from warnings import warn

import jax
import jax.numpy as jnp
import numpy as np
from scipy.optimize import OptimizeResult, minimize

from .vector import ParamVector


# name -> (scipy method, uses gradient)
_ALGORITHMS: Dict[str, Tuple[str, bool]] = {
    "lbfgs": ("L-BFGS-B", True),
    "bfgs": ("BFGS", True),
    "cg": ("CG", True),
    "nelder-mead": ("Nelder-Mead", False),
    "powell": ("Powell", False),
}

AVAILABLE_ALGORITHMS = tuple(_ALGORITHMS.keys())


def get_algorithm(name: str) -> Tuple[str, bool]:
    """Return (scipy method, uses_gradient) for a short or scipy name."""
    key = str(name).lower()
    if key in _ALGORITHMS:
        return _ALGORITHMS[key]
    for method, uses_grad in _ALGORITHMS.values():
        if method.lower() == key:
            return method, uses_grad
    raise ValueError(
        f"Unknown algorithm {name!r}. Available: {AVAILABLE_ALGORITHMS}"
    )


def _flatten_start(start: Any) -> Tuple[np.ndarray, Callable[[Any], Any]]:
    """Return (real flat vector, unflatten) for a ParamVector or array start.

    Complex values are handed to scipy as interleaved (real, imag) pairs and
    rebuilt before the loss sees them, so jax differentiates the loss with
    respect to the real and imaginary parts directly.
    """
    if isinstance(start, ParamVector):
        flat, rebuild = np.asarray(start.data), start.with_data
    else:
        a = np.asarray(start)
        shape = a.shape
        flat, rebuild = a.ravel(), lambda v: v.reshape(shape)

    if np.iscomplexobj(flat):
        x0 = np.ascontiguousarray(flat, dtype=complex).view(float)
        return x0, lambda v: rebuild(v[0::2] + 1j * v[1::2])
    return flat, rebuild


def optimize_model(
    loss_fn: Callable[[Any], Any],
    start_vals: Any,
    *,
    iterations: int = 100,
    algorithm: str = "lbfgs",
    options: Optional[Dict[str, Any]] = None,
    autodiff: bool = True,
) -> OptimizeResult:
    """Minimize `loss_fn` starting from `start_vals` with scipy.optimize.minimize.

    Options:
    - iterations: cap on solver iterations (scipy `maxiter`, default 100)
    - algorithm: short name from AVAILABLE_ALGORITHMS or a scipy method name
      (default "lbfgs", i.e. L-BFGS-B)
    - options: extra entries for scipy's `options` dict
    - autodiff: supply exact gradients via jax.value_and_grad to gradient
      based algorithms; otherwise scipy uses finite differences

    `loss_fn` is called with the same structure as `start_vals` (a
    ParamVector stays a ParamVector). The scipy OptimizeResult is returned
    unchanged; `res.x` is the flat minimizer, with interleaved real and
    imaginary parts for complex parameters (`get_fit_results` accepts it
    as is). Hitting the iteration cap is not an error: check `res.success`.
    """
    if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)) or iterations < 1:
        raise ValueError(f"iterations must be a positive integer, got {iterations!r}.")
    if not callable(loss_fn):
        raise TypeError("loss_fn must be callable.")
    method, uses_grad = get_algorithm(algorithm)

    x0, unflatten = _flatten_start(start_vals)
    if x0.size == 0:
        raise ValueError("Nothing to optimize: the start vector is empty.")
    x0 = x0.astype(float)
    if not np.all(np.isfinite(x0)):
        raise ValueError("The start vector contains non-finite entries.")

    def objective(flat: Any) -> Any:
        return loss_fn(unflatten(flat))

    f0 = np.asarray(objective(jnp.asarray(x0)))
    if f0.shape != ():
        raise ValueError(
            f"loss_fn must return a scalar, got an array of shape {f0.shape}."
        )
    if not np.isfinite(f0):
        raise ValueError(f"loss_fn is not finite at the start vector ({f0.item()!r}).")

    scipy_opts = dict(options or {})
    scipy_opts["maxiter"] = int(iterations)

    if uses_grad and autodiff:
        value_and_grad = jax.value_and_grad(objective)

        def fun(v: np.ndarray) -> Tuple[float, np.ndarray]:
            val, grad = value_and_grad(jnp.asarray(v))
            return float(val), np.asarray(grad, dtype=float)

        res = minimize(fun, x0, jac=True, method=method, options=scipy_opts)
    else:
        res = minimize(
            lambda v: float(objective(jnp.asarray(v))),
            x0,
            method=method,
            options=scipy_opts,
        )

    if not res.success:
        warn(f"Optimizer did not converge ({method}): {res.message}", RuntimeWarning)
    return res
