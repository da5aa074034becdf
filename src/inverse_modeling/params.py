from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Tuple, Type, Union

import jax.numpy as jnp
import numpy as np


__all__ = [
    "Annotation",
    "Free",
    "Fixed",
    "Positive",
    "Transform",
    "TRANSFORMS",
    "annotate",
    "transform_for",
    "validate_parameters",
]


@dataclass(frozen=True)
class Annotation:
    """Base class for the per-parameter fitting treatment."""

    value: Any


@dataclass(frozen=True)
class Free(Annotation):
    """Optimized as-is. Bare values in a parameter mapping mean Free."""


@dataclass(frozen=True)
class Fixed(Annotation):
    """Excluded from the fit; passed to the model unchanged."""


@dataclass(frozen=True)
class Positive(Annotation):
    """Kept non-negative by optimizing the element-wise square root."""


def _identity(value: Any, name: str = "") -> Any:
    return value


def _sqrt_checked(value: Any, name: str = "") -> np.ndarray:
    a = np.asarray(value)
    if np.iscomplexobj(a):
        raise TypeError(f"Positive parameter {name!r} must be real-valued.")
    if np.any(a < 0):
        raise ValueError(
            f"Positive parameter {name!r} has negative entries; cannot take the square root."
        )
    return np.sqrt(a)


def _square(value: Any) -> Any:
    return jnp.square(value)


@dataclass(frozen=True)
class Transform:
    """Pair of maps between the user-facing and optimizer-facing values.

    to_internal(value, name) runs once on concrete values when a fit is
    prepared. to_external(value) runs on every model evaluation and must be
    traceable by jax.
    """

    to_internal: Callable[[Any, str], Any]
    to_external: Callable[[Any], Any]
    optimized: bool = True


TRANSFORMS: Dict[Type[Annotation], Transform] = {
    Free: Transform(_identity, _identity),
    Positive: Transform(_sqrt_checked, _square),
    Fixed: Transform(_identity, _identity, optimized=False),
}


def transform_for(annotation: Annotation) -> Transform:
    """Return the transform pair registered for an annotation's kind."""
    try:
        return TRANSFORMS[type(annotation)]
    except KeyError as e:
        raise TypeError(
            f"Unsupported annotation {type(annotation).__name__!r}. "
            f"Available: {tuple(t.__name__ for t in TRANSFORMS)}"
        ) from e


def annotate(value: Any) -> Annotation:
    """Wrap a bare value as Free; return annotations unchanged."""
    if isinstance(value, Annotation):
        return value
    return Free(value)


ParameterInput = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def validate_parameters(params: ParameterInput) -> Dict[str, Annotation]:
    """Return an ordered name -> Annotation dict.

    Accepts a mapping or an iterable of (name, value) pairs. A name declared
    twice is rejected, whether or not the two annotations agree.
    """
    items = params.items() if isinstance(params, Mapping) else params
    out: Dict[str, Annotation] = {}
    for item in items:
        try:
            name, value = item
        except (TypeError, ValueError) as e:
            raise TypeError(
                "Parameters must be a mapping or an iterable of (name, value) pairs."
            ) from e
        if not isinstance(name, str):
            raise TypeError(f"Parameter names must be strings, got {name!r}.")
        if name in out:
            raise ValueError(f"Parameter {name!r} is declared more than once.")
        out[name] = annotate(value)
    return out
