from __future__ import annotations

from typing import Any, Tuple

import numpy as np


def prod(shape: Tuple[int, ...]) -> int:
    n = 1
    for s in shape:
        n *= int(s)
    return int(n)


def to_host(x: Any) -> Any:
    """Convert a jax/numpy value to numpy; 0-d arrays become Python scalars."""
    a = np.asarray(x)
    if a.shape == ():
        return a.item()
    return a
