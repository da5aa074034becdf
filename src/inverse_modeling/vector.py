from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import numpy as np
from jax import tree_util

from .util import prod


__all__ = ["ParamVector"]


@tree_util.register_pytree_node_class
class ParamVector:
    """Flat numeric vector addressed by parameter name.

    The optimizer only ever sees `data`, a 1-D array. Each name owns a
    contiguous slice of it, reshaped to the declared shape on lookup, so
    results are matched by key and never by position.

    Registered as a jax pytree: gradients of a function taking a
    ParamVector come back as a ParamVector with the same layout.
    """

    def __init__(self, data: Any, names: Tuple[str, ...], shapes: Tuple[Tuple[int, ...], ...]):
        self.data = data
        self.names = tuple(names)
        self.shapes = tuple(tuple(s) for s in shapes)
        layout: Dict[str, Tuple[int, int, Tuple[int, ...]]] = {}
        start = 0
        for n, s in zip(self.names, self.shapes):
            stop = start + prod(s)
            layout[n] = (start, stop, s)
            start = stop
        self._layout = layout
        self._size = start

    # ---- constructors ----
    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], dtype: Optional[Any] = None) -> "ParamVector":
        """Build from a name -> scalar/array mapping, keeping its order."""
        arrays = [np.asarray(v) for v in values.values()]
        if arrays:
            data = np.concatenate([a.ravel() for a in arrays])
        else:
            data = np.zeros((0,), dtype=float)
        if dtype is not None:
            data = data.astype(dtype)
        return cls(data, tuple(values.keys()), tuple(a.shape for a in arrays))

    def with_data(self, flat: Any) -> "ParamVector":
        """Return a vector with the same layout and new values."""
        if not hasattr(flat, "shape"):
            flat = np.asarray(flat)
        if len(flat.shape) != 1 or flat.shape[0] != self._size:
            raise ValueError(
                f"Expected a flat vector of length {self._size}, got shape {tuple(flat.shape)}."
            )
        return type(self)(flat, self.names, self.shapes)

    # ---- pytree protocol ----
    def tree_flatten(self):
        return (self.data,), (self.names, self.shapes)

    @classmethod
    def tree_unflatten(cls, aux, children):
        names, shapes = aux
        return cls(children[0], names, shapes)

    # ---- mapping-like access ----
    def __getitem__(self, name: str) -> Any:
        try:
            start, stop, shape = self._layout[name]
        except KeyError:
            raise KeyError(name) from None
        return self.data[start:stop].reshape(shape)

    def __contains__(self, name: object) -> bool:
        return name in self._layout

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def keys(self) -> Tuple[str, ...]:
        return self.names

    def items(self):
        return [(n, self[n]) for n in self.names]

    def as_dict(self) -> Dict[str, Any]:
        """Return name -> value (reshaped slices of `data`)."""
        return {n: self[n] for n in self.names}

    @property
    def size(self) -> int:
        """Length of the flat data vector."""
        return self._size

    def same_layout(self, other: "ParamVector") -> bool:
        return self.names == other.names and self.shapes == other.shapes

    def __repr__(self) -> str:
        body = ", ".join(f"{n}={self[n]!r}" for n in self.names)
        return f"ParamVector({body})"
