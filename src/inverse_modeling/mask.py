"""Differentiable embedding of a dense vector into the true entries of a mask.

Useful for optimizing only some pixels of an image, e.g. the inside of a
Fourier-space aperture: the optimizer sees a short vector and the model sees
the full array.
"""
from __future__ import annotations

import functools
from typing import Any, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np


__all__ = ["MaskEmbedding", "embedding_for", "into_mask"]


class MaskEmbedding:
    """Scatter into a fixed boolean mask, with a hand-written pullback.

    The mask is structural: it must be concrete (not traced) and gets no
    gradient. `forward` scatters, `pullback` gathers the upstream gradient
    at the same positions, and calling the object runs `forward` through a
    `jax.custom_vjp` that uses `pullback` for reverse mode.
    """

    def __init__(self, mask: Any):
        mask = np.asarray(mask)
        if mask.dtype != np.bool_:
            raise TypeError(f"mask must be boolean, got dtype {mask.dtype}.")
        self.mask = mask
        self._index = np.flatnonzero(mask)
        self._embed = self._build()

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.mask.shape

    @property
    def count(self) -> int:
        """Number of true entries, i.e. the required vector length."""
        return int(self._index.size)

    def forward(self, vec: Any, dest: Any) -> Any:
        """Write `vec` in order into the true positions of `dest`."""
        flat = jnp.reshape(dest, (-1,))
        return flat.at[self._index].set(vec).reshape(self.shape)

    def pullback(self, vec_dtype: Any, g: Any) -> Any:
        """Gradient w.r.t. the vector given the gradient w.r.t. the output.

        Real parameters scattered into a complex array keep only the real
        part of the gathered gradient.
        """
        grad = jnp.reshape(g, (-1,))[self._index]
        if not jnp.issubdtype(vec_dtype, jnp.complexfloating):
            grad = jnp.real(grad)
        return grad.astype(vec_dtype)

    def _build(self):
        @jax.custom_vjp
        def embed(vec, dest):
            return self.forward(vec, dest)

        def embed_fwd(vec, dest):
            # zero-size residual that only carries the vector's dtype
            return self.forward(vec, dest), jnp.zeros((0,), dtype=vec.dtype)

        def embed_bwd(res, g):
            # mask and initial destination content get no gradient
            return self.pullback(res.dtype, g), None

        embed.defvjp(embed_fwd, embed_bwd)
        return embed

    def _check(self, vec: Any, dest: Optional[Any]) -> Tuple[Any, Any]:
        vec = jnp.asarray(vec)
        if vec.ndim != 1:
            raise ValueError(f"vec must be 1-D, got shape {tuple(vec.shape)}.")
        if vec.shape[0] != self.count:
            raise ValueError(
                f"mask has {self.count} true entries but vec has length {vec.shape[0]}."
            )
        if dest is None:
            return vec, jnp.zeros(self.shape, dtype=vec.dtype)

        dest = jnp.asarray(dest)
        if tuple(dest.shape) != self.shape:
            raise ValueError(
                f"dest shape {tuple(dest.shape)} does not match mask shape {self.shape}."
            )
        if jnp.iscomplexobj(vec) and not jnp.iscomplexobj(dest):
            raise TypeError("Cannot embed a complex vector into a real destination.")
        return vec, dest.astype(jnp.result_type(vec.dtype, dest.dtype))

    def __call__(self, vec: Any, dest: Optional[Any] = None) -> Any:
        vec, dest = self._check(vec, dest)
        return self._embed(vec, dest)


@functools.lru_cache(maxsize=64)
def _embedding_from_bytes(shape: Tuple[int, ...], packed: bytes) -> MaskEmbedding:
    return MaskEmbedding(np.frombuffer(packed, dtype=np.bool_).reshape(shape))


def embedding_for(mask: Any) -> MaskEmbedding:
    """Return the MaskEmbedding for `mask`, reusing one built for an equal mask."""
    mask = np.asarray(mask)
    if mask.dtype != np.bool_:
        raise TypeError(f"mask must be boolean, got dtype {mask.dtype}.")
    return _embedding_from_bytes(mask.shape, np.ascontiguousarray(mask).tobytes())


def into_mask(vec: Any, mask: Any, dest: Optional[Any] = None) -> Any:
    """Fill `vec` into the true entries of `mask`.

    Arguments
    ---------
    vec : 1-D array with one entry per true mask element
    mask : boolean array of any shape
    dest : array with the mask's shape providing the values outside the
        mask (default: zeros of vec's dtype). Pass it when the non-mask
        entries matter; it is read, never modified or kept.

    Returns a new jax array with the mask's shape. Differentiable w.r.t.
    `vec` under jax.grad / jax.vjp. Operators are cached per mask, so
    calling this inside a model evaluated once per iteration is cheap.
    """
    return embedding_for(mask)(vec, dest)
