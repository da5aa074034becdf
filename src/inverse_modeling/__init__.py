"""inverse_modeling public API."""
import jax

# scipy works in float64; keep jax traces in the same precision.
jax.config.update("jax_enable_x64", True)

from .params import Fixed, Free, Positive  # noqa: E402
from .vector import ParamVector  # noqa: E402
from .model import ForwardModel, create_forward, prepare_fit  # noqa: E402
from .inference import gaussian_norm, get_norm, loss, poisson_norm  # noqa: E402
from .optimize import AVAILABLE_ALGORITHMS, optimize_model  # noqa: E402
from .mask import MaskEmbedding, embedding_for, into_mask  # noqa: E402
from .fit import FitOutcome, fit  # noqa: E402

__all__ = [
    "Fixed",
    "Free",
    "Positive",
    "ParamVector",
    "ForwardModel",
    "create_forward",
    "prepare_fit",
    "loss",
    "gaussian_norm",
    "poisson_norm",
    "get_norm",
    "optimize_model",
    "AVAILABLE_ALGORITHMS",
    "MaskEmbedding",
    "embedding_for",
    "into_mask",
    "FitOutcome",
    "fit",
]
