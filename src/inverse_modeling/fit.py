from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from scipy.optimize import OptimizeResult

from .inference import Norm, gaussian_norm, loss
from .model import ForwardModel, ModelFunction, create_forward
from .optimize import optimize_model
from .params import ParameterInput
from .vector import ParamVector


@dataclass(frozen=True)
class FitOutcome:
    """Result of `fit`: external parameters plus everything behind them."""

    params: Dict[str, Any]
    bare: ParamVector
    result: OptimizeResult
    model: ForwardModel

    @property
    def success(self) -> bool:
        return bool(self.result.success)

    @property
    def message(self) -> str:
        return str(self.result.message)

    def predict(self) -> Any:
        """Evaluate the forward model at the fitted point."""
        return self.model.forward(self.bare)

    def __getitem__(self, name: str) -> Any:
        return self.params[name]


def fit(
    model_fn: ModelFunction,
    params: ParameterInput,
    data: Any,
    *,
    norm: Union[str, Norm] = gaussian_norm,
    iterations: int = 100,
    algorithm: str = "lbfgs",
    options: Optional[Dict[str, Any]] = None,
    autodiff: bool = True,
) -> FitOutcome:
    """Fit `model_fn` to `data` in one call.

    Chains create_forward -> loss -> optimize_model -> get_fit_results.
    See those functions for the meaning of each argument.
    """
    model = create_forward(model_fn, params)
    loss_fn = loss(data, model.forward, norm)
    res = optimize_model(
        loss_fn,
        model.fit_params,
        iterations=iterations,
        algorithm=algorithm,
        options=options,
        autodiff=autodiff,
    )
    bare, fitted = model.get_fit_results(res)
    return FitOutcome(params=fitted, bare=bare, result=res, model=model)
