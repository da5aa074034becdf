from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Tuple

import numpy as np

from .params import Annotation, ParameterInput, transform_for, validate_parameters
from .util import to_host
from .vector import ParamVector


Getter = Callable[[str], Any]
ModelFunction = Callable[[Getter], Any]


def _resolve(
    annotation: Annotation, name: str, fit: ParamVector, fixed: Mapping[str, Any]
) -> Any:
    """Return the external-space value of one parameter."""
    transform = transform_for(annotation)
    if not transform.optimized:
        return fixed[name]
    return transform.to_external(fit[name])


def _as_fit_vector(values: Any, layout: ParamVector) -> ParamVector:
    """Coerce a ParamVector, optimizer result or flat array to `layout`.

    A real vector twice as long as a complex layout holds interleaved real
    and imaginary parts, as `optimize_model` hands them to scipy.
    """
    if isinstance(values, ParamVector):
        if not values.same_layout(layout):
            raise ValueError(
                f"Parameter vector has keys {values.names}, expected {layout.names}."
            )
        return values
    # scipy OptimizeResult and friends expose the minimizer as `.x`.
    x = getattr(values, "x", values)
    if isinstance(x, ParamVector):
        return _as_fit_vector(x, layout)
    if not hasattr(x, "shape"):
        x = np.asarray(x)
    if (
        np.iscomplexobj(layout.data)
        and not np.iscomplexobj(x)
        and len(x.shape) == 1
        and x.shape[0] == 2 * layout.size
    ):
        x = x[0::2] + 1j * x[1::2]
    return layout.with_data(x)


def _external_values(
    params: Mapping[str, Annotation], fit: ParamVector, fixed: Mapping[str, Any]
) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, ann in params.items():
        if name in fixed:
            # declared object itself, no dtype or precision change
            out[name] = fixed[name]
        else:
            out[name] = to_host(_resolve(ann, name, fit, fixed))
    return out


def prepare_fit(
    params: ParameterInput,
) -> Tuple[ParamVector, Dict[str, Any], Callable[[Any], Tuple[ParamVector, Dict[str, Any]]]]:
    """Split declared parameters into optimizable and fixed vectors.

    Returns
    -------
    fit_params : ParamVector
        Free values as declared, Positive values as their square root.
    fixed_params : dict
        name -> declared Fixed value, the very objects that were passed in.
    get_fit_results : callable
        Maps an optimizer result (anything with `.x`), a ParamVector or a
        flat array to `(bare, params)`. `bare` is the raw vector in internal
        representation and can be fed back to `forward`; `params` is a dict
        of external values for every declared name, in declaration order.
    """
    params = validate_parameters(params)

    fit_dict: Dict[str, Any] = {}
    fixed_dict: Dict[str, Any] = {}
    for name, ann in params.items():
        transform = transform_for(ann)
        if transform.optimized:
            fit_dict[name] = transform.to_internal(ann.value, name)
        else:
            fixed_dict[name] = ann.value

    fit_params = ParamVector.from_mapping(fit_dict)
    fixed_params = fixed_dict

    def get_fit_results(res: Any) -> Tuple[ParamVector, Dict[str, Any]]:
        bare = _as_fit_vector(res, fit_params)
        return bare, _external_values(params, bare, fixed_params)

    return fit_params, fixed_params, get_fit_results


@dataclass(frozen=True)
class ForwardModel:
    """Everything needed to fit `model_fn` against data.

    Unpacks as `fit_params, fixed_params, forward, backward, get_fit_results`.
    """

    fit_params: ParamVector
    fixed_params: Dict[str, Any]
    forward: Callable[[Any], Any]
    backward: Callable[[Any], Dict[str, Any]]
    get_fit_results: Callable[[Any], Tuple[ParamVector, Dict[str, Any]]]

    def __iter__(self):
        return iter(
            (
                self.fit_params,
                self.fixed_params,
                self.forward,
                self.backward,
                self.get_fit_results,
            )
        )


def create_forward(model_fn: ModelFunction, params: ParameterInput) -> ForwardModel:
    """Wrap `model_fn` so it can be called with the optimizable vector.

    `model_fn` receives a getter `g` and reads parameters by name, e.g.
    `g("amplitude")`. Values handed out by the getter are always in
    external space: Positive parameters are squared back and Fixed ones come
    as declared. The model never needs to know which is which.
    """
    if not callable(model_fn):
        raise TypeError("model_fn must be callable.")
    params = validate_parameters(params)
    fit_params, fixed_params, get_fit_results = prepare_fit(params)

    def forward(fit: Any) -> Any:
        fit = _as_fit_vector(fit, fit_params)

        def g(name: str) -> Any:
            try:
                ann = params[name]
            except KeyError:
                raise KeyError(
                    f"Unknown parameter {name!r}. Declared: {tuple(params)}"
                ) from None
            return _resolve(ann, name, fit, fixed_params)

        return model_fn(g)

    def backward(vals: Any) -> Dict[str, Any]:
        if isinstance(vals, Mapping):
            unknown = [k for k in vals if k not in fit_params]
            if unknown:
                raise KeyError(f"Not optimizable parameters: {unknown}")
            missing = [k for k in fit_params if k not in vals]
            if missing:
                raise KeyError(f"Missing optimizable parameters: {missing}")
            vals = ParamVector.from_mapping({k: vals[k] for k in fit_params.names})
        fit = _as_fit_vector(vals, fit_params)
        return _external_values(params, fit, fixed_params)

    return ForwardModel(
        fit_params=fit_params,
        fixed_params=fixed_params,
        forward=forward,
        backward=backward,
        get_fit_results=get_fit_results,
    )
