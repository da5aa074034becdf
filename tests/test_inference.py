import numpy as np
import pytest

from inverse_modeling import gaussian_norm, get_norm, loss, poisson_norm


def test_gaussian_norm_sums_squared_residuals() -> None:
    assert float(gaussian_norm(np.array([1.0, 2.0]), np.array([1.0, 4.0]))) == pytest.approx(4.0)


def test_gaussian_norm_handles_complex_output() -> None:
    val = gaussian_norm(np.zeros(2), np.array([1.0j, 1.0 + 1.0j]))
    assert not np.iscomplexobj(np.asarray(val))
    assert float(val) == pytest.approx(3.0)


def test_poisson_norm_value() -> None:
    val = poisson_norm(np.array([2.0]), np.array([2.0]))
    assert float(val) == pytest.approx(2.0 - 2.0 * np.log(2.0))


def test_poisson_norm_is_finite_for_zero_prediction() -> None:
    val = poisson_norm(np.array([0.0, 3.0]), np.array([0.0, 0.0]))
    assert np.isfinite(float(val))


def test_loss_composes_forward_and_norm() -> None:
    loss_fn = loss(np.array([2.0, 4.0]), lambda p: 2.0 * p)
    assert float(loss_fn(np.array([1.0, 2.0]))) == pytest.approx(0.0)
    assert float(loss_fn(np.array([0.0, 2.0]))) == pytest.approx(4.0)


def test_loss_is_stateless_across_calls() -> None:
    loss_fn = loss(np.array([1.0, 1.0]), lambda p: p)
    x1 = np.array([0.0, 0.0])
    x2 = np.array([5.0, -5.0])
    first = float(loss_fn(x1))
    assert float(loss_fn(x2)) == pytest.approx(52.0)
    assert float(loss_fn(x1)) == first


def test_loss_accepts_norm_by_name() -> None:
    loss_fn = loss(np.array([3.0]), lambda p: p, norm="poisson")
    assert float(loss_fn(np.array([3.0]))) == pytest.approx(3.0 - 3.0 * np.log(3.0))


def test_unknown_norm_raises() -> None:
    with pytest.raises(ValueError, match="Unknown norm 'laplace'"):
        get_norm("laplace")
    with pytest.raises(ValueError, match="Unknown norm"):
        loss(np.zeros(1), lambda p: p, norm="laplace")


def test_non_callable_norm_raises() -> None:
    with pytest.raises(TypeError, match="norm must be callable"):
        loss(np.zeros(1), lambda p: p, norm=3)
