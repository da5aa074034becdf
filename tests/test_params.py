import numpy as np
import pytest

from inverse_modeling import Fixed, Free, Positive
from inverse_modeling.params import (
    TRANSFORMS,
    Annotation,
    annotate,
    transform_for,
    validate_parameters,
)


def test_bare_values_are_free() -> None:
    assert annotate(1.5) == Free(1.5)
    fixed = Fixed(2.0)
    assert annotate(fixed) is fixed


def test_positive_round_trip_is_exact_for_squares() -> None:
    t = TRANSFORMS[Positive]
    x = np.array([0.0, 0.25, 1.0, 4.0, 9.0, 16.0])
    back = np.asarray(t.to_external(t.to_internal(x, "a")))
    np.testing.assert_array_equal(back, x)


def test_positive_round_trip_random_values() -> None:
    rng = np.random.default_rng(0)
    t = TRANSFORMS[Positive]
    x = rng.uniform(0.0, 100.0, size=(3, 4))
    back = np.asarray(t.to_external(t.to_internal(x, "a")))
    assert back.shape == x.shape
    np.testing.assert_allclose(back, x, rtol=1e-12)


def test_positive_transform_is_injective_on_nonnegative() -> None:
    t = TRANSFORMS[Positive]
    x = np.linspace(0.0, 10.0, 101)
    internal = t.to_internal(x, "a")
    assert np.all(np.diff(internal) > 0)


def test_positive_rejects_negative_values() -> None:
    t = TRANSFORMS[Positive]
    with pytest.raises(ValueError, match="'width' has negative entries"):
        t.to_internal(np.array([1.0, -0.5]), "width")


def test_positive_rejects_complex_values() -> None:
    t = TRANSFORMS[Positive]
    with pytest.raises(TypeError, match="must be real-valued"):
        t.to_internal(np.array([1.0 + 1.0j]), "z")


def test_fixed_is_not_optimized() -> None:
    assert transform_for(Fixed(1.0)).optimized is False
    assert transform_for(Free(1.0)).optimized is True
    assert transform_for(Positive(1.0)).optimized is True


def test_unknown_annotation_kind_raises() -> None:
    class Bounded(Annotation):
        pass

    with pytest.raises(TypeError, match="Unsupported annotation 'Bounded'"):
        transform_for(Bounded(1.0))


def test_validate_keeps_declaration_order() -> None:
    out = validate_parameters({"z": 1.0, "a": Fixed(2.0), "m": Positive(3.0)})
    assert list(out) == ["z", "a", "m"]
    assert isinstance(out["z"], Free)


def test_validate_accepts_pairs() -> None:
    out = validate_parameters([("b", Positive(1.0)), ("a", 2.0)])
    assert list(out) == ["b", "a"]


def test_validate_rejects_conflicting_declarations() -> None:
    with pytest.raises(ValueError, match="'a' is declared more than once"):
        validate_parameters([("a", Free(1.0)), ("a", Fixed(1.0))])


def test_validate_rejects_non_string_names() -> None:
    with pytest.raises(TypeError, match="must be strings"):
        validate_parameters({1: 2.0})


def test_validate_rejects_malformed_items() -> None:
    with pytest.raises(TypeError, match="iterable of \\(name, value\\) pairs"):
        validate_parameters([("a", 1.0, 2.0)])
