import warnings

import numpy as np
import pytest

from src.data.expression import ExpressionError, evaluate


def test_arithmetic_follows_precedence():
    result = evaluate("A + B * 2 - C / 4", {"A": np.array([1.0, 2.0]), "B": 3.0, "C": np.array([4.0, 8.0])})
    np.testing.assert_allclose(result, [6.0, 6.0])


def test_functions_and_unary_minus():
    result = evaluate("-log(exp(X)) + sqrt(Y) ** 2", {"X": np.array([2.0]), "Y": np.array([9.0])})
    np.testing.assert_allclose(result, [7.0])


def test_brightness_temperature_expression_matches_numpy():
    radiance = np.array([8.0, 9.5, 11.0])
    result = evaluate("(K2 / log((K1 / L) + 1)) - 273.15", {"K1": 774.8853, "K2": 1321.0789, "L": radiance})
    np.testing.assert_allclose(result, 1321.0789 / np.log(774.8853 / radiance + 1) - 273.15)


def test_invalid_operations_yield_nan_without_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        result = evaluate("log(E) / D", {"E": np.array([-1.0, 0.5]), "D": np.array([1.0, 0.0])})
    assert np.isnan(result[0])
    assert np.isinf(result[1])


def test_scalar_division_by_zero_does_not_raise():
    assert np.isinf(evaluate("1 / X", {"X": 0.0}))


def test_unknown_variable():
    with pytest.raises(ExpressionError, match="Unknown variable 'Z'"):
        evaluate("X + Z", {"X": 1.0})


@pytest.mark.parametrize("expression", [
    "__import__('os')",
    "X.real",
    "X if X else 1",
    "[X]",
    "max(X)",
])
def test_rejects_unsupported_syntax(expression):
    with pytest.raises(ExpressionError):
        evaluate(expression, {"X": 1.0})


def test_syntax_error_is_expression_error():
    with pytest.raises(ExpressionError, match="Invalid expression"):
        evaluate("(X + ", {"X": 1.0})


def test_scientific_notation_is_not_a_variable():
    result = evaluate("X * 3.342e-4 + 1e-1", {"X": np.array([10000.0])})
    np.testing.assert_allclose(result, [3.442])
