"""
Evaluation of Earth Engine style band expressions on numpy arrays with numexpr.

Expressions use numbers, variable names, + - * / ** with parentheses,
unary minus and the functions below; the same strings go to ee.Image.expression.
"""
import re
from typing import Dict, Union

import numexpr
import numpy as np

Operand = Union[float, np.ndarray]

FUNCTIONS = ("log", "log10", "exp", "sqrt", "abs")

# Identifiers not preceded by a digit, so exponents such as 1e-3 are skipped
_NAME = re.compile(r"(?<!\w)[A-Za-z_]\w*")


class ExpressionError(ValueError):
    pass


def evaluate(expression: str, variables: Dict[str, Operand]) -> np.ndarray:
    """
    Evaluates `expression` with `variables` bound to arrays or scalars.

    Args:
        expression (str): e.g. "(K2 / log(K1 / L + 1)) - 273.15".
        variables (dict): name -> float or np.ndarray.

    Returns:
        The result with numpy broadcasting applied. Invalid operations
        (log of a non-positive value, division by zero) yield nan/inf silently.
    """
    for name in _NAME.findall(expression):
        if name in FUNCTIONS:
            continue
        if name not in variables:
            raise ExpressionError(f"Unknown variable '{name}' in '{expression}'")

    bound = {name: np.asarray(value, dtype=np.float64) for name, value in variables.items()}
    try:
        return numexpr.evaluate(expression.strip(), local_dict=bound, global_dict={})
    except (SyntaxError, ValueError, TypeError, KeyError) as e:
        raise ExpressionError(f"Invalid expression '{expression}': {e}") from e
