"""
Jacobian Check

Compares the assembled analytic Jacobians of a Problem against central
finite differences. Meant for authors of constraint and cost blocks.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from .problem import Problem


@dataclass
class JacobianCheckResult:
    """Largest mismatch between analytic and numeric derivatives."""
    max_abs_error: float
    worst_entry: Optional[Tuple[int, int]]
    passed: bool
    analytic: np.ndarray
    numeric: np.ndarray


def finite_difference_jacobian(fun, x: np.ndarray, step: float = 1e-6) -> np.ndarray:
    """Central-difference Jacobian of a vector function."""
    x = np.asarray(x, dtype=np.float64)
    f0 = np.atleast_1d(fun(x))
    J = np.zeros((len(f0), len(x)))
    for j in range(len(x)):
        xp = x.copy()
        xm = x.copy()
        xp[j] += step
        xm[j] -= step
        J[:, j] = (np.atleast_1d(fun(xp)) - np.atleast_1d(fun(xm))) / (2.0 * step)
    return J


def _compare(analytic: np.ndarray, numeric: np.ndarray, rtol: float, atol: float) -> JacobianCheckResult:
    if analytic.size == 0:
        return JacobianCheckResult(0.0, None, True, analytic, numeric)
    err = np.abs(analytic - numeric)
    worst = np.unravel_index(int(np.argmax(err)), err.shape)
    return JacobianCheckResult(
        max_abs_error=float(err[worst]),
        worst_entry=(int(worst[0]), int(worst[1])),
        passed=bool(np.allclose(analytic, numeric, rtol=rtol, atol=atol)),
        analytic=analytic,
        numeric=numeric,
    )


def check_jacobian(
    problem: Problem,
    x: Optional[np.ndarray] = None,
    step: float = 1e-6,
    rtol: float = 1e-4,
    atol: float = 1e-6,
) -> JacobianCheckResult:
    """
    Check the constraint Jacobian of problem at x.

    The problem is left at x afterwards.
    """
    if x is None:
        x = problem.get_variable_values()
    x = np.asarray(x, dtype=np.float64)

    numeric = finite_difference_jacobian(problem.evaluate_constraints, x, step)
    problem.set_variables(x)
    analytic = problem.get_jacobian_of_constraints().toarray()
    return _compare(analytic, numeric, rtol, atol)


def check_cost_gradient(
    problem: Problem,
    x: Optional[np.ndarray] = None,
    step: float = 1e-6,
    rtol: float = 1e-4,
    atol: float = 1e-6,
) -> JacobianCheckResult:
    """Same as check_jacobian, for the gradient of the total cost."""
    if x is None:
        x = problem.get_variable_values()
    x = np.asarray(x, dtype=np.float64)

    numeric = finite_difference_jacobian(problem.evaluate_cost_function, x, step)
    analytic = problem.evaluate_cost_function_gradient(x).reshape(1, -1)
    return _compare(analytic, numeric, rtol, atol)
