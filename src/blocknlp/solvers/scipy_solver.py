"""
SciPy Solver Adapter

Drives a block-structured Problem through scipy.optimize.minimize. The
adapter only translates: variable bounds become scipy Bounds, the stacked
constraint rows one NonlinearConstraint with the assembled sparse
Jacobian, and the summed cost terms the objective.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import numpy as np
from scipy.optimize import Bounds as ScipyBounds
from scipy.optimize import BFGS, NonlinearConstraint, minimize

from ..bounds import Bounds
from ..errors import ConfigurationError
from ..problem import Problem


logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("SLSQP", "trust-constr")


@dataclass
class SolverConfig:
    """Configuration for the scipy adapter."""
    method: str = "SLSQP"
    max_iter: int = 200
    tol: float = 1e-8
    save_iterates: bool = True
    disp: bool = False


@dataclass
class SolverResult:
    """Outcome of a solve."""
    x: np.ndarray
    cost: float
    success: bool
    status: int
    message: str
    n_iter: int
    constraint_violation: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x.tolist(),
            "cost": self.cost,
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "n_iter": self.n_iter,
            "constraint_violation": self.constraint_violation,
        }


def max_violation(values: np.ndarray, bounds: Bounds) -> float:
    """Largest distance of any row from its bound interval."""
    if len(values) == 0:
        return 0.0
    below = bounds.lower - values
    above = values - bounds.upper
    return float(max(0.0, np.max(below), np.max(above)))


class ScipySolver:
    """
    Solve a Problem with scipy.optimize.minimize.

    Example:
        solver = ScipySolver(SolverConfig(method="trust-constr"))
        result = solver.solve(nlp)
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()
        if self.config.method not in SUPPORTED_METHODS:
            raise ConfigurationError(
                f"Unknown method '{self.config.method}', "
                f"expected one of {SUPPORTED_METHODS}"
            )

    def _constraints(self, problem: Problem) -> List[NonlinearConstraint]:
        if problem.get_number_of_constraints() == 0:
            return []

        dense = self.config.method == "SLSQP"

        def fun(x):
            return problem.evaluate_constraints(x)

        def jac(x):
            problem.set_variables(x)
            J = problem.get_jacobian_of_constraints()
            return J.toarray() if dense else J

        bounds = problem.get_bounds_on_constraints()
        return [NonlinearConstraint(fun, bounds.lower, bounds.upper, jac=jac)]

    def solve(self, problem: Problem, x0: Optional[np.ndarray] = None) -> SolverResult:
        """
        Solve from x0 (default: the current variable values) and leave the
        problem at the returned solution.
        """
        cfg = self.config
        if x0 is None:
            x0 = problem.get_variable_values()
        x0 = np.asarray(x0, dtype=np.float64)

        var_bounds = problem.get_bounds_on_optimization_variables()
        logger.info(
            "Solving with %s: %d variables, %d constraints",
            cfg.method, len(x0), problem.get_number_of_constraints(),
        )

        def callback(xk, *args):
            if cfg.save_iterates:
                problem.set_variables(xk)
                problem.save_current()

        kwargs = {}
        if cfg.method == "trust-constr":
            # Quasi-Newton Hessian; blocks only provide first derivatives.
            kwargs['hess'] = BFGS()

        result = minimize(
            problem.evaluate_cost_function,
            x0,
            jac=problem.evaluate_cost_function_gradient,
            method=cfg.method,
            bounds=ScipyBounds(var_bounds.lower, var_bounds.upper),
            constraints=self._constraints(problem),
            tol=cfg.tol,
            callback=callback,
            options={'maxiter': cfg.max_iter, 'disp': cfg.disp},
            **kwargs
        )

        x = np.asarray(result.x, dtype=np.float64)
        problem.set_variables(x)
        if cfg.save_iterates:
            problem.save_current()

        violation = max_violation(
            problem.constraints.get_values(),
            problem.get_bounds_on_constraints(),
        )
        cost = problem.evaluate_cost_function(x)

        logger.info(
            "%s finished: success=%s cost=%.6e violation=%.2e (%s)",
            cfg.method, bool(result.success), cost, violation, result.message,
        )

        return SolverResult(
            x=x,
            cost=cost,
            success=bool(result.success),
            status=int(result.status),
            message=str(result.message),
            n_iter=int(getattr(result, 'nit', 0)),
            constraint_violation=violation,
        )
