"""
Toy Problem

    min   -(x1 - 2)^2
    s.t.  x0^2 + x1 = 1
          -1 <= x0 <= 1

Optimum at x = (1, 0) (or its mirror (-1, 0)) with cost -4.
"""

import numpy as np

from .bounds import Bounds, NO_BOUND
from .leaves import ConstraintBlock, CostBlock, VariableBlock
from .problem import Problem


class ExVariables(VariableBlock):
    """The two variables x0 and x1."""

    def __init__(self, name: str = "var_set1"):
        super().__init__(2, name, values=[3.5, 1.5])

    def get_bounds(self) -> Bounds:
        return Bounds.from_list([(-1.0, 1.0), NO_BOUND])


class ExConstraint(ConstraintBlock):
    """x0^2 + x1 = 1"""

    def __init__(self, name: str = "constraint1", var_set: str = "var_set1"):
        super().__init__(1, name)
        self.var_set = var_set

    def get_values(self) -> np.ndarray:
        x = self.get_variables().values(self.var_set)
        return np.array([x[0] ** 2 + x[1]])

    def get_bounds(self) -> Bounds:
        return Bounds.from_list([(1.0, 1.0)])

    def fill_jacobian_block(self, var_set, jac_block):
        if var_set == self.var_set:
            x = self.get_variables().values(self.var_set)
            jac_block[0, 0] = 2.0 * x[0]
            jac_block[0, 1] = 1.0


class ExCost(CostBlock):
    """-(x1 - 2)^2"""

    def __init__(self, name: str = "cost_term1", var_set: str = "var_set1"):
        super().__init__(name)
        self.var_set = var_set

    def get_cost(self) -> float:
        x = self.get_variables().values(self.var_set)
        return -(x[1] - 2.0) ** 2

    def fill_jacobian_block(self, var_set, jac_block):
        if var_set == self.var_set:
            x = self.get_variables().values(self.var_set)
            jac_block[0, 0] = 0.0
            jac_block[0, 1] = -2.0 * (x[1] - 2.0)


def build_toy_problem() -> Problem:
    """Assemble the toy problem from its three blocks."""
    nlp = Problem()
    nlp.add_variable_set(ExVariables())
    nlp.add_constraint_set(ExConstraint())
    nlp.add_cost_set(ExCost())
    return nlp
