"""
Problem Definition

A Problem bundles the three block assemblers of an NLP:

    min   sum_k cost_k(x)
    s.t.  lower_g <= g(x) <= upper_g
          lower_x <=  x   <= upper_x

and exposes them through the flat, globally indexed interface a solver
expects. Constraint and cost blocks are linked to the variables as they
are added; the first evaluation freezes the block layout.
"""

import logging
from typing import List
import numpy as np
import scipy.sparse as sp

from .bounds import Bounds
from .composite import BlockAssembler
from .errors import ConfigurationError
from .leaves import ConstraintBlock, CostBlock, VariableBlock, VariablesView


logger = logging.getLogger(__name__)


class Problem:
    """
    Solver-facing view of a block-structured NLP.

    Example:
        nlp = Problem()
        nlp.add_variable_set(MyVariables())
        nlp.add_constraint_set(MyConstraint())
        nlp.add_cost_set(MyCost())
    """

    def __init__(self):
        self.variables = BlockAssembler("variables")
        self.constraints = BlockAssembler("constraints")
        self.costs = BlockAssembler("costs", is_cost=True)

        self._view = VariablesView(self.variables)
        self._iterates: List[np.ndarray] = []

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add_variable_set(self, variable_set: VariableBlock) -> None:
        self.variables.append(variable_set)

    def add_constraint_set(self, constraint_set: ConstraintBlock) -> None:
        self._add_linked(self.constraints, constraint_set)

    def add_cost_set(self, cost_set: CostBlock) -> None:
        self._add_linked(self.costs, cost_set)

    def _add_linked(self, assembler: BlockAssembler, block: ConstraintBlock):
        # A block linked elsewhere would read another problem's variables.
        if block.is_linked:
            raise ConfigurationError(
                f"'{block.name}' is already linked to the variables of another problem"
            )
        assembler.append(block)
        block.link_variables_all(self._view)

    def _freeze(self):
        self.variables.freeze()
        self.constraints.freeze()
        self.costs.freeze()

    # ------------------------------------------------------------------
    # Sizes and bounds
    # ------------------------------------------------------------------

    def get_number_of_optimization_variables(self) -> int:
        return self.variables.rows

    def get_number_of_constraints(self) -> int:
        return self.constraints.rows

    def has_cost_terms(self) -> bool:
        return len(self.costs) > 0

    def get_bounds_on_optimization_variables(self) -> Bounds:
        return self.variables.get_bounds()

    def get_bounds_on_constraints(self) -> Bounds:
        return self.constraints.get_bounds()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def get_variable_values(self) -> np.ndarray:
        return self.variables.get_values()

    def set_variables(self, x: np.ndarray) -> None:
        self._freeze()
        self.variables.set_variables(x)

    def evaluate_cost_function(self, x: np.ndarray) -> float:
        """Total cost at x (0.0 for a pure feasibility problem)."""
        self.set_variables(x)
        if not self.has_cost_terms():
            return 0.0
        return float(self.costs.get_values()[0])

    def evaluate_cost_function_gradient(self, x: np.ndarray) -> np.ndarray:
        """Dense gradient of the total cost at x."""
        self.set_variables(x)
        n = self.get_number_of_optimization_variables()
        if not self.has_cost_terms():
            return np.zeros(n)
        return self.costs.get_jacobian(n_cols=n).toarray().ravel()

    def evaluate_constraints(self, x: np.ndarray) -> np.ndarray:
        self.set_variables(x)
        return self.constraints.get_values()

    def get_jacobian_of_constraints(self) -> sp.csr_matrix:
        """Constraint Jacobian at the current variable values."""
        self._freeze()
        return self.constraints.get_jacobian(
            n_cols=self.get_number_of_optimization_variables()
        )

    def get_jacobian_of_costs(self) -> sp.csr_matrix:
        """1 x n cost gradient at the current variable values."""
        self._freeze()
        n = self.get_number_of_optimization_variables()
        if not self.has_cost_terms():
            return sp.csr_matrix((1, n))
        return self.costs.get_jacobian(n_cols=n)

    # ------------------------------------------------------------------
    # Iterate history
    # ------------------------------------------------------------------

    def save_current(self) -> None:
        """Store the current variable values as an iterate."""
        self._iterates.append(self.get_variable_values())

    def get_iteration_count(self) -> int:
        return len(self._iterates)

    def get_iterates(self) -> List[np.ndarray]:
        return [x.copy() for x in self._iterates]

    def set_opt_variables(self, iteration: int) -> None:
        """Restore the variables of a saved iterate (negative counts from the end)."""
        try:
            x = self._iterates[iteration]
        except IndexError:
            raise IndexError(
                f"Iteration {iteration} not saved ({len(self._iterates)} iterates)"
            ) from None
        self.set_variables(x)

    def set_opt_variables_final(self) -> None:
        self.set_opt_variables(-1)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def print_current(self, tol: float = 1e-4) -> None:
        """Log the block layout and bound violations at the current values."""
        n_vars = self.get_number_of_optimization_variables()
        logger.info("Problem: %d variables, %d constraints, %d cost terms",
                    n_vars, self.get_number_of_constraints(), len(self.costs))
        self.variables.print_summary(tol)
        self.constraints.print_summary(tol)
        self.costs.print_summary(tol)
        if self.has_cost_terms():
            logger.info("Total cost: %.6e", float(self.costs.get_values()[0]))
