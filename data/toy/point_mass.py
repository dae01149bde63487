"""
Point Mass - Multi-Block Demo

A point mass moves through N knots with step dt:

    pos[k+1] = pos[k] + dt * vel[k]
    pos[0] = 0, pos[N-1] = 1
    -v_max <= vel[k] <= v_max

minimizing the effort sum(vel^2). Positions and velocities are separate
variable blocks; each constraint only ever uses local indices.

Optimum: constant velocity 1 / (dt * (N - 1)).
"""

import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from blocknlp import (
    Bounds,
    BOUND_ZERO,
    ConstraintBlock,
    CostBlock,
    Problem,
    ScipySolver,
    SolverConfig,
    VariableBlock,
    check_jacobian,
)
from blocknlp.utils import get_logger


class Dynamics(ConstraintBlock):
    """pos[k+1] - pos[k] - dt * vel[k] = 0 for k = 0..N-2"""

    def __init__(self, n_knots: int, dt: float):
        super().__init__(n_knots - 1, "dynamics")
        self.dt = dt

    def get_values(self) -> np.ndarray:
        v = self.get_variables()
        pos, vel = v.values("pos"), v.values("vel")
        return pos[1:] - pos[:-1] - self.dt * vel[:-1]

    def get_bounds(self) -> Bounds:
        return Bounds.uniform(self.rows, BOUND_ZERO)

    def fill_jacobian_block(self, var_set, jac_block):
        for k in range(self.rows):
            if var_set == "pos":
                jac_block[k, k] = -1.0
                jac_block[k, k + 1] = 1.0
            elif var_set == "vel":
                jac_block[k, k] = -self.dt


class Endpoints(ConstraintBlock):
    """pos[0] = 0 and pos[N-1] = 1"""

    def __init__(self):
        super().__init__(2, "endpoints")

    def get_values(self) -> np.ndarray:
        pos = self.get_variables().values("pos")
        return np.array([pos[0], pos[-1]])

    def get_bounds(self) -> Bounds:
        return Bounds.from_list([(0.0, 0.0), (1.0, 1.0)])

    def fill_jacobian_block(self, var_set, jac_block):
        if var_set == "pos":
            jac_block[0, 0] = 1.0
            jac_block[1, jac_block.shape[1] - 1] = 1.0


class Effort(CostBlock):
    """sum(vel^2)"""

    def __init__(self):
        super().__init__("effort")

    def get_cost(self) -> float:
        return float(np.sum(self.get_variables().values("vel") ** 2))

    def fill_jacobian_block(self, var_set, jac_block):
        if var_set == "vel":
            vel = self.get_variables().values("vel")
            for k, v in enumerate(vel):
                jac_block[0, k] = 2.0 * v


def build_point_mass(n_knots: int = 11, dt: float = 0.1, v_max: float = 5.0) -> Problem:
    nlp = Problem()
    nlp.add_variable_set(VariableBlock(n_knots, "pos"))
    nlp.add_variable_set(VariableBlock(n_knots, "vel", bounds=Bounds.uniform(n_knots, (-v_max, v_max))))
    nlp.add_constraint_set(Dynamics(n_knots, dt))
    nlp.add_constraint_set(Endpoints())
    nlp.add_cost_set(Effort())
    return nlp


def demo():
    """Demo: move the point mass from 0 to 1."""
    logger = get_logger("blocknlp")
    print("=" * 60)
    print("Point Mass Demo")
    print("=" * 60)

    n_knots, dt = 11, 0.1
    nlp = build_point_mass(n_knots, dt)

    print(f"\nVariables: {nlp.variables.layout()}")
    print(f"Constraints: {nlp.constraints.layout()}")

    check = check_jacobian(nlp, np.random.default_rng(0).normal(size=2 * n_knots))
    print(f"Jacobian check: max error {check.max_abs_error:.2e}")

    print("\nSolving...")
    result = ScipySolver(SolverConfig(method="SLSQP")).solve(nlp)
    nlp.print_current()

    vel = nlp.variables.get_component("vel").get_values()
    expected = 1.0 / (dt * (n_knots - 1))
    print(f"\nVelocities: {vel[:-1]}")
    print(f"Expected constant velocity: {expected}")
    logger.info("Effort: %.6e", result.cost)

    return result.success and np.allclose(vel[:-1], expected, atol=1e-4)


if __name__ == "__main__":
    success = demo()
    print("\n" + ("PASSED" if success else "FAILED"))
