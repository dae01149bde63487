"""
blocknlp - Block-Structured Nonlinear Program Formulation

Describe an NLP as independently written blocks:
- VariableBlock: a named group of decision variables
- ConstraintBlock: a named group of constraint rows lower <= g(x) <= upper
- CostBlock: a scalar cost term

No block knows where it sits in the overall problem. The BlockAssembler
stacks blocks into global value and bound vectors and a global sparse
Jacobian. Every constraint fills its derivatives per variable block, in
local columns, and the assembler moves them to their global position.
"""

from .errors import (
    BlockNLPError,
    ConfigurationError,
    IllegalOperationError,
)
from .bounds import (
    Bounds,
    NO_BOUND,
    BOUND_ZERO,
    BOUND_GREATER_ZERO,
    BOUND_SMALLER_ZERO,
)
from .component import (
    Component,
    Mutable,
    Evaluable,
)
from .composite import (
    BlockAssembler,
    Composite,
)
from .leaves import (
    VariableBlock,
    ConstraintBlock,
    CostBlock,
    VariablesView,
)
from .problem import Problem
from .diagnostics import (
    JacobianCheckResult,
    check_jacobian,
    check_cost_gradient,
    finite_difference_jacobian,
)
from .solvers import (
    ScipySolver,
    SolverConfig,
    SolverResult,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "BlockNLPError",
    "ConfigurationError",
    "IllegalOperationError",
    # Bounds
    "Bounds",
    "NO_BOUND",
    "BOUND_ZERO",
    "BOUND_GREATER_ZERO",
    "BOUND_SMALLER_ZERO",
    # Components
    "Component",
    "Mutable",
    "Evaluable",
    "BlockAssembler",
    "Composite",
    "VariableBlock",
    "ConstraintBlock",
    "CostBlock",
    "VariablesView",
    # Problem
    "Problem",
    # Diagnostics
    "JacobianCheckResult",
    "check_jacobian",
    "check_cost_gradient",
    "finite_difference_jacobian",
    # Solvers
    "ScipySolver",
    "SolverConfig",
    "SolverResult",
]
