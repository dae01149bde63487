"""
Leaf Blocks

The three kinds of blocks a user writes:
- VariableBlock: a set of related optimization variables
- ConstraintBlock: a set of related constraints g(x) within [lower, upper]
- CostBlock: a single scalar cost term

Constraint and cost blocks only ever use local indices. They read the
variables through a VariablesView and report derivatives per variable
block by name; ConstraintBlock.get_jacobian places those columns globally.
"""

import weakref
from abc import abstractmethod
from typing import Dict, Iterator, Optional, Sequence, Tuple, Union
import numpy as np
import scipy.sparse as sp

from .bounds import Bounds, NO_BOUND
from .component import Evaluable, Mutable
from .composite import BlockAssembler
from .errors import ConfigurationError, IllegalOperationError


def _reject_override(cls, base, names):
    for name in names:
        if name in cls.__dict__:
            raise TypeError(
                f"{cls.__name__} must not override {base.__name__}.{name}"
            )


class VariableBlock(Mutable):
    """
    A set of variables representing a single concept, e.g. "spline
    coefficients" or "step durations".

    Args:
        n_var: Number of variables
        name: What the variables represent
        values: Initial values (default: zeros)
        bounds: Bounds per variable (default: unbounded)
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _reject_override(cls, VariableBlock, ("get_jacobian",))

    def __init__(
        self,
        n_var: int,
        name: str,
        values: Optional[Sequence[float]] = None,
        bounds: Optional[Union[Bounds, Sequence[Tuple[float, float]]]] = None,
    ):
        super().__init__(n_var, name)

        if values is None:
            self._values = np.zeros(self.rows)
        else:
            self._values = self._as_segment(values)

        if bounds is None:
            self._bounds = Bounds.unbounded(self.rows)
        else:
            if not isinstance(bounds, Bounds):
                bounds = Bounds.from_list(bounds)
            if len(bounds) != self.rows:
                raise ConfigurationError(
                    f"'{name}' has {self.rows} variables but {len(bounds)} bounds"
                )
            self._bounds = bounds

    def _as_segment(self, x) -> np.ndarray:
        x = np.array(x, dtype=np.float64).ravel()
        if len(x) != self.rows:
            raise ConfigurationError(
                f"'{self.name}' expects {self.rows} values, got {len(x)}"
            )
        return x

    def get_values(self) -> np.ndarray:
        return self._values.copy()

    def get_bounds(self) -> Bounds:
        return self._bounds

    def set_variables(self, x: np.ndarray) -> None:
        # No projection onto the bounds; that is the solver's job.
        self._values = self._as_segment(x)

    def get_jacobian(self):
        raise IllegalOperationError(
            f"Variable block '{self.name}' has no Jacobian"
        )


class VariablesView:
    """
    Read-only, non-owning handle on the variable blocks of a problem.

    Holds a weak reference to the variable assembler, so constraints never
    keep the variables alive and cannot change them.
    """

    def __init__(self, variables: BlockAssembler):
        self._ref = weakref.ref(variables)

    def _assembler(self) -> BlockAssembler:
        variables = self._ref()
        if variables is None:
            raise ConfigurationError("Linked variable blocks no longer exist")
        return variables

    @property
    def n_vars(self) -> int:
        return self._assembler().rows

    def names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self._assembler())

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __contains__(self, name: str) -> bool:
        return name in self._assembler()

    def layout(self) -> Dict[str, Tuple[int, int]]:
        return self._assembler().layout()

    def column_range(self, name: str) -> Tuple[int, int]:
        return self._assembler().column_range(name)

    def rows(self, name: str) -> int:
        return self._assembler().column_range(name)[1]

    def values(self, name: str) -> np.ndarray:
        """Current values of one variable block (a read-only copy)."""
        x = np.array(self._assembler().get_component(name).get_values(), dtype=np.float64)
        x.setflags(write=False)
        return x

    def bounds(self, name: str) -> Bounds:
        """Bounds of one variable block (a read-only copy)."""
        b = self._assembler().get_component(name).get_bounds()
        b = Bounds(b.lower.copy(), b.upper.copy())
        b.lower.setflags(write=False)
        b.upper.setflags(write=False)
        return b

    def get_values(self) -> np.ndarray:
        """All variable values in global order (a read-only copy)."""
        x = self._assembler().get_values()
        x.setflags(write=False)
        return x


class ConstraintBlock(Evaluable):
    """
    A set of n related constraints, each row given by

        lower_i <= g_i(x) <= upper_i

    Subclasses implement get_values, get_bounds and fill_jacobian_block.
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _reject_override(cls, ConstraintBlock, ("get_jacobian", "set_variables", "link_variables_all"))

    def __init__(self, n_constraints: int, name: str):
        super().__init__(n_constraints, name)
        self._variables: Optional[VariablesView] = None

    def link_variables_all(self, variables: Union[BlockAssembler, VariablesView]) -> None:
        """Attach the full set of variable blocks. Called once, by the problem."""
        if self._variables is not None:
            raise ConfigurationError(f"'{self.name}' is already linked to variables")
        if not isinstance(variables, VariablesView):
            variables = VariablesView(variables)
        self._variables = variables
        self.link_variables(variables)

    def link_variables(self, variables: VariablesView) -> None:
        """Hook for caching shorthands to specific variable blocks."""

    def get_variables(self) -> VariablesView:
        """Read access to the current values of the optimization variables."""
        if self._variables is None:
            raise ConfigurationError(f"'{self.name}' is not linked to any variables")
        return self._variables

    @property
    def is_linked(self) -> bool:
        return self._variables is not None

    @abstractmethod
    def fill_jacobian_block(self, var_set: str, jac_block: sp.lil_matrix) -> None:
        """
        Write the derivatives of these constraints w.r.t. one variable block.

        Args:
            var_set: Name of the variable block
            jac_block: Zero matrix of shape (rows, size of var_set); column 0
                is the first variable of var_set

        If the constraints don't depend on var_set, do nothing.
        """

    def get_jacobian(self) -> sp.csr_matrix:
        """
        The n x m matrix of derivatives for these constraints and all m
        variables, combined from fill_jacobian_block() for every variable
        block.
        """
        variables = self.get_variables()
        n_cols = variables.n_vars

        rows, cols, data = [], [], []
        for var_set, (offset, width) in variables.layout().items():
            block = sp.lil_matrix((self.rows, width))
            self.fill_jacobian_block(var_set, block)
            if block.shape != (self.rows, width):
                raise ConfigurationError(
                    f"'{self.name}' resized the Jacobian block of '{var_set}' "
                    f"to {block.shape}, expected {(self.rows, width)}"
                )
            coo = block.tocoo()
            rows.append(coo.row)
            cols.append(coo.col + offset)
            data.append(coo.data)

        if not data:
            return sp.csr_matrix((self.rows, n_cols))
        return sp.coo_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(self.rows, n_cols),
        ).tocsr()

    def set_variables(self, x: np.ndarray) -> None:
        raise IllegalOperationError(
            f"Constraint block '{self.name}' holds no variables to set"
        )


class CostBlock(ConstraintBlock):
    """
    A single scalar cost term, seen as a constraint with one row and no
    bounds so it can go through the same assembly as constraints.
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _reject_override(cls, CostBlock, ("get_values", "get_bounds"))

    def __init__(self, name: str):
        super().__init__(1, name)

    @abstractmethod
    def get_cost(self) -> float:
        """The scalar cost computed from the variables."""

    def get_values(self) -> np.ndarray:
        return np.array([float(self.get_cost())])

    def get_bounds(self) -> Bounds:
        return Bounds.uniform(1, NO_BOUND)
