"""
Component Contract

Every block of an NLP is a Component: a named unit with a fixed number of
rows that can report its values and their bounds.

Two disjoint capabilities sit on top of the base contract:
- Mutable: accepts new values from the solver (variable blocks)
- Evaluable: provides a Jacobian w.r.t. the variables (constraints, costs)
"""

from abc import ABC, abstractmethod
import numpy as np
import scipy.sparse as sp

from .bounds import Bounds
from .errors import ConfigurationError


class Component(ABC):
    """
    A named block with a fixed row count.

    For variable blocks the rows are the number of variables, for
    constraint blocks the number of constraint rows.
    """

    def __init__(self, n_rows: int, name: str):
        if int(n_rows) != n_rows or n_rows < 0:
            raise ConfigurationError(
                f"Row count of '{name}' must be a non-negative integer, got {n_rows}"
            )
        self._rows = int(n_rows)
        self._name = str(name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def rows(self) -> int:
        return self._rows

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, rows={self._rows})"

    @abstractmethod
    def get_values(self) -> np.ndarray:
        """Current values, one per row."""

    @abstractmethod
    def get_bounds(self) -> Bounds:
        """Bounds on the values, one per row."""


class Mutable(Component):
    """A component whose values are set by the solver."""

    @abstractmethod
    def set_variables(self, x: np.ndarray) -> None:
        """Overwrite the stored values with x."""


class Evaluable(Component):
    """A component whose values are functions of the variables."""

    @abstractmethod
    def get_jacobian(self) -> sp.csr_matrix:
        """Derivatives of the values, rows x total number of variables."""
