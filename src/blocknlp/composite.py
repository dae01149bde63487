"""
Block Assembler

Stacks an ordered collection of blocks of one kind (all variable blocks,
all constraint blocks or all cost terms) into global vectors and a global
sparse Jacobian.

Each block starts at the running sum of the row counts of the blocks
appended before it. The assembler keeps an explicit name -> (offset, width)
map so constraint blocks can place their Jacobian columns without doing
any offset arithmetic themselves.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple, Any
import numpy as np
import scipy.sparse as sp

from .bounds import Bounds, NO_BOUND
from .component import Component, Evaluable, Mutable
from .errors import ConfigurationError, IllegalOperationError


logger = logging.getLogger(__name__)


class BlockAssembler:
    """
    Ordered, name-keyed collection of components.

    With is_cost=True the children are summed into a single row instead of
    being stacked: the total cost is the sum of all cost terms and its
    gradient the sum of their gradients.
    """

    def __init__(self, name: str, is_cost: bool = False):
        self.name = name
        self.is_cost = is_cost

        self._components: List[Component] = []
        self._index: Dict[str, int] = {}
        self._layout: Dict[str, Tuple[int, int]] = {}
        self._rows = 0
        self._kind: Optional[type] = None
        self._frozen = False

    # ------------------------------------------------------------------
    # Collection bookkeeping
    # ------------------------------------------------------------------

    def append(self, component: Component) -> None:
        """
        Add a block at the end of the collection.

        Raises:
            ConfigurationError: if the assembler is frozen, the name is
                already taken, the block is of another kind than the
                blocks already present, or a cost term has more than one row.
        """
        if self._frozen:
            raise ConfigurationError(
                f"Cannot add '{component.name}' to '{self.name}': "
                "assembler is frozen for solving"
            )
        if component.name in self._index:
            raise ConfigurationError(
                f"Duplicate block name '{component.name}' in '{self.name}'"
            )

        if self.is_cost and component.rows != 1:
            raise ConfigurationError(
                f"Cost term '{component.name}' must have exactly 1 row, "
                f"got {component.rows}"
            )

        kind = self._kind_of(component)
        if self._kind is not None and kind is not self._kind:
            raise ConfigurationError(
                f"Cannot mix {kind.__name__} block '{component.name}' with "
                f"{self._kind.__name__} blocks in '{self.name}'"
            )

        self._kind = kind
        self._index[component.name] = len(self._components)
        self._components.append(component)
        self._reindex()

        logger.debug(
            "%s: appended '%s' (%d rows) at offset %d",
            self.name, component.name, component.rows,
            self._layout[component.name][0],
        )

    add_component = append

    def clear(self) -> None:
        """Remove all blocks."""
        if self._frozen:
            raise ConfigurationError(f"Cannot clear '{self.name}': assembler is frozen")
        self._components = []
        self._index = {}
        self._kind = None
        self._reindex()

    def freeze(self) -> None:
        """Disallow further changes so reported offsets stay valid."""
        if not self._frozen:
            logger.debug("%s: frozen with %d blocks, %d rows",
                         self.name, len(self._components), self._rows)
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def _reindex(self):
        self._layout = {}
        offset = 0
        for c in self._components:
            if self.is_cost:
                self._layout[c.name] = (0, c.rows)
            else:
                self._layout[c.name] = (offset, c.rows)
                offset += c.rows
        self._rows = (1 if self._components else 0) if self.is_cost else offset

    @staticmethod
    def _kind_of(component: Component) -> type:
        if isinstance(component, Mutable):
            return Mutable
        if isinstance(component, Evaluable):
            return Evaluable
        raise ConfigurationError(
            f"Block '{component.name}' is neither Mutable nor Evaluable"
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def rows(self) -> int:
        """Total number of rows (or variables) of all blocks."""
        return self._rows

    @property
    def components(self) -> Tuple[Component, ...]:
        return tuple(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[Component]:
        return iter(tuple(self._components))

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        return (f"BlockAssembler(name={self.name!r}, blocks={len(self)}, "
                f"rows={self._rows}, frozen={self._frozen})")

    def get_component(self, name: str) -> Component:
        try:
            return self._components[self._index[name]]
        except KeyError:
            raise KeyError(f"No block named '{name}' in '{self.name}'") from None

    def offset_of(self, name: str) -> int:
        """Global starting row (or column) of the named block."""
        return self.column_range(name)[0]

    def column_range(self, name: str) -> Tuple[int, int]:
        """(offset, width) of the named block."""
        try:
            return self._layout[name]
        except KeyError:
            raise KeyError(f"No block named '{name}' in '{self.name}'") from None

    def layout(self) -> Dict[str, Tuple[int, int]]:
        """name -> (offset, width) for every block, in append order."""
        return dict(self._layout)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def get_values(self) -> np.ndarray:
        """Values of all blocks, stacked (or summed for costs)."""
        parts = [self._checked(c, c.get_values(), "values") for c in self._components]

        if self.is_cost:
            if not parts:
                return np.zeros(0)
            total = sum(float(np.sum(p)) for p in parts)
            return np.array([total])

        if not parts:
            return np.zeros(0)
        return np.concatenate(parts)

    def get_bounds(self) -> Bounds:
        """Bounds of all blocks, stacked in append order."""
        if self.is_cost:
            return Bounds.uniform(self._rows, NO_BOUND)
        return Bounds.concatenate(
            self._checked(c, c.get_bounds(), "bounds") for c in self._components
        )

    def get_jacobian(self, n_cols: Optional[int] = None) -> sp.csr_matrix:
        """
        Stack the Jacobians of all blocks at their row offsets.

        Args:
            n_cols: Expected number of columns (total variables). Required
                to shape the result of an empty assembler.

        Returns:
            csr_matrix of shape (rows, n_cols)
        """
        if self._kind is Mutable:
            raise IllegalOperationError(
                f"'{self.name}' holds variable blocks, which have no Jacobian"
            )

        rows_idx, cols_idx, data = [], [], []
        for c in self._components:
            jac = sp.coo_matrix(c.get_jacobian())
            if jac.shape[0] != c.rows:
                raise ConfigurationError(
                    f"Jacobian of '{c.name}' has {jac.shape[0]} rows, "
                    f"expected {c.rows}"
                )
            if n_cols is None:
                n_cols = jac.shape[1]
            elif jac.shape[1] != n_cols:
                raise ConfigurationError(
                    f"Jacobian of '{c.name}' has {jac.shape[1]} columns, "
                    f"expected {n_cols}"
                )

            row_offset = self._layout[c.name][0]
            rows_idx.append(jac.row + row_offset)
            cols_idx.append(jac.col)
            data.append(jac.data)

        if n_cols is None:
            n_cols = 0
        if not data:
            return sp.csr_matrix((self._rows, n_cols))

        # Duplicate (row, col) entries are summed by the conversion, which is
        # exactly the cost-gradient accumulation when is_cost is set.
        return sp.coo_matrix(
            (np.concatenate(data), (np.concatenate(rows_idx), np.concatenate(cols_idx))),
            shape=(self._rows, n_cols),
        ).tocsr()

    def set_variables(self, x: np.ndarray) -> None:
        """Slice x at the block offsets and hand each slice to its block."""
        if self._kind is Evaluable:
            raise IllegalOperationError(
                f"'{self.name}' holds constraint blocks, which cannot be set"
            )
        x = np.asarray(x, dtype=np.float64).ravel()
        if len(x) != self._rows:
            raise ConfigurationError(
                f"'{self.name}' expects {self._rows} values, got {len(x)}"
            )
        for c in self._components:
            offset, width = self._layout[c.name]
            c.set_variables(x[offset:offset + width])

    def _checked(self, component: Component, result: Any, what: str):
        if len(result) != component.rows:
            raise ConfigurationError(
                f"'{component.name}' returned {len(result)} {what}, "
                f"declared {component.rows} rows"
            )
        return result

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def summary(self, tol: float = 1e-4) -> List[Dict[str, Any]]:
        """
        One entry per block: name, rows, offset and the number of rows
        whose current value violates its bounds by more than tol.
        """
        entries = []
        for c in self._components:
            values = np.asarray(c.get_values(), dtype=np.float64)
            bounds = c.get_bounds()
            entries.append({
                "name": c.name,
                "rows": c.rows,
                "offset": self._layout[c.name][0],
                "n_violated": int(len(bounds.violations(values, tol))),
            })
        return entries

    def print_summary(self, tol: float = 1e-4) -> None:
        entries = self.summary(tol)
        logger.info("%s (%d rows):", self.name, self._rows)
        for e in entries:
            logger.info(
                "  %-24s rows=%-5d offset=%-5d violated=%d",
                e["name"], e["rows"], e["offset"], e["n_violated"],
            )


Composite = BlockAssembler
