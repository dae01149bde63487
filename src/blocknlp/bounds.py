"""
Bounds

Interval bounds for variable and constraint rows:
- Bounds: a vector of (lower, upper) pairs, one per row
- Named single-row bounds used when building bound vectors
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple
import numpy as np


INF = float('inf')

NO_BOUND: Tuple[float, float] = (-INF, INF)
BOUND_ZERO: Tuple[float, float] = (0.0, 0.0)
BOUND_GREATER_ZERO: Tuple[float, float] = (0.0, INF)
BOUND_SMALLER_ZERO: Tuple[float, float] = (-INF, 0.0)


@dataclass
class Bounds:
    """
    Row-wise interval bounds lower_i <= value_i <= upper_i.

    Attributes:
        lower: Lower bound of each row
        upper: Upper bound of each row
    """
    lower: np.ndarray
    upper: np.ndarray

    def __post_init__(self):
        self.lower = np.atleast_1d(np.asarray(self.lower, dtype=np.float64))
        self.upper = np.atleast_1d(np.asarray(self.upper, dtype=np.float64))

        if len(self.lower) != len(self.upper):
            raise ValueError("Lower and upper bounds must have same length")

        if np.any(self.lower > self.upper):
            raise ValueError("Lower bounds must be <= upper bounds")

    def __len__(self) -> int:
        return len(self.lower)

    def __getitem__(self, i: int) -> Tuple[float, float]:
        return float(self.lower[i]), float(self.upper[i])

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return (
            np.array_equal(self.lower, other.lower) and
            np.array_equal(self.upper, other.upper)
        )

    @property
    def n_rows(self) -> int:
        return len(self.lower)

    @property
    def is_unbounded(self) -> bool:
        return bool(np.all(np.isneginf(self.lower)) and np.all(np.isposinf(self.upper)))

    def contains(self, x: np.ndarray, tol: float = 1e-10) -> bool:
        """Check if every row of x is within bounds (with tolerance)."""
        return bool(
            np.all(x >= self.lower - tol) and
            np.all(x <= self.upper + tol)
        )

    def violations(self, x: np.ndarray, tol: float = 1e-10) -> np.ndarray:
        """Indices of rows of x lying outside their bounds."""
        x = np.asarray(x, dtype=np.float64)
        outside = (x < self.lower - tol) | (x > self.upper + tol)
        return np.flatnonzero(outside)

    def to_list(self) -> List[Tuple[float, float]]:
        return list(self)

    @classmethod
    def from_list(cls, bounds: Sequence[Tuple[float, float]]) -> 'Bounds':
        """Create from list of (lower, upper) tuples."""
        lower = [b[0] for b in bounds]
        upper = [b[1] for b in bounds]
        return cls(np.array(lower, dtype=np.float64), np.array(upper, dtype=np.float64))

    @classmethod
    def uniform(cls, n: int, bound: Tuple[float, float]) -> 'Bounds':
        """n rows sharing the same bound."""
        return cls(np.full(n, bound[0], dtype=np.float64), np.full(n, bound[1], dtype=np.float64))

    @classmethod
    def unbounded(cls, n: int) -> 'Bounds':
        return cls.uniform(n, NO_BOUND)

    @classmethod
    def concatenate(cls, parts: Iterable['Bounds']) -> 'Bounds':
        """Stack bound vectors in order."""
        parts = list(parts)
        if not parts:
            return cls(np.zeros(0), np.zeros(0))
        return cls(
            np.concatenate([p.lower for p in parts]),
            np.concatenate([p.upper for p in parts]),
        )
