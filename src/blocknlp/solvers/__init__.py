"""
Solver Adapters

Provides:
- ScipySolver: solves a block Problem with scipy.optimize.minimize
- SolverConfig / SolverResult
"""

from .scipy_solver import (
    ScipySolver,
    SolverConfig,
    SolverResult,
    SUPPORTED_METHODS,
    max_violation,
)

__all__ = [
    'ScipySolver',
    'SolverConfig',
    'SolverResult',
    'SUPPORTED_METHODS',
    'max_violation',
]
