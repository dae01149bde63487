"""
Toy optimization problems for testing and demonstration.
"""

from .point_mass import build_point_mass

__all__ = [
    'build_point_mass',
]
