"""
Common utilities for state estimation.

Includes angle handling, residual functions and covariance linear algebra.
"""

from .angles import normalize_angle, angle_diff, weighted_mean_angle
from .residuals import normalize_components, residual
from .linalg import symmetrize, is_positive_semidefinite, sqrt_covariance, solve_gain

__all__ = [
    'normalize_angle',
    'angle_diff',
    'weighted_mean_angle',
    'normalize_components',
    'residual',
    'symmetrize',
    'is_positive_semidefinite',
    'sqrt_covariance',
    'solve_gain',
]
