"""
Visualization utilities for state estimation.
"""

from .tracks import plot_track, plot_covariance_ellipse, plot_nis

__all__ = [
    'plot_track',
    'plot_covariance_ellipse',
    'plot_nis',
]
