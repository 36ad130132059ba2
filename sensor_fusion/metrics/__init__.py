"""
Performance metrics for state estimation evaluation.
"""

from .performance import (rmse, mae, nees, nis, chi2_bound, fraction_within_bound,
                          compute_all_metrics, format_metrics)

__all__ = [
    'rmse',
    'mae',
    'nees',
    'nis',
    'chi2_bound',
    'fraction_within_bound',
    'compute_all_metrics',
    'format_metrics',
]
