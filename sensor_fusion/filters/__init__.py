"""
Unscented Kalman Filter for asynchronous multi-sensor tracking.

This module provides:
- the sigma point generator and noise augmentation
- the prediction and update stages as standalone functions
- the UnscentedKalmanFilter engine that consumes one packet at a time
"""

from .state import FilterState, UpdateResult
from .sigma_points import SigmaPointGenerator, augment
from .unscented import UnscentedKalmanFilter, predict, update

__all__ = [
    'FilterState',
    'UpdateResult',
    'SigmaPointGenerator',
    'augment',
    'UnscentedKalmanFilter',
    'predict',
    'update',
]
