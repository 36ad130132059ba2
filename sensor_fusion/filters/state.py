"""
Containers passed between the filter stages.
"""

from typing import NamedTuple

import numpy as np


class FilterState(NamedTuple):
    """
    Mean and covariance of the tracked state.

    Attributes
    ----------
    x : np.ndarray
        State estimate (n_states,)
    P : np.ndarray
        State covariance (n_states, n_states), symmetric PSD
    """
    x: np.ndarray
    P: np.ndarray

    def copy(self):
        return FilterState(x=np.array(self.x, dtype=float), P=np.array(self.P, dtype=float))


class UpdateResult(NamedTuple):
    """
    Outcome of one predict + update cycle.

    Attributes
    ----------
    state : FilterState
        Posterior mean and covariance
    innovation : np.ndarray
        Normalized residual y = z - z_pred (n_z,)
    innovation_covariance : np.ndarray
        Innovation covariance S (n_z, n_z)
    kalman_gain : np.ndarray
        Kalman gain K (n_states, n_z)
    nis : float
        Normalized innovation squared y^T S^-1 y
    dt : float
        Prediction interval in seconds
    """
    state: FilterState
    innovation: np.ndarray
    innovation_covariance: np.ndarray
    kalman_gain: np.ndarray
    nis: float
    dt: float = 0.0
