"""
Linear constant-velocity model observed by lidar.

State: x = [px, py, vx, vy]
Process noise: nu = [nu_ax, nu_ay] (white accelerations, m/s^2)
Measurement (LIDAR): z = [px, py]

The model is linear, so the unscented transform reproduces the ordinary
Kalman filter exactly. Useful as a reference when checking the filter.
"""

import numpy as np

from ..measurements import SensorType
from .base import UKFModel


class ConstantVelocityModel(UKFModel):
    """
    Constant-velocity point target.

    Parameters
    ----------
    lidar_std : sequence of float, optional
        Lidar position noise [std_px, std_py] in m (default: [0.15, 0.15])
    """

    n_states = 4
    n_noise = 2
    measurement_dims = {SensorType.LIDAR: 2}

    def __init__(self, lidar_std=None):
        if lidar_std is None:
            lidar_std = [0.15, 0.15]
        self.lidar_std = np.asarray(lidar_std, dtype=float)
        if self.lidar_std.shape != (2,) or np.any(self.lidar_std <= 0):
            raise ValueError("lidar_std needs 2 positive values")
        self._R = np.diag(self.lidar_std ** 2)

    def initialize_state(self, packet):
        px, py = packet.raw_values
        return np.array([px, py, 0.0, 0.0])

    def predict_sigma_points(self, sigma_points, dt):
        sigma_points = np.asarray(sigma_points, dtype=float)
        px, py, vx, vy, nu_ax, nu_ay = sigma_points.T

        half_dt2 = 0.5 * dt * dt
        return np.column_stack([
            px + vx * dt + half_dt2 * nu_ax,
            py + vy * dt + half_dt2 * nu_ay,
            vx + dt * nu_ax,
            vy + dt * nu_ay,
        ])

    def sigma_points_to_measurement_space(self, sigma_points, weights, sensor_type):
        return np.asarray(sigma_points, dtype=float)[:, :2].copy()

    def measurement_noise(self, sensor_type):
        return self._R.copy()

    def state_to_cartesian(self, x):
        return np.array(x, dtype=float)

    def transition_matrix(self, dt):
        """State transition matrix F of the equivalent linear filter."""
        F = np.eye(4)
        F[0, 2] = dt
        F[1, 3] = dt
        return F

    def noise_gain(self, dt):
        """Maps the noise vector into the state: x_{k+1} = F x_k + G nu."""
        half_dt2 = 0.5 * dt * dt
        return np.array([
            [half_dt2, 0.0],
            [0.0, half_dt2],
            [dt, 0.0],
            [0.0, dt],
        ])

    @staticmethod
    def measurement_matrix():
        """Linear lidar measurement matrix H."""
        return np.hstack([np.eye(2), np.zeros((2, 2))])
