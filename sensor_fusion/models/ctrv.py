"""
Constant Turn Rate and Velocity (CTRV) model with radar and lidar sensors.

State: x = [px, py, v, yaw, yaw_rate]
- (px, py): position in the world frame (m)
- v: speed along the heading (m/s)
- yaw: heading angle (rad)
- yaw_rate: heading rate (rad/s)

Process noise: nu = [nu_a, nu_yawdd]
- nu_a: longitudinal acceleration (m/s^2)
- nu_yawdd: yaw acceleration (rad/s^2)

Measurements:
- LIDAR: z = [px, py]
- RADAR: z = [rho, phi, rho_dot] (range, bearing, range rate)
"""

import numpy as np

from ..measurements import SensorType
from .base import UKFModel


# Below this yaw rate the motion is integrated as a straight line
YAW_RATE_EPS = 1e-3

# Radar range floor, avoids dividing by zero at the sensor origin
MIN_RANGE = 1e-4


class CTRVModel(UKFModel):
    """
    CTRV motion model fused from radar and lidar observations.

    Parameters
    ----------
    lidar_std : sequence of float, optional
        Lidar position noise [std_px, std_py] in m (default: [0.15, 0.15])
    radar_std : sequence of float, optional
        Radar noise [std_rho (m), std_phi (rad), std_rho_dot (m/s)]
        (default: [0.3, 0.03, 0.3])
    initial_speed : float, optional
        Speed assigned on initialization, the sensors cannot observe it
        from a single packet (default: 0.0)
    """

    n_states = 5
    n_noise = 2
    state_angle_indices = (3,)
    measurement_dims = {SensorType.LIDAR: 2, SensorType.RADAR: 3}
    measurement_angle_indices = {SensorType.RADAR: (1,)}

    def __init__(self, lidar_std=None, radar_std=None, initial_speed=0.0):
        if lidar_std is None:
            lidar_std = [0.15, 0.15]
        if radar_std is None:
            radar_std = [0.3, 0.03, 0.3]

        self.lidar_std = np.asarray(lidar_std, dtype=float)
        self.radar_std = np.asarray(radar_std, dtype=float)
        self.initial_speed = float(initial_speed)

        if self.lidar_std.shape != (2,) or self.radar_std.shape != (3,):
            raise ValueError("lidar_std needs 2 values and radar_std needs 3 values")
        if np.any(self.lidar_std <= 0) or np.any(self.radar_std <= 0):
            raise ValueError("Measurement standard deviations must be positive")

        self._R = {
            SensorType.LIDAR: np.diag(self.lidar_std ** 2),
            SensorType.RADAR: np.diag(self.radar_std ** 2),
        }

    def __repr__(self):
        return (f"CTRVModel(lidar_std={self.lidar_std.tolist()}, "
                f"radar_std={self.radar_std.tolist()})")

    #======================================================
    # Initialization
    #======================================================
    def initialize_state(self, packet):
        z = packet.raw_values

        if packet.sensor_type is SensorType.RADAR:
            rho, phi = z[0], z[1]
            px, py = rho * np.cos(phi), rho * np.sin(phi)
        else:
            px, py = z[0], z[1]

        return np.array([px, py, self.initial_speed, 0.0, 0.0])

    #======================================================
    # Process model
    #======================================================
    def predict_sigma_points(self, sigma_points, dt):
        """
        Discrete-time CTRV dynamics applied to every augmented sigma point.

        Parameters
        ----------
        sigma_points : np.ndarray
            Augmented sigma points (m, 7): [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
        dt : float
            Time step in seconds

        Returns
        -------
        np.ndarray
            Predicted sigma points (m, 5)
        """
        sigma_points = np.asarray(sigma_points, dtype=float)
        px, py, v, yaw, yawd, nu_a, nu_yawdd = sigma_points.T

        turning = np.abs(yawd) > YAW_RATE_EPS
        safe_yawd = np.where(turning, yawd, 1.0)

        # Deterministic part
        px_p = np.where(
            turning,
            px + v / safe_yawd * (np.sin(yaw + yawd * dt) - np.sin(yaw)),
            px + v * dt * np.cos(yaw),
        )
        py_p = np.where(
            turning,
            py + v / safe_yawd * (np.cos(yaw) - np.cos(yaw + yawd * dt)),
            py + v * dt * np.sin(yaw),
        )
        v_p = v.copy()
        yaw_p = yaw + yawd * dt
        yawd_p = yawd.copy()

        # Noise contribution
        half_dt2 = 0.5 * dt * dt
        px_p = px_p + half_dt2 * np.cos(yaw) * nu_a
        py_p = py_p + half_dt2 * np.sin(yaw) * nu_a
        v_p = v_p + dt * nu_a
        yaw_p = yaw_p + half_dt2 * nu_yawdd
        yawd_p = yawd_p + dt * nu_yawdd

        return np.column_stack([px_p, py_p, v_p, yaw_p, yawd_p])

    #======================================================
    # Measurement models
    #======================================================
    def sigma_points_to_measurement_space(self, sigma_points, weights, sensor_type):
        sigma_points = np.asarray(sigma_points, dtype=float)

        if sensor_type is SensorType.LIDAR:
            return sigma_points[:, :2].copy()

        px, py, v, yaw, _ = sigma_points.T

        rho = np.hypot(px, py)
        phi = np.arctan2(py, px)
        rho_dot = (px * np.cos(yaw) * v + py * np.sin(yaw) * v) / np.maximum(rho, MIN_RANGE)

        return np.column_stack([rho, phi, rho_dot])

    def measurement_noise(self, sensor_type):
        return self._R[sensor_type].copy()

    def state_to_cartesian(self, x):
        """
        Convert a CTRV state to [px, py, vx, vy].

        Parameters
        ----------
        x : np.ndarray
            State (5,) or stacked states (N, 5)

        Returns
        -------
        np.ndarray
            Cartesian state (4,) or (N, 4)
        """
        x = np.asarray(x, dtype=float)
        px, py, v, yaw = x[..., 0], x[..., 1], x[..., 2], x[..., 3]
        return np.stack([px, py, v * np.cos(yaw), v * np.sin(yaw)], axis=-1)
