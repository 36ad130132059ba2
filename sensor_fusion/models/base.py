"""
Model interface consumed by the Unscented Kalman Filter.

A model bundles the motion equations, the per-sensor measurement
transforms and the angle bookkeeping of one tracked-object description.
The filter is written once against this interface and receives a model
instance at construction; it never subclasses a model.

Every hook is pure: it reads its arguments and the model's constant
configuration, returns new arrays and never mutates its inputs.

Sigma points are stored one per row, shape (2 * n_aug + 1, dim).
"""

from abc import ABC, abstractmethod

import numpy as np

from ..common.angles import weighted_mean_angle
from ..common.residuals import normalize_components, residual
from ..exceptions import InvalidMeasurementError, UnsupportedSensorError


class UKFModel(ABC):
    """
    Base class for motion/measurement models.

    Subclasses set the class attributes below and implement the abstract
    hooks. The mean/covariance recombination and the normalization hooks
    have generic implementations driven by the angle indices.

    Attributes
    ----------
    n_states : int
        Dimension of the state vector
    n_noise : int
        Number of process noise sources (augmented dimensions)
    state_angle_indices : tuple of int
        Angular state components, kept in (-pi, pi]
    measurement_dims : dict
        SensorType -> measurement dimension, for every supported sensor
    measurement_angle_indices : dict
        SensorType -> tuple of angular measurement components
    """

    n_states = None
    n_noise = None
    state_angle_indices = ()
    measurement_dims = {}
    measurement_angle_indices = {}

    @property
    def supported_sensors(self):
        """Sensors this model can turn into a measurement prediction."""
        return tuple(self.measurement_dims)

    def check_packet(self, packet):
        """
        Reject a packet the model cannot process.

        Raises
        ------
        UnsupportedSensorError
            If the sensor type has no measurement transform
        InvalidMeasurementError
            If the raw values have the wrong length or are not finite
        """
        if packet.sensor_type not in self.measurement_dims:
            raise UnsupportedSensorError(packet.sensor_type, self.supported_sensors)

        expected = self.measurement_dims[packet.sensor_type]
        if packet.raw_values.shape != (expected,):
            raise InvalidMeasurementError(
                f"{packet.sensor_type} packet needs {expected} values, "
                f"got {packet.raw_values.shape[0]}"
            )
        if not np.all(np.isfinite(packet.raw_values)):
            raise InvalidMeasurementError(
                f"{packet.sensor_type} packet has non-finite values: {packet.raw_values}"
            )

    # ------------------------------------------------------------------
    # Model-specific hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def initialize_state(self, packet):
        """
        Approximate a state vector from a single packet.

        Parameters
        ----------
        packet : SensorDataPacket
            First packet of the track

        Returns
        -------
        np.ndarray
            State vector (n_states,)
        """

    @abstractmethod
    def predict_sigma_points(self, sigma_points, dt):
        """
        Propagate augmented sigma points forward by dt seconds.

        Parameters
        ----------
        sigma_points : np.ndarray
            Augmented sigma points (m, n_states + n_noise)
        dt : float
            Elapsed time in seconds

        Returns
        -------
        np.ndarray
            Predicted sigma points (m, n_states)
        """

    @abstractmethod
    def sigma_points_to_measurement_space(self, sigma_points, weights, sensor_type):
        """
        Transform predicted sigma points into a sensor's measurement space.

        Parameters
        ----------
        sigma_points : np.ndarray
            Predicted sigma points (m, n_states)
        weights : np.ndarray
            Sigma point weights (m,)
        sensor_type : SensorType
            Sensor of the current observation

        Returns
        -------
        np.ndarray
            Measurement sigma points (m, n_z)
        """

    @abstractmethod
    def measurement_noise(self, sensor_type):
        """Measurement noise covariance R (n_z, n_z) of a sensor."""

    @abstractmethod
    def state_to_cartesian(self, x):
        """Project a state vector onto [px, py, vx, vy]."""

    # ------------------------------------------------------------------
    # Generic hooks
    # ------------------------------------------------------------------
    def normalize_state(self, x):
        """Wrap the angular state components into (-pi, pi]."""
        return normalize_components(x, self.state_angle_indices)

    def normalize_measurement(self, z, sensor_type):
        """Wrap the angular measurement components into (-pi, pi]."""
        return normalize_components(z, self.measurement_angle_indices.get(sensor_type, ()))

    def process_mean_and_covariance(self, sigma_points, weights):
        """
        Recombine predicted sigma points into a mean and covariance.

        Parameters
        ----------
        sigma_points : np.ndarray
            Predicted sigma points (m, n_states)
        weights : np.ndarray
            Sigma point weights (m,)

        Returns
        -------
        tuple of np.ndarray
            (x, P) with shapes (n_states,) and (n_states, n_states)
        """
        return _weighted_mean_and_covariance(sigma_points, weights, self.state_angle_indices)

    def measurement_mean_and_covariance(self, sigma_points, weights, sensor_type):
        """
        Recombine measurement sigma points into a predicted measurement.

        The sensor's noise covariance R is added to the spread of the points.

        Returns
        -------
        tuple of np.ndarray
            (z_pred, S) with shapes (n_z,) and (n_z, n_z)
        """
        angle_indices = self.measurement_angle_indices.get(sensor_type, ())
        z, S = _weighted_mean_and_covariance(sigma_points, weights, angle_indices)
        return z, S + self.measurement_noise(sensor_type)


def _weighted_mean_and_covariance(sigma_points, weights, angle_indices=()):
    """Weighted mean and covariance of row vectors, angles taken around point 0."""
    sigma_points = np.asarray(sigma_points, dtype=float)
    weights = np.asarray(weights, dtype=float)

    mean = weights @ sigma_points
    for idx in angle_indices:
        mean[idx] = weighted_mean_angle(sigma_points[:, idx], weights)

    diff = residual(sigma_points, mean, angle_indices)
    cov = (diff.T * weights) @ diff

    return mean, cov
