"""
Unscented Kalman Filter (UKF) implementation.

A UKF for asynchronous, multi-sensor tracking. The motion equations and the
per-sensor measurement transforms come from a model (see
:class:`sensor_fusion.models.UKFModel`); the filter owns the recursion:

1. augment (x, P) with the process noise and generate sigma points,
2. predict the points forward by the time since the previous packet,
3. recombine them into a predicted mean and covariance,
4. map the predicted points into the packet's measurement space,
5. compute the Kalman gain and correct the state with the innovation.

The two stages are plain functions (:func:`predict`, :func:`update`) that
return new arrays; :class:`UnscentedKalmanFilter` threads the state between
them and replaces its mean and covariance only once a cycle has completed.
"""

import logging

import numpy as np

from ..common.linalg import solve_gain, symmetrize
from ..config import FilterConfig
from ..exceptions import NumericalError, OutOfOrderMeasurementError
from .sigma_points import SigmaPointGenerator, augment
from .state import FilterState, UpdateResult

logger = logging.getLogger(__name__)


def predict(model, state, Q, points, dt):
    """
    Prediction stage.

    Parameters
    ----------
    model : UKFModel
        Supplies the motion equations and the state recombination
    state : FilterState
        Current mean and covariance
    Q : np.ndarray
        Process noise covariance (n_noise, n_noise)
    points : SigmaPointGenerator
        Generator of dimension n_states + n_noise
    dt : float
        Elapsed time in seconds, >= 0

    Returns
    -------
    tuple
        (predicted sigma points (2n_aug+1, n_states), predicted FilterState)

    Notes
    -----
    With ``dt == 0`` the motion model is not applied: the predicted state is
    the prior itself and the sigma points are the state part of the
    augmented points.
    """
    n = state.x.shape[0]

    x_aug, P_aug = augment(state.x, state.P, Q)
    sigmas_aug = points.sigma_points(x_aug, P_aug)

    if dt == 0:
        return sigmas_aug[:, :n].copy(), state.copy()

    sigmas_f = np.asarray(model.predict_sigma_points(sigmas_aug, dt), dtype=float)
    if sigmas_f.shape != (points.num_sigmas, n):
        raise ValueError(
            f"{type(model).__name__}.predict_sigma_points returned shape "
            f"{sigmas_f.shape}, expected {(points.num_sigmas, n)}"
        )
    if not np.all(np.isfinite(sigmas_f)):
        logger.error("Predicted sigma points are not finite (dt=%.6f)", dt)
        raise NumericalError(f"Predicted sigma points are not finite (dt={dt})")

    x_pred, P_pred = model.process_mean_and_covariance(sigmas_f, points.weights)
    x_pred = model.normalize_state(x_pred)

    return sigmas_f, FilterState(x=x_pred, P=symmetrize(P_pred))


def update(model, sigmas_f, predicted, weights, packet):
    """
    Update stage.

    Parameters
    ----------
    model : UKFModel
        Supplies the measurement transforms and normalization
    sigmas_f : np.ndarray
        Predicted sigma points (2n_aug+1, n_states)
    predicted : FilterState
        Predicted mean and covariance
    weights : np.ndarray
        Sigma point weights (2n_aug+1,)
    packet : SensorDataPacket
        Observation to incorporate

    Returns
    -------
    UpdateResult
        Posterior state and the innovation diagnostics

    Raises
    ------
    SingularInnovationError
        If the innovation covariance cannot be inverted
    """
    sensor = packet.sensor_type

    sigmas_h = np.asarray(
        model.sigma_points_to_measurement_space(sigmas_f, weights, sensor), dtype=float
    )
    z_pred, S = model.measurement_mean_and_covariance(sigmas_h, weights, sensor)
    z_pred = model.normalize_measurement(z_pred, sensor)

    # Cross covariance between state and measurement deviations
    dx = model.normalize_state(sigmas_f - predicted.x)
    dz = model.normalize_measurement(sigmas_h - z_pred, sensor)
    P_xz = (dx.T * weights) @ dz

    K = solve_gain(P_xz, S)

    y = model.normalize_measurement(packet.raw_values - z_pred, sensor)

    x = model.normalize_state(predicted.x + K @ y)
    P = symmetrize(predicted.P - K @ S @ K.T)

    nis = float(y @ np.linalg.solve(S, y))

    return UpdateResult(
        state=FilterState(x=x, P=P),
        innovation=y,
        innovation_covariance=S,
        kalman_gain=K,
        nis=nis,
    )


class UnscentedKalmanFilter:
    """
    Unscented Kalman Filter for asynchronous radar/lidar style tracking.

    The filter starts uninitialized. The first packet sets the mean from the
    model's ``initialize_state`` and the covariance to the configured prior;
    every later packet runs one predict + update cycle.

    Parameters
    ----------
    model : UKFModel
        Motion and measurement model
    n_states : int
        Dimension of the state, must match ``model.n_states``
    noise_stdevs : sequence of float
        Process noise standard deviations, one per model noise source
    lambda_ : float, optional
        Sigma point spread. Defaults to ``3 - n_aug``.
    initial_covariance : np.ndarray, optional
        Prior covariance used on initialization (default: identity)
    time_scale : float, optional
        Seconds per timestamp unit (default: 1e-6)

    Raises
    ------
    ConfigurationError
        If the parameters are invalid or disagree with the model

    Examples
    --------
    >>> from sensor_fusion import UnscentedKalmanFilter, SensorDataPacket, SensorType
    >>> from sensor_fusion.models import CTRVModel
    >>> ukf = UnscentedKalmanFilter(CTRVModel(), n_states=5, noise_stdevs=[0.2, 0.2], lambda_=-2)
    >>> ukf.process_measurement(SensorDataPacket(SensorType.LIDAR, 0, [1.0, 2.0]))
    >>> ukf.x[:2]
    array([1., 2.])
    """

    def __init__(self, model, n_states, noise_stdevs, lambda_=None,
                 initial_covariance=None, time_scale=1e-6):
        config = FilterConfig(
            n_states=n_states,
            noise_stdevs=noise_stdevs,
            lambda_=lambda_,
            initial_covariance=initial_covariance,
            time_scale=time_scale,
        )
        self._setup(model, config)

    @classmethod
    def from_config(cls, model, config):
        """Build a filter from a :class:`FilterConfig`."""
        ukf = cls.__new__(cls)
        ukf._setup(model, config)
        return ukf

    def _setup(self, model, config):
        config.validate(model)

        self.model = model
        self.config = config
        self.points = SigmaPointGenerator(config.n_aug, config.lambda_)
        self.Q = config.process_noise()

        self._x = None
        self._P = None
        self._timestamp = None
        self.last_result = None

    def __repr__(self):
        status = 'tracking' if self.is_initialized else 'uninitialized'
        return (f"UnscentedKalmanFilter(model={self.model!r}, n_states={self.n_states}, "
                f"lambda_={self.config.lambda_}, {status})")

    #======================================================
    # Queries
    #======================================================
    @property
    def n_states(self):
        return self.config.n_states

    @property
    def n_aug(self):
        return self.config.n_aug

    @property
    def weights(self):
        return self.points.weights

    @property
    def is_initialized(self):
        return self._x is not None

    @property
    def timestamp(self):
        """Timestamp of the last processed packet (None before the first one)."""
        return self._timestamp

    @property
    def x(self):
        """Copy of the state estimate, None until initialized."""
        return None if self._x is None else self._x.copy()

    @property
    def P(self):
        """Copy of the state covariance, None until initialized."""
        return None if self._P is None else self._P.copy()

    @property
    def state(self):
        """Current :class:`FilterState` (copies), None until initialized."""
        if self._x is None:
            return None
        return FilterState(x=self._x.copy(), P=self._P.copy())

    def cartesian_state(self):
        """Current estimate projected onto [px, py, vx, vy]."""
        if self._x is None:
            return None
        return self.model.state_to_cartesian(self._x)

    #======================================================
    # Measurement processing
    #======================================================
    def process_measurement(self, packet):
        """
        Consume one packet.

        Parameters
        ----------
        packet : SensorDataPacket
            Observation with a timestamp not earlier than the previous one

        Returns
        -------
        UpdateResult or None
            Cycle diagnostics, or None when the packet initialized the filter

        Raises
        ------
        UnsupportedSensorError, InvalidMeasurementError
            If the model cannot process the packet
        OutOfOrderMeasurementError
            If the packet is older than the previous one
        NumericalError
            If the filter diverged (covariance not PSD, singular S)

        On any exception the mean, covariance and timestamp are unchanged.
        """
        self.model.check_packet(packet)

        if not self.is_initialized:
            self._initialize(packet)
            return None

        if packet.timestamp < self._timestamp:
            raise OutOfOrderMeasurementError(packet.timestamp, self._timestamp)

        dt = (packet.timestamp - self._timestamp) * self.config.time_scale

        sigmas_f, predicted = predict(self.model, self.state, self.Q, self.points, dt)
        result = update(self.model, sigmas_f, predicted, self.points.weights, packet)
        result = result._replace(dt=dt)

        self._x = result.state.x
        self._P = result.state.P
        self._timestamp = packet.timestamp
        self.last_result = result

        logger.debug("%s update at t=%d (dt=%.6f s), NIS=%.3f",
                     packet.sensor_type, packet.timestamp, dt, result.nis)

        return result

    def _initialize(self, packet):
        x0 = np.asarray(self.model.initialize_state(packet), dtype=float)
        if x0.shape != (self.n_states,):
            raise ValueError(
                f"{type(self.model).__name__}.initialize_state returned shape "
                f"{x0.shape}, expected ({self.n_states},)"
            )

        self._x = self.model.normalize_state(x0)
        self._P = np.array(self.config.initial_covariance, dtype=float)
        self._timestamp = packet.timestamp
        self.last_result = None

        logger.info("Track initialized from %s packet at t=%d: x=%s",
                    packet.sensor_type, packet.timestamp, np.array2string(self._x, precision=4))

    def reset(self):
        """Return to the uninitialized state; the next packet restarts the track."""
        self._x = None
        self._P = None
        self._timestamp = None
        self.last_result = None
        logger.info("Track reset")
