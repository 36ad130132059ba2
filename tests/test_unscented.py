"""Tests for the Unscented Kalman Filter engine."""

import logging

import numpy as np
import pytest

from sensor_fusion import (
    FilterConfig,
    FilterState,
    SensorDataPacket,
    SensorType,
    SigmaPointGenerator,
    UnscentedKalmanFilter,
)
from sensor_fusion.common import is_positive_semidefinite
from sensor_fusion.exceptions import (
    ConfigurationError,
    CovarianceNotPositiveDefiniteError,
    InvalidMeasurementError,
    OutOfOrderMeasurementError,
    SingularInnovationError,
    UnsupportedSensorError,
)
from sensor_fusion.filters import predict
from sensor_fusion.models import ConstantVelocityModel
from sensor_fusion.simulation import simulate_ctrv_track

from conftest import lidar, radar


def _kalman_reference(model, x, P, Q, z, dt):
    """One predict + update of the linear Kalman filter equivalent to ``model``."""
    if dt > 0:
        F = model.transition_matrix(dt)
        G = model.noise_gain(dt)
        x = F @ x
        P = F @ P @ F.T + G @ Q @ G.T
    H = model.measurement_matrix()
    R = model.measurement_noise(SensorType.LIDAR)
    S = H @ P @ H.T + R
    K = P @ H.T @ np.linalg.inv(S)
    x = x + K @ (z - H @ x)
    P = P - K @ S @ K.T
    return x, P


class ConstantMeasurementModel(ConstantVelocityModel):
    """Lidar model whose predicted measurement carries no information."""

    def sigma_points_to_measurement_space(self, sigma_points, weights, sensor_type):
        return np.zeros((len(sigma_points), 2))

    def measurement_noise(self, sensor_type):
        return np.zeros((2, 2))


# ──────────────────────────────────────────────
# Construction
# ──────────────────────────────────────────────


class TestConstruction:
    def test_default_lambda(self, ctrv_model):
        ukf = UnscentedKalmanFilter(ctrv_model, n_states=5, noise_stdevs=[0.5, 0.3])
        assert ukf.n_aug == 7
        assert ukf.config.lambda_ == pytest.approx(-4.0)
        assert ukf.weights.shape == (15,)
        assert not ukf.is_initialized
        assert ukf.x is None and ukf.P is None and ukf.state is None
        assert ukf.timestamp is None
        assert ukf.cartesian_state() is None

    def test_from_config(self, ctrv_model):
        config = FilterConfig.for_model(ctrv_model, [0.5, 0.3], lambda_=-2.0)
        ukf = UnscentedKalmanFilter.from_config(ctrv_model, config)
        assert ukf.config is config
        assert ukf.weights[0] == pytest.approx(-2.0 / 5.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            dict(n_states=0, noise_stdevs=[0.5, 0.3]),
            dict(n_states=4, noise_stdevs=[0.5, 0.3]),
            dict(n_states=5, noise_stdevs=[0.5]),
            dict(n_states=5, noise_stdevs=[0.5, 0.0]),
            dict(n_states=5, noise_stdevs=[0.5, 0.3], lambda_=-7.0),
            dict(n_states=5, noise_stdevs=[0.5, 0.3], initial_covariance=np.eye(4)),
            dict(n_states=5, noise_stdevs=[0.5, 0.3], initial_covariance=-np.eye(5)),
            dict(n_states=5, noise_stdevs=[0.5, 0.3], time_scale=0.0),
        ],
    )
    def test_invalid(self, ctrv_model, kwargs):
        with pytest.raises(ConfigurationError):
            UnscentedKalmanFilter(ctrv_model, **kwargs)

    def test_configuration_error_is_value_error(self, ctrv_model):
        with pytest.raises(ValueError):
            UnscentedKalmanFilter(ctrv_model, n_states=5, noise_stdevs=[0.5, 0.3], lambda_=-10.0)


# ──────────────────────────────────────────────
# Initialization
# ──────────────────────────────────────────────


class TestInitialization:
    def test_first_lidar_packet(self, ctrv_model):
        """The first packet sets the mean and the prior covariance, nothing else."""
        ukf = UnscentedKalmanFilter(ctrv_model, n_states=5, noise_stdevs=[0.2, 0.2], lambda_=-2)
        assert ukf.process_measurement(lidar(0, 1.0, 2.0)) is None

        assert ukf.is_initialized
        assert ukf.timestamp == 0
        np.testing.assert_allclose(ukf.x[:2], [1.0, 2.0])
        np.testing.assert_array_equal(ukf.P, np.eye(5))
        assert ukf.last_result is None

    def test_explicit_prior(self, ctrv_model):
        P0 = np.diag([0.1, 0.2, 0.3, 0.4, 0.5])
        ukf = UnscentedKalmanFilter(ctrv_model, n_states=5, noise_stdevs=[0.2, 0.2],
                                    lambda_=-2, initial_covariance=P0)
        ukf.process_measurement(lidar(0, 1.0, 2.0))
        np.testing.assert_array_equal(ukf.P, P0)

    def test_radar_first(self, ctrv_ukf):
        ctrv_ukf.process_measurement(radar(42, 2.0, np.pi / 2, 0.5))
        np.testing.assert_allclose(ctrv_ukf.x, [0.0, 2.0, 0.0, 0.0, 0.0], atol=1e-12)
        assert ctrv_ukf.timestamp == 42

    def test_independent_of_timestamp(self, ctrv_model):
        """The first mean depends only on the packet values."""
        a = UnscentedKalmanFilter(ctrv_model, n_states=5, noise_stdevs=[0.5, 0.3])
        b = UnscentedKalmanFilter(ctrv_model, n_states=5, noise_stdevs=[0.5, 0.3])
        a.process_measurement(lidar(0, 3.0, -1.0))
        b.process_measurement(lidar(10**12, 3.0, -1.0))
        np.testing.assert_array_equal(a.x, b.x)
        np.testing.assert_array_equal(a.P, b.P)

    def test_logs_initialization(self, ctrv_ukf, caplog):
        with caplog.at_level(logging.INFO, logger="sensor_fusion"):
            ctrv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        assert "Track initialized" in caplog.text

    def test_returned_state_is_a_copy(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        x = ctrv_ukf.x
        x[0] = 100.0
        assert ctrv_ukf.x[0] == pytest.approx(1.0)

    def test_reset(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        ctrv_ukf.process_measurement(lidar(100000, 1.1, 2.0))
        ctrv_ukf.reset()
        assert not ctrv_ukf.is_initialized
        assert ctrv_ukf.last_result is None

        ctrv_ukf.process_measurement(lidar(50, -4.0, 0.5))
        np.testing.assert_allclose(ctrv_ukf.x[:2], [-4.0, 0.5])
        assert ctrv_ukf.timestamp == 50


# ──────────────────────────────────────────────
# Linear reference
# ──────────────────────────────────────────────


class TestLinearModel:
    def test_matches_kalman_filter(self, cv_model, cv_ukf):
        """On a linear model the UKF reproduces the Kalman filter step by step."""
        packets = [
            lidar(0, 0.0, 0.0),
            lidar(100000, 0.12, 0.04),
            lidar(250000, 0.31, 0.11),
            lidar(250000, 0.27, 0.09),
            lidar(400000, 0.45, 0.22),
            lidar(1400000, 1.40, 0.70),
        ]
        Q = cv_ukf.Q
        cv_ukf.process_measurement(packets[0])
        x, P = cv_ukf.x, cv_ukf.P

        previous = packets[0].timestamp
        for packet in packets[1:]:
            dt = (packet.timestamp - previous) * 1e-6
            previous = packet.timestamp
            x, P = _kalman_reference(cv_model, x, P, Q, packet.raw_values, dt)

            result = cv_ukf.process_measurement(packet)
            assert result.dt == pytest.approx(dt)
            np.testing.assert_allclose(cv_ukf.x, x, atol=1e-9)
            np.testing.assert_allclose(cv_ukf.P, P, atol=1e-9)

    @pytest.mark.parametrize("lambda_", [-2.0, 0.0, 2.0])
    def test_result_independent_of_spread(self, cv_model, lambda_):
        """Any admissible spread gives the same answer on a linear model."""
        reference = UnscentedKalmanFilter(cv_model, n_states=4, noise_stdevs=[0.5, 0.5])
        ukf = UnscentedKalmanFilter(cv_model, n_states=4, noise_stdevs=[0.5, 0.5], lambda_=lambda_)
        for packet in (lidar(0, 1.0, 1.0), lidar(200000, 1.3, 0.9), lidar(500000, 1.5, 1.0)):
            reference.process_measurement(packet)
            ukf.process_measurement(packet)
        np.testing.assert_allclose(ukf.x, reference.x, atol=1e-9)
        np.testing.assert_allclose(ukf.P, reference.P, atol=1e-9)


# ──────────────────────────────────────────────
# Zero elapsed time
# ──────────────────────────────────────────────


class TestZeroDt:
    def test_predict_returns_prior(self, ctrv_model):
        x = np.array([1.0, 2.0, 3.0, 0.5, 0.1])
        P = np.diag([0.2, 0.2, 0.5, 0.1, 0.05])
        points = SigmaPointGenerator(7, -4.0)
        sigmas_f, predicted = predict(ctrv_model, FilterState(x, P), np.diag([0.25, 0.09]), points, 0.0)

        np.testing.assert_array_equal(predicted.x, x)
        np.testing.assert_array_equal(predicted.P, P)
        assert sigmas_f.shape == (15, 5)
        np.testing.assert_array_equal(sigmas_f[0], x)

    def test_same_timestamp_is_pure_correction(self, cv_model, cv_ukf):
        """A second packet at the same time only applies the measurement update."""
        cv_ukf.process_measurement(lidar(1000, 1.0, 1.0))
        x0, P0 = cv_ukf.x, cv_ukf.P

        result = cv_ukf.process_measurement(lidar(1000, 1.2, 0.8))
        x, P = _kalman_reference(cv_model, x0, P0, cv_ukf.Q, np.array([1.2, 0.8]), 0.0)

        assert result.dt == 0.0
        np.testing.assert_allclose(cv_ukf.x, x, atol=1e-12)
        np.testing.assert_allclose(cv_ukf.P, P, atol=1e-12)
        # velocity is unobserved and uncorrelated with position at this point
        np.testing.assert_allclose(cv_ukf.P[2:, 2:], P0[2:, 2:], atol=1e-12)


# ──────────────────────────────────────────────
# Rejected packets
# ──────────────────────────────────────────────


class TestRejection:
    def _snapshot(self, ukf):
        return ukf.x, ukf.P, ukf.timestamp

    def _assert_unchanged(self, ukf, snapshot):
        x, P, timestamp = snapshot
        np.testing.assert_array_equal(ukf.x, x)
        np.testing.assert_array_equal(ukf.P, P)
        assert ukf.timestamp == timestamp

    def test_out_of_order(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(1000000, 1.0, 2.0))
        ctrv_ukf.process_measurement(lidar(1100000, 1.1, 2.0))
        before = self._snapshot(ctrv_ukf)

        with pytest.raises(OutOfOrderMeasurementError) as excinfo:
            ctrv_ukf.process_measurement(lidar(1050000, 1.05, 2.0))

        assert excinfo.value.timestamp == 1050000
        assert excinfo.value.reference_timestamp == 1100000
        self._assert_unchanged(ctrv_ukf, before)

    def test_unsupported_before_initialization(self, cv_ukf):
        with pytest.raises(UnsupportedSensorError):
            cv_ukf.process_measurement(radar(0, 1.0, 0.0, 0.0))
        assert not cv_ukf.is_initialized

    def test_unsupported_after_initialization(self, cv_ukf):
        cv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        before = self._snapshot(cv_ukf)
        with pytest.raises(UnsupportedSensorError):
            cv_ukf.process_measurement(radar(100, 1.0, 0.0, 0.0))
        self._assert_unchanged(cv_ukf, before)

    def test_wrong_length(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        before = self._snapshot(ctrv_ukf)
        with pytest.raises(InvalidMeasurementError):
            ctrv_ukf.process_measurement(SensorDataPacket(SensorType.RADAR, 100, [1.0, 0.0]))
        self._assert_unchanged(ctrv_ukf, before)

    def test_singular_innovation(self):
        model = ConstantMeasurementModel()
        ukf = UnscentedKalmanFilter(model, n_states=4, noise_stdevs=[0.5, 0.5])
        ukf.process_measurement(lidar(0, 1.0, 2.0))
        before = self._snapshot(ukf)

        with pytest.raises(SingularInnovationError):
            ukf.process_measurement(lidar(100000, 1.0, 2.0))
        self._assert_unchanged(ukf, before)

    def test_covariance_not_psd(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        ctrv_ukf._P = -np.eye(5)
        x, timestamp = ctrv_ukf.x, ctrv_ukf.timestamp

        with pytest.raises(CovarianceNotPositiveDefiniteError):
            ctrv_ukf.process_measurement(lidar(100000, 1.1, 2.0))

        np.testing.assert_array_equal(ctrv_ukf.x, x)
        np.testing.assert_array_equal(ctrv_ukf.P, -np.eye(5))
        assert ctrv_ukf.timestamp == timestamp


# ──────────────────────────────────────────────
# CTRV tracking
# ──────────────────────────────────────────────


class TestCTRVTracking:
    def test_radar_update(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(0, 5.0, 1.0))
        result = ctrv_ukf.process_measurement(radar(50000, 5.2, np.arctan2(1.0, 5.0), 1.0))

        assert result.innovation.shape == (3,)
        assert result.innovation_covariance.shape == (3, 3)
        assert result.kalman_gain.shape == (5, 3)
        assert result.nis >= 0.0
        assert result.dt == pytest.approx(0.05)
        assert is_positive_semidefinite(ctrv_ukf.P)
        assert ctrv_ukf.last_result is result

    def test_bearing_innovation_wrapped(self, ctrv_ukf):
        """A target just behind the sensor gives a small bearing innovation across ±pi."""
        ctrv_ukf.process_measurement(lidar(0, -5.0, 0.01))
        result = ctrv_ukf.process_measurement(radar(1000, 5.0, -np.pi + 0.002, 0.0))
        assert abs(result.innovation[1]) < 0.1
        assert -np.pi < ctrv_ukf.x[3] <= np.pi

    def test_cartesian_state(self, ctrv_ukf):
        ctrv_ukf.process_measurement(lidar(0, 1.0, 2.0))
        np.testing.assert_allclose(ctrv_ukf.cartesian_state(), [1.0, 2.0, 0.0, 0.0])

    def test_long_run_converges(self, ctrv_ukf):
        """Alternating radar/lidar tracking stays consistent and accurate."""
        track = simulate_ctrv_track(n_steps=1200, dt=0.05, seed=7)

        estimates = []
        for packet in track['packets']:
            ctrv_ukf.process_measurement(packet)
            P = ctrv_ukf.P
            assert np.allclose(P, P.T)
            assert is_positive_semidefinite(P)
            assert -np.pi < ctrv_ukf.x[3] <= np.pi
            estimates.append(ctrv_ukf.cartesian_state())

        estimates = np.array(estimates)
        truth = track['ground_truth_cartesian']
        half = len(estimates) // 2
        error = estimates[half:] - truth[half:]
        rmse = np.sqrt(np.mean(error ** 2, axis=0))

        assert rmse[0] < 0.3 and rmse[1] < 0.3
        assert rmse[2] < 1.0 and rmse[3] < 1.0
        assert np.trace(ctrv_ukf.P[:2, :2]) < 0.045
