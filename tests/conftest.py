import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from sensor_fusion import SensorDataPacket, SensorType, UnscentedKalmanFilter
from sensor_fusion.models import ConstantVelocityModel, CTRVModel


def lidar(timestamp, px, py):
    return SensorDataPacket(SensorType.LIDAR, timestamp, [px, py])


def radar(timestamp, rho, phi, rho_dot):
    return SensorDataPacket(SensorType.RADAR, timestamp, [rho, phi, rho_dot])


@pytest.fixture
def ctrv_model():
    return CTRVModel()


@pytest.fixture
def cv_model():
    return ConstantVelocityModel()


@pytest.fixture
def ctrv_ukf(ctrv_model):
    """CTRV filter with the usual radar/lidar tuning."""
    return UnscentedKalmanFilter(
        ctrv_model,
        n_states=5,
        noise_stdevs=[0.5, 0.3],
        initial_covariance=np.diag([0.0225, 0.0225, 1.0, 0.5, 0.3]),
    )


@pytest.fixture
def cv_ukf(cv_model):
    return UnscentedKalmanFilter(cv_model, n_states=4, noise_stdevs=[0.5, 0.5],
                                 initial_covariance=np.diag([1.0, 1.0, 4.0, 4.0]))
