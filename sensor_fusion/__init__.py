"""
Sensor Fusion Library

Unscented Kalman Filter tracking of a single object from asynchronous,
heterogeneous sensors (radar range/bearing/range-rate and lidar position).
Motion and measurement equations are supplied by pluggable models.

License: MIT
"""

__version__ = "1.0.0"

from .config import FilterConfig
from .exceptions import (
    FilterError,
    ConfigurationError,
    OutOfOrderMeasurementError,
    UnsupportedSensorError,
    InvalidMeasurementError,
    NumericalError,
    CovarianceNotPositiveDefiniteError,
    SingularInnovationError,
)
from .measurements import SensorType, SensorDataPacket
from .filters import FilterState, UpdateResult, SigmaPointGenerator, UnscentedKalmanFilter
from .models import UKFModel, CTRVModel, ConstantVelocityModel

__all__ = [
    'FilterConfig',
    'FilterError',
    'ConfigurationError',
    'OutOfOrderMeasurementError',
    'UnsupportedSensorError',
    'InvalidMeasurementError',
    'NumericalError',
    'CovarianceNotPositiveDefiniteError',
    'SingularInnovationError',
    'SensorType',
    'SensorDataPacket',
    'FilterState',
    'UpdateResult',
    'SigmaPointGenerator',
    'UnscentedKalmanFilter',
    'UKFModel',
    'CTRVModel',
    'ConstantVelocityModel',
]
