"""
Exceptions raised by the filters and models.

All errors are reported synchronously to the caller of
``UnscentedKalmanFilter.process_measurement``. None of them is retried
internally and none leaves the filter partially updated.
"""


class FilterError(Exception):
    """Base class for every error raised by sensor_fusion."""


class ConfigurationError(FilterError, ValueError):
    """Invalid construction parameters (dimensions, noise, spread, prior)."""


class OutOfOrderMeasurementError(FilterError, ValueError):
    """
    A packet is older than the filter's reference timestamp.

    Attributes
    ----------
    timestamp : int
        Timestamp of the rejected packet
    reference_timestamp : int
        Timestamp of the last processed packet
    """

    def __init__(self, timestamp, reference_timestamp):
        self.timestamp = timestamp
        self.reference_timestamp = reference_timestamp
        super().__init__(
            f"Measurement timestamp {timestamp} is earlier than the "
            f"reference timestamp {reference_timestamp}"
        )


class UnsupportedSensorError(FilterError, ValueError):
    """The model has no measurement transform for the packet's sensor type."""

    def __init__(self, sensor_type, supported=()):
        self.sensor_type = sensor_type
        self.supported = tuple(supported)
        names = ', '.join(str(s) for s in self.supported) or 'none'
        super().__init__(f"Unsupported sensor type {sensor_type} (supported: {names})")


class InvalidMeasurementError(FilterError, ValueError):
    """Packet values have the wrong length or are not finite."""


class NumericalError(FilterError, ArithmeticError):
    """The filter diverged; callers should reset or reject the track."""


class CovarianceNotPositiveDefiniteError(NumericalError):
    """Covariance has no real square root (not positive semi-definite)."""


class SingularInnovationError(NumericalError):
    """Innovation covariance S cannot be inverted."""
