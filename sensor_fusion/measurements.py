"""
Sensor data packets consumed by the filters.

A packet carries a sensor tag, an integer timestamp and the raw measurement
vector. Its layout depends on the sensor:

- LIDAR: [px, py] in meters (Cartesian position)
- RADAR: [rho, phi, rho_dot] (range in m, bearing in rad, range rate in m/s)
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class SensorType(Enum):
    """Sensors that can produce a packet."""
    LIDAR = 'L'
    RADAR = 'R'

    def __str__(self):
        return self.name

    @classmethod
    def from_code(cls, code):
        """
        Look up a sensor from its one-letter log code ('L' or 'R').

        Parameters
        ----------
        code : str
            Log code, case insensitive

        Returns
        -------
        SensorType
        """
        try:
            return cls(str(code).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown sensor code {code!r}") from None


@dataclass(frozen=True, eq=False)
class SensorDataPacket:
    """
    One observation from one sensor.

    Attributes
    ----------
    sensor_type : SensorType
        Sensor that produced the observation
    timestamp : int
        Acquisition time in a consistent integer unit (microseconds by default)
    raw_values : np.ndarray
        Measurement vector, read-only
    ground_truth : np.ndarray, optional
        True state in Cartesian form [px, py, vx, vy], when known
        (simulations and logged datasets). Never read by the filter.
    """
    sensor_type: SensorType
    timestamp: int
    raw_values: np.ndarray
    ground_truth: np.ndarray = None

    def __post_init__(self):
        if not isinstance(self.sensor_type, SensorType):
            raise TypeError(f"sensor_type must be a SensorType, got {self.sensor_type!r}")

        values = np.array(self.raw_values, dtype=float).reshape(-1)
        values.setflags(write=False)
        object.__setattr__(self, 'raw_values', values)
        object.__setattr__(self, 'timestamp', int(self.timestamp))

        if self.ground_truth is not None:
            truth = np.array(self.ground_truth, dtype=float).reshape(-1)
            truth.setflags(write=False)
            object.__setattr__(self, 'ground_truth', truth)

    @property
    def dim(self):
        """Length of the measurement vector."""
        return self.raw_values.shape[0]
