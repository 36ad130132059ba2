"""Tests for sensor types and packets."""

import numpy as np
import pytest

from sensor_fusion import SensorDataPacket, SensorType


class TestSensorType:
    @pytest.mark.parametrize("code, sensor", [("L", SensorType.LIDAR), ("r", SensorType.RADAR),
                                              (" R ", SensorType.RADAR)])
    def test_from_code(self, code, sensor):
        assert SensorType.from_code(code) is sensor

    def test_unknown_code(self):
        with pytest.raises(ValueError, match="Unknown sensor code"):
            SensorType.from_code("X")

    def test_str(self):
        assert str(SensorType.LIDAR) == "LIDAR"


class TestSensorDataPacket:
    def test_conversion(self):
        packet = SensorDataPacket(SensorType.RADAR, 12.0, [1, 2, 3])
        assert packet.timestamp == 12 and isinstance(packet.timestamp, int)
        assert packet.raw_values.dtype == float
        assert packet.dim == 3
        assert packet.ground_truth is None

    def test_immutable(self):
        packet = SensorDataPacket(SensorType.LIDAR, 0, [1.0, 2.0], ground_truth=[1, 2, 0, 0])
        with pytest.raises(ValueError):
            packet.raw_values[0] = 5.0
        with pytest.raises(ValueError):
            packet.ground_truth[0] = 5.0
        with pytest.raises(AttributeError):
            packet.timestamp = 3

    def test_values_copied(self):
        values = np.array([1.0, 2.0])
        packet = SensorDataPacket(SensorType.LIDAR, 0, values)
        values[0] = 9.0
        assert packet.raw_values[0] == 1.0

    def test_sensor_type_checked(self):
        with pytest.raises(TypeError):
            SensorDataPacket('L', 0, [1.0, 2.0])
