"""
Synthetic tracks for testing and demonstrating the filters.

Ground truth follows the CTRV process model driven by random longitudinal
and yaw accelerations; observations alternate between the configured
sensors and carry Gaussian noise with the sensors' standard deviations.
"""

import numpy as np

from .common.angles import normalize_angle
from .measurements import SensorDataPacket, SensorType
from .models.ctrv import CTRVModel


def simulate_ctrv_track(n_steps=500, dt=0.05, initial_state=None,
                        accel_std=0.2, yaw_accel_std=0.05,
                        lidar_std=None, radar_std=None,
                        sensors=(SensorType.LIDAR, SensorType.RADAR),
                        time_scale=1e-6, start_timestamp=0, seed=None):
    """
    Simulate a CTRV target observed by lidar and radar.

    Parameters
    ----------
    n_steps : int, optional
        Number of packets to generate
    dt : float, optional
        Time between packets in seconds
    initial_state : array_like, optional
        True initial state [px, py, v, yaw, yaw_rate].
        Default: [20.0, 5.0, 3.0, 0.0, 0.05]
    accel_std : float, optional
        Std of the true longitudinal acceleration (m/s^2)
    yaw_accel_std : float, optional
        Std of the true yaw acceleration (rad/s^2)
    lidar_std, radar_std : array_like, optional
        Sensor noise, same defaults as :class:`CTRVModel`
    sensors : sequence of SensorType, optional
        Sensors cycled through, one per packet
    time_scale : float, optional
        Seconds per timestamp unit (default: microseconds)
    start_timestamp : int, optional
        Timestamp of the first packet
    seed : int or np.random.Generator, optional
        Random seed for reproducible tracks

    Returns
    -------
    dict
        Dictionary containing:
        - packets: list of SensorDataPacket, with Cartesian ground truth attached
        - ground_truth: (n_steps, 5) array of true CTRV states
        - ground_truth_cartesian: (n_steps, 4) array [px, py, vx, vy]
        - timestamps: (n_steps,) integer timestamps
        - dt: float, time step
    """
    if n_steps <= 0:
        raise ValueError(f"n_steps must be positive, got {n_steps}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if not sensors:
        raise ValueError("At least one sensor is required")

    rng = np.random.default_rng(seed)
    model = CTRVModel(lidar_std=lidar_std, radar_std=radar_std)

    if initial_state is None:
        initial_state = [20.0, 5.0, 3.0, 0.0, 0.05]

    # Simulate true dynamics
    x_true = np.zeros((n_steps, 5))
    x_true[0] = np.asarray(initial_state, dtype=float)

    for k in range(n_steps - 1):
        noise = rng.normal(0.0, [accel_std, yaw_accel_std])
        x_aug = np.concatenate([x_true[k], noise])
        x_next = model.predict_sigma_points(x_aug[None, :], dt)[0]
        x_true[k + 1] = model.normalize_state(x_next)

    truth_cartesian = model.state_to_cartesian(x_true)
    step = int(round(dt / time_scale))
    timestamps = start_timestamp + step * np.arange(n_steps, dtype=np.int64)

    # Generate noisy measurements
    packets = []
    for k in range(n_steps):
        sensor = sensors[k % len(sensors)]
        z_clean = model.sigma_points_to_measurement_space(x_true[k][None, :], None, sensor)[0]
        R = model.measurement_noise(sensor)
        z = z_clean + rng.multivariate_normal(np.zeros(len(z_clean)), R)

        if sensor is SensorType.RADAR:
            z[1] = normalize_angle(z[1])

        packets.append(SensorDataPacket(
            sensor_type=sensor,
            timestamp=int(timestamps[k]),
            raw_values=z,
            ground_truth=truth_cartesian[k],
        ))

    return {
        'packets': packets,
        'ground_truth': x_true,
        'ground_truth_cartesian': truth_cartesian,
        'timestamps': timestamps,
        'dt': dt,
    }


def simulate_constant_velocity_track(n_steps=200, dt=0.1, initial_state=None,
                                     accel_std=0.0, lidar_std=0.15,
                                     time_scale=1e-6, seed=None):
    """
    Simulate a straight-line target observed by lidar only.

    Parameters
    ----------
    n_steps : int, optional
        Number of packets
    dt : float, optional
        Time between packets in seconds
    initial_state : array_like, optional
        True initial state [px, py, vx, vy] (default: [0, 0, 1, 0.5])
    accel_std : float, optional
        Std of white acceleration noise on the truth (default: 0, exact line)
    lidar_std : float, optional
        Position noise std in m
    time_scale : float, optional
        Seconds per timestamp unit
    seed : int or np.random.Generator, optional
        Random seed

    Returns
    -------
    dict
        Same keys as :func:`simulate_ctrv_track`, ``ground_truth`` being
        the (n_steps, 4) Cartesian states.
    """
    rng = np.random.default_rng(seed)

    if initial_state is None:
        initial_state = [0.0, 0.0, 1.0, 0.5]

    x_true = np.zeros((n_steps, 4))
    x_true[0] = np.asarray(initial_state, dtype=float)
    for k in range(n_steps - 1):
        a = rng.normal(0.0, accel_std, size=2) if accel_std > 0 else np.zeros(2)
        px, py, vx, vy = x_true[k]
        x_true[k + 1] = [px + vx*dt + 0.5*dt*dt*a[0],
                         py + vy*dt + 0.5*dt*dt*a[1],
                         vx + dt*a[0],
                         vy + dt*a[1]]

    step = int(round(dt / time_scale))
    timestamps = step * np.arange(n_steps, dtype=np.int64)

    packets = [
        SensorDataPacket(
            sensor_type=SensorType.LIDAR,
            timestamp=int(timestamps[k]),
            raw_values=x_true[k, :2] + rng.normal(0.0, lidar_std, size=2),
            ground_truth=x_true[k],
        )
        for k in range(n_steps)
    ]

    return {
        'packets': packets,
        'ground_truth': x_true,
        'ground_truth_cartesian': x_true,
        'timestamps': timestamps,
        'dt': dt,
    }
