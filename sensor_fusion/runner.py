"""
Driving a filter over a recorded or simulated packet sequence.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def run_filter(ukf, packets):
    """
    Feed packets to a filter in order and collect its history.

    The first packet initializes the filter; its entry holds the initial
    mean and prior covariance and a NaN NIS. Errors raised by the filter
    propagate unchanged.

    Parameters
    ----------
    ukf : UnscentedKalmanFilter
        Filter to drive; it may already be tracking
    packets : iterable of SensorDataPacket
        Observations in non-decreasing timestamp order

    Returns
    -------
    dict
        Dictionary containing:
        - timestamps: (N,) integer timestamps
        - sensor_types: list of SensorType
        - estimates: (N, n_states) posterior means
        - covariances: (N, n_states, n_states) posterior covariances
        - cartesian: (N, 4) estimates projected onto [px, py, vx, vy]
        - nis: (N,) NIS of every update (NaN for the initializing packet)
        - ground_truth: (N, 4) Cartesian ground truth, or None if any packet lacks it
    """
    timestamps, sensor_types = [], []
    estimates, covariances, cartesian, nis_values, truth = [], [], [], [], []

    for packet in packets:
        result = ukf.process_measurement(packet)

        timestamps.append(packet.timestamp)
        sensor_types.append(packet.sensor_type)
        estimates.append(ukf.x)
        covariances.append(ukf.P)
        cartesian.append(ukf.cartesian_state())
        nis_values.append(np.nan if result is None else result.nis)
        truth.append(packet.ground_truth)

    n = len(timestamps)
    logger.info("Processed %d packets", n)

    has_truth = n > 0 and all(t is not None for t in truth)

    return {
        'timestamps': np.array(timestamps, dtype=np.int64),
        'sensor_types': sensor_types,
        'estimates': np.array(estimates).reshape(n, ukf.n_states),
        'covariances': np.array(covariances).reshape(n, ukf.n_states, ukf.n_states),
        'cartesian': np.array(cartesian).reshape(n, -1) if n else np.zeros((0, 4)),
        'nis': np.array(nis_values, dtype=float),
        'ground_truth': np.array(truth) if has_truth else None,
    }
