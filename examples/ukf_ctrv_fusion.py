"""
UKF Example for radar/lidar fusion with the CTRV model

Runs the Unscented Kalman Filter over a simulated track, or over a recorded
measurement log, and reports RMSE/NIS with plots.

Usage:
    python ukf_ctrv_fusion.py                  # simulated track
    python ukf_ctrv_fusion.py data/log.txt     # recorded log
"""

import logging
import sys
from pathlib import Path

import numpy as np

from sensor_fusion import UnscentedKalmanFilter
from sensor_fusion.datasets import load_measurement_log
from sensor_fusion.metrics import compute_all_metrics, format_metrics, fraction_within_bound
from sensor_fusion.models import CTRVModel
from sensor_fusion.runner import run_filter
from sensor_fusion.simulation import simulate_ctrv_track
from sensor_fusion.visualization import plot_nis, plot_track

# ============================================================================
# CONFIGURATION
# ============================================================================
N_STEPS = 500            # Simulated packets
DT = 0.05                # Simulated time step (s)
NOISE_STDEVS = [0.5, 0.3]  # Process noise: longitudinal accel, yaw accel
P0 = np.diag([0.15**2, 0.15**2, 1.0, 0.5, 0.3])
RESULTS_PATH = Path(__file__).parent / 'results'
SHOW_PLOTS = True
# ============================================================================


def run_ukf_example(log_path=None):
    """Run the CTRV UKF on a simulated track or a recorded log."""
    if log_path is None:
        logging.info("Using simulated data (%d packets)...", N_STEPS)
        packets = simulate_ctrv_track(n_steps=N_STEPS, dt=DT, seed=42)['packets']
    else:
        logging.info("Using recorded data from %s...", log_path)
        packets = load_measurement_log(log_path)

    model = CTRVModel()
    ukf = UnscentedKalmanFilter(model, n_states=model.n_states,
                                noise_stdevs=NOISE_STDEVS, initial_covariance=P0)

    history = run_filter(ukf, packets)

    if history['ground_truth'] is not None:
        metrics = compute_all_metrics(history['cartesian'], history['ground_truth'],
                                      nis_values=history['nis'][1:])
        print(format_metrics(metrics, filter_name="CTRV UKF [px, py, vx, vy]"))

    for sensor, dof in (('LIDAR', 2), ('RADAR', 3)):
        mask = np.array([s.name == sensor for s in history['sensor_types']])
        values = history['nis'][mask]
        values = values[np.isfinite(values)]
        if values.size:
            print(f"{sensor}: {fraction_within_bound(values, dof):.1%} of NIS below 95% bound")

    RESULTS_PATH.mkdir(parents=True, exist_ok=True)
    plot_track(history, packets, save_path=RESULTS_PATH / 'ukf_track.png', show=False)
    plot_nis(history, save_path=RESULTS_PATH / 'ukf_nis.png', show=SHOW_PLOTS)

    return history


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    run_ukf_example(sys.argv[1] if len(sys.argv) > 1 else None)
