"""
Track and uncertainty visualization.

Functions for plotting estimated tracks against ground truth and sensor
detections, position uncertainty ellipses, and NIS consistency.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Ellipse
from scipy.stats import chi2

from ..measurements import SensorType


def plot_covariance_ellipse(mean, cov, n_std=3.0, ax=None, **kwargs):
    """
    Plot covariance ellipse for 2D distribution.

    Parameters
    ----------
    mean : array-like
        Mean of distribution [x, y]
    cov : np.ndarray
        2x2 covariance matrix
    n_std : float, optional
        Number of standard deviations for ellipse (default: 3-sigma)
    ax : matplotlib.axes.Axes, optional
        Axes to plot on. If None, uses the current axes.
    **kwargs : dict
        Additional arguments passed to Ellipse patch
        (e.g., facecolor, edgecolor, alpha, linewidth)

    Returns
    -------
    matplotlib.patches.Ellipse
        The ellipse patch object
    """
    if ax is None:
        ax = plt.gca()

    mean = np.asarray(mean, dtype=float)
    cov = np.asarray(cov, dtype=float)

    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    eigenvalues = np.clip(eigenvalues, 0.0, None)

    # eigh sorts ascending: the last eigenvector is the major axis
    angle = np.degrees(np.arctan2(eigenvectors[1, -1], eigenvectors[0, -1]))
    height, width = 2 * n_std * np.sqrt(eigenvalues)

    ellipse = Ellipse(xy=mean, width=width, height=height, angle=angle, **kwargs)
    ax.add_patch(ellipse)

    return ellipse


def _detections_xy(packets, sensor_type):
    points = []
    for p in packets:
        if p.sensor_type is not sensor_type:
            continue
        if sensor_type is SensorType.RADAR:
            rho, phi = p.raw_values[0], p.raw_values[1]
            points.append([rho * np.cos(phi), rho * np.sin(phi)])
        else:
            points.append(p.raw_values[:2])
    return np.array(points).reshape(-1, 2)


def plot_track(history, packets=None, n_std=2.0, n_ellipses=10,
               title="Fused Track", figsize=(10, 8), save_path=None, show=True):
    """
    Plot an estimated track with uncertainty, ground truth and detections.

    Parameters
    ----------
    history : dict
        Output of :func:`sensor_fusion.runner.run_filter`
    packets : sequence of SensorDataPacket, optional
        Detections to scatter (radar converted to Cartesian)
    n_std : float, optional
        Number of standard deviations for the position ellipses
    n_ellipses : int, optional
        Number of ellipses along the track (0 disables them)
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size
    save_path : str, optional
        Path to save figure
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    fig, ax = plt.subplots(figsize=figsize)

    est = history['cartesian']
    truth = history.get('ground_truth')

    if packets is not None:
        lidar = _detections_xy(packets, SensorType.LIDAR)
        radar = _detections_xy(packets, SensorType.RADAR)
        if len(lidar):
            ax.plot(lidar[:, 0], lidar[:, 1], 'g.', markersize=4, alpha=0.5, label='Lidar')
        if len(radar):
            ax.plot(radar[:, 0], radar[:, 1], 'm.', markersize=4, alpha=0.5, label='Radar')

    if truth is not None:
        ax.plot(truth[:, 0], truth[:, 1], 'k--', linewidth=1.5,
                label='Ground Truth', alpha=0.6)

    ax.plot(est[:, 0], est[:, 1], 'b-', linewidth=2, label='Estimate', alpha=0.8)

    N = len(est)
    if n_ellipses and N:
        # Position block of the state covariance (px, py lead every model)
        for idx in np.linspace(0, N - 1, min(n_ellipses, N), dtype=int):
            plot_covariance_ellipse(est[idx, :2], history['covariances'][idx, :2, :2],
                                    n_std=n_std, ax=ax, facecolor='lightblue',
                                    edgecolor='blue', alpha=0.3, linewidth=1)

    ax.set_xlabel('X Position (m)', fontsize=12)
    ax.set_ylabel('Y Position (m)', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis('equal')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax


def plot_nis(history, confidence=0.95, title="NIS Consistency Test",
             figsize=(12, 6), save_path=None, show=True):
    """
    Plot the NIS of every update, per sensor, against its chi-squared bound.

    Parameters
    ----------
    history : dict
        Output of :func:`sensor_fusion.runner.run_filter`
    confidence : float, optional
        Confidence level of the bound
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size
    save_path : str, optional
        Path to save figure
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, axes
        Matplotlib figure and list of axes (one per sensor present)
    """
    nis_values = np.asarray(history['nis'], dtype=float)
    sensors = [s for s in SensorType if s in history['sensor_types']]

    fig, axes = plt.subplots(len(sensors) or 1, 1, figsize=figsize, squeeze=False)
    axes = list(axes[:, 0])

    for ax, sensor in zip(axes, sensors):
        mask = np.array([s is sensor for s in history['sensor_types']]) & np.isfinite(nis_values)
        dof = 2 if sensor is SensorType.LIDAR else 3
        bound = chi2.ppf(confidence, dof)

        ax.plot(np.flatnonzero(mask), nis_values[mask], 'b-', linewidth=1, label='NIS')
        ax.axhline(bound, color='r', linestyle='--',
                   label=f'{confidence:.0%} bound ({bound:.2f})')
        ax.set_ylabel(f'{sensor} NIS', fontsize=12)
        ax.legend(fontsize=10)
        ax.grid(True, alpha=0.3)

    axes[-1].set_xlabel('Packet', fontsize=12)
    fig.suptitle(title, fontsize=14)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, axes
