"""
Angle utilities for state estimation.

Functions for normalizing angles into (-pi, pi] and computing angle
differences correctly across the discontinuity.
"""

import numpy as np


def normalize_angle(angle):
    """
    Normalize angle to (-pi, pi].

    Parameters
    ----------
    angle : float or np.ndarray
        Angle(s) in radians

    Returns
    -------
    float or np.ndarray
        Normalized angle(s) in (-pi, pi]

    Examples
    --------
    >>> normalize_angle(3 * np.pi / 2)
    -1.5707963267948966
    >>> normalize_angle(-np.pi)
    3.141592653589793
    """
    wrapped = np.pi - np.mod(np.pi - np.asarray(angle, dtype=float), 2 * np.pi)
    if np.ndim(wrapped) == 0:
        return float(wrapped)
    return wrapped


def angle_diff(angle1, angle2):
    """
    Compute the smallest difference between two angles.

    Handles the discontinuity at ±pi correctly.

    Parameters
    ----------
    angle1 : float or np.ndarray
        First angle(s) in radians
    angle2 : float or np.ndarray
        Second angle(s) in radians

    Returns
    -------
    float or np.ndarray
        Smallest angular difference in (-pi, pi]

    Examples
    --------
    >>> angle_diff(np.pi, -np.pi)
    0.0
    """
    return normalize_angle(np.asarray(angle1) - np.asarray(angle2))


def weighted_mean_angle(angles, weights=None, reference=None):
    """
    Weighted sum of angles, taken on the branch around a reference angle.

    Each angle is replaced by its shortest offset from ``reference`` before
    the weighted sum, so points straddling ±pi average correctly. When all
    angles lie on one branch this equals the plain weighted sum.

    Parameters
    ----------
    angles : np.ndarray
        Array of angles in radians
    weights : np.ndarray, optional
        Weights for each angle, expected to sum to 1. If None, uniform
        weights are used.
    reference : float, optional
        Branch reference (default: the first angle)

    Returns
    -------
    float
        Mean angle in (-pi, pi]

    Examples
    --------
    >>> weighted_mean_angle([0.25, 0.75])
    0.5
    """
    angles = np.asarray(angles, dtype=float)
    if weights is None:
        weights = np.full(len(angles), 1.0 / len(angles))
    else:
        weights = np.asarray(weights, dtype=float)

    if reference is None:
        reference = angles[0]

    return normalize_angle(reference + weights @ angle_diff(angles, reference))
