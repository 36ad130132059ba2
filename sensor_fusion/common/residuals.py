"""
Residual functions for state estimation.

These functions compute residuals (differences) between states or measurements,
handling angular components that wrap around at ±pi. They operate on single
vectors and on stacks of vectors (one per row) alike.
"""

import numpy as np
from .angles import normalize_angle


def normalize_components(v, angle_indices=None):
    """
    Normalize the angular components of a vector (or of each row of a matrix).

    Parameters
    ----------
    v : np.ndarray
        Vector (n,) or stacked vectors (m, n)
    angle_indices : sequence of int, optional
        Indices of angular components (in radians)

    Returns
    -------
    np.ndarray
        Copy of ``v`` with angles in (-pi, pi]

    Examples
    --------
    >>> normalize_components(np.array([1.0, 4.0]), angle_indices=[1])
    array([ 1.        , -2.28318531])
    """
    v = np.array(v, dtype=float)

    if angle_indices:
        idx = list(angle_indices)
        v[..., idx] = normalize_angle(v[..., idx])

    return v


def residual(a, b, angle_indices=None):
    """
    Compute residual y = a - b with normalized angles.

    ``b`` may be a single vector broadcast against a stack ``a`` (m, n),
    which is how sigma-point deviations from a mean are formed.

    Parameters
    ----------
    a : np.ndarray
        First vector (n,) or stacked vectors (m, n)
    b : np.ndarray
        Second vector (n,)
    angle_indices : sequence of int, optional
        Indices of angular components that need normalization

    Returns
    -------
    np.ndarray
        Residual y = a - b with normalized angles

    Examples
    --------
    >>> x1 = np.array([1.0, 2.0, 3.14])
    >>> x2 = np.array([0.5, 1.8, -3.14])
    >>> residual(x1, x2, angle_indices=[2])
    array([ 0.5       ,  0.2       , -0.00318531])
    """
    return normalize_components(np.asarray(a, dtype=float) - np.asarray(b, dtype=float),
                                angle_indices)
