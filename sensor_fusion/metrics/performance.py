"""
Performance metrics for evaluating state estimation quality.

Includes RMSE, MAE, NEES, and NIS for comprehensive filter evaluation.
"""

import numpy as np
from scipy.stats import chi2


def rmse(estimates, ground_truth, axis=0):
    """
    Root Mean Square Error.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, dim) or (N,)
    ground_truth : np.ndarray
        True states (N, dim) or (N,)
    axis : int, optional
        Axis along which to compute RMSE

    Returns
    -------
    float or np.ndarray
        RMSE value(s)
    """
    estimates = np.asarray(estimates, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)

    if estimates.shape != ground_truth.shape or estimates.size == 0:
        raise ValueError(
            f"Estimates and ground truth must be non-empty with equal shapes, "
            f"got {estimates.shape} and {ground_truth.shape}"
        )

    squared_errors = (estimates - ground_truth) ** 2
    return np.sqrt(np.mean(squared_errors, axis=axis))


def mae(estimates, ground_truth, axis=0):
    """
    Mean Absolute Error.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states
    ground_truth : np.ndarray
        True states
    axis : int, optional
        Axis along which to compute MAE

    Returns
    -------
    float or np.ndarray
        MAE value(s)
    """
    estimates = np.asarray(estimates, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)

    return np.mean(np.abs(estimates - ground_truth), axis=axis)


def nees(estimates, ground_truth, covariances):
    """
    Normalized Estimation Error Squared (NEES).

    For a consistent filter, NEES follows a chi-squared distribution with
    dim_x degrees of freedom.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, dim_x)
    ground_truth : np.ndarray
        True states (N, dim_x)
    covariances : np.ndarray
        Estimation error covariances (N, dim_x, dim_x)

    Returns
    -------
    np.ndarray
        NEES values for each time step (N,)
    """
    errors = np.asarray(estimates, dtype=float) - np.asarray(ground_truth, dtype=float)
    covariances = np.asarray(covariances, dtype=float)

    return np.array([e @ np.linalg.solve(P, e) for e, P in zip(errors, covariances)])


def nis(innovations, innovation_covariances):
    """
    Normalized Innovation Squared (NIS).

    For a consistent filter, NIS follows a chi-squared distribution with
    dim_z degrees of freedom. Innovations of different sensors may have
    different lengths, so both arguments can be plain lists.

    Parameters
    ----------
    innovations : sequence of np.ndarray
        Innovation vectors y_k
    innovation_covariances : sequence of np.ndarray
        Innovation covariances S_k

    Returns
    -------
    np.ndarray
        NIS values for each update (N,)
    """
    return np.array([
        float(np.asarray(y) @ np.linalg.solve(np.asarray(S), np.asarray(y)))
        for y, S in zip(innovations, innovation_covariances)
    ])


def chi2_bound(dof, confidence=0.95):
    """Upper chi-squared bound for ``dof`` degrees of freedom."""
    return float(chi2.ppf(confidence, dof))


def fraction_within_bound(values, dof, confidence=0.95):
    """
    Fraction of NIS/NEES values below the chi-squared bound.

    A consistent filter keeps roughly ``confidence`` of its values below it.
    """
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return float('nan')
    return float(np.mean(values <= chi2_bound(dof, confidence)))


def compute_all_metrics(estimates, ground_truth, covariances=None, nis_values=None):
    """
    Compute all available metrics.

    Parameters
    ----------
    estimates : np.ndarray
        Estimated states (N, dim_x)
    ground_truth : np.ndarray
        True states (N, dim_x)
    covariances : np.ndarray, optional
        State covariances (N, dim_x, dim_x)
    nis_values : np.ndarray, optional
        NIS of every update, e.g. ``UpdateResult.nis``

    Returns
    -------
    dict
        Dictionary with computed metrics
    """
    metrics = {}

    # Basic metrics (always available)
    metrics['rmse'] = rmse(estimates, ground_truth, axis=0)
    metrics['mae'] = mae(estimates, ground_truth, axis=0)
    metrics['rmse_total'] = float(np.mean(metrics['rmse']))
    metrics['mae_total'] = float(np.mean(metrics['mae']))

    # Consistency metrics (require covariances)
    if covariances is not None:
        nees_vals = nees(estimates, ground_truth, covariances)
        metrics['nees'] = nees_vals
        metrics['nees_mean'] = float(np.mean(nees_vals))
        metrics['nees_std'] = float(np.std(nees_vals))

    if nis_values is not None and len(nis_values) > 0:
        nis_vals = np.asarray(nis_values, dtype=float)
        metrics['nis'] = nis_vals
        metrics['nis_mean'] = float(np.mean(nis_vals))
        metrics['nis_std'] = float(np.std(nis_vals))

    return metrics


def format_metrics(metrics, filter_name="Filter"):
    """
    Format metrics as a printable report.

    Parameters
    ----------
    metrics : dict
        Dictionary of metrics from compute_all_metrics
    filter_name : str, optional
        Name of the filter for display

    Returns
    -------
    str
    """
    lines = [f"{filter_name} Performance Metrics", "=" * 50]

    if 'rmse' in metrics:
        lines.append(f"RMSE per dimension: {np.round(metrics['rmse'], 4)}")
    if 'rmse_total' in metrics:
        lines.append(f"Total RMSE: {metrics['rmse_total']:.6f}")
    if 'mae' in metrics:
        lines.append(f"MAE per dimension: {np.round(metrics['mae'], 4)}")
    if 'mae_total' in metrics:
        lines.append(f"Total MAE: {metrics['mae_total']:.6f}")
    if 'nees_mean' in metrics:
        lines.append(f"NEES (mean ± std): {metrics['nees_mean']:.2f} ± {metrics['nees_std']:.2f}")
    if 'nis_mean' in metrics:
        lines.append(f"NIS (mean ± std): {metrics['nis_mean']:.2f} ± {metrics['nis_std']:.2f}")

    lines.append("=" * 50)
    return "\n".join(lines)
