"""
Linear algebra helpers for covariance matrices.

Square roots for sigma-point generation and the symmetry / positive
semi-definiteness checks applied around every filter cycle.
"""

import logging

import numpy as np
from scipy.linalg import LinAlgError, cholesky

from ..exceptions import CovarianceNotPositiveDefiniteError, SingularInnovationError

logger = logging.getLogger(__name__)


def symmetrize(P):
    """Return (P + P^T) / 2."""
    P = np.asarray(P, dtype=float)
    return 0.5 * (P + P.T)


def psd_tolerance(P):
    """Eigenvalue tolerance used to decide whether P is PSD."""
    scale = max(1.0, float(np.max(np.abs(np.diag(P)))) if P.size else 1.0)
    return 1e3 * np.finfo(float).eps * P.shape[0] * scale


def is_positive_semidefinite(P, tol=None):
    """
    Check that a matrix is symmetric positive semi-definite.

    Parameters
    ----------
    P : np.ndarray
        Square matrix
    tol : float, optional
        Allowed magnitude of negative eigenvalues and of asymmetry.
        Defaults to a tolerance scaled with the matrix size and diagonal.

    Returns
    -------
    bool
    """
    P = np.asarray(P, dtype=float)
    if P.ndim != 2 or P.shape[0] != P.shape[1]:
        return False
    if not np.all(np.isfinite(P)):
        return False
    if tol is None:
        tol = psd_tolerance(P)
    if not np.allclose(P, P.T, rtol=0.0, atol=tol):
        return False
    return bool(np.min(np.linalg.eigvalsh(symmetrize(P))) >= -tol)


def sqrt_covariance(P):
    """
    Lower-triangular square root L of a covariance, with L @ L.T = P.

    Cholesky is used whenever it succeeds. A matrix that is PSD but
    singular (Cholesky fails, no eigenvalue below -tolerance) is factored
    through its eigen-decomposition instead, which is exact for PSD input
    but not triangular.

    Parameters
    ----------
    P : np.ndarray
        Symmetric covariance matrix (n, n)

    Returns
    -------
    np.ndarray
        Square root (n, n); column i is the i-th sigma direction

    Raises
    ------
    CovarianceNotPositiveDefiniteError
        If P is not finite or has a significantly negative eigenvalue
    """
    P = np.asarray(P, dtype=float)

    if not np.all(np.isfinite(P)):
        logger.error("Covariance contains non-finite entries")
        raise CovarianceNotPositiveDefiniteError("Covariance contains non-finite entries")

    try:
        return cholesky(P, lower=True, check_finite=False)
    except LinAlgError:
        pass

    eigval, eigvec = np.linalg.eigh(symmetrize(P))
    tol = psd_tolerance(P)
    if eigval.min() < -tol:
        logger.error("Covariance is not positive semi-definite (min eigenvalue %.3e)",
                     eigval.min())
        raise CovarianceNotPositiveDefiniteError(
            f"Covariance is not positive semi-definite "
            f"(min eigenvalue {eigval.min():.3e})"
        )

    logger.warning("Cholesky failed on a singular PSD covariance, "
                   "using eigen-decomposition square root")
    return eigvec @ np.diag(np.sqrt(np.clip(eigval, 0.0, None)))


def solve_gain(cross_covariance, S):
    """
    Kalman gain K = T S^-1 for cross-covariance T and innovation covariance S.

    Parameters
    ----------
    cross_covariance : np.ndarray
        State/measurement cross-covariance T (n_x, n_z)
    S : np.ndarray
        Innovation covariance (n_z, n_z)

    Returns
    -------
    np.ndarray
        Kalman gain (n_x, n_z)

    Raises
    ------
    SingularInnovationError
        If S is not finite or numerically singular
    """
    S = np.asarray(S, dtype=float)

    if not np.all(np.isfinite(S)):
        logger.error("Innovation covariance contains non-finite entries")
        raise SingularInnovationError("Innovation covariance contains non-finite entries")

    cond = np.linalg.cond(S)
    if not np.isfinite(cond) or cond * np.finfo(float).eps >= 1.0:
        logger.error("Innovation covariance is singular (condition number %.3e)", cond)
        raise SingularInnovationError(
            f"Innovation covariance is singular (condition number {cond:.3e})"
        )

    try:
        # K^T = S^-T T^T
        return np.linalg.solve(S.T, np.asarray(cross_covariance, dtype=float).T).T
    except np.linalg.LinAlgError as exc:
        raise SingularInnovationError(f"Innovation covariance is singular: {exc}") from exc
