"""
Sigma point generation for the Unscented Transform.

Uses the single-parameter (lambda) scheme: 2n + 1 points placed at the mean
and symmetrically along the columns of the covariance square root, scaled
by sqrt(lambda + n).
"""

import numpy as np
from scipy.linalg import block_diag

from ..common.linalg import sqrt_covariance
from ..exceptions import ConfigurationError


class SigmaPointGenerator:
    """
    Sigma points and weights of dimension ``n``.

    Parameters
    ----------
    n : int
        Dimensionality of the (augmented) state
    lambda_ : float
        Spread parameter; ``lambda_ + n`` must be positive

    Attributes
    ----------
    Wm : np.ndarray
        Weights (2n+1,), used both for means and covariances. Sum to 1.
    """

    def __init__(self, n, lambda_):
        if n <= 0:
            raise ConfigurationError(f"Sigma point dimension must be positive, got {n}")
        if not lambda_ + n > 0:
            raise ConfigurationError(
                f"lambda + n must be positive, got lambda={lambda_}, n={n}"
            )

        self.n = n
        self._lambda = float(lambda_)
        self._scale = np.sqrt(self._lambda + n)

        self.Wm = np.full(2*n + 1, 0.5 / (n + self._lambda))
        self.Wm[0] = self._lambda / (n + self._lambda)
        self.Wm.setflags(write=False)

    def __repr__(self):
        return f"SigmaPointGenerator(n={self.n}, lambda_={self._lambda})"

    @property
    def lambda_(self):
        return self._lambda

    @property
    def num_sigmas(self):
        return 2*self.n + 1

    @property
    def weights(self):
        return self.Wm

    def sigma_points(self, x, P):
        """
        Generate sigma points around (x, P).

        Parameters
        ----------
        x : np.ndarray
            Mean vector (n,)
        P : np.ndarray
            Covariance matrix (n, n)

        Returns
        -------
        np.ndarray
            Sigma points (2n+1, n), one per row

        Raises
        ------
        CovarianceNotPositiveDefiniteError
            If P has no real square root
        """
        n = self.n
        x = np.asarray(x, dtype=float)
        P = np.asarray(P, dtype=float)

        if x.shape != (n,) or P.shape != (n, n):
            raise ValueError(
                f"Expected mean ({n},) and covariance ({n}, {n}), "
                f"got {x.shape} and {P.shape}"
            )

        # Columns of L are the sigma directions; rows of U.T are offsets
        U = self._scale * sqrt_covariance(P)

        sigmas = np.empty((2*n + 1, n))
        sigmas[0] = x
        sigmas[1:n + 1] = x + U.T
        sigmas[n + 1:] = x - U.T

        return sigmas


def augment(x, P, Q):
    """
    Extend a state with zero-mean process noise variables.

    Parameters
    ----------
    x : np.ndarray
        State mean (n,)
    P : np.ndarray
        State covariance (n, n)
    Q : np.ndarray
        Process noise covariance (n_noise, n_noise)

    Returns
    -------
    tuple of np.ndarray
        x_aug (n + n_noise,) and P_aug = blockdiag(P, Q)
    """
    Q = np.atleast_2d(np.asarray(Q, dtype=float))
    x_aug = np.concatenate([np.asarray(x, dtype=float), np.zeros(Q.shape[0])])
    P_aug = block_diag(np.asarray(P, dtype=float), Q)
    return x_aug, P_aug
