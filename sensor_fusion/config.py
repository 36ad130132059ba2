"""
Construction parameters of the Unscented Kalman Filter.

A :class:`FilterConfig` collects everything the filter needs besides the
model: state dimension, process noise, sigma point spread, the prior
covariance used on initialization and the timestamp unit.
"""

from dataclasses import dataclass
import numbers

import numpy as np

from .common.linalg import is_positive_semidefinite
from .exceptions import ConfigurationError


@dataclass
class FilterConfig:
    """
    Filter configuration.

    Attributes
    ----------
    n_states : int
        Dimension of the tracked state
    noise_stdevs : sequence of float
        Standard deviation of each process noise source; Q = diag(stdevs^2)
    lambda_ : float, optional
        Sigma point spread parameter. Defaults to ``3 - n_aug``.
    initial_covariance : np.ndarray, optional
        Prior covariance assigned on the first packet (default: identity)
    time_scale : float, optional
        Seconds per timestamp unit (default: 1e-6, microsecond timestamps)
    """
    n_states: int
    noise_stdevs: np.ndarray
    lambda_: float = None
    initial_covariance: np.ndarray = None
    time_scale: float = 1e-6

    def __post_init__(self):
        self.noise_stdevs = np.atleast_1d(np.array(self.noise_stdevs, dtype=float))

        if self.lambda_ is None and isinstance(self.n_states, numbers.Integral):
            self.lambda_ = 3.0 - self.n_aug

        if self.initial_covariance is None:
            if isinstance(self.n_states, numbers.Integral) and self.n_states > 0:
                self.initial_covariance = np.eye(self.n_states)
        else:
            self.initial_covariance = np.array(self.initial_covariance, dtype=float)

    @classmethod
    def for_model(cls, model, noise_stdevs, **kwargs):
        """Build a configuration whose state dimension matches ``model``."""
        return cls(n_states=model.n_states, noise_stdevs=noise_stdevs, **kwargs)

    @property
    def n_noise(self):
        return self.noise_stdevs.shape[0]

    @property
    def n_aug(self):
        return self.n_states + self.n_noise

    @property
    def spread(self):
        """lambda + n_aug; the sigma point offsets scale with its square root."""
        return self.lambda_ + self.n_aug

    def process_noise(self):
        """Process noise covariance Q (n_noise, n_noise)."""
        return np.diag(self.noise_stdevs ** 2)

    def validate(self, model=None):
        """
        Check the configuration, optionally against a model.

        Parameters
        ----------
        model : UKFModel, optional
            Model whose dimensions must agree with the configuration

        Returns
        -------
        FilterConfig
            self, to allow chaining

        Raises
        ------
        ConfigurationError
            On the first invalid parameter found
        """
        n = self.n_states
        if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n <= 0:
            raise ConfigurationError(f"n_states must be a positive integer, got {n!r}")

        if self.noise_stdevs.ndim != 1:
            raise ConfigurationError(
                f"noise_stdevs must be a flat sequence, got shape {self.noise_stdevs.shape}"
            )
        if self.n_noise == 0:
            raise ConfigurationError("noise_stdevs must contain at least one value")
        if not np.all(np.isfinite(self.noise_stdevs)) or np.any(self.noise_stdevs <= 0):
            raise ConfigurationError(
                f"noise_stdevs must be positive and finite, got {self.noise_stdevs.tolist()}"
            )

        if self.lambda_ is None or not np.isfinite(self.lambda_):
            raise ConfigurationError(f"lambda_ must be finite, got {self.lambda_}")
        if self.spread <= 0:
            raise ConfigurationError(
                f"lambda + n_aug must be positive, got lambda={self.lambda_} "
                f"with n_aug={self.n_aug}"
            )

        P0 = self.initial_covariance
        if P0 is None or P0.shape != (n, n):
            shape = None if P0 is None else P0.shape
            raise ConfigurationError(
                f"initial_covariance must have shape ({n}, {n}), got {shape}"
            )
        if not is_positive_semidefinite(P0):
            raise ConfigurationError("initial_covariance must be symmetric positive semi-definite")

        if not (np.isfinite(self.time_scale) and self.time_scale > 0):
            raise ConfigurationError(f"time_scale must be positive, got {self.time_scale}")

        if model is not None:
            if model.n_states != n:
                raise ConfigurationError(
                    f"{type(model).__name__} tracks {model.n_states} states, "
                    f"configuration has n_states={n}"
                )
            if model.n_noise != self.n_noise:
                raise ConfigurationError(
                    f"{type(model).__name__} expects {model.n_noise} noise sources, "
                    f"got {self.n_noise} noise_stdevs"
                )

        return self
