"""
Motion and measurement models for the Unscented Kalman Filter.

A model implements the :class:`UKFModel` hooks and is handed to the filter
at construction.
"""

from .base import UKFModel
from .ctrv import CTRVModel
from .constant_velocity import ConstantVelocityModel

__all__ = [
    'UKFModel',
    'CTRVModel',
    'ConstantVelocityModel',
]
