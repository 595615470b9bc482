"""
Utility functions for the EKF-SLAM estimator.

This module provides the angle operations shared by the geometry,
model and estimator sub-packages.
"""

from .angles import wrap_angle, wrap_angle_array, angle_diff

__all__ = [
    'wrap_angle',
    'wrap_angle_array',
    'angle_diff',
]
