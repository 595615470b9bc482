"""
Motion and measurement models for EKF-SLAM.

This module provides the process model that moves the robot sub-state and
the fiducial observation model (forward and inverse) that links the robot
and landmark poses to range/bearing/orientation readings.
"""

from .motion_models import (
    VelocityMotionModel2D,
    validate_motion_model_inputs,
)

from .measurement_models import (
    FiducialMeasurement2D,
    RANGE_SINGULARITY,
)

__all__ = [
    # Motion models
    'VelocityMotionModel2D',
    'validate_motion_model_inputs',

    # Measurement models
    'FiducialMeasurement2D',
    'RANGE_SINGULARITY',
]
