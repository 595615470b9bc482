"""Geometry and bookkeeping for landmark-based SLAM.

Main components:
    - Pose2 and the measurement/estimate value types
    - se2_compose, se2_inverse, se2_relative: SE(2) operations on arrays
    - LandmarkRegistry: landmark id -> joint state slot
    - covariance_ellipse: 2x2 position covariance -> presentation ellipse

Example usage:
    >>> from ekfslam.slam import Pose2
    >>> robot = Pose2(x=1.0, y=0.0, yaw=np.pi / 2)
    >>> sensor = Pose2(x=0.225, y=0.0, yaw=0.0)
    >>> robot.compose(sensor)
    Pose2(x=1.0000, y=0.2250, yaw=1.5708)
"""

from .registry import LandmarkRegistry
from .se2 import se2_compose, se2_inverse, se2_relative
from .types import (
    ControlInput,
    FiducialObservation,
    MeasurementFiducial,
    Pose2,
    SLAMEstimate,
)
from .uncertainty import CovarianceEllipse, covariance_ellipse

__all__ = [
    # Core types
    "Pose2",
    "ControlInput",
    "FiducialObservation",
    "MeasurementFiducial",
    "SLAMEstimate",
    # SE(2) operations
    "se2_compose",
    "se2_inverse",
    "se2_relative",
    # Bookkeeping
    "LandmarkRegistry",
    # Presentation
    "CovarianceEllipse",
    "covariance_ellipse",
]
