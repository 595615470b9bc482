"""
State estimators for landmark-based SLAM.

Available techniques:
    - EKF-SLAM with known correspondences (EKFSLAM)

Every technique implements the SLAMTechnique interface (predict, update,
reset, current_estimate, type_name) and reports recoverable input problems
through StepStatus / UpdateResult values.
"""

from ekfslam.estimators.base import (
    EstimatorState,
    ObservationOutcome,
    ObservationStatus,
    SLAMTechnique,
    SLAMTechniqueType,
    StepStatus,
    UpdateResult,
    create_slam_technique,
)
from ekfslam.estimators.config import PRESETS, EKFSLAMConfig, load_config
from ekfslam.estimators.ekf_slam import EKFSLAM

__all__ = [
    # Interface
    "SLAMTechnique",
    "SLAMTechniqueType",
    "EstimatorState",
    "create_slam_technique",
    # Results
    "StepStatus",
    "ObservationStatus",
    "ObservationOutcome",
    "UpdateResult",
    # EKF-SLAM
    "EKFSLAM",
    "EKFSLAMConfig",
    "PRESETS",
    "load_config",
]
