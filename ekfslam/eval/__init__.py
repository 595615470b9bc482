"""Error metrics, consistency statistics and plots for SLAM runs."""

from .metrics import (
    compute_landmark_errors,
    compute_nees,
    compute_pose_errors,
    compute_rmse,
    compute_trajectory_stats,
    nees_bounds,
)

__all__ = [
    "compute_pose_errors",
    "compute_rmse",
    "compute_trajectory_stats",
    "compute_landmark_errors",
    "compute_nees",
    "nees_bounds",
]
