"""
Evaluation metrics for EKF-SLAM runs.

Trajectory and map error metrics plus NEES consistency statistics. Pose
errors wrap the heading component so that a yaw error near ±π is small.
"""

from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import stats

from ekfslam.utils.angles import wrap_angle_array


def compute_pose_errors(truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
    """
    Compute pose errors between true and estimated poses.

    Args:
        truth: True poses [x, y, yaw], shape (N, 3)
        estimated: Estimated poses [x, y, yaw], shape (N, 3)

    Returns:
        errors: estimated - truth with yaw wrapped to (-π, π], shape (N, 3)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.atleast_2d(np.asarray(truth, dtype=float))
    estimated = np.atleast_2d(np.asarray(estimated, dtype=float))

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )
    if truth.shape[1] != 3:
        raise ValueError(f"Poses must have 3 columns, got {truth.shape[1]}")

    errors = estimated - truth
    errors[:, 2] = wrap_angle_array(errors[:, 2])
    return errors


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over everything, 0 per dimension, 1 per sample

    Returns:
        rmse: RMSE value(s)
    """
    errors = np.asarray(errors)
    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_trajectory_stats(truth: np.ndarray, estimated: np.ndarray) -> Dict[str, float]:
    """
    Summary statistics of a robot trajectory estimate.

    Returns:
        Dictionary with 'position_rmse', 'position_max', 'position_final'
        (meters) and 'yaw_rmse' (radians).
    """
    errors = compute_pose_errors(truth, estimated)
    position = np.linalg.norm(errors[:, :2], axis=1)
    return {
        "position_rmse": float(np.sqrt(np.mean(position**2))),
        "position_max": float(np.max(position)),
        "position_final": float(position[-1]),
        "yaw_rmse": compute_rmse(errors[:, 2]),
    }


def compute_landmark_errors(
    true_landmarks: Mapping[int, Sequence[float]],
    estimated_landmarks: Mapping[int, Sequence[float]],
) -> Dict[int, float]:
    """
    Position error of every mapped landmark.

    Args:
        true_landmarks: id -> true pose [x, y, yaw]
        estimated_landmarks: id -> estimated pose [x, y, yaw]

    Returns:
        id -> Euclidean position error (m), for ids present in both maps.
    """
    errors = {}
    for landmark_id, estimate in estimated_landmarks.items():
        if landmark_id not in true_landmarks:
            continue
        truth = np.asarray(true_landmarks[landmark_id], dtype=float)
        errors[landmark_id] = float(np.hypot(estimate[0] - truth[0], estimate[1] - truth[1]))
    return errors


def compute_nees(
    truth: np.ndarray, estimated: np.ndarray, covariance: np.ndarray
) -> np.ndarray:
    """
    Compute Normalized Estimation Error Squared (NEES) of robot poses.

        NEES = e^T P^{-1} e,  e = wrap(x_est - x_true)

    For a consistent estimator NEES follows a chi-squared distribution with
    3 degrees of freedom.

    Args:
        truth: True poses, shape (N, 3)
        estimated: Estimated poses, shape (N, 3)
        covariance: Pose covariances, shape (N, 3, 3)

    Returns:
        nees: NEES values, shape (N,); NaN where a covariance is singular

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    errors = compute_pose_errors(truth, estimated)
    covariance = np.asarray(covariance, dtype=float)

    N, n = errors.shape
    if covariance.shape != (N, n, n):
        raise ValueError(
            f"covariance must have shape ({N}, {n}, {n}), "
            f"got {covariance.shape}"
        )

    nees = np.zeros(N)
    for i in range(N):
        try:
            nees[i] = errors[i] @ np.linalg.solve(covariance[i], errors[i])
        except np.linalg.LinAlgError:
            nees[i] = np.nan

    return nees


def nees_bounds(dof: int, n_runs: int = 1, confidence: float = 0.95) -> Tuple[float, float]:
    """
    Two-sided chi-squared acceptance interval for the average NEES.

    Args:
        dof: State dimension.
        n_runs: Number of Monte Carlo runs averaged.
        confidence: Probability mass inside the interval.

    Returns:
        (lower, upper) bounds on the average NEES.
    """
    if dof <= 0 or n_runs <= 0:
        raise ValueError("dof and n_runs must be positive")
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")

    tail = (1.0 - confidence) / 2.0
    lower = stats.chi2.ppf(tail, dof * n_runs) / n_runs
    upper = stats.chi2.ppf(1.0 - tail, dof * n_runs) / n_runs
    return float(lower), float(upper)
