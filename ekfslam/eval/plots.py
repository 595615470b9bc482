"""
Visualization utilities for EKF-SLAM runs.

Each plotting function builds and returns a new matplotlib Figure; callers
decide whether to show it or write it out with save_figure.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Ellipse

from ekfslam.node.messages import SLAMOutput
from ekfslam.slam.uncertainty import CovarianceEllipse


def _add_ellipse(ax: plt.Axes, ellipse: CovarianceEllipse, color: str) -> None:
    ax.add_patch(
        Ellipse(
            (ellipse.x, ellipse.y),
            width=ellipse.major,
            height=ellipse.minor,
            angle=np.degrees(ellipse.angle),
            fill=False,
            edgecolor=color,
            linewidth=1.0,
            alpha=0.8,
        )
    )


def plot_slam_map(
    truth_poses: np.ndarray,
    est_poses: np.ndarray,
    true_landmarks: Optional[np.ndarray] = None,
    output: Optional[SLAMOutput] = None,
    title: str = "EKF-SLAM",
) -> plt.Figure:
    """
    Plot true and estimated trajectories with the estimated map.

    Args:
        truth_poses: True robot poses, shape (N, 3)
        est_poses: Estimated robot poses, shape (N, 3)
        true_landmarks: True landmark poses, shape (M, 3) (optional)
        output: Final published estimate; landmarks and ellipses are drawn
            from it (optional)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    ax.plot(truth_poses[:, 0], truth_poses[:, 1], "k-", linewidth=2, label="Ground Truth", zorder=10)
    ax.plot(truth_poses[0, 0], truth_poses[0, 1], "go", markersize=10, label="Start", zorder=11)
    ax.plot(est_poses[:, 0], est_poses[:, 1], "b--", linewidth=1.5, label="EKF-SLAM", alpha=0.7)

    if true_landmarks is not None and len(true_landmarks):
        ax.plot(
            true_landmarks[:, 0],
            true_landmarks[:, 1],
            "s",
            color="gray",
            markersize=8,
            label="True Landmarks",
            zorder=5,
        )

    if output is not None:
        if output.landmarks:
            xy = np.array([[lm.pose.x, lm.pose.y] for lm in output.landmarks])
            ax.plot(xy[:, 0], xy[:, 1], "r+", markersize=10, label="Mapped Landmarks", zorder=6)
            for lm in output.landmarks:
                _add_ellipse(ax, lm.ellipse, "red")
                ax.annotate(str(lm.id), (lm.pose.x, lm.pose.y), fontsize=8,
                            xytext=(4, 4), textcoords="offset points")
        _add_ellipse(ax, output.robot_ellipse, "blue")

    ax.set_xlabel("X (m)", fontsize=12)
    ax.set_ylabel("Y (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis("equal")

    plt.tight_layout()
    return fig


def plot_nees(
    t: np.ndarray,
    nees: np.ndarray,
    bounds: Optional[Tuple[float, float]] = None,
    title: str = "Robot Pose NEES",
) -> plt.Figure:
    """
    Plot NEES over time with an optional acceptance interval.

    Args:
        t: Time stamps, shape (N,)
        nees: NEES values, shape (N,)
        bounds: (lower, upper) from nees_bounds() (optional)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(t, nees, "b-", linewidth=1.0, label="NEES")
    if bounds is not None:
        ax.axhline(bounds[0], color="r", linestyle="--", linewidth=1.0, label="Bounds")
        ax.axhline(bounds[1], color="r", linestyle="--", linewidth=1.0)

    ax.set_xlabel("Time (s)", fontsize=12)
    ax.set_ylabel("NEES", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("png",),
) -> List[Path]:
    """
    Write `fig` to `out_dir` once per requested extension.

    The directory is created when missing. Returns the written paths in the
    order of `formats`.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
