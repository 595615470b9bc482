"""Covariance ellipses for presenting position uncertainty.

The cycle driver publishes one ellipse for the robot and one per landmark.
Each ellipse comes from the eigen-decomposition of the 2x2 position block
of the joint covariance; the axes are 2·sqrt(eigenvalue) and the rotation is
the direction of the principal eigenvector.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CovarianceEllipse:
    """
    Uncertainty ellipse of a planar position.

    Attributes:
        x, y: Ellipse center (meters).
        angle: Rotation of the major axis (radians).
        major: Full length of the major axis (meters).
        minor: Full length of the minor axis (meters).
    """

    x: float
    y: float
    angle: float
    major: float
    minor: float


def covariance_ellipse(
    center: np.ndarray,
    covariance: np.ndarray,
    n_sigma: float = 1.0,
) -> CovarianceEllipse:
    """
    Build the ellipse of a 2x2 position covariance.

    Args:
        center: Position [x, y] (or a pose, only the first two entries are used).
        covariance: Covariance whose top-left 2x2 block is the position block.
        n_sigma: Scale of the half axes in standard deviations.

    Returns:
        CovarianceEllipse with axes 2·n_sigma·sqrt(λ).

    Example:
        >>> e = covariance_ellipse(np.zeros(2), np.diag([4.0, 1.0]))
        >>> (e.major, e.minor)
        (4.0, 2.0)
    """
    C = np.asarray(covariance, dtype=float)[0:2, 0:2]
    C = 0.5 * (C + C.T)
    eigvals, eigvecs = np.linalg.eigh(C)
    # eigh sorts ascending; the major axis is the last column
    eigvals = np.clip(eigvals, 0.0, None)
    major_vec = eigvecs[:, 1]
    angle = float(np.arctan2(major_vec[1], major_vec[0]))
    return CovarianceEllipse(
        x=float(center[0]),
        y=float(center[1]),
        angle=angle,
        major=float(2.0 * n_sigma * np.sqrt(eigvals[1])),
        minor=float(2.0 * n_sigma * np.sqrt(eigvals[0])),
    )
