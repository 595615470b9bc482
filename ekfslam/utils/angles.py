"""
Heading arithmetic on the half-open interval (-π, π].

Every angle stored in the joint state (robot heading, landmark orientation)
and every angular innovation is kept on this interval. -π is folded onto +π
so that each heading has a single representative.
"""

import numpy as np
from typing import Union


TWO_PI = 2.0 * np.pi


def wrap_angle(angle: float) -> float:
    """
    Map a scalar angle onto (-π, π].

    Args:
        angle: Finite angle in radians.

    Returns:
        Equivalent angle in (-π, π].

    Example:
        >>> wrap_angle(-np.pi)
        3.141592653589793
        >>> round(wrap_angle(5 * np.pi / 2), 12)
        1.570796326795
    """
    wrapped = float(np.arctan2(np.sin(angle), np.cos(angle)))
    if wrapped <= -np.pi:
        wrapped += TWO_PI
    return wrapped


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """Element-wise wrap_angle for array input."""
    angles = np.asarray(angles, dtype=float)
    wrapped = np.arctan2(np.sin(angles), np.cos(angles))
    return np.where(wrapped <= -np.pi, wrapped + TWO_PI, wrapped)


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Signed rotation taking angle2 onto angle1, wrapped to (-π, π].

    Used as the bearing and orientation innovation (measured minus
    predicted), so a reading just across the ±π seam yields a small value.

    Example:
        >>> round(angle_diff(np.pi - 0.1, -np.pi + 0.1), 12)
        -0.2
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    return wrap_angle(angle1 - angle2)
