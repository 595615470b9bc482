"""Planar rigid-body transforms on pose arrays.

Array counterparts of Pose2.compose / Pose2.inverse. The observation model
and the simulator keep poses in NumPy buffers ([x, y, yaw], shape (3,)), so
these helpers accept either a Pose2 or such an array and always return an
array with the heading wrapped to (-π, π].

    se2_compose(a, b)   a ⊕ b      (b expressed in the frame of a)
    se2_inverse(a)      a⁻¹
    se2_relative(a, b)  a⁻¹ ⊕ b    (b seen from a)
"""

from typing import Union

import numpy as np

from ekfslam.utils.angles import wrap_angle

from .types import Pose2

PoseLike = Union[np.ndarray, Pose2]


def _as_array(pose: PoseLike, name: str) -> np.ndarray:
    if isinstance(pose, Pose2):
        return pose.to_array()
    arr = np.asarray(pose, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {arr.shape}")
    return arr


def _rotate(yaw: float, x: float, y: float):
    c, s = np.cos(yaw), np.sin(yaw)
    return c * x - s * y, s * x + c * y


def se2_compose(base: PoseLike, local: PoseLike) -> np.ndarray:
    """
    Chain two transforms: the pose `local`, given in the frame of `base`,
    expressed in the frame `base` itself lives in.

    Args:
        base: Pose of the intermediate frame.
        local: Pose relative to `base`.

    Returns:
        [x, y, yaw] of base ⊕ local.

    Raises:
        ValueError: If an array input is not of shape (3,).

    Example:
        >>> np.allclose(se2_compose([0, 0, np.pi / 2], [1, 0, 0]), [0, 1, np.pi / 2])
        True
    """
    bx, by, byaw = _as_array(base, "base")
    lx, ly, lyaw = _as_array(local, "local")
    dx, dy = _rotate(byaw, lx, ly)
    return np.array([bx + dx, by + dy, wrap_angle(byaw + lyaw)], dtype=np.float64)


def se2_inverse(pose: PoseLike) -> np.ndarray:
    """
    Transform that undoes `pose`, so that pose ⊕ pose⁻¹ is the identity.

    Example:
        >>> p = np.array([1.0, 2.0, np.pi / 4])
        >>> np.allclose(se2_compose(p, se2_inverse(p)), np.zeros(3))
        True
    """
    x, y, yaw = _as_array(pose, "pose")
    ix, iy = _rotate(-yaw, -x, -y)
    return np.array([ix, iy, wrap_angle(-yaw)], dtype=np.float64)


def se2_relative(origin: PoseLike, target: PoseLike) -> np.ndarray:
    """Pose of `target` in the frame of `origin` (origin⁻¹ ⊕ target)."""
    return se2_compose(se2_inverse(origin), target)
