"""Coordinate-frame resolution for sensor mounting poses.

The estimator needs the pose of the fiducial sensor in the robot base frame.
A frame resolver supplies it; when the lookup fails the caller substitutes a
configured fallback pose and logs the failure, so a cycle is never aborted
because a transform is missing.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

from ekfslam.errors import FrameLookupError
from ekfslam.slam.types import Pose2

logger = logging.getLogger(__name__)

# resolver(target_frame, source_frame) -> pose of source in target, or raises FrameLookupError
FrameResolver = Callable[[str, str], Pose2]


class StaticFrameResolver:
    """
    Frame resolver backed by a fixed table of transforms.

    Example:
        >>> resolver = StaticFrameResolver({("base_link", "camera"): Pose2(0.2, 0.0, 0.0)})
        >>> resolver("base_link", "camera")
        Pose2(x=0.2000, y=0.0000, yaw=0.0000)
    """

    def __init__(self, transforms: Optional[Dict[Tuple[str, str], Pose2]] = None):
        self.transforms: Dict[Tuple[str, str], Pose2] = dict(transforms or {})

    def set_transform(self, target_frame: str, source_frame: str, pose: Pose2) -> None:
        self.transforms[(target_frame, source_frame)] = pose

    def __call__(self, target_frame: str, source_frame: str) -> Pose2:
        if target_frame == source_frame:
            return Pose2.identity()
        try:
            return self.transforms[(target_frame, source_frame)]
        except KeyError:
            raise FrameLookupError(
                f"No transform from '{source_frame}' to '{target_frame}'"
            ) from None


def resolve_sensor_pose(
    resolver: Optional[FrameResolver],
    base_frame: str,
    sensor_frame: str,
    fallback: Pose2,
) -> Tuple[Pose2, bool]:
    """
    Look up the sensor pose in the base frame, falling back on failure.

    Args:
        resolver: Frame resolver, or None to always use the fallback.
        base_frame: Robot base frame id.
        sensor_frame: Frame id the detections are expressed in.
        fallback: Pose used when the lookup fails.

    Returns:
        Tuple (pose, resolved) where resolved is False if the fallback was used.
    """
    if resolver is None:
        return fallback, False
    try:
        return resolver(base_frame, sensor_frame), True
    except FrameLookupError as exc:
        logger.error(
            "Sensor frame lookup %s -> %s failed (%s); using fallback %s",
            sensor_frame, base_frame, exc, fallback
        )
        return fallback, False
