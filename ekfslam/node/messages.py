"""Data types exchanged between the cycle driver and its transport layer.

Inbound detections describe markers as positions in the sensor frame, the
way a fiducial detector reports them. Outbound SLAMOutput is the
presentation-ready form of an estimate: map-frame origin, poses and 2σ
covariance ellipses.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ekfslam.slam.types import FiducialObservation, Pose2
from ekfslam.slam.uncertainty import CovarianceEllipse


@dataclass(frozen=True)
class MarkerDetection:
    """One detected marker: id plus its pose in the sensor frame."""

    id: int
    x: float
    y: float
    yaw: float

    def to_observation(self) -> FiducialObservation:
        """Convert the Cartesian detection to a range/bearing/orientation reading."""
        return FiducialObservation(
            id=self.id,
            range=float(np.hypot(self.x, self.y)),
            bearing=float(np.arctan2(self.y, self.x)),
            orientation=float(self.yaw),
        )


@dataclass(frozen=True)
class FiducialDetection:
    """
    Detector output for one image.

    Attributes:
        frame_id: Sensor frame the markers are expressed in.
        stamp: Acquisition time in seconds.
        markers: Detected markers.
        angle_min, angle_max: Horizontal field of view (radians).
        distance_min, distance_max: Detection range limits (meters).
    """

    frame_id: str
    stamp: float
    markers: Tuple[MarkerDetection, ...] = ()
    angle_min: Optional[float] = None
    angle_max: Optional[float] = None
    distance_min: Optional[float] = None
    distance_max: Optional[float] = None


@dataclass(frozen=True)
class LandmarkOutput:
    """Published landmark: id, pose and uncertainty ellipse."""

    id: int
    pose: Pose2
    ellipse: CovarianceEllipse


@dataclass(frozen=True)
class SLAMOutput:
    """
    Everything the presentation layer draws for one cycle.

    Attributes:
        stamp: Time of the last processed input.
        frame_id: Map frame id of all poses below.
        origin: Pose of the map frame in the world/odom frame.
        robot_pose: Estimated robot pose.
        robot_ellipse: Position uncertainty of the robot.
        landmarks: Landmarks in registry order.
    """

    stamp: float
    frame_id: str
    origin: Pose2
    robot_pose: Pose2
    robot_ellipse: CovarianceEllipse
    landmarks: Tuple[LandmarkOutput, ...] = ()
