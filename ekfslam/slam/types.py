"""Type definitions and data structures for landmark-based EKF-SLAM.

This module defines the value types exchanged between the estimator and the
surrounding cycle driver.

Key types:
    - Pose2: Planar pose (x, y, yaw) with wrapped heading
    - ControlInput: Velocity command (v, w)
    - FiducialObservation: One landmark sighting (id, range, bearing, orientation)
    - MeasurementFiducial: Time-stamped batch of sightings plus the sensor pose
    - SLAMEstimate: Immutable snapshot of the joint state and covariance
"""

import numbers
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from ekfslam.utils.angles import wrap_angle


@dataclass(frozen=True)
class Pose2:
    """
    Planar rigid transform: translation (x, y) plus heading.

    The robot pose, every landmark pose and the sensor mounting pose are
    all values of this type.

    Attributes:
        x: Translation along the frame x-axis [m].
        y: Translation along the frame y-axis [m].
        yaw: Counter-clockwise rotation from the x-axis [rad], normalized to
             (-π, π] on construction.

    Examples:
        >>> Pose2.identity().compose(Pose2(10.0, 5.0, np.pi / 2))
        Pose2(x=10.0000, y=5.0000, yaw=1.5708)
        >>> p3 = Pose2.from_array(np.array([1.0, 2.0, 3 * np.pi]))
        >>> p3.yaw  # wrapped
        3.141592653589793
    """

    x: float
    y: float
    yaw: float

    def __post_init__(self) -> None:
        """Validate pose values and normalize the heading."""
        if not np.isfinite(self.x):
            raise ValueError(f"x must be finite, got {self.x}")
        if not np.isfinite(self.y):
            raise ValueError(f"y must be finite, got {self.y}")
        if not np.isfinite(self.yaw):
            raise ValueError(f"yaw must be finite, got {self.yaw}")
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "yaw", wrap_angle(float(self.yaw)))

    def to_array(self) -> np.ndarray:
        """Pose as a float64 buffer [x, y, yaw]."""
        return np.array([self.x, self.y, self.yaw], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Pose2":
        """
        Build a pose from a length-3 buffer [x, y, yaw].

        Raises:
            ValueError: If the buffer is not of shape (3,).
        """
        arr = np.asarray(arr, dtype=np.float64)
        if arr.shape != (3,):
            raise ValueError(f"pose buffer must have shape (3,), got {arr.shape}")
        return cls(x=float(arr[0]), y=float(arr[1]), yaw=float(arr[2]))

    @classmethod
    def identity(cls) -> "Pose2":
        """Pose at the frame origin with zero heading."""
        return cls(x=0.0, y=0.0, yaw=0.0)

    def compose(self, other: "Pose2") -> "Pose2":
        """Return self ⊕ other (apply `other` in the frame of `self`)."""
        c, s = np.cos(self.yaw), np.sin(self.yaw)
        return Pose2(
            x=self.x + other.x * c - other.y * s,
            y=self.y + other.x * s + other.y * c,
            yaw=self.yaw + other.yaw,
        )

    def inverse(self) -> "Pose2":
        """Return the inverse transform such that p ⊕ p⁻¹ = identity."""
        c, s = np.cos(self.yaw), np.sin(self.yaw)
        return Pose2(
            x=-(self.x * c + self.y * s),
            y=-(-self.x * s + self.y * c),
            yaw=-self.yaw,
        )

    def __repr__(self) -> str:
        return f"Pose2(x={self.x:.4f}, y={self.y:.4f}, yaw={self.yaw:.4f})"


@dataclass(frozen=True)
class ControlInput:
    """Velocity command: linear velocity v (m/s) and angular velocity w (rad/s)."""

    v: float = 0.0
    w: float = 0.0

    def __post_init__(self) -> None:
        if not (np.isfinite(self.v) and np.isfinite(self.w)):
            raise ValueError(f"Control input must be finite, got v={self.v}, w={self.w}")

    def to_array(self) -> np.ndarray:
        return np.array([self.v, self.w], dtype=np.float64)


@dataclass(frozen=True)
class FiducialObservation:
    """
    A single landmark sighting relative to the sensor.

    No validation happens here: malformed readings (non-positive range,
    non-finite values) must reach the estimator so that it can reject them
    individually and keep processing the rest of the batch.

    Attributes:
        id: External landmark identifier.
        range: Distance sensor -> landmark (meters).
        bearing: Direction of the landmark in the sensor frame (radians).
        orientation: Landmark yaw relative to the sensor yaw (radians).
    """

    id: int
    range: float
    bearing: float
    orientation: float

    def to_array(self) -> np.ndarray:
        """Reading as [range, bearing, orientation]."""
        return np.array([self.range, self.bearing, self.orientation], dtype=np.float64)


@dataclass(frozen=True)
class MeasurementFiducial:
    """Time-stamped batch of fiducial observations.

    Attributes:
        stamp: Acquisition time in seconds.
        sensor_pose: Pose of the sensor in the robot frame.
        observations: Sightings in arrival order.
        range_min, range_max: Declared range limits of the detector (optional).
        angle_min, angle_max: Declared horizontal field of view (optional).

    Example:
        >>> z = MeasurementFiducial(
        ...     stamp=1.5,
        ...     sensor_pose=Pose2(0.225, 0.0, 0.0),
        ...     observations=(FiducialObservation(5, 2.0, 0.1, 0.0),),
        ... )
        >>> len(z)
        1
    """

    stamp: float
    sensor_pose: Pose2 = field(default_factory=Pose2.identity)
    observations: Tuple[FiducialObservation, ...] = ()
    range_min: Optional[float] = None
    range_max: Optional[float] = None
    angle_min: Optional[float] = None
    angle_max: Optional[float] = None

    def __post_init__(self) -> None:
        if isinstance(self.stamp, bool) or not isinstance(self.stamp, numbers.Real):
            raise TypeError(f"Timestamp must be numeric, got {type(self.stamp)}")
        object.__setattr__(self, "stamp", float(self.stamp))
        object.__setattr__(self, "observations", tuple(self.observations))

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self):
        return iter(self.observations)


@dataclass(frozen=True)
class SLAMEstimate:
    """
    Immutable snapshot of the joint EKF-SLAM estimate.

    Attributes:
        poses: Robot pose first, then landmark poses in registry order.
        covariance: Read-only copy of the joint covariance, shape (3n, 3n).
        stamp: Time of the last processed control or measurement.
        landmark_ids: External ids matching poses[1:].
    """

    poses: Tuple[Pose2, ...]
    covariance: np.ndarray
    stamp: float
    landmark_ids: Tuple[int, ...] = ()

    @property
    def robot_pose(self) -> Pose2:
        return self.poses[0]

    @property
    def robot_covariance(self) -> np.ndarray:
        return self.covariance[0:3, 0:3]

    @property
    def landmarks(self) -> Tuple[Pose2, ...]:
        return self.poses[1:]

    def landmark_index(self, landmark_id: int) -> int:
        """State index (>= 1) of a landmark; raises KeyError when unknown."""
        try:
            return self.landmark_ids.index(landmark_id) + 1
        except ValueError:
            raise KeyError(f"Landmark {landmark_id} is not part of the estimate") from None

    def landmark_pose(self, landmark_id: int) -> Pose2:
        return self.poses[self.landmark_index(landmark_id)]

    def landmark_covariance(self, landmark_id: int) -> np.ndarray:
        i = 3 * self.landmark_index(landmark_id)
        return self.covariance[i:i + 3, i:i + 3]

    def __len__(self) -> int:
        return len(self.poses)
