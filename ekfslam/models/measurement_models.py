"""
Fiducial observation model for landmark-based EKF-SLAM.

A fiducial detector reports, for every visible marker, its range, its
bearing and its orientation, all relative to the sensor. The sensor itself
is mounted at a known pose in the robot frame.

Notation:
    robot pose      x = [x, y, θ]
    sensor pose     s = [sx, sy, sθ]          (robot frame)
    sensor (world)  c = x ⊕ s = [cx, cy, cθ]
    landmark pose   m = [mx, my, mθ]          (world frame)
    dx = mx - cx,  dy = my - cy,  q = dx² + dy²

Forward model:
    range       = sqrt(q)
    bearing     = atan2(dy, dx) - cθ
    orientation = mθ - cθ

Inverse model (landmark initialization):
    mx = cx + range·cos(cθ + bearing)
    my = cy + range·sin(cθ + bearing)
    mθ = cθ + orientation

All angular outputs are wrapped to (-π, π].
"""

from typing import Tuple

import numpy as np

from ekfslam.slam.se2 import se2_compose
from ekfslam.slam.types import Pose2
from ekfslam.utils.angles import angle_diff, wrap_angle

# Below this range the bearing is undefined and its Jacobian is zeroed.
RANGE_SINGULARITY = 1e-6


class FiducialMeasurement2D:
    """
    Range / bearing / orientation measurement model.

    Example:
        >>> model = FiducialMeasurement2D(sigma_range=0.1, sigma_bearing=0.05)
        >>> robot = np.array([0.0, 0.0, 0.0])
        >>> landmark = np.array([2.0, 0.0, 0.0])
        >>> model.h(robot, landmark, np.zeros(3))
        array([2., 0., 0.])
    """

    def __init__(
        self,
        sigma_range: float = 0.1,
        sigma_bearing: float = 0.05,
        sigma_orientation: float = 0.1,
    ):
        """
        Initialize the fiducial measurement model.

        Args:
            sigma_range: Range noise standard deviation (meters).
            sigma_bearing: Bearing noise standard deviation (radians).
            sigma_orientation: Orientation noise standard deviation (radians).
        """
        noise_std = np.array([sigma_range, sigma_bearing, sigma_orientation], dtype=float)
        if np.any(noise_std <= 0) or not np.all(np.isfinite(noise_std)):
            raise ValueError(f"Measurement noise must be positive and finite, got {noise_std}")
        self.noise_std = noise_std

    def noise_covariance(self) -> np.ndarray:
        """Measurement noise covariance R = diag(σr², σb², σo²)."""
        return np.diag(self.noise_std**2)

    @staticmethod
    def sensor_in_world(x: np.ndarray, s: np.ndarray) -> np.ndarray:
        """World pose of the sensor: c = x ⊕ s."""
        return se2_compose(x, s)

    def h(self, x: np.ndarray, m: np.ndarray, s: np.ndarray) -> np.ndarray:
        """
        Measurement function: expected [range, bearing, orientation].

        Args:
            x: Robot pose [x, y, θ]
            m: Landmark pose [mx, my, mθ]
            s: Sensor pose in the robot frame [sx, sy, sθ]

        Returns:
            Expected reading, shape (3,)
        """
        cx, cy, ctheta = self.sensor_in_world(x, s)
        dx = m[0] - cx
        dy = m[1] - cy
        return np.array([
            np.hypot(dx, dy),
            wrap_angle(np.arctan2(dy, dx) - ctheta),
            wrap_angle(m[2] - ctheta),
        ])

    def jacobians(
        self, x: np.ndarray, m: np.ndarray, s: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Jacobians of h with respect to the robot pose and the landmark pose.

        Args:
            x: Robot pose [x, y, θ]
            m: Landmark pose [mx, my, mθ]
            s: Sensor pose in the robot frame

        Returns:
            Tuple (H_robot, H_landmark), each of shape (3, 3)
        """
        cx, cy, _ = self.sensor_in_world(x, s)
        # Sensor offset rotated into the world frame
        ox = cx - x[0]
        oy = cy - x[1]
        dx = m[0] - cx
        dy = m[1] - cy
        r = np.hypot(dx, dy)

        H_robot = np.zeros((3, 3))
        H_landmark = np.zeros((3, 3))

        if r >= RANGE_SINGULARITY:
            q = r**2
            # Range row
            H_robot[0] = [-dx / r, -dy / r, (dx * oy - dy * ox) / r]
            H_landmark[0] = [dx / r, dy / r, 0.0]
            # Bearing row
            H_robot[1] = [dy / q, -dx / q, -(dx * ox + dy * oy) / q - 1.0]
            H_landmark[1] = [-dy / q, dx / q, 0.0]
        else:
            # Sensor on top of the landmark: range/bearing carry no information
            H_robot[1, 2] = -1.0

        # Orientation row
        H_robot[2, 2] = -1.0
        H_landmark[2, 2] = 1.0

        return H_robot, H_landmark

    def inverse(self, z: np.ndarray, x: np.ndarray, s: np.ndarray) -> np.ndarray:
        """
        Inverse observation model: landmark world pose from a reading.

        Args:
            z: Reading [range, bearing, orientation]
            x: Robot pose [x, y, θ]
            s: Sensor pose in the robot frame

        Returns:
            Landmark pose [mx, my, mθ]
        """
        r, bearing, orientation = z
        cx, cy, ctheta = self.sensor_in_world(x, s)
        a = ctheta + bearing
        return np.array([
            cx + r * np.cos(a),
            cy + r * np.sin(a),
            wrap_angle(ctheta + orientation),
        ])

    def inverse_jacobians(
        self, z: np.ndarray, x: np.ndarray, s: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Jacobians of the inverse model with respect to the robot pose and
        the reading.

        Returns:
            Tuple (J_robot, J_z), each of shape (3, 3)
        """
        r, bearing, _ = z
        cx, cy, ctheta = self.sensor_in_world(x, s)
        ox = cx - x[0]
        oy = cy - x[1]
        a = ctheta + bearing
        ca, sa = np.cos(a), np.sin(a)

        J_robot = np.array([
            [1.0, 0.0, -oy - r * sa],
            [0.0, 1.0, ox + r * ca],
            [0.0, 0.0, 1.0],
        ])
        J_z = np.array([
            [ca, -r * sa, 0.0],
            [sa, r * ca, 0.0],
            [0.0, 0.0, 1.0],
        ])
        return J_robot, J_z

    def innovation(self, z_measured: np.ndarray, z_predicted: np.ndarray) -> np.ndarray:
        """
        Compute innovation with angle wrapping for bearing and orientation.

        Args:
            z_measured: Measured [range, bearing, orientation]
            z_predicted: Predicted [range, bearing, orientation]

        Returns:
            Innovation with angular components in (-π, π]
        """
        z_measured = np.asarray(z_measured, dtype=float)
        z_predicted = np.asarray(z_predicted, dtype=float)
        innovation = z_measured - z_predicted
        innovation[1:] = angle_diff(z_measured[1:], z_predicted[1:])
        return innovation

    def predict(self, robot: Pose2, landmark: Pose2, sensor: Pose2) -> np.ndarray:
        """Expected reading for Pose2 inputs."""
        return self.h(robot.to_array(), landmark.to_array(), sensor.to_array())
