"""
Motion model (process model) for the robot sub-state of EKF-SLAM.

Provides the planar velocity motion model of a differential-drive robot:
the robot drives along a circular arc defined by a linear velocity v and an
angular velocity w held constant over Δt.

References:
    Thrun, Burgard, Fox, "Probabilistic Robotics", Section 5.3
    (velocity motion model) and Table 10.1 (EKF-SLAM prediction).
"""

import warnings
from typing import Tuple

import numpy as np

from ekfslam.slam.types import ControlInput, Pose2
from ekfslam.utils.angles import wrap_angle


class VelocityMotionModel2D:
    """
    Velocity motion model for a planar robot.

    State: x = [px, py, yaw]
    Control: u = [v, w]

    Dynamics (|w| > eps, exact circular arc):
        yaw' = yaw + w·dt
        px'  = px + (v/w)·(sin(yaw') - sin(yaw))
        py'  = py + (v/w)·(cos(yaw) - cos(yaw'))

    Dynamics (|w| <= eps, straight line):
        px'  = px + v·dt·cos(yaw)
        py'  = py + v·dt·sin(yaw)

    Control noise (Probabilistic Robotics, Eq. 5.10):
        M = diag(α1·v² + α2·w², α3·v² + α4·w²)

    Example:
        >>> model = VelocityMotionModel2D()
        >>> pose, F, G = model.predict(Pose2(0, 0, 0), ControlInput(1.0, 0.0), 0.5)
        >>> pose
        Pose2(x=0.5000, y=0.0000, yaw=0.0000)
    """

    def __init__(
        self,
        alpha_1: float = 0.1,
        alpha_2: float = 0.01,
        alpha_3: float = 0.01,
        alpha_4: float = 0.1,
        angular_velocity_epsilon: float = 1e-6,
    ):
        """
        Initialize velocity motion model.

        Args:
            alpha_1: Linear velocity noise caused by linear motion.
            alpha_2: Linear velocity noise caused by rotation.
            alpha_3: Angular velocity noise caused by linear motion.
            alpha_4: Angular velocity noise caused by rotation.
            angular_velocity_epsilon: Below this |w| the straight-line
                integration is used instead of the arc.
        """
        self.alpha = np.array([alpha_1, alpha_2, alpha_3, alpha_4], dtype=float)
        if np.any(self.alpha < 0):
            raise ValueError(f"Motion noise parameters must be non-negative, got {self.alpha}")
        if angular_velocity_epsilon <= 0:
            raise ValueError(
                f"angular_velocity_epsilon must be positive, got {angular_velocity_epsilon}"
            )
        self.angular_velocity_epsilon = angular_velocity_epsilon

    def f(self, x: np.ndarray, u: np.ndarray, dt: float) -> np.ndarray:
        """
        Process model: x_{k+1} = f(x_k, u_k, dt).

        Args:
            x: Robot pose [px, py, yaw]
            u: Control [v, w]
            dt: Time step in seconds

        Returns:
            Next pose [px', py', yaw'] with yaw' wrapped to (-π, π]
        """
        px, py, yaw = x
        v, w = u
        yaw_new = yaw + w * dt

        if abs(w) > self.angular_velocity_epsilon:
            r = v / w
            px_new = px + r * (np.sin(yaw_new) - np.sin(yaw))
            py_new = py + r * (np.cos(yaw) - np.cos(yaw_new))
        else:
            px_new = px + v * dt * np.cos(yaw)
            py_new = py + v * dt * np.sin(yaw)

        return np.array([px_new, py_new, wrap_angle(yaw_new)])

    def F(self, x: np.ndarray, u: np.ndarray, dt: float) -> np.ndarray:
        """
        Jacobian of f with respect to the pose, evaluated at the
        pre-prediction pose.

        Returns:
            3x3 matrix ∂f/∂x
        """
        _, _, yaw = x
        v, w = u
        F = np.eye(3)

        if abs(w) > self.angular_velocity_epsilon:
            r = v / w
            yaw_new = yaw + w * dt
            F[0, 2] = r * (np.cos(yaw_new) - np.cos(yaw))
            F[1, 2] = r * (np.sin(yaw_new) - np.sin(yaw))
        else:
            F[0, 2] = -v * dt * np.sin(yaw)
            F[1, 2] = v * dt * np.cos(yaw)

        return F

    def G(self, x: np.ndarray, u: np.ndarray, dt: float) -> np.ndarray:
        """
        Jacobian of f with respect to the control [v, w].

        Returns:
            3x2 matrix ∂f/∂u
        """
        _, _, yaw = x
        v, w = u
        G = np.zeros((3, 2))
        G[2, 1] = dt

        if abs(w) > self.angular_velocity_epsilon:
            yaw_new = yaw + w * dt
            ds = np.sin(yaw_new) - np.sin(yaw)
            dc = np.cos(yaw) - np.cos(yaw_new)
            G[0, 0] = ds / w
            G[1, 0] = dc / w
            G[0, 1] = -v * ds / w**2 + v * np.cos(yaw_new) * dt / w
            G[1, 1] = -v * dc / w**2 + v * np.sin(yaw_new) * dt / w
        else:
            # Limit of the arc expressions for w -> 0
            G[0, 0] = dt * np.cos(yaw)
            G[1, 0] = dt * np.sin(yaw)
            G[0, 1] = -0.5 * v * dt**2 * np.sin(yaw)
            G[1, 1] = 0.5 * v * dt**2 * np.cos(yaw)

        return G

    def M(self, u: np.ndarray) -> np.ndarray:
        """
        Control noise covariance in (v, w) space.

        Args:
            u: Control [v, w]

        Returns:
            2x2 diagonal covariance
        """
        v, w = u
        a1, a2, a3, a4 = self.alpha
        return np.diag([a1 * v**2 + a2 * w**2, a3 * v**2 + a4 * w**2])

    def predict(
        self, pose: Pose2, control: ControlInput, dt: float
    ) -> Tuple[Pose2, np.ndarray, np.ndarray]:
        """
        Predict the robot pose and the Jacobians needed for covariance
        propagation.

        Args:
            pose: Current robot pose.
            control: Velocity command held over dt.
            dt: Elapsed time in seconds (>= 0).

        Returns:
            Tuple (pose', F, G) with F = ∂f/∂x (3x3) and G = ∂f/∂u (3x2),
            both evaluated at the pre-prediction pose.
        """
        validate_motion_model_inputs(dt)
        x = pose.to_array()
        u = control.to_array()
        return Pose2.from_array(self.f(x, u, dt)), self.F(x, u, dt), self.G(x, u, dt)


def validate_motion_model_inputs(dt: float, model_name: str = "motion model") -> None:
    """
    Validate the time step passed to the motion model.

    Raises:
        ValueError: If dt is negative or not finite
        TypeError: If dt is not numeric
    """
    if not isinstance(dt, (int, float, np.floating)):
        raise TypeError(f"{model_name}: dt must be numeric, got {type(dt)}")
    if not np.isfinite(dt) or dt < 0:
        raise ValueError(f"{model_name}: dt must be finite and non-negative, got {dt}")
    if dt > 10.0:
        warnings.warn(
            f"{model_name}: dt={dt}s is unusually large. "
            "Check units (should be seconds).",
            RuntimeWarning
        )
