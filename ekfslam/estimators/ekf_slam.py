"""
Extended Kalman Filter SLAM with known correspondences.

The estimator maintains the joint Gaussian over the robot pose and every
landmark pose seen so far:

    y = [x, y, θ, m1x, m1y, m1θ, ..., mNx, mNy, mNθ]ᵀ       (3 + 3N)

    P = [ P_rr  P_rm ]
        [ P_mr  P_mm ]

Data association is by landmark id through a LandmarkRegistry. The first
sighting of an id initializes the landmark with the inverse observation
model; later sightings correct the whole joint state.

Implements:
    - Prediction:  x_r' = f(x_r, u, Δt)
                   P'   = F P Fᵀ + G M Gᵀ     (F = I outside the robot block)
    - Correction:  ν = z ⊖ h(y)
                   S = H P Hᵀ + R
                   K = P Hᵀ S⁻¹
                   y' = y + K ν,  P' = (I - K H) P,  P' ← (P' + P'ᵀ)/2
    - Augmentation: m = g(x_r, z),
                   P_m* = J_r P_r*,  P_mm = J_r P_rr J_rᵀ + J_z R J_zᵀ

References:
    Thrun, Burgard, Fox, "Probabilistic Robotics", Chapter 10.
"""

import logging
import numbers
from typing import Optional, Set, Tuple

import numpy as np
from scipy import linalg

from ekfslam.errors import InvariantViolation
from ekfslam.estimators.base import (
    EstimatorState,
    ObservationOutcome,
    ObservationStatus,
    SLAMTechnique,
    SLAMTechniqueType,
    StepStatus,
    UpdateResult,
)
from ekfslam.estimators.config import EKFSLAMConfig
from ekfslam.models.measurement_models import FiducialMeasurement2D
from ekfslam.models.motion_models import VelocityMotionModel2D
from ekfslam.slam.registry import LandmarkRegistry
from ekfslam.slam.types import (
    ControlInput,
    FiducialObservation,
    MeasurementFiducial,
    Pose2,
    SLAMEstimate,
)
from ekfslam.utils.angles import wrap_angle, wrap_angle_array

logger = logging.getLogger(__name__)


class EKFSLAM(SLAMTechnique):
    """
    EKF-SLAM estimator owning the joint state, covariance and registry.

    The estimator is driven externally: one predict() and at most one
    update() per cycle, never concurrently. Inputs older than the session
    clock are skipped without touching the state.

    Attributes:
        config: Active EKFSLAMConfig.
        motion_model: VelocityMotionModel2D built from config.
        measurement_model: FiducialMeasurement2D built from config.

    Example:
        >>> slam = EKFSLAM()
        >>> slam.current_estimate() is None
        True
        >>> slam.predict(ControlInput(0.0, 0.0), stamp=0.0)
        <StepStatus.APPLIED: 'applied'>
        >>> z = MeasurementFiducial(
        ...     stamp=0.1,
        ...     observations=(FiducialObservation(id=5, range=2.0, bearing=0.0, orientation=0.0),),
        ... )
        >>> result = slam.update(z)
        >>> slam.current_estimate().landmark_pose(5)
        Pose2(x=2.0000, y=0.0000, yaw=0.0000)
    """

    def __init__(self, config: Optional[EKFSLAMConfig] = None, anchor: Optional[Pose2] = None):
        """
        Initialize the estimator.

        Args:
            config: Noise parameters; defaults to EKFSLAMConfig().
            anchor: Initial robot pose; defaults to the origin.
        """
        if config is None:
            config = EKFSLAMConfig()
        if not isinstance(config, EKFSLAMConfig):
            raise TypeError(f"config must be EKFSLAMConfig, got {type(config)}")

        self.config = config
        self._pending_config: Optional[EKFSLAMConfig] = None
        self._build_models()

        self._state = np.zeros(3)
        self._covariance = np.zeros((3, 3))
        self._registry = LandmarkRegistry()
        self._stamp: Optional[float] = None
        self.reset(anchor)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def technique_type(self) -> SLAMTechniqueType:
        return SLAMTechniqueType.EKF

    @property
    def status(self) -> EstimatorState:
        if self._stamp is None:
            return EstimatorState.UNINITIALIZED
        return EstimatorState.TRACKING

    @property
    def stamp(self) -> Optional[float]:
        """Session clock: stamp of the last processed input."""
        return self._stamp

    @property
    def state(self) -> np.ndarray:
        """Copy of the flat joint state vector."""
        return self._state.copy()

    @property
    def covariance(self) -> np.ndarray:
        """Copy of the joint covariance matrix."""
        return self._covariance.copy()

    @property
    def n_landmarks(self) -> int:
        return len(self._registry)

    @property
    def landmark_ids(self) -> Tuple[int, ...]:
        return self._registry.ids()

    def landmark_index(self, landmark_id: int) -> Optional[int]:
        """State index of a landmark, or None if it was never observed."""
        return self._registry.resolve(landmark_id)

    def current_estimate(self) -> Optional[SLAMEstimate]:
        """
        Snapshot of the joint estimate.

        Returns:
            SLAMEstimate with copies of the state and a read-only copy of the
            covariance, or None before the first processed predict/update.
        """
        if self._stamp is None:
            return None

        covariance = self._covariance.copy()
        covariance.flags.writeable = False
        poses = tuple(
            Pose2.from_array(self._state[i:i + 3]) for i in range(0, len(self._state), 3)
        )
        return SLAMEstimate(
            poses=poses,
            covariance=covariance,
            stamp=self._stamp,
            landmark_ids=self._registry.ids(),
        )

    # ------------------------------------------------------------------
    # Configuration and lifecycle
    # ------------------------------------------------------------------

    def set_config(self, config: EKFSLAMConfig) -> None:
        """
        Schedule a new configuration.

        The configuration is swapped in as a whole at the start of the next
        predict(), update() or reset() call.
        """
        if not isinstance(config, EKFSLAMConfig):
            raise TypeError(f"config must be EKFSLAMConfig, got {type(config)}")
        self._pending_config = config
        logger.info("EKF-SLAM configuration scheduled: %s", config)

    def reset(self, anchor: Optional[Pose2] = None) -> None:
        """
        Replace state, covariance, registry and clock in one step.

        Args:
            anchor: Robot pose to restart from; the origin if None.
        """
        self._apply_pending_config()

        state = np.zeros(3) if anchor is None else anchor.to_array()
        covariance = self.config.sigma_initial**2 * np.eye(3)

        self._state, self._covariance, self._registry, self._stamp = (
            state, covariance, LandmarkRegistry(), None
        )
        logger.info("EKF-SLAM reset, robot anchored at %s", Pose2.from_array(state))

    def _apply_pending_config(self) -> None:
        if self._pending_config is None:
            return
        self.config = self._pending_config
        self._pending_config = None
        self._build_models()
        logger.info("EKF-SLAM configuration applied")

    def _build_models(self) -> None:
        c = self.config
        self.motion_model = VelocityMotionModel2D(
            alpha_1=c.alpha_1,
            alpha_2=c.alpha_2,
            alpha_3=c.alpha_3,
            alpha_4=c.alpha_4,
            angular_velocity_epsilon=c.angular_velocity_epsilon,
        )
        self.measurement_model = FiducialMeasurement2D(
            sigma_range=c.sigma_range,
            sigma_bearing=c.sigma_bearing,
            sigma_orientation=c.sigma_orientation,
        )

    def _is_stale(self, stamp: float) -> bool:
        if not np.isfinite(stamp):
            return True
        return self._stamp is not None and stamp < self._stamp

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, control: ControlInput, stamp: float) -> StepStatus:
        """
        Move the robot sub-state forward to `stamp`.

        The first call only starts the session clock (Δt = 0). Landmarks are
        static, so only the robot block and the robot rows/columns of the
        covariance change:

            P_rr' = F P_rr Fᵀ + G M Gᵀ
            P_rm' = F P_rm

        which equals F_full P F_fullᵀ + G_full M G_fullᵀ for F_full being
        the identity outside the robot block.

        Args:
            control: Velocity command held since the last step.
            stamp: Time of the prediction in seconds.

        Returns:
            StepStatus.APPLIED, or StepStatus.STALE if `stamp` is older than
            the session clock (state, covariance and clock untouched).
        """
        self._apply_pending_config()

        if self._is_stale(stamp):
            logger.warning(
                "Dropping control at t=%s older than session clock t=%s", stamp, self._stamp
            )
            return StepStatus.STALE

        dt = 0.0 if self._stamp is None else float(stamp - self._stamp)
        u = control.to_array()
        robot = Pose2.from_array(self._state[0:3])

        pose, F, G = self.motion_model.predict(robot, control, dt)
        M = self.motion_model.M(u)

        state = self._state.copy()
        state[0:3] = pose.to_array()

        P = self._covariance.copy()
        P[0:3, 0:3] = F @ self._covariance[0:3, 0:3] @ F.T + G @ M @ G.T
        P[0:3, 3:] = F @ self._covariance[0:3, 3:]
        P[3:, 0:3] = P[0:3, 3:].T
        P = self._condition(P)

        self._check_invariants(state, P, self._registry)
        self._state, self._covariance, self._stamp = state, P, float(stamp)

        logger.debug("Predicted dt=%.4f u=%s -> %s", dt, u, pose)
        return StepStatus.APPLIED

    # ------------------------------------------------------------------
    # Correction and augmentation
    # ------------------------------------------------------------------

    def update(self, measurement: MeasurementFiducial) -> UpdateResult:
        """
        Process a batch of fiducial sightings in arrival order.

        Unknown ids initialize a new landmark (no correction of the rest of
        the state on this step); known ids run an EKF correction. Malformed
        sightings are rejected individually and the rest of the batch is
        still processed.

        Args:
            measurement: Time-stamped batch with the sensor pose.

        Returns:
            UpdateResult with one ObservationOutcome per sighting, or a
            STALE result if the batch is older than the session clock.
        """
        self._apply_pending_config()

        if self._is_stale(measurement.stamp):
            logger.warning(
                "Dropping measurement at t=%s older than session clock t=%s",
                measurement.stamp, self._stamp
            )
            return UpdateResult(status=StepStatus.STALE)

        state = self._state
        P = self._covariance
        registry = self._registry.copy()
        sensor = measurement.sensor_pose.to_array()
        R = self.measurement_model.noise_covariance()

        outcomes = []
        seen: Set[int] = set()

        for observation in measurement:
            reason = self._validate_observation(observation, measurement, seen)
            if reason is not None:
                logger.warning("Rejected observation of landmark %s: %s", observation.id, reason)
                outcomes.append(
                    ObservationOutcome(observation.id, ObservationStatus.REJECTED, reason)
                )
                continue
            seen.add(observation.id)

            z = observation.to_array()
            index = registry.resolve(observation.id)

            if index is None:
                state, P = self._augment(state, P, z, sensor, R)
                index = registry.register(observation.id)
                if 3 * index != len(state) - 3:
                    raise InvariantViolation(
                        f"Landmark {observation.id} registered at index {index} but "
                        f"state holds {len(state) // 3} poses"
                    )
                logger.info(
                    "New landmark %s at index %d: %s",
                    observation.id, index, Pose2.from_array(state[-3:])
                )
                outcomes.append(ObservationOutcome(observation.id, ObservationStatus.INITIALIZED))
                continue

            corrected = self._correct(state, P, index, z, sensor, R)
            if corrected is None:
                reason = "innovation covariance is not positive definite"
                logger.warning("Rejected observation of landmark %s: %s", observation.id, reason)
                outcomes.append(
                    ObservationOutcome(observation.id, ObservationStatus.REJECTED, reason)
                )
                continue

            state, P = corrected
            outcomes.append(ObservationOutcome(observation.id, ObservationStatus.CORRECTED))

        self._check_invariants(state, P, registry)
        self._state, self._covariance, self._registry, self._stamp = (
            state, P, registry, float(measurement.stamp)
        )

        return UpdateResult(status=StepStatus.APPLIED, outcomes=tuple(outcomes))

    def _validate_observation(
        self,
        observation: FiducialObservation,
        measurement: MeasurementFiducial,
        seen: Set[int],
    ) -> Optional[str]:
        """Return the reason to reject a sighting, or None if it is usable."""
        if isinstance(observation.id, bool) or not isinstance(observation.id, numbers.Integral):
            return f"landmark id must be an integer, got {observation.id!r}"
        if observation.id in seen:
            return "duplicate landmark id within the batch"

        z = observation.to_array()
        if not np.all(np.isfinite(z)):
            return f"non-finite reading {z}"
        if observation.range <= 0:
            return f"non-positive range {observation.range}"

        if measurement.range_min is not None and observation.range < measurement.range_min:
            return f"range {observation.range} below sensor minimum {measurement.range_min}"
        if measurement.range_max is not None and observation.range > measurement.range_max:
            return f"range {observation.range} above sensor maximum {measurement.range_max}"
        bearing = wrap_angle(observation.bearing)
        if measurement.angle_min is not None and bearing < measurement.angle_min:
            return f"bearing {observation.bearing} outside field of view"
        if measurement.angle_max is not None and bearing > measurement.angle_max:
            return f"bearing {observation.bearing} outside field of view"
        return None

    def _augment(
        self,
        state: np.ndarray,
        P: np.ndarray,
        z: np.ndarray,
        sensor: np.ndarray,
        R: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Append a landmark initialized from reading `z`.

        New buffers are allocated and the old contents copied in; the
        inputs are never modified. The new block carries the robot pose
        uncertainty and the reading noise pushed through the inverse model.
        Its cross-covariance with the rest of the state is J_r P_r*: the
        landmark is correlated with the robot, and with older landmarks only
        through the robot. The reading noise enters no cross term.
        """
        robot = state[0:3]
        landmark = self.measurement_model.inverse(z, robot, sensor)
        J_robot, J_z = self.measurement_model.inverse_jacobians(z, robot, sensor)

        n = len(state)
        new_state = np.empty(n + 3)
        new_state[:n] = state
        new_state[n:] = landmark

        new_P = np.zeros((n + 3, n + 3))
        new_P[:n, :n] = P
        new_P[n:, :n] = J_robot @ P[0:3, :]
        new_P[:n, n:] = new_P[n:, :n].T
        new_P[n:, n:] = J_robot @ P[0:3, 0:3] @ J_robot.T + J_z @ R @ J_z.T

        return new_state, self._condition(new_P)

    def _correct(
        self,
        state: np.ndarray,
        P: np.ndarray,
        index: int,
        z: np.ndarray,
        sensor: np.ndarray,
        R: np.ndarray,
    ) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """
        EKF correction with one sighting of the landmark at `index`.

        Returns:
            (state, covariance) after the update, or None if S is not
            positive definite.
        """
        n = len(state)
        i = 3 * index
        robot = state[0:3]
        landmark = state[i:i + 3]

        z_pred = self.measurement_model.h(robot, landmark, sensor)
        H_robot, H_landmark = self.measurement_model.jacobians(robot, landmark, sensor)

        # H is zero outside the robot block and this landmark's block
        H = np.zeros((3, n))
        H[:, 0:3] = H_robot
        H[:, i:i + 3] = H_landmark

        innovation = self.measurement_model.innovation(z, z_pred)

        PHt = P @ H.T
        S = H @ PHt + R
        S = 0.5 * (S + S.T)

        try:
            K = linalg.cho_solve(linalg.cho_factor(S), PHt.T).T
        except linalg.LinAlgError:
            return None

        new_state = state + K @ innovation
        new_state[2::3] = wrap_angle_array(new_state[2::3])

        new_P = (np.eye(n) - K @ H) @ P

        logger.debug(
            "Corrected landmark index %d: innovation=%s, S diag=%s",
            index, innovation, np.diag(S)
        )
        return new_state, self._condition(new_P)

    # ------------------------------------------------------------------
    # Numeric guards
    # ------------------------------------------------------------------

    def _condition(self, P: np.ndarray) -> np.ndarray:
        """Symmetrize and clamp the diagonal to covariance_floor."""
        P = 0.5 * (P + P.T)
        diag = np.diag_indices_from(P)
        P[diag] = np.maximum(P[diag], self.config.covariance_floor)
        return P

    def _check_invariants(
        self, state: np.ndarray, P: np.ndarray, registry: LandmarkRegistry
    ) -> None:
        """
        Raise InvariantViolation if the joint estimate is internally
        inconsistent.
        """
        if state.ndim != 1 or len(state) % 3 != 0 or len(state) < 3:
            raise InvariantViolation(f"State vector has invalid shape {state.shape}")
        if P.shape != (len(state), len(state)):
            raise InvariantViolation(
                f"Covariance shape {P.shape} does not match state length {len(state)}"
            )
        if len(state) // 3 != 1 + len(registry):
            raise InvariantViolation(
                f"State holds {len(state) // 3} poses but registry has {len(registry)} landmarks"
            )
        registry.check_consistency()

        if not (np.all(np.isfinite(state)) and np.all(np.isfinite(P))):
            raise InvariantViolation("Joint state or covariance contains non-finite values")

        asymmetry = np.max(np.abs(P - P.T))
        if asymmetry > self.config.symmetry_tolerance:
            raise InvariantViolation(
                f"Covariance asymmetry {asymmetry:.3e} exceeds tolerance "
                f"{self.config.symmetry_tolerance:.3e}"
            )
