"""SLAM cycle driver.

SLAMNode sits between a message transport and a SLAM technique. Callbacks
store the latest velocity command, the latest fiducial detection and the
latest external reference pose; cycle() runs one predict/update step at a
fixed rate; publish() turns the estimate into presentation output.

Typical loop (10 Hz):

    node = SLAMNode()
    while running:
        node.cycle(now())
        output = node.publish()
        if output is not None:
            draw(output)
"""

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ekfslam.estimators.base import (
    SLAMTechnique,
    SLAMTechniqueType,
    StepStatus,
    UpdateResult,
    create_slam_technique,
)
from ekfslam.estimators.config import EKFSLAMConfig
from ekfslam.node.frames import FrameResolver, resolve_sensor_pose
from ekfslam.node.messages import FiducialDetection, LandmarkOutput, SLAMOutput
from ekfslam.slam.types import ControlInput, MeasurementFiducial, Pose2
from ekfslam.slam.uncertainty import covariance_ellipse

logger = logging.getLogger(__name__)

# Camera mounting used when the sensor frame cannot be resolved
DEFAULT_FALLBACK_SENSOR_POSE = Pose2(x=0.225, y=0.0, yaw=0.0)


@dataclass(frozen=True)
class SLAMConfig:
    """
    Driver-level configuration.

    Attributes:
        mode: SLAM technique, see SLAMTechniqueType.
        reset: When True the next cycle restarts the estimator, re-anchors
            the map origin at the reference pose and clears the flag.
        frame_id_map: Frame id of published poses.
        frame_id_base: Robot base frame id used for sensor lookups.
        fallback_sensor_pose: Sensor pose used when the lookup fails.
    """

    mode: int = int(SLAMTechniqueType.EKF)
    reset: bool = False
    frame_id_map: str = "map"
    frame_id_base: str = "base_link"
    fallback_sensor_pose: Pose2 = field(default_factory=lambda: DEFAULT_FALLBACK_SENSOR_POSE)

    def __post_init__(self) -> None:
        if not self.frame_id_map or not self.frame_id_base:
            raise ValueError("Frame ids must be non-empty strings")


class SLAMNode:
    """
    Fixed-rate driver for a SLAM technique.

    Attributes:
        config: Active SLAMConfig.
        slam: The SLAM technique instance.
        control: Latest velocity command.
        reference: Latest external reference pose (e.g. ground truth).
        origin: Pose of the map frame; set to `reference` on every reset.
    """

    def __init__(
        self,
        config: Optional[SLAMConfig] = None,
        technique_config: Optional[EKFSLAMConfig] = None,
        frame_resolver: Optional[FrameResolver] = None,
        reference: Optional[Pose2] = None,
    ):
        """
        Args:
            config: Driver configuration; defaults to SLAMConfig().
            technique_config: Configuration handed to the SLAM technique.
            frame_resolver: Source of sensor mounting poses.
            reference: Initial external reference pose; origin if None.

        Raises:
            ValueError: If config.mode is not a supported technique.
        """
        self.config = config if config is not None else SLAMConfig()
        self.slam: SLAMTechnique = create_slam_technique(self.config.mode, technique_config)
        logger.info(
            "SLAM mode: %s (%d)", self.slam.type_name, int(self.slam.technique_type)
        )

        self.frame_resolver = frame_resolver
        self.control = ControlInput()
        self.reference = reference if reference is not None else Pose2.identity()
        self.origin = self.reference
        self._pending: Optional[MeasurementFiducial] = None
        self.sensor_lookup_failures = 0

    # ------------------------------------------------------------------
    # Inbound callbacks
    # ------------------------------------------------------------------

    def on_command(self, v: float, w: float) -> None:
        """Store the latest velocity command (overwrites the previous one)."""
        self.control = ControlInput(v=v, w=w)

    def on_ground_truth(self, pose: Pose2) -> None:
        """Store the latest external reference pose."""
        self.reference = pose

    def on_fiducial(self, detection: FiducialDetection) -> MeasurementFiducial:
        """
        Convert a detection into a measurement batch for the next cycle.

        The sensor pose comes from the frame resolver; on failure the
        configured fallback is used and the failure is logged. Only the most
        recent detection is kept.

        Returns:
            The stored MeasurementFiducial.
        """
        sensor_pose, resolved = resolve_sensor_pose(
            self.frame_resolver,
            self.config.frame_id_base,
            detection.frame_id,
            self.config.fallback_sensor_pose,
        )
        if not resolved:
            self.sensor_lookup_failures += 1

        measurement = MeasurementFiducial(
            stamp=detection.stamp,
            sensor_pose=sensor_pose,
            observations=tuple(m.to_observation() for m in detection.markers),
            range_min=detection.distance_min,
            range_max=detection.distance_max,
            angle_min=detection.angle_min,
            angle_max=detection.angle_max,
        )
        if self._pending is not None:
            logger.debug("Replacing unprocessed measurement at t=%s", self._pending.stamp)
        self._pending = measurement
        return measurement

    def set_config(self, config: SLAMConfig) -> None:
        """
        Replace the driver configuration.

        Raises:
            ValueError: If the new config selects a different technique.
        """
        if config.mode != self.config.mode:
            raise ValueError(
                f"Switching SLAM mode at runtime is not supported "
                f"({self.config.mode} -> {config.mode})"
            )
        logger.info("SLAM driver configuration updated: %s", config)
        self.config = config

    def set_technique_config(self, config: EKFSLAMConfig) -> None:
        """Forward a technique configuration; applied before the next step."""
        self.slam.set_config(config)

    def request_reset(self) -> None:
        """Ask for a reset on the next cycle."""
        self.config = dataclasses.replace(self.config, reset=True)

    # ------------------------------------------------------------------
    # Cycle and output
    # ------------------------------------------------------------------

    def cycle(self, now: float) -> Tuple[StepStatus, Optional[UpdateResult]]:
        """
        Run one localization and mapping step.

        A pending detection stamped between the estimator clock and `now` is
        fused at its own stamp: predict to the detection, update, then
        predict on to `now`. Any other pending detection is handed to the
        estimator after predicting to `now`.

        Args:
            now: Current time in seconds.

        Returns:
            Tuple (predict status, update result or None if no measurement
            was pending).
        """
        if self.config.reset:
            self.origin = self.reference
            self.slam.reset()
            self._pending = None
            self.config = dataclasses.replace(self.config, reset=False)
            logger.info("SLAM reset, map origin at %s", self.origin)

        measurement, self._pending = self._pending, None
        result = None

        if measurement is not None and self._between_clock_and(measurement.stamp, now):
            # Bring the estimate to the acquisition time before fusing
            self.slam.predict(self.control, measurement.stamp)
            result = self.slam.update(measurement)
            status = self.slam.predict(self.control, now)
        else:
            status = self.slam.predict(self.control, now)
            if measurement is not None:
                result = self.slam.update(measurement)

        if result is not None and result.applied and result.rejected:
            logger.warning(
                "%d of %d observations rejected at t=%s",
                len(result.rejected), len(measurement), measurement.stamp
            )

        return status, result

    def _between_clock_and(self, stamp: float, now: float) -> bool:
        estimate = self.slam.current_estimate()
        last = estimate.stamp if estimate is not None else -math.inf
        return last <= stamp <= now

    def publish(self) -> Optional[SLAMOutput]:
        """
        Presentation snapshot of the current estimate.

        Returns:
            SLAMOutput, or None while no estimate exists yet.
        """
        estimate = self.slam.current_estimate()
        if estimate is None:
            return None

        P = estimate.covariance
        landmarks = []
        for k, (landmark_id, pose) in enumerate(zip(estimate.landmark_ids, estimate.landmarks)):
            i = 3 * (k + 1)
            landmarks.append(
                LandmarkOutput(
                    id=landmark_id,
                    pose=pose,
                    ellipse=covariance_ellipse(pose.to_array(), P[i:i + 2, i:i + 2]),
                )
            )

        robot = estimate.robot_pose
        return SLAMOutput(
            stamp=estimate.stamp,
            frame_id=self.config.frame_id_map,
            origin=self.origin,
            robot_pose=robot,
            robot_ellipse=covariance_ellipse(robot.to_array(), P[0:2, 0:2]),
            landmarks=tuple(landmarks),
        )
