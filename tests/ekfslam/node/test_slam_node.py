"""
Unit tests for the SLAM cycle driver.

Tests cover:
    - Latest-value semantics of the inbound callbacks
    - Cycle ordering (reset, predict, update) and one-shot reset
    - Sensor pose lookup with fallback
    - Publication gating and presentation output
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from ekfslam.estimators import EKFSLAMConfig, ObservationStatus, StepStatus
from ekfslam.node import (
    DEFAULT_FALLBACK_SENSOR_POSE,
    FiducialDetection,
    MarkerDetection,
    SLAMConfig,
    SLAMNode,
    StaticFrameResolver,
)
from ekfslam.slam import Pose2


def detection(stamp, *markers, frame_id="camera", **kwargs):
    return FiducialDetection(frame_id=frame_id, stamp=stamp, markers=markers, **kwargs)


class TestMarkerDetection(unittest.TestCase):
    """Conversion of Cartesian marker poses to fiducial readings."""

    def test_to_observation(self):
        obs = MarkerDetection(id=4, x=1.0, y=1.0, yaw=0.3).to_observation()
        self.assertEqual(obs.id, 4)
        self.assertAlmostEqual(obs.range, np.sqrt(2.0))
        self.assertAlmostEqual(obs.bearing, np.pi / 4)
        self.assertAlmostEqual(obs.orientation, 0.3)


class TestSLAMConfig(unittest.TestCase):

    def test_defaults(self):
        config = SLAMConfig()
        self.assertEqual(config.mode, 0)
        self.assertFalse(config.reset)
        self.assertEqual(config.fallback_sensor_pose, Pose2(0.225, 0.0, 0.0))

    def test_empty_frame_id(self):
        with self.assertRaises(ValueError):
            SLAMConfig(frame_id_map="")


class TestSLAMNode(unittest.TestCase):
    """Cycle driver behavior."""

    def setUp(self):
        self.resolver = StaticFrameResolver({("base_link", "camera"): Pose2(0.2, 0.0, 0.0)})
        self.node = SLAMNode(frame_resolver=self.resolver)

    def test_unsupported_mode(self):
        with self.assertRaises(ValueError):
            SLAMNode(SLAMConfig(mode=5))

    def test_no_output_before_first_cycle(self):
        self.assertIsNone(self.node.publish())

    def test_cycle_without_measurement(self):
        status, result = self.node.cycle(0.0)
        self.assertIs(status, StepStatus.APPLIED)
        self.assertIsNone(result)
        self.assertIsNotNone(self.node.publish())

    def test_latest_command_is_used(self):
        self.node.cycle(0.0)
        self.node.on_command(5.0, 1.0)
        self.node.on_command(1.0, 0.0)
        self.node.cycle(1.0)
        assert_allclose(self.node.slam.state[0:3], [1.0, 0.0, 0.0], atol=1e-12)

    def test_command_persists_between_cycles(self):
        self.node.on_command(1.0, 0.0)
        for k in range(4):
            self.node.cycle(0.5 * k)
        assert_allclose(self.node.slam.state[0], 1.5, atol=1e-12)

    def test_fiducial_uses_resolved_sensor_pose(self):
        measurement = self.node.on_fiducial(detection(0.0, MarkerDetection(1, 2.0, 0.0, 0.0)))
        self.assertEqual(measurement.sensor_pose, Pose2(0.2, 0.0, 0.0))
        self.assertEqual(self.node.sensor_lookup_failures, 0)

        _, result = self.node.cycle(0.0)
        self.assertEqual(result.count(ObservationStatus.INITIALIZED), 1)
        landmark = self.node.slam.current_estimate().landmark_pose(1)
        self.assertAlmostEqual(landmark.x, 2.2)

    def test_fiducial_falls_back_on_lookup_failure(self):
        measurement = self.node.on_fiducial(detection(0.0, frame_id="unknown_camera"))
        self.assertEqual(measurement.sensor_pose, DEFAULT_FALLBACK_SENSOR_POSE)
        self.assertEqual(self.node.sensor_lookup_failures, 1)

    def test_detector_limits_forwarded(self):
        measurement = self.node.on_fiducial(detection(
            0.0,
            MarkerDetection(1, 2.0, 0.0, 0.0),
            MarkerDetection(2, 9.0, 0.0, 0.0),
            distance_min=0.1,
            distance_max=5.0,
        ))
        self.assertEqual(measurement.range_max, 5.0)

        _, result = self.node.cycle(0.0)
        self.assertEqual(len(result.rejected), 1)
        self.assertEqual(result.rejected[0].landmark_id, 2)

    def test_only_latest_detection_is_processed(self):
        self.node.on_fiducial(detection(0.0, MarkerDetection(1, 2.0, 0.0, 0.0)))
        self.node.on_fiducial(detection(0.0, MarkerDetection(2, 2.0, 0.5, 0.0)))
        _, result = self.node.cycle(0.0)
        self.assertEqual([o.landmark_id for o in result.outcomes], [2])

        _, result = self.node.cycle(0.1)
        self.assertIsNone(result)

    def test_detection_between_cycles_is_fused_at_its_stamp(self):
        self.node.cycle(0.0)
        self.node.on_command(1.0, 0.0)
        self.node.on_fiducial(detection(0.05, MarkerDetection(5, 2.0, 0.0, 0.0)))

        status, result = self.node.cycle(0.1)

        self.assertIs(status, StepStatus.APPLIED)
        self.assertIs(result.status, StepStatus.APPLIED)
        self.assertEqual(result.count(ObservationStatus.INITIALIZED), 1)
        self.assertEqual(self.node.slam.stamp, 0.1)
        # Robot was at x = 0.05 when the marker was seen through the 0.2 m offset
        landmark = self.node.slam.current_estimate().landmark_pose(5)
        self.assertAlmostEqual(landmark.x, 2.25)
        self.assertAlmostEqual(self.node.slam.state[0], 0.1)

    def test_detection_older_than_clock_is_stale(self):
        self.node.cycle(0.0)
        self.node.cycle(0.2)
        self.node.on_fiducial(detection(0.1, MarkerDetection(5, 2.0, 0.0, 0.0)))

        status, result = self.node.cycle(0.3)

        self.assertIs(status, StepStatus.APPLIED)
        self.assertIs(result.status, StepStatus.STALE)
        self.assertEqual(self.node.slam.n_landmarks, 0)

    def test_reset_is_one_shot_and_reanchors_origin(self):
        self.node.on_fiducial(detection(0.0, MarkerDetection(1, 2.0, 0.0, 0.0)))
        self.node.cycle(0.0)
        self.assertEqual(self.node.slam.n_landmarks, 1)

        reference = Pose2(3.0, -1.0, 0.5)
        self.node.on_ground_truth(reference)
        self.node.request_reset()
        self.assertTrue(self.node.config.reset)

        self.node.cycle(1.0)

        self.assertFalse(self.node.config.reset)
        self.assertEqual(self.node.origin, reference)
        self.assertEqual(self.node.slam.n_landmarks, 0)
        assert_allclose(self.node.slam.state, np.zeros(3))
        self.assertEqual(self.node.slam.stamp, 1.0)

        output = self.node.publish()
        self.assertEqual(output.origin, reference)

    def test_reset_flag_in_initial_config(self):
        node = SLAMNode(SLAMConfig(reset=True), reference=Pose2(1.0, 1.0, 0.0))
        node.cycle(0.0)
        self.assertFalse(node.config.reset)
        self.assertEqual(node.origin, Pose2(1.0, 1.0, 0.0))

    def test_stale_cycle(self):
        self.node.cycle(1.0)
        status, _ = self.node.cycle(0.5)
        self.assertIs(status, StepStatus.STALE)

    def test_mode_change_rejected(self):
        with self.assertRaises(ValueError):
            self.node.set_config(SLAMConfig(mode=1))

    def test_set_config(self):
        self.node.set_config(SLAMConfig(frame_id_map="world"))
        self.node.cycle(0.0)
        self.assertEqual(self.node.publish().frame_id, "world")

    def test_technique_config_forwarded(self):
        self.node.set_technique_config(EKFSLAMConfig(sigma_range=0.42))
        self.node.cycle(0.0)
        self.assertEqual(self.node.slam.config.sigma_range, 0.42)

    def test_publish(self):
        self.node.on_fiducial(detection(
            0.0,
            MarkerDetection(7, 2.0, 0.0, 0.0),
            MarkerDetection(3, 0.0, 2.0, 0.0),
        ))
        self.node.cycle(0.0)
        output = self.node.publish()

        self.assertEqual(output.frame_id, "map")
        self.assertEqual(output.stamp, 0.0)
        self.assertEqual([lm.id for lm in output.landmarks], [7, 3])
        self.assertAlmostEqual(output.landmarks[0].pose.x, 2.2)
        self.assertAlmostEqual(output.landmarks[0].ellipse.x, 2.2)
        self.assertGreater(output.landmarks[0].ellipse.major, output.robot_ellipse.major)
        self.assertEqual((output.robot_ellipse.x, output.robot_ellipse.y), (0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
