"""Unit tests for Pose2 and the array SE(2) operations."""

import numpy as np
import pytest

from ekfslam.slam import (
    FiducialObservation,
    MeasurementFiducial,
    Pose2,
    se2_compose,
    se2_inverse,
    se2_relative,
)


class TestPose2:
    """Test suite for the Pose2 value type."""

    def test_yaw_is_wrapped(self):
        pose = Pose2(1.0, 2.0, 2.5 * np.pi)
        assert np.isclose(pose.yaw, 0.5 * np.pi)

    @pytest.mark.parametrize("x, y, yaw", [
        (np.nan, 0.0, 0.0),
        (0.0, np.inf, 0.0),
        (0.0, 0.0, -np.inf),
    ])
    def test_non_finite_rejected(self, x, y, yaw):
        with pytest.raises(ValueError):
            Pose2(x, y, yaw)

    def test_from_array_shape(self):
        with pytest.raises(ValueError, match="shape"):
            Pose2.from_array(np.zeros(4))

    def test_array_round_trip(self):
        pose = Pose2(1.5, -0.5, 0.3)
        np.testing.assert_allclose(Pose2.from_array(pose.to_array()).to_array(), pose.to_array())

    def test_compose_with_inverse_is_identity(self):
        pose = Pose2(3.0, -1.0, 2.0)
        result = pose.compose(pose.inverse())
        np.testing.assert_allclose(result.to_array(), [0.0, 0.0, 0.0], atol=1e-12)

    def test_compose_rotated_frame(self):
        robot = Pose2(1.0, 0.0, np.pi / 2)
        sensor = Pose2(0.225, 0.0, 0.0)
        np.testing.assert_allclose(
            robot.compose(sensor).to_array(), [1.0, 0.225, np.pi / 2], atol=1e-12
        )

    def test_frozen(self):
        pose = Pose2.identity()
        with pytest.raises(AttributeError):
            pose.x = 1.0

    def test_repr(self):
        assert repr(Pose2(1.0, 2.0, 0.5)) == "Pose2(x=1.0000, y=2.0000, yaw=0.5000)"


class TestSE2Arrays:
    """Test suite for se2_compose / se2_inverse / se2_relative."""

    def test_compose_matches_pose2(self):
        p1 = Pose2(1.0, 2.0, 0.7)
        p2 = Pose2(-0.5, 0.3, -2.9)
        np.testing.assert_allclose(se2_compose(p1, p2), p1.compose(p2).to_array(), atol=1e-12)

    def test_inverse_matches_pose2(self):
        p = Pose2(4.0, -2.0, 1.2)
        np.testing.assert_allclose(se2_inverse(p), p.inverse().to_array(), atol=1e-12)

    def test_relative_recovers_local_pose(self):
        base = np.array([2.0, 1.0, 0.4])
        local = np.array([1.0, -0.5, 0.3])
        world = se2_compose(base, local)
        np.testing.assert_allclose(se2_relative(base, world), local, atol=1e-12)

    def test_invalid_shape(self):
        with pytest.raises(ValueError):
            se2_compose(np.zeros(2), np.zeros(3))


class TestMeasurementFiducial:
    """Test suite for the measurement batch container."""

    def test_defaults(self):
        z = MeasurementFiducial(stamp=1.0)
        assert len(z) == 0
        assert z.sensor_pose == Pose2.identity()
        assert z.range_max is None

    def test_observations_become_tuple(self):
        obs = [FiducialObservation(1, 2.0, 0.1, 0.0), FiducialObservation(2, 3.0, -0.1, 0.5)]
        z = MeasurementFiducial(stamp=0.5, observations=obs)
        assert isinstance(z.observations, tuple)
        assert [o.id for o in z] == [1, 2]

    def test_stamp_must_be_numeric(self):
        with pytest.raises(TypeError):
            MeasurementFiducial(stamp="now")
        with pytest.raises(TypeError):
            MeasurementFiducial(stamp=True)

    @pytest.mark.parametrize("stamp", [np.float32(0.5), np.float64(0.5), np.int64(2)])
    def test_numpy_scalar_stamp(self, stamp):
        z = MeasurementFiducial(stamp=stamp)
        assert isinstance(z.stamp, float)
        assert z.stamp == float(stamp)

    def test_observation_is_not_validated(self):
        """Malformed readings are carried through to the estimator."""
        obs = FiducialObservation(3, -1.0, np.nan, 0.0)
        assert np.isnan(obs.to_array()[1])
