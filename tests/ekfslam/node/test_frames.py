"""Unit tests for sensor frame resolution."""

import logging

import pytest

from ekfslam.errors import FrameLookupError
from ekfslam.node import StaticFrameResolver, resolve_sensor_pose
from ekfslam.slam import Pose2


class TestStaticFrameResolver:
    """Test suite for the table-backed resolver."""

    def test_known_transform(self):
        resolver = StaticFrameResolver({("base_link", "camera"): Pose2(0.2, 0.0, 0.0)})
        assert resolver("base_link", "camera") == Pose2(0.2, 0.0, 0.0)

    def test_same_frame_is_identity(self):
        assert StaticFrameResolver()("base_link", "base_link") == Pose2.identity()

    def test_unknown_transform(self):
        with pytest.raises(FrameLookupError, match="camera"):
            StaticFrameResolver()("base_link", "camera")

    def test_set_transform(self):
        resolver = StaticFrameResolver()
        resolver.set_transform("base_link", "camera", Pose2(0.1, 0.05, 0.0))
        assert resolver("base_link", "camera").y == 0.05


class TestResolveSensorPose:
    """Test suite for lookups with fallback."""

    FALLBACK = Pose2(0.225, 0.0, 0.0)

    def test_resolved(self):
        resolver = StaticFrameResolver({("base_link", "camera"): Pose2(0.3, 0.0, 0.1)})
        pose, resolved = resolve_sensor_pose(resolver, "base_link", "camera", self.FALLBACK)
        assert resolved
        assert pose == Pose2(0.3, 0.0, 0.1)

    def test_failed_lookup_falls_back_and_logs(self, caplog):
        with caplog.at_level(logging.ERROR, logger="ekfslam.node.frames"):
            pose, resolved = resolve_sensor_pose(
                StaticFrameResolver(), "base_link", "camera", self.FALLBACK
            )
        assert not resolved
        assert pose == self.FALLBACK
        assert "fallback" in caplog.text

    def test_no_resolver(self):
        pose, resolved = resolve_sensor_pose(None, "base_link", "camera", self.FALLBACK)
        assert not resolved
        assert pose == self.FALLBACK
