"""Unit tests for covariance ellipses."""

import numpy as np
import pytest

from ekfslam.slam import covariance_ellipse


class TestCovarianceEllipse:
    """Test suite for covariance_ellipse."""

    def test_axis_aligned(self):
        e = covariance_ellipse(np.array([1.0, -2.0]), np.diag([4.0, 1.0]))
        assert (e.x, e.y) == (1.0, -2.0)
        assert np.isclose(e.major, 4.0)
        assert np.isclose(e.minor, 2.0)
        assert np.isclose(np.sin(e.angle), 0.0, atol=1e-12)

    def test_major_axis_along_y(self):
        e = covariance_ellipse(np.zeros(2), np.diag([1.0, 9.0]))
        assert np.isclose(e.major, 6.0)
        assert np.isclose(abs(np.sin(e.angle)), 1.0)

    def test_rotated(self):
        angle = np.pi / 6
        R = np.array([[np.cos(angle), -np.sin(angle)], [np.sin(angle), np.cos(angle)]])
        C = R @ np.diag([0.25, 0.01]) @ R.T
        e = covariance_ellipse(np.zeros(2), C)
        assert np.isclose(e.major, 1.0)
        assert np.isclose(e.minor, 0.2)
        # Direction is defined up to a half turn
        assert np.isclose(np.tan(e.angle), np.tan(angle))

    def test_n_sigma_scales_axes(self):
        e1 = covariance_ellipse(np.zeros(2), np.diag([4.0, 1.0]))
        e2 = covariance_ellipse(np.zeros(2), np.diag([4.0, 1.0]), n_sigma=2.0)
        assert np.isclose(e2.major, 2 * e1.major)
        assert np.isclose(e2.minor, 2 * e1.minor)

    def test_uses_position_block_of_pose_covariance(self):
        P = np.diag([4.0, 1.0, 100.0])
        e = covariance_ellipse(np.array([0.0, 0.0, 1.0]), P)
        assert np.isclose(e.major, 4.0)

    @pytest.mark.parametrize("C", [np.zeros((2, 2)), np.diag([1e-20, -1e-20])])
    def test_degenerate(self, C):
        e = covariance_ellipse(np.zeros(2), C)
        assert e.minor >= 0.0
        assert np.isfinite(e.major)
