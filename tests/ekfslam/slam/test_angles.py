"""Unit tests for ekfslam.utils.angles.

Headings in the joint state and every angular innovation must live on the
half-open interval (-π, π].
"""

import numpy as np
import pytest

from ekfslam.utils import angle_diff, wrap_angle, wrap_angle_array


class TestWrapAngle:
    """Test suite for wrap_angle function."""

    def test_wrap_zero(self):
        assert wrap_angle(0.0) == 0.0

    def test_wrap_pi(self):
        """Test that π maps to π."""
        assert np.isclose(wrap_angle(np.pi), np.pi)

    def test_wrap_negative_pi_maps_to_pi(self):
        """The lower boundary -π is excluded from the interval."""
        result = wrap_angle(-np.pi)
        assert -np.pi < result <= np.pi
        assert np.isclose(result, np.pi)

    def test_wrap_multiple_turns(self):
        assert np.isclose(wrap_angle(3.5 * np.pi), -0.5 * np.pi)
        assert np.isclose(wrap_angle(-2.25 * np.pi), -0.25 * np.pi)

    def test_returns_python_float(self):
        assert isinstance(wrap_angle(np.float64(7.0)), float)

    def test_sweep_stays_in_interval(self):
        """Every angle in [-10π, 10π] wraps into (-π, π] without changing direction."""
        angles = np.linspace(-10 * np.pi, 10 * np.pi, 4001)
        for angle in angles:
            wrapped = wrap_angle(angle)
            assert -np.pi < wrapped <= np.pi
            assert np.isclose(np.cos(wrapped), np.cos(angle), atol=1e-9)
            assert np.isclose(np.sin(wrapped), np.sin(angle), atol=1e-9)


class TestWrapAngleArray:
    """Test suite for the vectorized wrap."""

    def test_matches_scalar(self):
        angles = np.linspace(-10 * np.pi, 10 * np.pi, 257)
        expected = np.array([wrap_angle(a) for a in angles])
        np.testing.assert_allclose(wrap_angle_array(angles), expected, atol=1e-12)

    def test_boundary(self):
        wrapped = wrap_angle_array(np.array([-np.pi, np.pi]))
        np.testing.assert_allclose(wrapped, [np.pi, np.pi])


class TestAngleDiff:
    """Test suite for the shortest signed angular difference."""

    def test_across_discontinuity(self):
        assert np.isclose(angle_diff(np.pi - 0.1, -np.pi + 0.1), -0.2)
        assert np.isclose(angle_diff(-np.pi + 0.1, np.pi - 0.1), 0.2)

    @pytest.mark.parametrize("a1, a2", [
        (10 * np.pi, -10 * np.pi),
        (9.7 * np.pi, -3.2 * np.pi),
        (-10 * np.pi, 0.5),
        (0.0, 10 * np.pi - 1e-3),
    ])
    def test_innovation_in_interval(self, a1, a2):
        diff = angle_diff(a1, a2)
        assert -np.pi < diff <= np.pi

    def test_array_inputs(self):
        rng = np.random.default_rng(0)
        a1 = rng.uniform(-10 * np.pi, 10 * np.pi, 500)
        a2 = rng.uniform(-10 * np.pi, 10 * np.pi, 500)
        diff = angle_diff(a1, a2)
        assert np.all(diff > -np.pi)
        assert np.all(diff <= np.pi)
