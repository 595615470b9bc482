"""Landmark-based EKF-SLAM for planar mobile robots.

This package contains the components of a single-robot, single-session
EKF-SLAM system:
- utils: Angle wrapping helpers
- slam: SE(2) poses, landmark registry, covariance ellipses
- models: Velocity motion model and fiducial observation model
- estimators: The EKF-SLAM state estimator and its configuration
- node: In-memory cycle driver with frame resolution and reset handling
- sim: Synthetic landmark world for demos and tests
- eval: Metrics and plots
"""

__version__ = "0.1.0"
