"""Cycle driver around a SLAM technique.

Main components:
    - SLAMNode, SLAMConfig: fixed-rate predict/update driver with reset handling
    - FiducialDetection, MarkerDetection: inbound detector data
    - SLAMOutput, LandmarkOutput: outbound presentation data
    - StaticFrameResolver, resolve_sensor_pose: sensor mounting lookup with fallback
"""

from .frames import FrameResolver, StaticFrameResolver, resolve_sensor_pose
from .messages import FiducialDetection, LandmarkOutput, MarkerDetection, SLAMOutput
from .slam_node import DEFAULT_FALLBACK_SENSOR_POSE, SLAMConfig, SLAMNode

__all__ = [
    "SLAMNode",
    "SLAMConfig",
    "DEFAULT_FALLBACK_SENSOR_POSE",
    "FiducialDetection",
    "MarkerDetection",
    "SLAMOutput",
    "LandmarkOutput",
    "FrameResolver",
    "StaticFrameResolver",
    "resolve_sensor_pose",
]
