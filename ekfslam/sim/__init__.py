"""Synthetic landmark world and robot run generator."""

from .landmark_world import (
    LandmarkWorld,
    SensorSpec,
    SimulationRun,
    detect_landmarks,
    generate_landmarks,
    sample_velocity_motion,
    simulate_run,
)

__all__ = [
    "LandmarkWorld",
    "SensorSpec",
    "SimulationRun",
    "generate_landmarks",
    "sample_velocity_motion",
    "detect_landmarks",
    "simulate_run",
]
