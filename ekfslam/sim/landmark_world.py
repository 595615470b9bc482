"""Synthetic fiducial world for EKF-SLAM demos and tests.

Generates a set of landmarks with ids and orientations, drives a robot with
constant velocity commands (true motion perturbed by the velocity-model
noise) and produces fiducial detections with range / bearing / orientation
noise, limited to the sensor's range and field of view.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from ekfslam.node.messages import FiducialDetection, MarkerDetection
from ekfslam.slam.se2 import se2_compose, se2_relative
from ekfslam.slam.types import Pose2
from ekfslam.utils.angles import wrap_angle


@dataclass
class LandmarkWorld:
    """
    Static landmarks.

    Attributes:
        ids: External landmark ids, shape (N,).
        poses: Landmark poses [x, y, yaw], shape (N, 3).
    """

    ids: np.ndarray
    poses: np.ndarray

    def __post_init__(self) -> None:
        self.ids = np.asarray(self.ids, dtype=int)
        self.poses = np.asarray(self.poses, dtype=float)
        if self.poses.ndim != 2 or self.poses.shape[1] != 3:
            raise ValueError(f"Landmark poses must be (N, 3), got {self.poses.shape}")
        if len(self.ids) != len(self.poses):
            raise ValueError("ids and poses must have the same length")
        if len(np.unique(self.ids)) != len(self.ids):
            raise ValueError("Landmark ids must be unique")

    def pose_of(self, landmark_id: int) -> np.ndarray:
        return self.poses[int(np.flatnonzero(self.ids == landmark_id)[0])]


@dataclass
class SensorSpec:
    """Fiducial sensor model used by the simulator."""

    mounting: Pose2 = field(default_factory=lambda: Pose2(0.225, 0.0, 0.0))
    frame_id: str = "camera"
    range_min: float = 0.2
    range_max: float = 5.0
    angle_min: float = -np.pi / 3
    angle_max: float = np.pi / 3
    sigma_range: float = 0.05
    sigma_bearing: float = 0.02
    sigma_orientation: float = 0.05


@dataclass
class SimulationRun:
    """
    Output of simulate_run().

    Attributes:
        t: Cycle timestamps, shape (T,).
        true_poses: True robot poses at each stamp, shape (T, 3).
        commands: Commanded (v, w) at each stamp, shape (T, 2).
        detections: Detection for each stamp.
    """

    t: np.ndarray
    true_poses: np.ndarray
    commands: np.ndarray
    detections: List[FiducialDetection]


def generate_landmarks(
    n_landmarks: int = 12,
    radius: float = 4.0,
    spread: float = 1.0,
    seed: int = 42,
) -> LandmarkWorld:
    """
    Scatter landmarks in a ring around the origin.

    Args:
        n_landmarks: Number of landmarks.
        radius: Mean distance from the origin (m).
        spread: Radial jitter (m).
        seed: Random seed.

    Returns:
        LandmarkWorld with ids 1..n_landmarks (plus an offset of 100 to keep
        ids distinct from state indices).
    """
    rng = np.random.default_rng(seed)
    angles = np.linspace(-np.pi, np.pi, n_landmarks, endpoint=False)
    radii = radius + rng.uniform(-spread, spread, n_landmarks)
    poses = np.column_stack([
        radii * np.cos(angles),
        radii * np.sin(angles),
        rng.uniform(-np.pi, np.pi, n_landmarks),
    ])
    return LandmarkWorld(ids=np.arange(n_landmarks) + 100, poses=poses)


def sample_velocity_motion(
    pose: np.ndarray,
    v: float,
    w: float,
    dt: float,
    alpha: Tuple[float, float, float, float],
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Sample the true next pose under the velocity motion model.

    The commanded (v, w) is perturbed with the same noise structure the
    filter assumes: var(v) = α1·v² + α2·w², var(w) = α3·v² + α4·w².
    """
    a1, a2, a3, a4 = alpha
    v_true = v + rng.normal(0.0, np.sqrt(a1 * v**2 + a2 * w**2))
    w_true = w + rng.normal(0.0, np.sqrt(a3 * v**2 + a4 * w**2))

    x, y, yaw = pose
    if abs(w_true) > 1e-6:
        r = v_true / w_true
        return np.array([
            x + r * (np.sin(yaw + w_true * dt) - np.sin(yaw)),
            y + r * (np.cos(yaw) - np.cos(yaw + w_true * dt)),
            wrap_angle(yaw + w_true * dt),
        ])
    return np.array([
        x + v_true * dt * np.cos(yaw),
        y + v_true * dt * np.sin(yaw),
        wrap_angle(yaw),
    ])


def detect_landmarks(
    pose: np.ndarray,
    world: LandmarkWorld,
    sensor: SensorSpec,
    stamp: float,
    rng: np.random.Generator,
) -> FiducialDetection:
    """
    Produce a noisy fiducial detection from the true robot pose.

    Only landmarks inside [range_min, range_max] and the field of view are
    reported; noise is applied in range/bearing/orientation space.
    """
    sensor_world = se2_compose(pose, sensor.mounting)
    markers = []
    for landmark_id, landmark in zip(world.ids, world.poses):
        rel = se2_relative(sensor_world, landmark)
        r = np.hypot(rel[0], rel[1])
        bearing = np.arctan2(rel[1], rel[0])
        if not (sensor.range_min <= r <= sensor.range_max):
            continue
        if not (sensor.angle_min <= bearing <= sensor.angle_max):
            continue

        r_noisy = max(r + rng.normal(0.0, sensor.sigma_range), 1e-3)
        b_noisy = bearing + rng.normal(0.0, sensor.sigma_bearing)
        o_noisy = wrap_angle(rel[2] + rng.normal(0.0, sensor.sigma_orientation))
        markers.append(
            MarkerDetection(
                id=int(landmark_id),
                x=float(r_noisy * np.cos(b_noisy)),
                y=float(r_noisy * np.sin(b_noisy)),
                yaw=float(o_noisy),
            )
        )

    return FiducialDetection(
        frame_id=sensor.frame_id,
        stamp=float(stamp),
        markers=tuple(markers),
        angle_min=sensor.angle_min,
        angle_max=sensor.angle_max,
        distance_min=sensor.range_min,
        distance_max=sensor.range_max,
    )


def simulate_run(
    world: LandmarkWorld,
    sensor: SensorSpec,
    v: float = 0.5,
    w: float = 0.15,
    dt: float = 0.1,
    n_steps: int = 400,
    alpha: Tuple[float, float, float, float] = (0.01, 0.001, 0.001, 0.01),
    start: Tuple[float, float, float] = (0.0, -3.0, 0.0),
    seed: int = 42,
) -> SimulationRun:
    """
    Drive the robot with a constant command and record detections.

    Args:
        world: Landmarks to observe.
        sensor: Sensor model.
        v, w: Commanded linear / angular velocity.
        dt: Cycle period (s).
        n_steps: Number of cycles.
        alpha: True motion noise parameters.
        start: Initial true pose.
        seed: Random seed.

    Returns:
        SimulationRun with T = n_steps + 1 samples (the first at t = 0).
    """
    rng = np.random.default_rng(seed)

    t = np.arange(n_steps + 1) * dt
    poses = np.zeros((n_steps + 1, 3))
    poses[0] = start
    commands = np.tile([v, w], (n_steps + 1, 1))

    for k in range(1, n_steps + 1):
        poses[k] = sample_velocity_motion(poses[k - 1], v, w, dt, alpha, rng)

    detections = [detect_landmarks(poses[k], world, sensor, t[k], rng) for k in range(n_steps + 1)]

    return SimulationRun(t=t, true_poses=poses, commands=commands, detections=detections)
