"""
Base classes and result types for SLAM techniques.

This module defines the interface every SLAM technique offers to the cycle
driver (predict, update, reset, current_estimate, type_name) together with
the typed results used to report recoverable input problems.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from ekfslam.slam.types import ControlInput, MeasurementFiducial, Pose2, SLAMEstimate


class SLAMTechniqueType(enum.IntEnum):
    """Operation modes understood by the cycle driver."""

    EKF = 0


class EstimatorState(enum.Enum):
    """Lifecycle of an estimator: no input processed yet, or tracking."""

    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"


class StepStatus(enum.Enum):
    """Outcome of a predict or update call."""

    APPLIED = "applied"
    STALE = "stale"


class ObservationStatus(enum.Enum):
    """Outcome of a single observation inside an update batch."""

    INITIALIZED = "initialized"
    CORRECTED = "corrected"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ObservationOutcome:
    """What happened to one observation; `reason` is set for rejections."""

    landmark_id: int
    status: ObservationStatus
    reason: Optional[str] = None


@dataclass(frozen=True)
class UpdateResult:
    """Result of an update call: overall status plus per-observation outcomes."""

    status: StepStatus
    outcomes: Tuple[ObservationOutcome, ...] = ()

    @property
    def applied(self) -> bool:
        return self.status is StepStatus.APPLIED

    def count(self, status: ObservationStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def rejected(self) -> Tuple[ObservationOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status is ObservationStatus.REJECTED)


class SLAMTechnique(ABC):
    """Abstract base class for SLAM techniques."""

    @property
    @abstractmethod
    def technique_type(self) -> SLAMTechniqueType:
        """Mode identifier of this technique."""

    @property
    def type_name(self) -> str:
        """Short name, e.g. 'EKF'."""
        return self.technique_type.name

    @abstractmethod
    def predict(self, control: ControlInput, stamp: float) -> StepStatus:
        """
        Perform prediction step (time update) up to `stamp`.

        Args:
            control: Latest velocity command.
            stamp: Time of the prediction in seconds.
        """

    @abstractmethod
    def update(self, measurement: MeasurementFiducial) -> UpdateResult:
        """
        Perform measurement update (correction step) with a batch of sightings.

        Args:
            measurement: Time-stamped fiducial batch.
        """

    @abstractmethod
    def reset(self, anchor: Optional[Pose2] = None) -> None:
        """Discard the map and restart at `anchor` (origin if None)."""

    @abstractmethod
    def current_estimate(self) -> Optional[SLAMEstimate]:
        """Snapshot of the estimate, or None before the first processed input."""

    @property
    def time_last_update(self) -> Optional[float]:
        """Stamp of the last processed input, None while uninitialized."""
        estimate = self.current_estimate()
        return None if estimate is None else estimate.stamp


def create_slam_technique(mode: int, config=None) -> SLAMTechnique:
    """
    Instantiate the SLAM technique selected by `mode`.

    Args:
        mode: Integer mode, see SLAMTechniqueType.
        config: Optional technique configuration.

    Raises:
        ValueError: If the mode is not supported.
    """
    try:
        technique_type = SLAMTechniqueType(mode)
    except ValueError:
        raise ValueError(f"SLAM mode {mode} is not supported") from None

    if technique_type is SLAMTechniqueType.EKF:
        from ekfslam.estimators.ekf_slam import EKFSLAM
        return EKFSLAM(config)

    raise ValueError(f"SLAM mode {mode} is not supported")
