"""
Configuration of the EKF-SLAM estimator.

Noise parameters and numeric guards are grouped in a frozen dataclass so
that a new configuration can be built, validated and then handed to
EKFSLAM.set_config() as one value. Named presets and a JSON loader cover
the usual ways of supplying the numbers.

Example:
    >>> config = EKFSLAMConfig(sigma_range=0.05)
    >>> config.sigma_range
    0.05
    >>> low = EKFSLAMConfig.from_preset("low_noise")
"""

import json
import warnings
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np


@dataclass(frozen=True)
class EKFSLAMConfig:
    """
    Noise parameters and behavioral flags of the EKF-SLAM estimator.

    Attributes:
        alpha_1: Linear velocity noise from linear motion (v² coefficient).
        alpha_2: Linear velocity noise from rotation (w² coefficient).
        alpha_3: Angular velocity noise from linear motion (v² coefficient).
        alpha_4: Angular velocity noise from rotation (w² coefficient).
        sigma_range: Range noise standard deviation (m).
        sigma_bearing: Bearing noise standard deviation (rad).
        sigma_orientation: Orientation noise standard deviation (rad).
        sigma_initial: Standard deviation of the initial robot pose; the
            covariance after reset is sigma_initial² · I₃.
        covariance_floor: Lower clamp for covariance diagonal entries.
        angular_velocity_epsilon: |w| below which straight-line motion is used.
        symmetry_tolerance: Largest |P - Pᵀ| accepted after symmetrization.
    """

    alpha_1: float = 0.1
    alpha_2: float = 0.01
    alpha_3: float = 0.01
    alpha_4: float = 0.1
    sigma_range: float = 0.1
    sigma_bearing: float = 0.05
    sigma_orientation: float = 0.1
    sigma_initial: float = 0.01
    covariance_floor: float = 1e-9
    angular_velocity_epsilon: float = 1e-6
    symmetry_tolerance: float = 1e-9

    def __post_init__(self) -> None:
        """Validate the configuration values."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"{f.name} must be numeric, got {type(value)}")
            if not np.isfinite(value):
                raise ValueError(f"{f.name} must be finite, got {value}")

        for name in ("alpha_1", "alpha_2", "alpha_3", "alpha_4", "sigma_initial"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

        for name in (
            "sigma_range",
            "sigma_bearing",
            "sigma_orientation",
            "covariance_floor",
            "angular_velocity_epsilon",
            "symmetry_tolerance",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.sigma_bearing > np.pi or self.sigma_orientation > np.pi:
            warnings.warn(
                f"Angular noise (bearing={self.sigma_bearing}, "
                f"orientation={self.sigma_orientation}) exceeds π rad. "
                "Check units (should be radians).",
                RuntimeWarning
            )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "EKFSLAMConfig":
        """
        Build a configuration from a mapping, rejecting unknown keys.

        Raises:
            ValueError: If `values` contains keys that are not config fields.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown EKF-SLAM config keys: {unknown}")
        return cls(**values)

    @classmethod
    def from_preset(cls, name: str) -> "EKFSLAMConfig":
        if name not in PRESETS:
            raise ValueError(f"Unknown preset '{name}', choose from {sorted(PRESETS)}")
        values = {k: v for k, v in PRESETS[name].items() if k != "description"}
        return cls.from_dict(values)


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS = {
    'baseline': {
        'description': 'Nominal differential-drive robot with a fiducial camera',
    },
    'low_noise': {
        'description': 'Well calibrated odometry and detector',
        'alpha_1': 0.01,
        'alpha_2': 0.001,
        'alpha_3': 0.001,
        'alpha_4': 0.01,
        'sigma_range': 0.02,
        'sigma_bearing': 0.01,
        'sigma_orientation': 0.02,
    },
    'high_noise': {
        'description': 'Slipping wheels and a noisy detector',
        'alpha_1': 0.4,
        'alpha_2': 0.05,
        'alpha_3': 0.05,
        'alpha_4': 0.4,
        'sigma_range': 0.3,
        'sigma_bearing': 0.1,
        'sigma_orientation': 0.2,
    },
}


def load_config(path: Union[str, Path]) -> EKFSLAMConfig:
    """
    Load an EKF-SLAM configuration from a JSON file.

    The file holds either plain field values, or a "preset" key naming a
    base preset plus any overriding field values.

    Args:
        path: Path to the JSON file.

    Returns:
        Validated EKFSLAMConfig.

    Example file:
        {"preset": "low_noise", "sigma_range": 0.05}
    """
    with open(path) as f:
        values = json.load(f)
    if not isinstance(values, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    preset = values.pop("preset", None)
    if preset is None:
        return EKFSLAMConfig.from_dict(values)

    base = EKFSLAMConfig.from_preset(preset).to_dict()
    base.update(values)
    return EKFSLAMConfig.from_dict(base)
