"""Unit tests for EKFSLAMConfig, presets and the JSON loader."""

import json

import numpy as np
import pytest

from ekfslam.estimators import PRESETS, EKFSLAMConfig, load_config


class TestEKFSLAMConfig:
    """Test suite for EKFSLAMConfig validation."""

    def test_defaults(self):
        config = EKFSLAMConfig()
        assert config.sigma_initial == 0.01
        assert config.covariance_floor == 1e-9
        assert (config.alpha_1, config.alpha_2, config.alpha_3, config.alpha_4) == (0.1, 0.01, 0.01, 0.1)

    @pytest.mark.parametrize("kwargs", [
        {"alpha_1": -0.1},
        {"sigma_initial": -1.0},
        {"sigma_range": 0.0},
        {"sigma_bearing": -0.1},
        {"covariance_floor": 0.0},
        {"sigma_orientation": np.nan},
        {"alpha_4": np.inf},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EKFSLAMConfig(**kwargs)

    @pytest.mark.parametrize("value", ["0.1", None, True])
    def test_non_numeric(self, value):
        with pytest.raises(TypeError):
            EKFSLAMConfig(sigma_range=value)

    def test_zero_motion_noise_allowed(self):
        config = EKFSLAMConfig(alpha_1=0, alpha_2=0, alpha_3=0, alpha_4=0)
        assert config.alpha_1 == 0

    def test_degrees_warning(self):
        with pytest.warns(RuntimeWarning, match="radians"):
            EKFSLAMConfig(sigma_bearing=5.0)

    def test_frozen(self):
        config = EKFSLAMConfig()
        with pytest.raises(AttributeError):
            config.sigma_range = 1.0

    def test_dict_round_trip(self):
        config = EKFSLAMConfig(sigma_range=0.3, alpha_2=0.02)
        assert EKFSLAMConfig.from_dict(config.to_dict()) == config

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown"):
            EKFSLAMConfig.from_dict({"sigma_rnage": 0.1})


class TestPresets:
    """Test suite for named presets."""

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_every_preset_is_valid(self, name):
        config = EKFSLAMConfig.from_preset(name)
        assert isinstance(config, EKFSLAMConfig)
        assert "description" in PRESETS[name]

    def test_baseline_is_default(self):
        assert EKFSLAMConfig.from_preset("baseline") == EKFSLAMConfig()

    def test_low_noise_is_tighter(self):
        low = EKFSLAMConfig.from_preset("low_noise")
        high = EKFSLAMConfig.from_preset("high_noise")
        assert low.sigma_range < EKFSLAMConfig().sigma_range < high.sigma_range

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown preset"):
            EKFSLAMConfig.from_preset("extreme")


class TestLoadConfig:
    """Test suite for load_config."""

    def test_plain_values(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"sigma_range": 0.2, "alpha_1": 0.05}))
        config = load_config(path)
        assert config.sigma_range == 0.2
        assert config.alpha_1 == 0.05
        assert config.sigma_bearing == EKFSLAMConfig().sigma_bearing

    def test_preset_with_override(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"preset": "low_noise", "sigma_range": 0.05}))
        config = load_config(str(path))
        assert config.sigma_range == 0.05
        assert config.alpha_1 == PRESETS["low_noise"]["alpha_1"]

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps([0.1, 0.2]))
        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_value_in_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"sigma_range": -1.0}))
        with pytest.raises(ValueError):
            load_config(path)
