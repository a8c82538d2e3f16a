"""
Tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config
from models.config import Config, LoopConfig


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        is_valid, error = validate_config(valid_config)
        assert is_valid is True
        assert error is None

    def test_missing_camera_section(self, valid_config):
        del valid_config["camera"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "camera" in error

    def test_missing_model_section(self, valid_config):
        del valid_config["model"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "model" in error

    def test_missing_log_level(self, valid_config):
        del valid_config["log_level"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "log_level" in error

    def test_missing_log_path(self, valid_config):
        del valid_config["log_path"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "log_path" in error

    def test_postprocess_and_loop_are_optional(self, valid_config):
        del valid_config["postprocess"]
        del valid_config["loop"]
        is_valid, _ = validate_config(valid_config)
        assert is_valid is True

    def test_invalid_device_id_type(self, valid_config):
        valid_config["camera"]["device_id"] = 1.5
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "device_id" in error

    def test_negative_device_id(self, valid_config):
        valid_config["camera"]["device_id"] = -1
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "non-negative" in error

    def test_string_device_id_valid(self, valid_config):
        valid_config["camera"]["device_id"] = "videos/street.mp4"
        is_valid, _ = validate_config(valid_config)
        assert is_valid is True

    def test_invalid_output_size(self, valid_config):
        valid_config["camera"]["output_size"] = [350]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "output_size" in error

    def test_null_output_size_valid(self, valid_config):
        valid_config["camera"]["output_size"] = None
        is_valid, _ = validate_config(valid_config)
        assert is_valid is True

    def test_invalid_fps(self, valid_config):
        valid_config["camera"]["fps"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "fps" in error

    def test_invalid_rotation(self, valid_config):
        valid_config["camera"]["rotate"] = 45
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "rotate" in error

    def test_invalid_model_backend(self, valid_config):
        valid_config["model"]["backend"] = "tflite"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "model.backend" in error

    def test_opencv_backend_requires_path(self, valid_config):
        valid_config["model"]["path"] = ""
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "model.path" in error

    def test_replay_backend_requires_replay_path(self, valid_config):
        valid_config["model"] = {"backend": "replay"}
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "replay_path" in error

    def test_replay_backend_with_path(self, valid_config):
        valid_config["model"] = {"backend": "replay", "replay_path": "data/outputs.npz"}
        is_valid, _ = validate_config(valid_config)
        assert is_valid is True

    @pytest.mark.parametrize("key", ["iou_threshold", "score_threshold"])
    def test_threshold_out_of_range(self, valid_config, key):
        valid_config["postprocess"][key] = 1.5
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert key in error

    def test_invalid_max_outputs(self, valid_config):
        valid_config["postprocess"]["max_outputs"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "max_outputs" in error

    def test_invalid_target_fps(self, valid_config):
        valid_config["loop"]["target_fps"] = -10
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "target_fps" in error

    def test_unpaced_loop_valid(self, valid_config):
        valid_config["loop"]["target_fps"] = None
        is_valid, _ = validate_config(valid_config)
        assert is_valid is True

    def test_invalid_max_consecutive_failures(self, valid_config):
        valid_config["loop"]["max_consecutive_failures"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "max_consecutive_failures" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["model"]["backend"] == "opencv"
        assert config["camera"]["device_id"] == 0
        assert config["camera"]["output_size"] == [350, 450]

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  resolution: [1920, 1080]
  fps: 60
""")

        config = load_config(str(config_yaml))

        assert config["camera"]["resolution"] == [1920, 1080]
        assert config["camera"]["fps"] == 60
        assert config["camera"]["device_id"] == 0

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
postprocess:
  score_threshold: 0.6
""")
        explicit = temp_config_dir / "bench.yaml"
        explicit.write_text("""
postprocess:
  score_threshold: 0.7
""")

        config = load_config(str(explicit))

        assert config["postprocess"]["score_threshold"] == 0.7
        assert config["postprocess"]["iou_threshold"] == 0.5

    def test_missing_files_yield_empty(self, tmp_path):
        config = load_config(str(tmp_path / "nothing.yaml"))
        assert config == {}

    def test_invalid_yaml_exits(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("camera: [unclosed")

        with pytest.raises(SystemExit):
            load_config(str(temp_config_dir / "config.yaml"))


class TestTypedConfig:
    def test_from_dict_fills_defaults(self, valid_config):
        config = Config.from_dict(valid_config)

        assert config.camera.output_size == [350, 450]
        assert config.model.swap_rb is True
        assert config.postprocess.iou_threshold == 0.5
        assert config.render.display is False
        assert config.loop.max_consecutive_failures is None

    def test_roundtrip(self, valid_config):
        config = Config.from_dict(valid_config)
        again = Config.from_dict(config.to_dict())
        assert again == config

    def test_label_names_keys_are_strings(self):
        config = Config.from_dict({"render": {"label_names": {1: "person", 3: "car"}}})
        assert config.render.label_names == {"1": "person", "3": "car"}

    def test_loop_defaults(self):
        loop = LoopConfig()
        assert loop.target_fps == 60.0
        assert loop.warmup is True
